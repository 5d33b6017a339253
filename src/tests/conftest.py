import plistlib
from pathlib import Path

import pytest

from sparkle_release.models import ReleaseConfig

SIGN_OUTPUT = 'sparkle:edSignature="abc123" length="4096"\n'
PUBLIC_KEY = "pfIShU4dEXqPd5ObYNfDBiQWcXozk7estwzTnF9BamQ=\n"


class FakeRunner:
    """Stands in for ``run_command``; records every call and fakes the tools' output."""

    def __init__(self):
        self.calls: list[tuple[str, list[str]]] = []
        self.outputs = {"sign_update": SIGN_OUTPUT, "generate_keys": PUBLIC_KEY}
        self.failures: dict[str, Exception] = {}

    def __call__(self, executable, arguments, **kwargs):
        name = Path(executable).name
        self.calls.append((name, [str(a) for a in arguments]))
        if name in self.failures:
            raise self.failures[name]
        if name == "ditto":
            # ditto's last argument is the destination zip
            Path(arguments[-1]).write_bytes(b"PK\x05\x06" + b"\x00" * 18)
            return ""
        return self.outputs.get(name, "")

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]


def write_bundle(parent: Path, name: str = "MyApp", plist: dict | None = None, *, fmt=plistlib.FMT_XML) -> Path:
    bundle = parent / f"{name}.app"
    contents = bundle / "Contents"
    contents.mkdir(parents=True)
    if plist is not None:
        with open(contents / "Info.plist", "wb") as f:
            plistlib.dump(plist, f, fmt=fmt)
    return bundle


@pytest.fixture
def make_bundle(tmp_path):
    def factory(name="MyApp", plist=None, **kwargs):
        if plist is None:
            plist = {"CFBundleVersion": "42", "CFBundleShortVersionString": "1.2.3"}
        return write_bundle(tmp_path, name, plist, **kwargs)

    return factory


@pytest.fixture
def tools_dir(tmp_path) -> Path:
    d = tmp_path / "sparkle-bin"
    d.mkdir()
    for tool in ("sign_update", "generate_keys"):
        (d / tool).write_text("#!/bin/sh\n")
    return d


@pytest.fixture
def config(tools_dir) -> ReleaseConfig:
    return ReleaseConfig(tools_dir=tools_dir)


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()

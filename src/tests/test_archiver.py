import sys

import pytest
from conftest import FakeRunner

from sparkle_release.core.archiver import create_archive, ditto_arguments
from sparkle_release.core.bundle_info import read_bundle_metadata
from sparkle_release.core.errors import CommandError


def test_ditto_arguments_keep_parent(tmp_path):
    src, dest = tmp_path / "MyApp.app", tmp_path / "MyApp-v1.zip"
    assert ditto_arguments(src, dest) == ["-c", "-k", "--sequesterRsrc", "--keepParent", str(src), str(dest)]


def test_archive_is_written_next_to_bundle(make_bundle, fake_runner):
    md = read_bundle_metadata(make_bundle())
    archive = create_archive(md, fake_runner)

    assert archive == md.parent_dir / "MyApp-v1.2.3.zip"
    assert archive.exists()
    assert fake_runner.calls == [("ditto", ditto_arguments(md.path, archive))]


def test_stale_archive_is_removed_first(make_bundle):
    md = read_bundle_metadata(make_bundle())
    stale = md.parent_dir / md.archive_name
    stale.write_bytes(b"old release")
    seen = {}

    def runner(executable, arguments, **kwargs):
        seen["existed"] = stale.exists()
        return ""

    create_archive(md, runner)
    assert seen["existed"] is False


def test_ditto_is_not_chmodded(make_bundle):
    md = read_bundle_metadata(make_bundle())
    seen = {}

    def runner(executable, arguments, **kwargs):
        seen.update(kwargs)
        return ""

    create_archive(md, runner)
    assert seen == {"make_executable": False}


def test_ditto_failure_propagates(make_bundle):
    md = read_bundle_metadata(make_bundle())
    runner = FakeRunner()
    runner.failures["ditto"] = CommandError(["ditto"], 1, "ditto: No space left on device")
    with pytest.raises(CommandError, match="No space left"):
        create_archive(md, runner)


@pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")
def test_runs_real_process(make_bundle, tmp_path):
    md = read_bundle_metadata(make_bundle())
    ditto = tmp_path / "ditto"
    ditto.write_text('#!/bin/sh\nfor last; do :; done\necho "$*" > "$last"\n')
    ditto.chmod(0o755)

    archive = create_archive(md, ditto=ditto)

    assert archive.read_text().split() == ditto_arguments(md.path, archive)

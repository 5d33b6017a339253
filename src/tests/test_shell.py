import os
import stat
import sys

import pytest

from sparkle_release.core.errors import CommandError, ToolNotFoundError
from sparkle_release.core.shell import run_command

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")


@pytest.fixture
def script(tmp_path):
    def make(body: str, name: str = "tool"):
        path = tmp_path / name
        path.write_text(f"#!/bin/sh\n{body}\n")
        path.chmod(0o644)
        return path

    return make


def test_returns_stdout(script):
    tool = script('echo "hello $1"')
    assert run_command(tool, ["world"]) == "hello world\n"


def test_falls_back_to_stderr_when_stdout_empty(script):
    tool = script('echo "only on stderr" >&2')
    assert run_command(tool, []) == "only on stderr\n"


def test_nonzero_exit_raises_with_stderr(script):
    tool = script('echo "bad key" >&2\nexit 3')
    with pytest.raises(CommandError) as exc:
        run_command(tool, ["x"])
    assert exc.value.returncode == 3
    assert "bad key" in exc.value.stderr
    assert str(exc.value) == "Command failed: bad key"


def test_nonzero_exit_without_stderr_reports_status(script):
    tool = script("exit 1")
    with pytest.raises(CommandError, match="exit status 1"):
        run_command(tool, [])


def test_missing_executable(tmp_path):
    with pytest.raises(ToolNotFoundError):
        run_command(tmp_path / "sign_update", [])


def test_marks_tool_executable(script):
    tool = script("echo ok")
    run_command(tool, [])
    assert stat.S_IMODE(os.stat(tool).st_mode) == 0o755


def test_leaves_mode_alone_when_asked(script):
    tool = script("echo ok")
    with pytest.raises(CommandError):
        # not executable and not chmod'ed, so the exec itself fails
        run_command(tool, [], make_executable=False)
    assert stat.S_IMODE(os.stat(tool).st_mode) == 0o644


def test_undecodable_output_is_replaced(script):
    tool = script("printf 'sparkle:edSignature=\"abc\" length=\"1\" \\377\\376\\n'")
    out = run_command(tool, [])
    assert out.startswith('sparkle:edSignature="abc" length="1" ')
    assert "\ufffd" in out

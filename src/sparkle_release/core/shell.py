import logging
import os
import subprocess
from collections.abc import Callable
from pathlib import Path

from sparkle_release.constants import EXECUTABLE_MODE
from sparkle_release.core.errors import CommandError, ToolNotFoundError

logger = logging.getLogger(__name__)

Runner = Callable[..., str]


def run_command(executable: str | Path, arguments: list[str], *, make_executable: bool = True) -> str:
    """
    Run *executable* synchronously and return what it printed.

    Blocks until the child exits. A non-zero exit raises ``CommandError`` carrying stderr.
    Sparkle's tools sometimes report on stderr only, so stderr is returned when stdout is empty.
    """
    exe = Path(executable)
    if not exe.exists():
        raise ToolNotFoundError(f"{exe.name} tool not found at {exe}.")

    if make_executable:
        try:
            os.chmod(exe, EXECUTABLE_MODE)
        except OSError:
            pass  # read-only volume / not ours; the run below reports real problems

    cmd = [str(exe), *[str(a) for a in arguments]]
    logger.debug("$ %s", " ".join(cmd))
    try:
        res = subprocess.run(cmd, capture_output=True, text=True, encoding="utf-8", errors="replace", check=False)
    except OSError as e:
        raise CommandError(cmd, -1, str(e)) from e

    if res.returncode != 0:
        logger.error("Command failed (%s): %s", res.returncode, " ".join(cmd))
        if res.stderr:
            logger.error(res.stderr.strip())
        raise CommandError(cmd, res.returncode, res.stderr)

    return res.stdout if res.stdout else res.stderr

import logging
from pathlib import Path

from sparkle_release.constants import DITTO_PATH
from sparkle_release.core.shell import Runner, run_command
from sparkle_release.models import BundleMetadata

logger = logging.getLogger(__name__)


def ditto_arguments(src: Path, dest: Path) -> list[str]:
    # -c -k: PKZip archive; --sequesterRsrc keeps resource forks under __MACOSX;
    # --keepParent makes the bundle the single top-level entry
    return ["-c", "-k", "--sequesterRsrc", "--keepParent", str(src), str(dest)]


def create_archive(metadata: BundleMetadata, runner: Runner = run_command, ditto: str | Path = DITTO_PATH) -> Path:
    """Zip the bundle next to itself as ``<name>-v<short_version>.zip`` and return the archive path."""
    dest = metadata.parent_dir / metadata.archive_name
    if dest.exists():
        dest.unlink()
        logger.debug("Removed stale archive %s", dest)

    runner(ditto, ditto_arguments(metadata.path, dest), make_executable=False)
    logger.info("Zipped → %s", dest.name)
    return dest

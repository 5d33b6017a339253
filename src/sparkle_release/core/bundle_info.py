"""Read the identity of a macOS application bundle from its Info.plist."""

import logging
import plistlib
from pathlib import Path

from sparkle_release.constants import (
    BUNDLE_SUFFIX,
    DEFAULT_BUNDLE_VERSION,
    INFO_PLIST_RELATIVE_PATH,
    PLIST_SHORT_VERSION_KEY,
    PLIST_VERSION_KEY,
)
from sparkle_release.core.errors import InvalidBundleError, MetadataError
from sparkle_release.models import BundleMetadata

logger = logging.getLogger(__name__)


def is_app_bundle(path: str | Path) -> bool:
    return Path(path).suffix == BUNDLE_SUFFIX


def _string_or_default(plist: dict, key: str) -> str:
    value = plist.get(key)
    return value if isinstance(value, str) else DEFAULT_BUNDLE_VERSION


def read_bundle_metadata(bundle_path: str | Path) -> BundleMetadata:
    """
    Return name and version strings for the bundle at *bundle_path*.

    Versions come back exactly as written in the plist. Missing (or non-string)
    entries fall back to "1.0"; a missing or unreadable plist is an error.
    """
    bundle = Path(bundle_path).expanduser()
    if not is_app_bundle(bundle):
        raise InvalidBundleError("Please drop a valid .app file.")
    if not bundle.is_dir():
        raise InvalidBundleError(f"Not an application bundle: {bundle}")

    plist_path = bundle / INFO_PLIST_RELATIVE_PATH
    try:
        with open(plist_path, "rb") as f:
            plist = plistlib.load(f)
    except FileNotFoundError as e:
        raise MetadataError(f"Info.plist not found: {plist_path}") from e
    except (plistlib.InvalidFileException, ValueError) as e:
        raise MetadataError(f"Could not read Info.plist: {plist_path} ({e})") from e
    except OSError as e:
        raise MetadataError(f"Could not open Info.plist: {plist_path} ({e})") from e

    if not isinstance(plist, dict):
        raise MetadataError(f"Could not read Info.plist: {plist_path} (root is not a dictionary)")

    metadata = BundleMetadata(
        path=bundle,
        name=bundle.stem,
        version=_string_or_default(plist, PLIST_VERSION_KEY),
        short_version=_string_or_default(plist, PLIST_SHORT_VERSION_KEY),
    )
    logger.info("Loaded %s %s (%s)", metadata.name, metadata.short_version, metadata.version)
    return metadata

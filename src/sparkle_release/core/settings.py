"""Persisted preferences (QSettings) ↔ ``ReleaseConfig``."""

import logging
import os
import sys
from pathlib import Path

from PyQt5.QtCore import QSettings

from sparkle_release.constants import (
    SETTINGS_APP,
    SETTINGS_ORG,
    SETTINGS_PRIVATE_KEY_PATH_KEY,
    SETTINGS_TOOLS_DIR_KEY,
    SETTINGS_URL_PREFIX_KEY,
    SIGN_UPDATE_TOOL,
    TOOLS_DIR_ENV,
)
from sparkle_release.models import ReleaseConfig

logger = logging.getLogger(__name__)


def open_settings() -> QSettings:
    return QSettings(SETTINGS_ORG, SETTINGS_APP)


def bundled_tools_dir() -> Path | None:
    """Contents/Resources of a py2app build, where sign_update/generate_keys ship alongside the app."""
    if getattr(sys, "frozen", False):
        resources = Path(sys.executable).resolve().parent.parent / "Resources"
        if (resources / SIGN_UPDATE_TOOL).is_file():
            return resources
    return None


def discover_tools_dir(stored: str = "") -> Path | None:
    """Stored preference, then $SPARKLE_TOOLS_DIR, then the app bundle. None means "look on PATH"."""
    for candidate in (stored, os.environ.get(TOOLS_DIR_ENV, "")):
        if candidate and Path(candidate).expanduser().is_dir():
            return Path(candidate).expanduser()
        if candidate:
            logger.warning("Ignoring tools directory that does not exist: %s", candidate)
    return bundled_tools_dir()


def load_config(settings: QSettings | None = None) -> ReleaseConfig:
    stg = settings or open_settings()
    tools_dir = stg.value(SETTINGS_TOOLS_DIR_KEY, "") or ""
    key_path = stg.value(SETTINGS_PRIVATE_KEY_PATH_KEY, "") or ""
    url_prefix = stg.value(SETTINGS_URL_PREFIX_KEY, "") or ""

    return ReleaseConfig(
        tools_dir=discover_tools_dir(tools_dir),
        private_key_path=Path(key_path).expanduser() if key_path else None,
        download_url_prefix=url_prefix,
    )


def save_config(config: ReleaseConfig, settings: QSettings | None = None) -> None:
    stg = settings or open_settings()
    stg.setValue(SETTINGS_TOOLS_DIR_KEY, str(config.tools_dir) if config.tools_dir else "")
    stg.setValue(SETTINGS_PRIVATE_KEY_PATH_KEY, str(config.private_key_path) if config.private_key_path else "")
    stg.setValue(SETTINGS_URL_PREFIX_KEY, config.download_url_prefix)
    stg.sync()
    logger.debug("Saved preferences: %s", config.to_dict())

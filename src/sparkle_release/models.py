"""Data models for a single release run."""

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from sparkle_release.constants import SIGN_UPDATE_TOOL


@dataclass(frozen=True)
class BundleMetadata:
    """Identity of the ``.app`` being released, read from its Info.plist."""

    path: Path
    name: str
    version: str  # CFBundleVersion
    short_version: str  # CFBundleShortVersionString

    @property
    def parent_dir(self) -> Path:
        return self.path.parent

    @property
    def archive_name(self) -> str:
        return f"{self.name}-v{self.short_version}.zip"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": str(self.path),
            "name": self.name,
            "version": self.version,
            "short_version": self.short_version,
        }


@dataclass(frozen=True)
class SignatureResult:
    """EdDSA signature and archive byte length as printed by sign_update."""

    signature: str
    length: str

    def to_dict(self) -> Dict[str, Any]:
        return {"signature": self.signature, "length": self.length}


@dataclass(frozen=True)
class ReleaseConfig:
    """Everything the pipeline needs to know that isn't in the bundle itself."""

    tools_dir: Optional[Path] = None
    private_key_path: Optional[Path] = None
    download_url_prefix: str = ""

    @property
    def key_source(self) -> str:
        return "file" if self.private_key_path else "keychain"

    def tool_path(self, name: str = SIGN_UPDATE_TOOL) -> Optional[Path]:
        """Locate a Sparkle tool in the configured directory, or on PATH."""
        if self.tools_dir:
            candidate = Path(self.tools_dir) / name
            return candidate if candidate.is_file() else None
        found = shutil.which(name)
        return Path(found) if found else None

    def suggested_download_url(self, archive_name: str) -> str:
        if not self.download_url_prefix:
            return ""
        return f"{self.download_url_prefix.rstrip('/')}/{archive_name}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tools_dir": os.fspath(self.tools_dir) if self.tools_dir else "",
            "private_key_path": os.fspath(self.private_key_path) if self.private_key_path else "",
            "download_url_prefix": self.download_url_prefix,
            "key_source": self.key_source,
        }


@dataclass(frozen=True)
class ReleaseArtifacts:
    """What one successful generate run left on disk."""

    metadata: BundleMetadata
    archive_path: Path
    signature: SignatureResult
    appcast_xml: str
    appcast_path: Optional[Path] = None
    download_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metadata": self.metadata.to_dict(),
            "archive_path": str(self.archive_path),
            "signature": self.signature.to_dict(),
            "appcast_path": str(self.appcast_path) if self.appcast_path else None,
            "download_url": self.download_url,
        }

#!/usr/bin/env python3
# py2app build only; `pip install` uses pyproject.toml.

import tomllib
from pathlib import Path

from PyQt5.QtCore import QLibraryInfo
from setuptools import setup

ROOT = Path(__file__).parent.resolve()
PYPROJECT = ROOT / "pyproject.toml"
QT_PLUGINS_DIR = QLibraryInfo.location(QLibraryInfo.PluginsPath)
# sign_update / generate_keys from the Sparkle distribution, copied into Contents/Resources
SPARKLE_BIN = ROOT / "vendor" / "sparkle" / "bin"

# Load metadata from pyproject.toml
with PYPROJECT.open("rb") as f:
    meta = tomllib.load(f)["tool"]["poetry"]

PKG_NAME = meta["name"]
APP_NAME = "Sparkle Release Automator"
VERSION = meta["version"]

APP = ["src/sparkle_release/__main__.py"]

OPTIONS = {
    "argv_emulation": False,
    "packages": ["PyQt5", "rich", "sparkle_release"],
    "plist": {
        "CFBundleIdentifier": f"com.bastet.{PKG_NAME}",
        "CFBundleName": APP_NAME,
        "CFBundleDisplayName": APP_NAME,
        "CFBundleShortVersionString": VERSION,
        "CFBundleVersion": VERSION,
        "CFBundlePackageType": "APPL",
        "NSHighResolutionCapable": True,
        "CFBundleDocumentTypes": [
            {
                "CFBundleTypeName": "Application Bundle",
                "CFBundleTypeRole": "Viewer",
                "LSHandlerRank": "Alternate",
                "LSItemContentTypes": ["com.apple.application-bundle"],
            }
        ],
    },
    "includes": ["sip", "PyQt5", "PyQt5.QtCore", "PyQt5.QtGui", "PyQt5.QtWidgets"],
    "resources": [
        QT_PLUGINS_DIR,
        *[str(p) for p in (SPARKLE_BIN / "sign_update", SPARKLE_BIN / "generate_keys") if p.exists()],
    ],
    "excludes": ["test", "tests", "unittest", "tkinter", "doctest"],
}

setup(
    app=APP,
    name=PKG_NAME,
    version=VERSION,
    package_dir={"": "src"},
    data_files=[],
    options={"py2app": OPTIONS},
    setup_requires=["py2app"],
)

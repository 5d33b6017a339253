from pathlib import Path

# ------------ QSettings ------------ #
SETTINGS_ORG = "Bastet"
SETTINGS_APP = "SparkleRelease"

SETTINGS_TOOLS_DIR_KEY = "toolsDir"
SETTINGS_PRIVATE_KEY_PATH_KEY = "privateKeyPath"
SETTINGS_URL_PREFIX_KEY = "lastDownloadUrlPrefix"

TOOLS_DIR_ENV = "SPARKLE_TOOLS_DIR"

# ------------ bundle ------------ #
BUNDLE_SUFFIX = ".app"
INFO_PLIST_RELATIVE_PATH = Path("Contents") / "Info.plist"
PLIST_VERSION_KEY = "CFBundleVersion"
PLIST_SHORT_VERSION_KEY = "CFBundleShortVersionString"
DEFAULT_BUNDLE_VERSION = "1.0"

# ------------ external tools ------------ #
DITTO_PATH = "/usr/bin/ditto"
SIGN_UPDATE_TOOL = "sign_update"
GENERATE_KEYS_TOOL = "generate_keys"
EXECUTABLE_MODE = 0o755

# ------------ appcast ------------ #
APPCAST_FILENAME = "appcast.xml"
SPARKLE_NS = "http://www.andymatuschak.org/xml-namespaces/sparkle"
URL_PLACEHOLDER = "INSERT_URL_HERE"
ENCLOSURE_TYPE = "application/octet-stream"

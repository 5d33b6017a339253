"""
Drive Sparkle's ``sign_update`` and ``generate_keys`` tools.

``sign_update`` prints one line of enclosure attributes, e.g.::

    sparkle:edSignature="7Jh…==" length="4096"

The signature and length are pulled out of that line; anything else it prints is ignored.
"""

import logging
import re
from pathlib import Path

from sparkle_release.constants import GENERATE_KEYS_TOOL, SIGN_UPDATE_TOOL
from sparkle_release.core.errors import CommandError, ConfigurationError, SignatureParseError, ToolNotFoundError
from sparkle_release.core.shell import Runner, run_command
from sparkle_release.models import ReleaseConfig, SignatureResult

logger = logging.getLogger(__name__)

SIGNATURE_RE = re.compile(r'sparkle:edSignature="([^"]+)"')
LENGTH_RE = re.compile(r'(?<![\w:])length="([^"]+)"')


def parse_signature_output(output: str) -> SignatureResult:
    """Extract signature and length from sign_update output; both must be present."""
    sig_m = SIGNATURE_RE.search(output)
    len_m = LENGTH_RE.search(output)

    missing = [name for name, m in (("sparkle:edSignature", sig_m), ("length", len_m)) if m is None]
    if missing:
        raise SignatureParseError(
            f"sign_update output did not contain {' or '.join(missing)}: {output.strip()!r}",
            output=output,
        )
    return SignatureResult(signature=sig_m.group(1), length=len_m.group(1))


def sign_update_arguments(archive_path: Path, config: ReleaseConfig) -> list[str]:
    if config.key_source == "file":
        return ["--ed-key-file", str(config.private_key_path), str(archive_path)]
    # no key argument: sign_update finds the key in the login keychain
    return [str(archive_path)]


def sign_archive(archive_path: Path, config: ReleaseConfig, runner: Runner = run_command) -> SignatureResult:
    tool = config.tool_path(SIGN_UPDATE_TOOL)
    if tool is None:
        raise ToolNotFoundError("sign_update tool not found.")
    if config.key_source == "file" and not Path(config.private_key_path).is_file():
        raise ConfigurationError(f"Private key file not found: {config.private_key_path}")

    output = runner(tool, sign_update_arguments(archive_path, config))
    result = parse_signature_output(output)
    logger.info("Signed %s (length %s)", Path(archive_path).name, result.length)
    return result


def query_public_key(config: ReleaseConfig, runner: Runner = run_command) -> str | None:
    """
    Return the public EdDSA key stored in the keychain.

    None means there is no key (or no tool to ask). An empty string means generate_keys
    succeeded but printed nothing.
    """
    tool = config.tool_path(GENERATE_KEYS_TOOL)
    if tool is None:
        logger.warning("generate_keys tool not found; cannot check the keychain")
        return None

    try:
        output = runner(tool, ["-p"])
    except CommandError as e:
        # generate_keys exits non-zero when the keychain has no key
        logger.info("No signing key in keychain (%s)", e.returncode)
        return None

    key = output.strip()
    if not key:
        logger.warning("generate_keys succeeded but printed no key")
    return key

from pathlib import Path

import pytest
from conftest import PUBLIC_KEY, FakeRunner

from sparkle_release.core.errors import CommandError, ConfigurationError, SignatureParseError, ToolNotFoundError
from sparkle_release.core.signer import (
    parse_signature_output,
    query_public_key,
    sign_archive,
    sign_update_arguments,
)
from sparkle_release.models import ReleaseConfig


def test_parse_signature_output():
    out = 'sparkle:edSignature="Zm9vYmFy+/==" length="1048576"\n'
    result = parse_signature_output(out)
    assert result.signature == "Zm9vYmFy+/=="
    assert result.length == "1048576"


def test_parse_ignores_surrounding_noise():
    out = 'Warning: something\n  sparkle:edSignature="sig" length="12"  \ntrailing text'
    assert parse_signature_output(out).to_dict() == {"signature": "sig", "length": "12"}


@pytest.mark.parametrize(
    "output, missing",
    [
        ('length="4096"', "sparkle:edSignature"),
        ('sparkle:edSignature="abc"', "length"),
        ("ERROR: Unable to access the keychain", "sparkle:edSignature or length"),
        ('sparkle:edSignature="" length=""', "sparkle:edSignature or length"),
    ],
)
def test_parse_requires_both_fields(output, missing):
    with pytest.raises(SignatureParseError, match=missing) as exc:
        parse_signature_output(output)
    assert exc.value.output == output


def test_keychain_mode_passes_only_archive(tmp_path):
    archive = tmp_path / "MyApp-v1.zip"
    assert sign_update_arguments(archive, ReleaseConfig()) == [str(archive)]


def test_key_file_mode_passes_key(tmp_path):
    archive, key = tmp_path / "MyApp-v1.zip", tmp_path / "ed_key"
    cfg = ReleaseConfig(private_key_path=key)
    assert sign_update_arguments(archive, cfg) == ["--ed-key-file", str(key), str(archive)]


def test_sign_archive_runs_sign_update(config, fake_runner, tmp_path):
    archive = tmp_path / "MyApp-v1.2.3.zip"
    result = sign_archive(archive, config, fake_runner)
    assert (result.signature, result.length) == ("abc123", "4096")
    assert fake_runner.calls == [("sign_update", [str(archive)])]


def test_sign_archive_missing_tool(tmp_path, fake_runner):
    cfg = ReleaseConfig(tools_dir=tmp_path)
    with pytest.raises(ToolNotFoundError, match="sign_update tool not found"):
        sign_archive(tmp_path / "a.zip", cfg, fake_runner)
    assert fake_runner.calls == []


def test_sign_archive_missing_key_file(tools_dir, tmp_path, fake_runner):
    cfg = ReleaseConfig(tools_dir=tools_dir, private_key_path=tmp_path / "missing_key")
    with pytest.raises(ConfigurationError, match="Private key file not found"):
        sign_archive(tmp_path / "a.zip", cfg, fake_runner)
    assert fake_runner.calls == []


def test_sign_archive_unparseable_output(config, tmp_path):
    runner = FakeRunner()
    runner.outputs["sign_update"] = "ERROR: no signing key\n"
    with pytest.raises(SignatureParseError):
        sign_archive(tmp_path / "a.zip", config, runner)


def test_query_public_key(config, fake_runner):
    assert query_public_key(config, fake_runner) == PUBLIC_KEY.strip()
    assert fake_runner.calls == [("generate_keys", ["-p"])]


def test_query_public_key_absent_when_tool_fails(config):
    runner = FakeRunner()
    runner.failures["generate_keys"] = CommandError(["generate_keys", "-p"], 1, "No existing signing key found!")
    assert query_public_key(config, runner) is None


def test_query_public_key_empty_output(config):
    runner = FakeRunner()
    runner.outputs["generate_keys"] = "  \n"
    assert query_public_key(config, runner) == ""


def test_query_public_key_without_tool(tmp_path, fake_runner):
    assert query_public_key(ReleaseConfig(tools_dir=Path(tmp_path)), fake_runner) is None
    assert fake_runner.calls == []

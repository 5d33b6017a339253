"""
Headless release run: ``sparkle-release MyApp.app [--url URL]``.

Uses the same pipeline as the window; prints each status change as it happens.
"""

import argparse
import dataclasses
import json
import sys
from pathlib import Path

from rich.console import Console
from rich.syntax import Syntax

from sparkle_release.core.pipeline import ReleasePipeline
from sparkle_release.core.release_state import ReleaseState, StatusSnapshot
from sparkle_release.core.settings import load_config
from sparkle_release.core.shell import Runner, run_command
from sparkle_release.logging_config import configure_logging
from sparkle_release.models import ReleaseConfig


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(prog="sparkle-release", description="Zip, sign and write an appcast for a .app")
    ap.add_argument("bundle", nargs="?", help="path to the .app bundle")
    ap.add_argument("--url", default="", help="download URL for the enclosure (default: placeholder)")
    ap.add_argument("--tools-dir", help="directory containing sign_update and generate_keys")
    ap.add_argument("--key-file", help="EdDSA private key file (default: login keychain)")
    ap.add_argument("--public-key", action="store_true", help="print the keychain public key and exit")
    ap.add_argument("--print", dest="print_xml", action="store_true", help="show the generated appcast")
    ap.add_argument("--json", dest="as_json", action="store_true", help="print the release artifacts as JSON")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    args = ap.parse_args(argv)
    if not args.bundle and not args.public_key:
        ap.error("a bundle path is required")
    return args


def resolve_config(args: argparse.Namespace, base: ReleaseConfig) -> ReleaseConfig:
    overrides = {}
    if args.tools_dir:
        overrides["tools_dir"] = Path(args.tools_dir).expanduser()
    if args.key_file:
        overrides["private_key_path"] = Path(args.key_file).expanduser()
    return dataclasses.replace(base, **overrides)


def _printer(console: Console):
    def show(snap: StatusSnapshot) -> None:
        if not snap.message:
            return
        style = "red" if snap.is_error or snap.message.startswith("Error") else "cyan"
        if snap.state is ReleaseState.GENERATED and not snap.is_error:
            style = "green"
        console.print(snap.message, style=style, markup=False, highlight=False)

    return show


def main(
    argv: list[str] | None = None,
    *,
    config: ReleaseConfig | None = None,
    runner: Runner = run_command,
    console: Console | None = None,
) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)
    console = console or Console()
    # stdout stays clean for --json
    status_console = Console(stderr=True) if args.as_json else console

    cfg = resolve_config(args, config if config is not None else load_config())
    pipeline = ReleasePipeline(cfg, runner=runner)
    pipeline.subscribe(_printer(status_console))

    if args.public_key:
        if cfg.key_source == "file":
            # generate_keys -p only reads the login keychain
            status_console.print(
                f"Error: --public-key reads the login keychain; it cannot show the key in {cfg.private_key_path}",
                style="red",
                markup=False,
                highlight=False,
            )
            return 1
        key = pipeline.refresh_key_status()
        if not key:
            return 1
        console.print(key, markup=False, highlight=False)
        return 0

    if cfg.key_source == "keychain":
        pipeline.refresh_key_status()

    if pipeline.load_bundle(args.bundle) is None:
        return 1

    url = args.url or cfg.suggested_download_url(pipeline.metadata.archive_name)
    artifacts = pipeline.generate(download_url=url or None)
    if artifacts is None:
        return 1

    if args.as_json:
        console.print_json(json.dumps(artifacts.to_dict()))
    if args.print_xml:
        console.print(Syntax(artifacts.appcast_xml, "xml", word_wrap=True))
    if not args.as_json:
        console.print(f"Archive : {artifacts.archive_path}", markup=False)
        console.print(f"Appcast : {artifacts.appcast_path or '(not saved)'}", markup=False)
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()

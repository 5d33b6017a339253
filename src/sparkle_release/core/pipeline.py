"""
Release pipeline: bundle metadata → zip → sign → appcast.

``ReleasePipeline`` is the only place errors are caught. Every failure ends up as a status line on
``ReleasePipeline.status`` and the run goes back to the state it had before processing started.
Nothing is retried.
"""

import logging
from collections.abc import Callable
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from datetime import datetime
from pathlib import Path

from sparkle_release.constants import DITTO_PATH, SIGN_UPDATE_TOOL
from sparkle_release.core.appcast import render_appcast, save_appcast
from sparkle_release.core.archiver import create_archive
from sparkle_release.core.bundle_info import is_app_bundle, read_bundle_metadata
from sparkle_release.core.errors import ConfigurationError, InvalidBundleError, ReleaseError, ToolNotFoundError
from sparkle_release.core.release_state import ReleaseState, ReleaseStateMachine, StatusSnapshot, Subscriber
from sparkle_release.core.shell import Runner, run_command
from sparkle_release.core.signer import query_public_key, sign_archive
from sparkle_release.models import BundleMetadata, ReleaseArtifacts, ReleaseConfig, SignatureResult

logger = logging.getLogger(__name__)

MSG_CHECKING_KEY = "Checking Keychain..."
MSG_KEY_FOUND = "Ready. Key found in Keychain."
MSG_KEY_FILE = "Ready. Using private key file."
MSG_NO_KEY = "Ready (No Key Detected)."
MSG_EMPTY_KEY = "Keychain returned empty key data."
MSG_INVALID_BUNDLE = "Error: Please drop a valid .app file."
MSG_LOADED = "App loaded. Ready to generate."
MSG_NO_KEY_ERROR = "Error: No Key in Keychain. Run 'generate_keys' in Terminal first."
MSG_PROCESSING = "Zipping and Signing..."
MSG_SUCCESS = "Success! Zip created, signed, and XML saved."
MSG_SAVE_WARNING = "Warning: Could not save appcast.xml to disk."
MSG_URL_UPDATED = "XML updated with new URL and saved to disk."


class ReleasePipeline:
    def __init__(
        self,
        config: ReleaseConfig,
        runner: Runner = run_command,
        clock: Callable[[], datetime] | None = None,
        ditto: str | Path = DITTO_PATH,
    ):
        self.config = config
        self.runner = runner
        self.clock = clock or (lambda: datetime.now().astimezone())
        self.ditto = ditto
        self.status = ReleaseStateMachine(MSG_CHECKING_KEY)
        self.public_key: str | None = None
        self._executor: ThreadPoolExecutor | None = None
        self._reset_run()

    # ───────────────── observation ───────────────── #

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        return self.status.subscribe(callback)

    @property
    def state(self) -> ReleaseState:
        return self.status.state

    @property
    def metadata(self) -> BundleMetadata | None:
        return self._metadata

    @property
    def archive_path(self) -> Path | None:
        return self._archive_path

    @property
    def signature(self) -> SignatureResult | None:
        return self._signature

    @property
    def appcast_xml(self) -> str:
        return self._appcast_xml

    @property
    def appcast_path(self) -> Path | None:
        return self._appcast_path

    @property
    def download_url(self) -> str | None:
        return self._download_url

    @property
    def artifacts(self) -> ReleaseArtifacts | None:
        if self.state is not ReleaseState.GENERATED or not (self._metadata and self._signature):
            return None
        return ReleaseArtifacts(
            metadata=self._metadata,
            archive_path=self._archive_path,
            signature=self._signature,
            appcast_xml=self._appcast_xml,
            appcast_path=self._appcast_path,
            download_url=self._download_url,
        )

    def _reset_run(self) -> None:
        self._metadata: BundleMetadata | None = None
        self._archive_path: Path | None = None
        self._signature: SignatureResult | None = None
        self._appcast_xml: str = ""
        self._appcast_path: Path | None = None
        self._download_url: str | None = None

    # ───────────────── key status ───────────────── #

    def has_key(self) -> bool:
        if self.config.key_source == "file":
            return Path(self.config.private_key_path).is_file()
        return bool(self.public_key)

    def refresh_key_status(self) -> str | None:
        """Look for the signing key and report it on the status line. Returns the public key, if any."""
        if self.config.key_source == "file":
            self.public_key = None
            if self.has_key():
                self.status.notify(MSG_KEY_FILE)
            else:
                err = ConfigurationError(f"Private key file not found: {self.config.private_key_path}")
                self.status.notify(f"Error: {err}", err)
            return None

        key = query_public_key(self.config, self.runner)
        self.public_key = key or None
        if key is None:
            self.status.notify(MSG_NO_KEY)
        elif not key:
            self.status.notify(MSG_EMPTY_KEY, ConfigurationError(MSG_EMPTY_KEY))
        else:
            self.status.notify(MSG_KEY_FOUND)
        return self.public_key

    def update_config(self, config: ReleaseConfig) -> None:
        self.config = config

    # ───────────────── step 1: load ───────────────── #

    def load_bundle(self, path: str | Path) -> BundleMetadata | None:
        if self.state is ReleaseState.PROCESSING:
            logger.warning("Ignoring %s: a release is already being generated", path)
            return None

        if not is_app_bundle(path):
            self.status.notify(MSG_INVALID_BUNDLE, InvalidBundleError(MSG_INVALID_BUNDLE))
            return None

        self._reset_run()
        try:
            metadata = read_bundle_metadata(path)
        except (ReleaseError, OSError) as e:
            logger.error("Error reading App Info for %s: %s", path, e)
            self.status.transition(ReleaseState.IDLE, f"Error reading App Info: {e}", e)
            return None

        self._metadata = metadata
        self.status.transition(ReleaseState.APP_LOADED, MSG_LOADED)
        return metadata

    # ───────────────── step 2: zip & sign ───────────────── #

    def _begin_processing(self) -> bool:
        if self.state not in (ReleaseState.APP_LOADED, ReleaseState.GENERATED) or self._metadata is None:
            logger.warning("Generate requested with no app loaded (state %s)", self.state.value)
            return False

        if self.config.tool_path(SIGN_UPDATE_TOOL) is None:
            err = ToolNotFoundError("sign_update tool not found.")
            self.status.notify(f"Error: {err}", err)
            return False

        if not self.has_key():
            if self.config.key_source == "file":
                err = ConfigurationError(f"Private key file not found: {self.config.private_key_path}")
                self.status.notify(f"Error: {err}", err)
            else:
                self.status.notify(MSG_NO_KEY_ERROR, ConfigurationError(MSG_NO_KEY_ERROR))
            return False

        self._archive_path, self._signature = None, None
        self._appcast_xml, self._appcast_path = "", None
        self.status.transition(ReleaseState.PROCESSING, MSG_PROCESSING)
        return True

    def _process(self, download_url: str | None) -> ReleaseArtifacts | None:
        metadata = self._metadata
        try:
            archive = create_archive(metadata, self.runner, self.ditto)
            self._archive_path = archive
            signature = sign_archive(archive, self.config, self.runner)
        except (ReleaseError, OSError) as e:
            logger.error("Release generation failed: %s", e)
            self.status.transition(ReleaseState.APP_LOADED, f"Error: {e}", e)
            return None
        except Exception as e:
            # the worker must never be left in PROCESSING
            logger.exception("Unexpected failure while generating release")
            self.status.transition(ReleaseState.APP_LOADED, f"Error: {e}", e)
            return None

        self._signature = signature
        self._download_url = download_url or None
        try:
            saved_error = self._render_and_save()
        except Exception as e:
            logger.exception("Could not render appcast")
            self.status.transition(ReleaseState.APP_LOADED, f"Error: {e}", e)
            return None
        if saved_error is None:
            self.status.transition(ReleaseState.GENERATED, MSG_SUCCESS)
        else:
            self.status.transition(ReleaseState.GENERATED, MSG_SAVE_WARNING, saved_error)
        return self.artifacts

    def generate(self, download_url: str | None = None) -> ReleaseArtifacts | None:
        """Zip, sign and write the appcast, blocking until done. Returns None on failure."""
        if not self._begin_processing():
            return None
        return self._process(download_url)

    def generate_in_background(self, download_url: str | None = None, executor: Executor | None = None) -> Future:
        """
        Like ``generate`` but runs the zip/sign steps on a worker thread.

        The state is already PROCESSING when this returns. Runs are not cancellable.
        """
        if not self._begin_processing():
            done: Future = Future()
            done.set_result(None)
            return done

        if executor is None:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="release")
            executor = self._executor
        return executor.submit(self._process, download_url)

    # ───────────────── step 3: XML & URL ───────────────── #

    def _render_and_save(self) -> Exception | None:
        self._appcast_xml = render_appcast(self._metadata, self._signature, self._download_url, now=self.clock())
        try:
            self._appcast_path = save_appcast(self._appcast_xml, self._metadata.parent_dir)
        except OSError as e:
            logger.error("Failed to auto-save XML: %s", e)
            return e
        return None

    def apply_download_url(self, url: str) -> str | None:
        """Re-render the appcast with *url* and save it again. Archive and signature are reused."""
        url = (url or "").strip()
        if not url or self.state is not ReleaseState.GENERATED:
            return None

        self._download_url = url
        saved_error = self._render_and_save()
        if saved_error is None:
            self.status.transition(ReleaseState.GENERATED, MSG_URL_UPDATED)
        else:
            self.status.transition(ReleaseState.GENERATED, MSG_SAVE_WARNING, saved_error)
        return self._appcast_xml

    # ───────────────── lifecycle ───────────────── #

    def reset(self) -> StatusSnapshot:
        self._reset_run()
        return self.status.transition(ReleaseState.IDLE, "")

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

import subprocess
from concurrent.futures import ThreadPoolExecutor

from PyQt5.QtCore import QObject, pyqtSignal
from PyQt5.QtGui import QGuiApplication, QKeySequence
from PyQt5.QtWidgets import (
    QAction,
    QApplication,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMenuBar,
    QMessageBox,
    QPushButton,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from sparkle_release import __version__
from sparkle_release.core.pipeline import ReleasePipeline
from sparkle_release.core.release_state import ReleaseState, StatusSnapshot
from sparkle_release.core.settings import load_config
from sparkle_release.ui.dialogs import PreferencesDialog, PublicKeyDialog
from sparkle_release.ui.qt_widgets import BundleDropZone, bundle_icon


class PipelineBridge(QObject):
    """Re-emits pipeline status changes as a Qt signal so slots run on the GUI thread."""

    statusChanged = pyqtSignal(object)

    def __init__(self, pipeline: ReleasePipeline, parent: QObject | None = None):
        super().__init__(parent)
        self._unsubscribe = pipeline.subscribe(self.statusChanged.emit)

    def detach(self):
        self._unsubscribe()


# --- Main Application Window ---
class ReleaseWindow(QWidget):
    def __init__(self, pipeline: ReleasePipeline | None = None, initial_bundle: str | None = None):
        super().__init__()

        # ---- window basics ----
        self.setWindowTitle("Sparkle Release Automator")
        self.setGeometry(100, 100, 900, 700)
        self.setMinimumSize(900, 700)

        # ---- core state ----
        self.pipeline = pipeline or ReleasePipeline(load_config())
        self.bridge = PipelineBridge(self.pipeline, self)
        self.bridge.statusChanged.connect(self._on_status)
        self._key_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="keychain")
        self._icon_cache = {}

        # ---- build UI ----
        self.initUI()
        self.createActions()
        self.createMenu()
        self._refresh_controls()

        # ---- cleanup hooks ----
        QApplication.instance().aboutToQuit.connect(self._shutdown)

        self.refresh_key_status()
        if initial_bundle:
            self.handle_external_file(initial_bundle)

    def handle_external_file(self, file_path: str):
        """Handles bundles opened via Dock or Finder."""
        self.pipeline.load_bundle(file_path)

    # ───────────────── UI ───────────────── #

    def initUI(self):
        self.mainLayout = QHBoxLayout(self)
        self.mainLayout.setContentsMargins(0, 0, 0, 0)
        self.mainLayout.addWidget(self._build_sidebar())

        content = QWidget(self)
        contentLayout = QVBoxLayout(content)
        self.mainLayout.addWidget(content, 1)

        self.dropZone = BundleDropZone(self)
        self.dropZone.bundleDropped.connect(self.handle_external_file)
        contentLayout.addWidget(self.dropZone)

        self.btnGenerate = QPushButton("✨ Generate Zip and Sign", self)
        self.btnGenerate.setToolTip("Zip the app with ditto, sign it with sign_update and write appcast.xml")
        self.btnGenerate.clicked.connect(self.generate_release)
        contentLayout.addWidget(self.btnGenerate)

        self.statusLabel = QLabel(self.pipeline.status.status_message, self)
        self.statusLabel.setWordWrap(True)
        contentLayout.addWidget(self.statusLabel)

        # --- generated section (hidden until a release exists) ---
        self.generatedSection = QWidget(self)
        genLayout = QVBoxLayout(self.generatedSection)
        genLayout.setContentsMargins(0, 0, 0, 0)

        genLayout.addWidget(QLabel("<b>XML Preview</b>"))
        self.xmlPreview = QTextEdit(self)
        self.xmlPreview.setReadOnly(True)
        self.xmlPreview.setFontFamily("Menlo")
        self.xmlPreview.setMinimumHeight(200)
        genLayout.addWidget(self.xmlPreview, 1)

        genLayout.addWidget(QLabel("<b>Add Download URL</b>"))
        urlRow = QHBoxLayout()
        self.urlEdit = QLineEdit(self)
        self.urlEdit.setPlaceholderText("Paste direct download link for the zip here...")
        self.urlEdit.textChanged.connect(lambda text: self.btnUpdateUrl.setEnabled(bool(text.strip())))
        self.urlEdit.returnPressed.connect(self.apply_url)
        urlRow.addWidget(self.urlEdit, 1)
        self.btnUpdateUrl = QPushButton("🔄 Update URL", self)
        self.btnUpdateUrl.setEnabled(False)
        self.btnUpdateUrl.clicked.connect(self.apply_url)
        urlRow.addWidget(self.btnUpdateUrl)
        genLayout.addLayout(urlRow)

        actionRow = QHBoxLayout()
        btnCopy = QPushButton("📋 Copy XML", self)
        btnCopy.clicked.connect(self.copy_xml)
        actionRow.addWidget(btnCopy)
        self.btnReveal = QPushButton("🔍 Reveal Files", self)
        self.btnReveal.clicked.connect(self.reveal_files)
        actionRow.addWidget(self.btnReveal)
        genLayout.addLayout(actionRow)

        contentLayout.addWidget(self.generatedSection, 1)
        contentLayout.addStretch()
        self.setLayout(self.mainLayout)

    def _build_sidebar(self) -> QWidget:
        sidebar = QWidget(self)
        sidebar.setFixedWidth(260)
        layout = QVBoxLayout(sidebar)

        header = QLabel("Configuration")
        header.setStyleSheet("font-size: 15px; font-weight: bold;")
        layout.addWidget(header)

        layout.addWidget(QLabel("<b>Private Key Status</b>"))
        self.keyStatusLabel = QLabel("")
        self.keyStatusLabel.setWordWrap(True)
        layout.addWidget(self.keyStatusLabel)

        self.keyHintLabel = QLabel("No key found. Run `generate_keys` in Terminal to create one.")
        self.keyHintLabel.setWordWrap(True)
        self.keyHintLabel.setStyleSheet("color: gray;")
        layout.addWidget(self.keyHintLabel)

        self.btnShowKey = QPushButton("👁 Show Public Key")
        self.btnShowKey.clicked.connect(self.show_public_key)
        layout.addWidget(self.btnShowKey)

        btnRefresh = QPushButton("🔄 Refresh Status")
        btnRefresh.clicked.connect(self.refresh_key_status)
        layout.addWidget(btnRefresh)

        layout.addStretch()

        about = QLabel(f"<b>Sparkle Release Automator</b><br>v{__version__}")
        about.setStyleSheet("color: gray;")
        layout.addWidget(about)
        return sidebar

    def createActions(self):
        self.prefAction = QAction("Preferences...", self)
        self.prefAction.setShortcut(QKeySequence.Preferences)
        self.prefAction.triggered.connect(self.showPreferences)

        self.quitAction = QAction("Quit Sparkle Release", self)
        self.quitAction.setShortcut(QKeySequence.Quit)
        self.quitAction.triggered.connect(QApplication.instance().quit)

    def createMenu(self):
        menubar = QMenuBar(self)
        self.mainLayout.setMenuBar(menubar)

        appMenu = menubar.addMenu("Sparkle Release")
        appMenu.addAction(self.prefAction)
        appMenu.addSeparator()
        appMenu.addAction(self.quitAction)

    # ───────────────── state → widgets ───────────────── #

    def _on_status(self, snap: StatusSnapshot):
        self.statusLabel.setText(snap.message)
        self.statusLabel.setStyleSheet("color: red;" if snap.is_error else "")
        if snap.state is ReleaseState.GENERATED:
            self.xmlPreview.setPlainText(self.pipeline.appcast_xml)
            if not self.urlEdit.text() and self.pipeline.metadata:
                # pre-fill from the URL prefix preference; the user still has to press Update URL
                self.urlEdit.setText(self.pipeline.config.suggested_download_url(self.pipeline.metadata.archive_name))
        self._refresh_controls()

    def _refresh_controls(self):
        state = self.pipeline.state
        metadata = self.pipeline.metadata
        has_key = self.pipeline.has_key()

        if state is ReleaseState.PROCESSING:
            self.dropZone.show_busy(self.pipeline.status.status_message)
        elif metadata is not None:
            self.dropZone.show_bundle(
                metadata.name, metadata.short_version, metadata.version, self._bundle_icon(metadata.path)
            )
        else:
            self.dropZone.show_empty()
        self.dropZone.setAcceptDrops(state is not ReleaseState.PROCESSING)

        loaded = state in (ReleaseState.APP_LOADED, ReleaseState.GENERATED)
        self.btnGenerate.setVisible(loaded)
        self.btnGenerate.setEnabled(loaded and has_key)
        self.btnGenerate.setToolTip("" if has_key else "Missing Private Key in Keychain.")

        self.generatedSection.setVisible(state is ReleaseState.GENERATED)
        self.btnReveal.setEnabled(self.pipeline.archive_path is not None)

        if self.pipeline.config.key_source == "file":
            self.keyStatusLabel.setText(
                f"🔐 Key file: {self.pipeline.config.private_key_path.name}" if has_key else "⚠️ Key file missing"
            )
        else:
            self.keyStatusLabel.setText("🔐 Found in Keychain" if has_key else "⚠️ Missing from Keychain")
        self.keyHintLabel.setVisible(not has_key)
        self.btnShowKey.setEnabled(bool(self.pipeline.public_key))

    def _bundle_icon(self, path):
        if path not in self._icon_cache:
            self._icon_cache[path] = bundle_icon(path)
        return self._icon_cache[path]

    # ───────────────── actions ───────────────── #

    def refresh_key_status(self):
        self._key_executor.submit(self.pipeline.refresh_key_status)

    def show_public_key(self):
        if self.pipeline.public_key:
            PublicKeyDialog(self.pipeline.public_key, self).exec_()
        else:
            self.refresh_key_status()

    def generate_release(self):
        self.urlEdit.clear()
        future = self.pipeline.generate_in_background()
        future.add_done_callback(self._report_run_failure)

    def _report_run_failure(self, future):
        exc = future.exception()
        if exc is not None:
            print(f"Release run ended with an unhandled error: {exc!r}")

    def apply_url(self):
        url = self.urlEdit.text().strip()
        if url:
            self.pipeline.apply_download_url(url)

    def copy_xml(self):
        QGuiApplication.clipboard().setText(self.pipeline.appcast_xml)

    def reveal_files(self):
        archive = self.pipeline.archive_path
        if archive is None:
            return
        try:
            subprocess.run(["open", "-R", str(archive)], check=False)
        except OSError as e:
            QMessageBox.warning(self, "Reveal Error", f"Could not reveal {archive}:\n{e}")

    def showPreferences(self):
        dialog = PreferencesDialog(self.pipeline.config, self)
        if dialog.exec_():
            self.pipeline.update_config(load_config())
            self.refresh_key_status()

    def _shutdown(self):
        self.bridge.detach()
        self._key_executor.shutdown(wait=False)
        self.pipeline.shutdown()


import os
from pathlib import Path

from PyQt5.QtGui import QGuiApplication
from PyQt5.QtWidgets import (
    QDialog,
    QFileDialog,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QTextEdit,
    QVBoxLayout,
)

from sparkle_release.core.settings import save_config
from sparkle_release.models import ReleaseConfig


# --- Dialogs ---
class PreferencesDialog(QDialog):
    """
    Tool and key locations.

    Leaving the private key blank means sign_update looks the key up in the login keychain.
    """

    def __init__(self, config: ReleaseConfig, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Preferences")
        self.setMinimumWidth(560)
        self.config = config

        self._build_ui()
        self._load(config)

    # ───────────────── UI ───────────────── #
    def _build_ui(self):
        form = QFormLayout()

        self.toolsDirEdit = QLineEdit()
        self.toolsDirEdit.setPlaceholderText("Search PATH")
        browse = QPushButton("Browse…")
        browse.clicked.connect(self._browse_tools_dir)
        row = QHBoxLayout()
        row.addWidget(self.toolsDirEdit, 1)
        row.addWidget(browse)
        form.addRow("Sparkle Tools Directory:", row)

        self.keyPathEdit = QLineEdit()
        self.keyPathEdit.setPlaceholderText("Use login keychain")
        browse = QPushButton("Browse…")
        browse.clicked.connect(self._browse_key_file)
        row = QHBoxLayout()
        row.addWidget(self.keyPathEdit, 1)
        row.addWidget(browse)
        form.addRow("Private EdDSA Key File:", row)

        self.urlPrefixEdit = QLineEdit()
        self.urlPrefixEdit.setPlaceholderText("https://example.com/downloads")
        form.addRow("Download URL Prefix:", self.urlPrefixEdit)

        note = QLabel("The URL prefix pre-fills the download link as <prefix>/<App>-v<version>.zip.")
        note.setWordWrap(True)
        form.addRow(note)

        btnRow = QHBoxLayout()
        save, cancel = QPushButton("Save"), QPushButton("Cancel")
        btnRow.addStretch()
        btnRow.addWidget(save)
        btnRow.addWidget(cancel)
        save.clicked.connect(self.accept)
        cancel.clicked.connect(self.reject)

        root = QVBoxLayout(self)
        root.addLayout(form)
        root.addLayout(btnRow)
        self.setLayout(root)

    def _load(self, config: ReleaseConfig):
        self.toolsDirEdit.setText(str(config.tools_dir) if config.tools_dir else "")
        self.keyPathEdit.setText(str(config.private_key_path) if config.private_key_path else "")
        self.urlPrefixEdit.setText(config.download_url_prefix)

    # ---------- browse helpers ---------- #
    def _browse_tools_dir(self):
        p = QFileDialog.getExistingDirectory(self, "Select Sparkle bin Directory", self.toolsDirEdit.text())
        if p:
            self.toolsDirEdit.setText(p)

    def _browse_key_file(self):
        p, _ = QFileDialog.getOpenFileName(self, "Select Private Key File", self.keyPathEdit.text())
        if p:
            self.keyPathEdit.setText(p)

    def accept(self):
        tools = self.toolsDirEdit.text().strip()
        if tools and not os.path.isdir(tools):
            QMessageBox.warning(self, "Invalid Path", f"Tools path is not a valid directory:\n{tools}")
            return
        key = self.keyPathEdit.text().strip()
        if key and not os.path.isfile(key):
            QMessageBox.warning(self, "Invalid Path", f"Private key file not found:\n{key}")
            return

        self.config = ReleaseConfig(
            tools_dir=Path(tools) if tools else None,
            private_key_path=Path(key) if key else None,
            download_url_prefix=self.urlPrefixEdit.text().strip(),
        )
        save_config(self.config)
        super().accept()

    def get_config(self) -> ReleaseConfig:
        return self.config


class PublicKeyDialog(QDialog):
    def __init__(self, public_key: str, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Public Key String")
        self.setMinimumWidth(500)
        self.public_key = public_key

        layout = QVBoxLayout(self)

        title = QLabel("🔑 Public Key String")
        title.setStyleSheet("font-size: 18px; font-weight: bold;")
        layout.addWidget(title)
        layout.addWidget(QLabel("This is the raw public key from your Keychain."))

        snippet = QLabel(
            "In Info.plist, it should look like this:\n"
            f"<key>SUPublicEDKey</key>\n<string>{public_key[:10]}...</string>"
        )
        snippet.setStyleSheet("font-family: Menlo; background: rgba(0,0,0,25); padding: 8px;")
        layout.addWidget(snippet)

        keyEdit = QTextEdit(self)
        keyEdit.setReadOnly(True)
        keyEdit.setFontFamily("Menlo")
        keyEdit.setPlainText(public_key)
        keyEdit.setFixedHeight(80)
        layout.addWidget(keyEdit)

        btnRow = QHBoxLayout()
        copy, done = QPushButton("Copy Key"), QPushButton("Done")
        copy.clicked.connect(self.copy_key)
        done.clicked.connect(self.accept)
        done.setDefault(True)
        btnRow.addStretch()
        btnRow.addWidget(copy)
        btnRow.addWidget(done)
        layout.addLayout(btnRow)

    def copy_key(self):
        QGuiApplication.clipboard().setText(self.public_key)

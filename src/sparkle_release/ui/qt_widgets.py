from pathlib import Path

from PyQt5.QtCore import QFileInfo, Qt, pyqtSignal
from PyQt5.QtGui import QDragEnterEvent, QDropEvent, QPixmap
from PyQt5.QtWidgets import QFileIconProvider, QFrame, QLabel, QProgressBar, QVBoxLayout, QWidget

from sparkle_release.constants import BUNDLE_SUFFIX

IDLE_STYLE = "QFrame#dropZone { border: 2px dashed #6f9fd8; border-radius: 12px; background: rgba(0,0,255,12); }"
BUSY_STYLE = "QFrame#dropZone { border: 2px dashed orange; border-radius: 12px; background: rgba(255,165,0,25); }"
ICON_SIZE = 64


def bundle_icon(path: str | Path) -> QPixmap:
    """Finder icon of the bundle at *path*, as a 64x64 pixmap (null when Qt has none)."""
    return QFileIconProvider().icon(QFileInfo(str(path))).pixmap(ICON_SIZE, ICON_SIZE)


# --- Drop Zone ---
class BundleDropZone(QFrame):
    """Accepts a single dropped .app and reports its path through ``bundleDropped``."""

    bundleDropped = pyqtSignal(str)

    def __init__(self, parent: QWidget | None = None):
        super().__init__(parent)
        self.setObjectName("dropZone")
        self.setAcceptDrops(True)
        self.setMinimumHeight(200)
        self.setStyleSheet(IDLE_STYLE)

        layout = QVBoxLayout(self)
        layout.setAlignment(Qt.AlignCenter)

        self.iconLabel = QLabel(self)
        self.iconLabel.setAlignment(Qt.AlignCenter)
        self.iconLabel.setFixedHeight(ICON_SIZE)
        self.iconLabel.hide()
        layout.addWidget(self.iconLabel)

        self.titleLabel = QLabel("⬇️  Drop .app file here", self)
        self.titleLabel.setAlignment(Qt.AlignCenter)
        self.titleLabel.setStyleSheet("font-size: 20px; font-weight: bold;")
        layout.addWidget(self.titleLabel)

        self.detailLabel = QLabel("", self)
        self.detailLabel.setAlignment(Qt.AlignCenter)
        self.detailLabel.setStyleSheet("color: gray;")
        layout.addWidget(self.detailLabel)

        self.progress = QProgressBar(self)
        self.progress.setRange(0, 0)  # busy indicator
        self.progress.setTextVisible(False)
        self.progress.hide()
        layout.addWidget(self.progress)

    def show_empty(self):
        self.setStyleSheet(IDLE_STYLE)
        self.progress.hide()
        self.iconLabel.clear()
        self.iconLabel.hide()
        self.titleLabel.setText("⬇️  Drop .app file here")
        self.detailLabel.setText("")

    def show_bundle(self, name: str, short_version: str, version: str, icon: QPixmap | None = None):
        self.setStyleSheet(IDLE_STYLE)
        self.progress.hide()
        if icon is not None and not icon.isNull():
            self.iconLabel.setPixmap(icon)
            self.iconLabel.show()
        else:
            self.iconLabel.clear()
            self.iconLabel.hide()
        self.titleLabel.setText(name)
        self.detailLabel.setText(f"Version: {short_version} ({version})")

    def show_busy(self, message: str):
        self.setStyleSheet(BUSY_STYLE)
        self.progress.show()
        self.detailLabel.setText(message)

    def dragEnterEvent(self, event: QDragEnterEvent):
        if event.mimeData().hasUrls():
            event.acceptProposedAction()
        else:
            event.ignore()

    def dropEvent(self, event: QDropEvent):
        # Only the first local URL counts; the pipeline rejects anything that isn't a bundle
        for url in event.mimeData().urls():
            if url.isLocalFile():
                local_path = url.toLocalFile().rstrip("/")
                if Path(local_path).suffix != BUNDLE_SUFFIX:
                    print(f"Dropped item is not an app bundle: {local_path}")
                self.bundleDropped.emit(local_path)
                event.acceptProposedAction()
                return

        print("Drop event ignored (no local file URL).")
        event.ignore()

import sys
from pathlib import Path

from PyQt5.QtCore import QEvent, Qt
from PyQt5.QtWidgets import QApplication

from sparkle_release.constants import BUNDLE_SUFFIX, SETTINGS_APP, SETTINGS_ORG
from sparkle_release.logging_config import configure_logging
from sparkle_release.ui.main_window import ReleaseWindow


class SparkleReleaseApp(QApplication):
    def __init__(self, argv):
        super().__init__(argv)
        self.main_window = None  # set in main()

    def event(self, e):
        if e.type() == QEvent.FileOpen:
            file_path = e.file()
            print(f"Received file open event: {file_path}")
            if self.main_window:
                self.main_window.handle_external_file(file_path)
            return True
        return super().event(e)


def main():
    configure_logging("--verbose" in sys.argv)

    QApplication.setAttribute(Qt.AA_EnableHighDpiScaling, True)
    QApplication.setAttribute(Qt.AA_UseHighDpiPixmaps, True)

    app = SparkleReleaseApp(sys.argv)
    app.setOrganizationName(SETTINGS_ORG)
    app.setApplicationName(SETTINGS_APP)

    # only a bundle passed on the command line is worth loading
    bundle_args = [arg for arg in sys.argv[1:] if arg.rstrip("/").endswith(BUNDLE_SUFFIX) and Path(arg).is_dir()]

    window = ReleaseWindow(initial_bundle=bundle_args[0] if bundle_args else None)
    app.main_window = window
    window.show()
    sys.exit(app.exec_())


if __name__ == "__main__":
    main()

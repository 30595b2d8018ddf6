"""
Area Map - entry point

Initializes the PyQt6 application, applies the theme from the settings and
shows the host window.

Settings are read from settings.json in the working directory (optional) and
the AREAS_API_URL / AREAS_API_TOKEN / AREAMAP_THEME environment variables.
"""

import sys

from PyQt6.QtGui import QFont
from PyQt6.QtWidgets import QApplication, QMessageBox

from areamap.core.constants import APP_NAME, logger
from areamap.core.errors import ConfigError
from areamap.core.models.settings import load_settings
from areamap.ui.styles import install_style
from areamap.ui.windows.main_window import MainWindow

SETTINGS_FILE = "settings.json"


def main(argv=None):
    argv = sys.argv if argv is None else argv
    app = QApplication(argv)
    app.setFont(QFont("Segoe UI", 10))

    try:
        settings = load_settings(argv[1] if len(argv) > 1 else SETTINGS_FILE)
        install_style(app, settings.theme_mode)
        w = MainWindow(settings)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        QMessageBox.critical(None, APP_NAME, f"Configuration error:\n{e}")
        return 1

    w.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())

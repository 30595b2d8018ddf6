"""
Style manager module

Loads the QSS stylesheets and applies the UI theme.

Classes:
    StyleManager: theme loading and application

Functions:
    install_style: build a StyleManager and apply a theme in one call

Themes:
    - Light
    - Dark
    - System: follow the platform color scheme
"""

import os

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QApplication

from areamap.core.constants import logger
from areamap.core.models.settings import THEME_MODES


class StyleManager:
    """
    Holds the light and dark stylesheets and applies one of them.

    Usage:
        manager = StyleManager()
        manager.install(app, "Dark")
    """

    _styles_dir = os.path.dirname(os.path.abspath(__file__))

    def __init__(self, styles_dir=None):
        self.styles_dir = styles_dir or self._styles_dir
        self._light_style = ""
        self._dark_style = ""
        self._load_styles()

    def _read(self, filename):
        path = os.path.join(self.styles_dir, filename)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return f.read()
        except OSError as e:
            logger.warning(f"Could not load stylesheet {filename}: {e}")
            return ""

    def _load_styles(self):
        self._light_style = self._read('area_light.qss')
        self._dark_style = self._read('area_dark.qss')

    def install(self, app: QApplication, theme_mode: str = "System"):
        """
        Apply a theme to the application.

        Args:
            app: QApplication instance
            theme_mode: "Light", "Dark" or "System"
        """
        if theme_mode not in THEME_MODES:
            logger.warning(f"Unknown theme '{theme_mode}', using System")
            theme_mode = "System"

        if self.resolve_dark(theme_mode):
            app.setStyleSheet(self._dark_style)
        else:
            app.setStyleSheet(self._light_style)

    @staticmethod
    def resolve_dark(theme_mode: str) -> bool:
        if theme_mode == "Dark":
            return True
        if theme_mode == "Light":
            return False
        hints = QApplication.styleHints()
        if hints is None:
            return False
        return hints.colorScheme() == Qt.ColorScheme.Dark


def install_style(app: QApplication, theme_mode: str = "System") -> StyleManager:
    manager = StyleManager()
    manager.install(app, theme_mode)
    return manager

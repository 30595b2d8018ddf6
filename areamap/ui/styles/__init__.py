"""
Style package

Exports:
    StyleManager: stylesheet loading and theme application
    install_style: apply a theme with a fresh StyleManager
"""

from .style_manager import StyleManager, install_style

__all__ = ['StyleManager', 'install_style']

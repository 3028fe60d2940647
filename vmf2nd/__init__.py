"""
vmf2nd - Portal 2 VMF to Narbacular Drop level converter.

Translates Source engine maps into Narbacular Drop brush maps and compiles
them with the level creation kit.
"""

__version__ = "1.0.0"

from .settings import ConverterSettings, SettingsError, load_settings, save_settings

__all__ = [
    '__version__',
    'ConverterSettings',
    'SettingsError',
    'load_settings',
    'save_settings',
]

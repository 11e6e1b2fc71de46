"""
seafile-launcher - lifecycle wrapper for a dockerized Seafile server
"""

__version__ = "1.0.0"

from .core import Launcher
from .errors import LauncherError

__all__ = ["Launcher", "LauncherError"]

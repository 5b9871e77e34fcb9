"""Local device and application drivers: adb and Chrome."""

from .adb import AdbRunner
from .browser import BrowserLauncher

__all__ = ["AdbRunner", "BrowserLauncher"]

"""
Chrome launcher for remote debugging on port 9222.
"""

import logging
import os
import platform
import subprocess
import time
from pathlib import Path
from typing import Callable, List, Optional

import httpx

from agent_skills.core.errors import CommandError, SkillError

logger = logging.getLogger(__name__)

DEBUG_PORT = 9222
VERSION_URL = f"http://localhost:{DEBUG_PORT}/json/version"
PROFILE_DIR = Path.home() / ".cache" / "browser-tools"
SINGLETON_FILES = ("SingletonLock", "SingletonSocket", "SingletonCookie")

MACOS_CHROME = "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome"
LINUX_CHROME_CANDIDATES = [
    "/usr/bin/google-chrome",
    "/usr/bin/google-chrome-stable",
    "/usr/bin/chromium",
    "/usr/bin/chromium-browser",
    "/snap/bin/chromium",
]

RSYNC_EXCLUDES = [
    "SingletonLock",
    "SingletonSocket",
    "SingletonCookie",
    "*/Sessions/*",
    "*/Current Session",
    "*/Current Tabs",
    "*/Last Session",
    "*/Last Tabs",
]

CONNECT_ATTEMPTS = 30
CONNECT_INTERVAL = 0.5


def find_chrome(system: Optional[str] = None) -> str:
    """Path of the Chrome/Chromium executable.

    Raises:
        SkillError: If no candidate exists
    """
    system = system or platform.system()
    if system == "Darwin":
        return MACOS_CHROME
    for candidate in LINUX_CHROME_CANDIDATES:
        if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            return candidate
    raise SkillError("Chrome/Chromium not found. Install google-chrome or chromium.")


def default_profile_path(system: Optional[str] = None, home: Optional[Path] = None) -> Path:
    """The user's everyday Chrome profile directory."""
    system = system or platform.system()
    home = home or Path.home()
    if system == "Darwin":
        return home / "Library" / "Application Support" / "Google" / "Chrome"
    candidates = [
        home / ".config" / "google-chrome",
        home / ".config" / "chromium",
        home / "snap" / "chromium" / "common" / "chromium",
    ]
    for candidate in candidates:
        if candidate.is_dir():
            return candidate
    return candidates[0]


def launch_args(chrome: str, profile_dir: Path) -> List[str]:
    return [
        chrome,
        f"--remote-debugging-port={DEBUG_PORT}",
        f"--user-data-dir={profile_dir}",
        "--no-first-run",
        "--no-default-browser-check",
    ]


def rsync_args(source: Path, target: Path) -> List[str]:
    args = ["rsync", "-a", "--delete"]
    args.extend(f"--exclude={pattern}" for pattern in RSYNC_EXCLUDES)
    # trailing slashes copy directory contents, not the directory itself
    args.extend([f"{source}/", f"{target}/"])
    return args


class BrowserLauncher:
    """Starts a dedicated Chrome instance with remote debugging enabled."""

    def __init__(
        self,
        profile_dir: Path = PROFILE_DIR,
        transport: Optional[httpx.BaseTransport] = None,
        run: Callable[..., subprocess.CompletedProcess] = subprocess.run,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.profile_dir = profile_dir
        self._transport = transport
        self._run = run
        self._popen = popen
        self._sleep = sleep

    def is_running(self) -> bool:
        """True when something answers on the debugging endpoint."""
        try:
            with httpx.Client(timeout=2.0, transport=self._transport) as http:
                return http.get(VERSION_URL).is_success
        except httpx.HTTPError:
            return False

    def prepare_profile(self) -> None:
        self.profile_dir.mkdir(parents=True, exist_ok=True)
        for name in SINGLETON_FILES:
            lock = self.profile_dir / name
            if lock.exists() or lock.is_symlink():
                lock.unlink()

    def sync_profile(self, source: Optional[Path] = None) -> None:
        """Copy the everyday profile (cookies, logins) into the profile dir."""
        source = source or default_profile_path()
        logger.debug("Syncing profile from %s", source)
        result = self._run(rsync_args(source, self.profile_dir), capture_output=True, text=True)
        if result.returncode != 0:
            raise CommandError(
                f"Profile sync failed: {(result.stderr or '').strip()}",
                returncode=result.returncode,
            )

    def wait_until_ready(self) -> bool:
        for _ in range(CONNECT_ATTEMPTS):
            if self.is_running():
                return True
            self._sleep(CONNECT_INTERVAL)
        return False

    def start(self, chrome: Optional[str] = None) -> None:
        """Launch Chrome detached and wait for the debugging port.

        Raises:
            SkillError: If Chrome cannot be found or never answers
        """
        chrome = chrome or find_chrome()
        self._popen(
            launch_args(chrome, self.profile_dir),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
        if not self.wait_until_ready():
            raise SkillError("Failed to connect to Chrome")

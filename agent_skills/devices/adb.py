"""
Android Debug Bridge wrapper.

Runs `adb` against a single device, auto-detects the project's package name
from its Gradle build files and drives Gradle builds.
"""

import logging
import os
import re
import shutil
import subprocess
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Sequence

from agent_skills.core.errors import CommandError, SkillError, UsageError

logger = logging.getLogger(__name__)

GRADLE_FILE_NAMES = ("build.gradle.kts", "build.gradle")
GRADLE_SEARCH_DEPTH = 4
GRADLE_FILE_LIMIT = 20

_APPLICATION_ID = re.compile(r"""applicationId\s*[=:]?\s*["']([^"']+)["']""")
_NAMESPACE = re.compile(r"""namespace\s*[=:]?\s*["']([^"']+)["']""")

KEYCODES = {
    "back": "KEYCODE_BACK",
    "home": "KEYCODE_HOME",
    "menu": "KEYCODE_MENU",
    "enter": "KEYCODE_ENTER",
    "tab": "KEYCODE_TAB",
    "space": "KEYCODE_SPACE",
    "del": "KEYCODE_DEL",
    "up": "KEYCODE_DPAD_UP",
    "down": "KEYCODE_DPAD_DOWN",
    "left": "KEYCODE_DPAD_LEFT",
    "right": "KEYCODE_DPAD_RIGHT",
    "power": "KEYCODE_POWER",
    "volup": "KEYCODE_VOLUME_UP",
    "voldown": "KEYCODE_VOLUME_DOWN",
}

DEVICE_PROPERTIES = [
    ("Device", "ro.product.model"),
    ("Manufacturer", "ro.product.manufacturer"),
    ("Android Version", "ro.build.version.release"),
    ("API Level", "ro.build.version.sdk"),
    ("Build", "ro.build.display.id"),
]

Runner = Callable[..., subprocess.CompletedProcess]


def parse_devices(output: str) -> List[str]:
    """Serials from `adb devices` output."""
    serials = []
    for line in output.splitlines():
        line = line.strip()
        if not line or line.startswith("List of devices") or line.startswith("*"):
            continue
        serials.append(line.split()[0])
    return serials


def keycode_for(name: str) -> str:
    """Map a friendly key name to its keycode; unknown names pass through."""
    return KEYCODES.get(name, name)


def escape_input_text(text: str) -> str:
    """`input text` reads %s as a space."""
    return text.replace(" ", "%s")


def logcat_filter_spec(tag: Optional[str] = None, level: Optional[str] = None) -> List[str]:
    """Filter spec arguments for logcat.

    A tag keeps only that tag (at `level`, default V) and silences the rest.
    A level alone applies to every tag.
    """
    if tag:
        return [f"{tag}:{level or 'V'}", "*:S"]
    if level:
        return [f"*:{level}"]
    return []


def find_gradle_files(
    root: Path,
    max_depth: int = GRADLE_SEARCH_DEPTH,
    limit: int = GRADLE_FILE_LIMIT
) -> List[Path]:
    """Gradle build files at most `max_depth` levels below root."""
    found: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        depth = len(Path(dirpath).relative_to(root).parts)
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        if depth + 1 >= max_depth:
            dirnames[:] = []
        for name in sorted(filenames):
            if name in GRADLE_FILE_NAMES:
                found.append(Path(dirpath) / name)
                if len(found) >= limit:
                    return found
    return found


def package_from_gradle(path: Path) -> Optional[str]:
    """applicationId of a build file, else its namespace."""
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None
    for pattern in (_APPLICATION_ID, _NAMESPACE):
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def detect_package(root: Path = Path("."), env: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Package name from $ADB_PACKAGE or the project's Gradle files."""
    env = os.environ if env is None else env
    if env.get("ADB_PACKAGE"):
        return env["ADB_PACKAGE"]

    for gradle_file in find_gradle_files(root):
        package = package_from_gradle(gradle_file)
        if package:
            return package
    return None


def resolve_package(
    explicit: Optional[str] = None,
    root: Path = Path("."),
    env: Optional[Mapping[str, str]] = None
) -> str:
    """Explicit package, else the detected one.

    Raises:
        UsageError: If no package can be determined
    """
    if explicit:
        return explicit
    detected = detect_package(root, env)
    if detected:
        return detected
    raise UsageError(
        "Could not detect package name. Specify it explicitly or set ADB_PACKAGE env var."
    )


def find_gradlew(root: Path = Path(".")) -> Path:
    for candidate in (root / "gradlew", root.parent / "gradlew"):
        if candidate.is_file():
            return candidate
    raise UsageError("Could not find gradlew. Are you in an Android project directory?")


def find_debug_apk(module: str, root: Path = Path(".")) -> Optional[Path]:
    matches = sorted(root.glob(f"**/{module}/build/outputs/apk/debug/*.apk"))
    return matches[0] if matches else None


class AdbRunner:
    """Runs adb commands against one device.

    The device is $ADB_SERIAL when set, otherwise the only attached device.
    """

    def __init__(
        self,
        adb_path: str = "adb",
        env: Optional[Mapping[str, str]] = None,
        run: Runner = subprocess.run
    ):
        self.adb_path = adb_path
        self.env = os.environ if env is None else env
        self._run = run
        self._serial: Optional[str] = None

    def check_available(self) -> None:
        if shutil.which(self.adb_path) is None:
            raise SkillError(
                "ADB not found. Please install Android SDK platform-tools and add to PATH."
            )

    def _execute(
        self,
        args: Sequence[str],
        capture: bool = True,
        check: bool = True,
        timeout: Optional[float] = None
    ) -> subprocess.CompletedProcess:
        logger.debug("Running %s", " ".join(args))
        result = self._run(
            list(args),
            capture_output=capture,
            text=True,
            timeout=timeout,
        )
        if check and result.returncode != 0:
            detail = (result.stderr or result.stdout or "").strip() if capture else ""
            raise CommandError(
                f"{' '.join(args[:3])} failed (exit {result.returncode})" + (f": {detail}" if detail else ""),
                returncode=result.returncode,
            )
        return result

    def raw(self, *args: str, capture: bool = True) -> str:
        """Run adb without selecting a device."""
        return self._execute([self.adb_path, *args], capture=capture).stdout or ""

    def list_devices(self) -> List[str]:
        return parse_devices(self.raw("devices"))

    @property
    def serial(self) -> str:
        """Serial of the target device.

        Raises:
            SkillError: If no device or more than one is connected
        """
        if self._serial:
            return self._serial
        if self.env.get("ADB_SERIAL"):
            self._serial = self.env["ADB_SERIAL"]
            return self._serial

        devices = self.list_devices()
        if not devices:
            raise SkillError("No Android devices connected. Connect a device or start an emulator.")
        if len(devices) > 1:
            raise SkillError(
                "Multiple devices connected: " + ", ".join(devices) + "\n"
                "Please disconnect extra devices or specify device with ADB_SERIAL env var."
            )
        self._serial = devices[0]
        return self._serial

    def run(
        self,
        *args: str,
        capture: bool = True,
        check: bool = True,
        timeout: Optional[float] = None
    ) -> str:
        """Run an adb command on the target device and return stdout."""
        result = self._execute(
            [self.adb_path, "-s", self.serial, *args],
            capture=capture, check=check, timeout=timeout,
        )
        return result.stdout or ""

    def shell(self, *args: str, check: bool = True) -> str:
        return self.run("shell", *args, check=check)

    def getprop(self, name: str) -> str:
        return self.shell("getprop", name).strip()

    def device_info(self) -> List[tuple]:
        """(label, value) pairs describing the device and its screen."""
        info = [(label, self.getprop(prop)) for label, prop in DEVICE_PROPERTIES]
        screen = self.shell("wm", "size", check=False).strip().splitlines()
        density = self.shell("wm", "density", check=False).strip().splitlines()
        info.append(("Screen", screen[0] if screen else ""))
        info.append(("Density", density[0] if density else ""))
        return info

    def main_activity(self, package: str) -> str:
        """Launchable activity of a package, guessing .MainActivity."""
        output = self.shell(f"cmd package resolve-activity --brief {package}", check=False)
        lines = [line.strip() for line in output.splitlines() if line.strip()]
        if lines and "/" in lines[-1]:
            return lines[-1]
        return f"{package}/.MainActivity"

    def pidof(self, package: str) -> Optional[str]:
        pid = self.shell("pidof", package, check=False).strip()
        return pid or None

    def list_packages(self, scope: str = "third-party") -> List[str]:
        """Installed packages: third-party (default), system or all."""
        flags = {"third-party": ["-3"], "system": ["-s"], "all": []}[scope]
        output = self.shell("pm", "list", "packages", *flags)
        packages = [
            line.strip()[len("package:"):] if line.strip().startswith("package:") else line.strip()
            for line in output.splitlines() if line.strip()
        ]
        return sorted(packages)

    def logcat(
        self,
        seconds: Optional[int] = None,
        tag: Optional[str] = None,
        level: Optional[str] = None,
        pid: Optional[str] = None
    ) -> str:
        """Dump the logcat buffer, or capture it for `seconds`."""
        args = ["logcat"]
        if seconds is None:
            args.append("-d")
        if pid:
            args.append(f"--pid={pid}")
        args.extend(logcat_filter_spec(tag, level))

        if seconds is None:
            return self.run(*args)
        try:
            return self.run(*args, check=False, timeout=seconds)
        except subprocess.TimeoutExpired as e:
            output = e.stdout or ""
            return output.decode("utf-8", errors="replace") if isinstance(output, bytes) else output

    def clear_logcat(self) -> None:
        self.run("logcat", "-c")

    def capture_to_file(self, shell_args: Sequence[str], remote_path: str, output: str) -> None:
        """Run a capture command on the device, pull its file and delete it."""
        self.shell(*shell_args)
        self.run("pull", remote_path, output)
        self.shell("rm", remote_path)

    def install(self, apk: Path) -> str:
        if not apk.is_file():
            raise UsageError(f"APK file not found: {apk}")
        return self.run("install", "-r", "-g", str(apk))

    def build(self, module: str, root: Path = Path(".")) -> Path:
        """Assemble the debug APK of a Gradle module and return its path."""
        gradlew = find_gradlew(root)
        logger.info("Building %s...", module)
        self._execute([str(gradlew), f":{module}:assembleDebug"], capture=False)

        apk = find_debug_apk(module, root)
        if apk is None:
            raise CommandError(f"Could not find built APK for module {module}")
        return apk

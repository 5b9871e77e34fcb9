"""
Android Debug Bridge commands.

The target device is $ADB_SERIAL or the only attached device; the app
package defaults to $ADB_PACKAGE or the one declared in the project's
Gradle files.
"""

from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer

from agent_skills.cli.common import echo, note, reported_errors
from agent_skills.devices.adb import (
    AdbRunner,
    escape_input_text,
    keycode_for,
    resolve_package,
)

app = typer.Typer(help="Android Debug Bridge helpers for app development.")

# Lets `shell ls -la` and `text -5` through without click parsing the dashes
PASSTHROUGH = {"ignore_unknown_options": True}


def get_runner() -> AdbRunner:
    runner = AdbRunner()
    runner.check_available()
    return runner


def _local_stamp() -> str:
    return datetime.now().strftime("%Y%m%d_%H%M%S")


@app.callback()
def main():
    """Drive an Android device or emulator over adb."""


# Device

@app.command()
def devices():
    """List connected devices."""
    with reported_errors():
        echo(get_runner().raw("devices", "-l").rstrip())


@app.command()
def info():
    """Show model, Android version and screen details."""
    with reported_errors():
        for label, value in get_runner().device_info():
            echo(f"{label}: {value}")


# Apps

@app.command()
def install(apk: Path = typer.Argument(..., help="APK file")):
    """Install (or reinstall) an APK, granting runtime permissions."""
    with reported_errors():
        runner = get_runner()
        echo(f"Installing {apk}...")
        runner.install(apk)
    echo("Installed successfully")


@app.command()
def uninstall(package: Optional[str] = typer.Argument(None, help="Package name")):
    """Uninstall the app."""
    with reported_errors():
        runner = get_runner()
        package = resolve_package(package)
        echo(f"Uninstalling {package}...")
        runner.run("uninstall", package)
    echo("Uninstalled successfully")


@app.command()
def clear(package: Optional[str] = typer.Argument(None, help="Package name")):
    """Clear the app's data."""
    with reported_errors():
        runner = get_runner()
        package = resolve_package(package)
        echo(f"Clearing data for {package}...")
        runner.shell("pm", "clear", package)
    echo("Data cleared")


@app.command()
def stop(package: Optional[str] = typer.Argument(None, help="Package name")):
    """Force-stop the app."""
    with reported_errors():
        runner = get_runner()
        package = resolve_package(package)
        echo(f"Force stopping {package}...")
        runner.shell("am", "force-stop", package)
    echo("App stopped")


@app.command()
def packages(
    all_packages: bool = typer.Option(False, "--all", help="Include system packages"),
    system: bool = typer.Option(False, "--system", help="Only system packages")
):
    """List installed packages (third-party by default)."""
    scope = "all" if all_packages else "system" if system else "third-party"
    with reported_errors():
        for package in get_runner().list_packages(scope):
            echo(package)


# Logging

@app.command()
def logcat(
    seconds: Optional[int] = typer.Option(None, "--seconds", help="Capture for N seconds"),
    clear_buffer: bool = typer.Option(False, "--clear", help="Clear the logcat buffer"),
    tag: Optional[str] = typer.Option(None, "--tag", help="Only this tag"),
    level: Optional[str] = typer.Option(None, "--level", help="Minimum level (V/D/I/W/E)"),
    package_only: bool = typer.Option(False, "--package", help="Only the project app's process")
):
    """Dump the logcat buffer, or capture it for a while."""
    with reported_errors():
        runner = get_runner()
        if clear_buffer:
            runner.clear_logcat()
            echo("Logcat buffer cleared")
            return

        pid = None
        if package_only:
            pid = runner.pidof(resolve_package())
            if pid is None:
                note("Warning: App not running, showing all logs")

        if seconds is not None:
            note(f"Capturing logcat for {seconds} seconds...")
        echo(runner.logcat(seconds=seconds, tag=tag, level=level, pid=pid).rstrip())


# Screen

@app.command()
def screenshot(output: Optional[str] = typer.Argument(None, help="Output PNG")):
    """Capture the screen to a local PNG."""
    output = output or f"screenshot_{_local_stamp()}.png"
    remote = "/sdcard/screenshot_tmp.png"
    with reported_errors():
        runner = get_runner()
        echo("Taking screenshot...")
        runner.capture_to_file(["screencap", "-p", remote], remote, output)
    echo(f"Screenshot saved to {output}")


@app.command()
def screenrecord(
    output: Optional[str] = typer.Argument(None, help="Output MP4"),
    seconds: int = typer.Option(10, "--seconds", help="Recording length")
):
    """Record the screen to a local MP4."""
    output = output or f"screenrecord_{_local_stamp()}.mp4"
    remote = "/sdcard/screenrecord_tmp.mp4"
    with reported_errors():
        runner = get_runner()
        echo(f"Recording screen for {seconds} seconds...")
        runner.capture_to_file(["screenrecord", "--time-limit", str(seconds), remote], remote, output)
    echo(f"Recording saved to {output}")


@app.command()
def activity():
    """Show the resumed and focused activity."""
    with reported_errors():
        output = get_runner().shell(
            "dumpsys activity activities | grep -E 'mResumedActivity|mCurrentFocus' | head -2",
            check=False,
        )
    echo(output.rstrip())


@app.command()
def uidump(output: str = typer.Argument("ui_hierarchy.xml", help="Output XML")):
    """Dump the UI hierarchy with uiautomator."""
    remote = "/sdcard/ui_dump.xml"
    with reported_errors():
        runner = get_runner()
        echo("Dumping UI hierarchy...")
        runner.capture_to_file(["uiautomator", "dump", remote], remote, output)
    echo(f"UI hierarchy saved to {output}")


# Files

@app.command()
def push(
    local: str = typer.Argument(..., help="Local path"),
    remote: str = typer.Argument(..., help="Device path")
):
    """Copy a file to the device."""
    with reported_errors():
        echo(get_runner().run("push", local, remote).rstrip())


@app.command()
def pull(
    remote: str = typer.Argument(..., help="Device path"),
    local: str = typer.Argument(".", help="Local path")
):
    """Copy a file from the device."""
    with reported_errors():
        echo(get_runner().run("pull", remote, local).rstrip())


@app.command()
def ls(path: str = typer.Argument("/sdcard/", help="Device directory")):
    """List a directory on the device."""
    with reported_errors():
        echo(get_runner().shell(f"ls -la {path}").rstrip())


@app.command(context_settings=PASSTHROUGH)
def shell(command: List[str] = typer.Argument(..., help="Shell command")):
    """Run a shell command on the device."""
    with reported_errors():
        echo(get_runner().shell(" ".join(command)).rstrip())


# Build

@app.command("build-run")
def build_run(module: str = typer.Argument("app", help="Gradle module")):
    """Build the debug APK, install it and launch the app."""
    with reported_errors():
        runner = get_runner()
        package = resolve_package()
        echo(f"Building {module}...")
        apk = runner.build(module)

        echo(f"Installing {apk}...")
        runner.install(apk)

        echo("Launching app...")
        runner.shell("am", "start", "-n", runner.main_activity(package))
    echo("Build, install, and launch complete")


@app.command("build-install")
def build_install(module: str = typer.Argument("app", help="Gradle module")):
    """Build the debug APK and install it."""
    with reported_errors():
        runner = get_runner()
        echo(f"Building {module}...")
        apk = runner.build(module)

        echo(f"Installing {apk}...")
        runner.install(apk)
    echo("Build and install complete")


# Input

@app.command()
def tap(x: int = typer.Argument(...), y: int = typer.Argument(...)):
    """Tap at screen coordinates."""
    with reported_errors():
        get_runner().shell("input", "tap", str(x), str(y))


@app.command()
def swipe(
    x1: int = typer.Argument(...),
    y1: int = typer.Argument(...),
    x2: int = typer.Argument(...),
    y2: int = typer.Argument(...),
    duration: int = typer.Argument(300, help="Duration in ms")
):
    """Swipe between two points."""
    with reported_errors():
        get_runner().shell("input", "swipe", str(x1), str(y1), str(x2), str(y2), str(duration))


@app.command(context_settings=PASSTHROUGH)
def text(words: List[str] = typer.Argument(..., help="Text to type")):
    """Type text into the focused field."""
    with reported_errors():
        get_runner().shell("input", "text", escape_input_text(" ".join(words)))


@app.command()
def key(name: str = typer.Argument(..., help="back, home, menu, enter, tab, space, del, ...")):
    """Send a key event."""
    with reported_errors():
        get_runner().shell("input", "keyevent", keycode_for(name))

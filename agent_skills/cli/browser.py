"""
Chrome remote-debugging launcher command.
"""

import sys

import typer

from agent_skills.cli.common import EXIT_CODE_OK, echo, note, reported_errors
from agent_skills.devices.browser import DEBUG_PORT, BrowserLauncher

app = typer.Typer(help="Start Chrome with remote debugging for browser automation.")


def get_launcher() -> BrowserLauncher:
    return BrowserLauncher()


@app.callback()
def main():
    """Chrome launcher."""


@app.command()
def start(
    profile: bool = typer.Option(
        False,
        "--profile",
        help="Copy your default Chrome profile (cookies, logins)"
    )
):
    """Start Chrome on :9222, reusing an instance that is already up."""
    launcher = get_launcher()
    if launcher.is_running():
        echo(f"✓ Chrome already running on :{DEBUG_PORT}")
        sys.exit(EXIT_CODE_OK)

    with reported_errors():
        launcher.prepare_profile()
        if profile:
            note("Syncing profile...")
            launcher.sync_profile()
        launcher.start()

    echo(f"✓ Chrome started on :{DEBUG_PORT}" + (" with your profile" if profile else ""))

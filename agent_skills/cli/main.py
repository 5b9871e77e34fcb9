"""
CLI interface for agent skills.

One umbrella app with a sub-command group per skill, plus standalone entry
points so each skill can be installed as its own script.
"""

import os
from typing import Optional

import typer

from agent_skills.cli import adb, browser, jina, linear, nano_banana, openai_image
from agent_skills.cli.common import configure_logging, console
from agent_skills.config.loader import load_env

app = typer.Typer(help="Command-line skills for coding agents.")
app.add_typer(adb.app, name="adb")
app.add_typer(browser.app, name="browser")
app.add_typer(jina.app, name="jina")
app.add_typer(linear.app, name="linear")
app.add_typer(nano_banana.app, name="nano-banana")
app.add_typer(openai_image.app, name="openai-image")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging on stderr"
    ),
    env_file: Optional[str] = typer.Option(
        None,
        "--env-file",
        help="Load environment variables from this file instead of ./.env"
    )
):
    """Agent skills CLI."""
    configure_logging(verbose or bool(os.environ.get("AGENT_SKILLS_DEBUG")))
    load_env(env_file)
    if ctx.invoked_subcommand is None:
        console.print("Agent skills - Use --help to see available commands")


def _standalone(skill_app: typer.Typer) -> None:
    configure_logging(bool(os.environ.get("AGENT_SKILLS_DEBUG")))
    load_env()
    skill_app()


def adb_main():
    _standalone(adb.app)


def browser_main():
    _standalone(browser.app)


def jina_main():
    _standalone(jina.app)


def linear_main():
    _standalone(linear.app)


def nano_banana_main():
    _standalone(nano_banana.app)


def openai_image_main():
    _standalone(openai_image.app)


if __name__ == "__main__":
    app()

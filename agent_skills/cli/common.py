"""
Shared CLI plumbing: consoles, exit codes, error reporting and logging.
"""

import logging
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from agent_skills.config.loader import SkillsConfig, load_skills_config
from agent_skills.core.formatting import format_date
from agent_skills.storage.ledger import CostLedger

console = Console()
err_console = Console(stderr=True)

EXIT_CODE_OK = 0
EXIT_CODE_FAIL = 1


def echo(text: str = "") -> None:
    """Print user data to stdout byte for byte; tabs and carriage returns survive."""
    typer.echo(text)


def note(text: str) -> None:
    """Print a status line to stderr."""
    typer.echo(text, err=True)


def fail(message: str) -> None:
    """Report an error on stderr and exit 1."""
    err_console.print(f"[red]Error:[/] {escape(message)}", highlight=False, soft_wrap=True)
    sys.exit(EXIT_CODE_FAIL)


@contextmanager
def reported_errors() -> Iterator[None]:
    """Turn any failure inside a command into `Error: ...` and exit 1."""
    try:
        yield
    except (typer.Exit, typer.Abort):
        raise
    except Exception as e:
        fail(str(e))


def configure_logging(verbose: bool = False) -> None:
    """Route diagnostics to stderr through rich; DEBUG when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_time=False, show_path=False)],
        force=True,
    )


def load_config() -> SkillsConfig:
    try:
        return load_skills_config()
    except Exception as e:
        fail(f"Invalid configuration: {e}")


def open_ledger(skill: str, path: Optional[Path] = None) -> CostLedger:
    """The skill's ledger, at `path` when given."""
    if path is not None:
        return CostLedger(path)
    return CostLedger(load_config().ledger_path(skill))


def show_costs(ledger: CostLedger, last: int = 10, reset: bool = False) -> None:
    """Print running totals and recent history, or reset them."""
    if reset:
        ledger.reset()
        echo("✓ Cost tracking reset")
        return

    state = ledger.summary()
    echo(f"Total estimated cost: ${state.total_cost:.4f}")
    echo(f"Images generated: {state.image_count}")
    echo(f"Ledger: {ledger.path}")

    recent = state.history[-last:] if last > 0 else []
    if not recent:
        return
    echo("")
    echo(f"Last {len(recent)} generation(s):")
    for record in reversed(recent):
        echo(f"  {format_date(record.timestamp)}  ${record.cost:.4f}  {record.model} {record.size} {record.quality}")
        echo(f"    {record.prompt}")


def timestamped_path(suffix: str = ".png", now: Optional[datetime] = None) -> Path:
    """generated-<UTC timestamp><suffix> in the current directory."""
    now = now or datetime.now(timezone.utc)
    stamp = now.strftime("%Y-%m-%dT%H-%M-%S-%f")[:-3] + "Z"
    return Path(f"generated-{stamp}{suffix}")

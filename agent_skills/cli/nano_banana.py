"""
Gemini image generation commands ("nano banana").
"""

from pathlib import Path
from typing import Optional

import typer

from agent_skills.cli.common import (
    echo,
    fail,
    load_config,
    note,
    open_ledger,
    reported_errors,
    show_costs,
    timestamped_path,
)
from agent_skills.clients.gemini import (
    API_KEY_HINT,
    MODELS,
    VALID_ASPECT_RATIOS,
    VALID_SIZES,
    GeminiImageClient,
    build_request_body,
)
from agent_skills.config.loader import require_env
from agent_skills.core.pricing import estimate_image_cost

SKILL = "nano-banana"

app = typer.Typer(help="Generate and edit images with Google Gemini.")


@app.callback()
def main():
    """Gemini image generation."""


@app.command()
def generate(
    prompt: str = typer.Argument(..., help="What to draw, or how to change the input image"),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file path (default: generated-<timestamp>.png)"
    ),
    input_image: Optional[Path] = typer.Option(
        None,
        "--input",
        "-i",
        help="Input image to edit"
    ),
    aspect: str = typer.Option("1:1", "--aspect", "-a", help="Aspect ratio"),
    model: str = typer.Option("flash", "--model", "-m", help="flash or pro"),
    size: str = typer.Option("1K", "--size", "-s", help="1K, 2K or 4K (pro only)"),
    ledger_path: Optional[Path] = typer.Option(
        None,
        "--ledger",
        help="Cost ledger file"
    )
):
    """Generate an image and print the path it was written to."""
    if aspect not in VALID_ASPECT_RATIOS:
        fail(f"Invalid aspect ratio. Valid options: {', '.join(VALID_ASPECT_RATIOS)}")
    if model not in MODELS:
        fail("Invalid model. Use 'flash' or 'pro'.")
    if size not in VALID_SIZES:
        fail(f"Invalid size. Valid options: {', '.join(VALID_SIZES)}")

    output = output or timestamped_path()

    with reported_errors():
        api_key = require_env("GEMINI_API_KEY", API_KEY_HINT)
        body = build_request_body(prompt, aspect, model, size, input_image)
        client = GeminiImageClient(api_key, timeout=load_config().http_timeout)
        image = client.generate(MODELS[model], body)

        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(image.data)

        # flash renders at a fixed resolution
        billed_size = size if model == "pro" else "1K"
        cost = estimate_image_cost(MODELS[model], billed_size, "standard")
        open_ledger(SKILL, ledger_path).record(
            prompt=prompt,
            model=MODELS[model],
            size=billed_size,
            quality="standard",
            cost=cost,
        )

    echo(str(output.resolve()))
    if image.text:
        note(f"Note: {image.text}")


@app.command()
def costs(
    reset: bool = typer.Option(False, "--reset", help="Zero the totals and clear history"),
    last: int = typer.Option(10, "--last", help="Number of recent generations to show"),
    ledger_path: Optional[Path] = typer.Option(None, "--ledger", help="Cost ledger file")
):
    """Show estimated spend on Gemini images."""
    with reported_errors():
        show_costs(open_ledger(SKILL, ledger_path), last=last, reset=reset)

"""
OpenAI image generation and editing commands.
"""

from pathlib import Path
from typing import List, Optional

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
from agent_skills.config.loader import require_env
from agent_skills.sdk.openai_images import (
    API_KEY_HINT,
    VALID_FORMATS,
    VALID_MODELS,
    VALID_QUALITIES,
    VALID_SIZES,
    GuardedOpenAIImages,
)

SKILL = "openai-image"

app = typer.Typer(help="Generate and edit images with OpenAI image models.")


def numbered_paths(output: Path, count: int) -> List[Path]:
    """`output` for one image, `<base>-1.<ext>`, `<base>-2.<ext>`... for several."""
    if count <= 1:
        return [output]
    return [output.with_name(f"{output.stem}-{i}{output.suffix}") for i in range(1, count + 1)]


def _check_choice(name: str, value: str, valid: List[str]) -> None:
    if value not in valid:
        fail(f"Invalid {name}. Valid options: {', '.join(valid)}")


@app.callback()
def main():
    """OpenAI image generation."""


@app.command()
def generate(
    prompt: str = typer.Argument(..., help="What to draw, or how to change the input image"),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file path (default: generated-<timestamp>.<format>)"
    ),
    input_image: Optional[Path] = typer.Option(
        None,
        "--input",
        "-i",
        help="Input image to edit"
    ),
    mask: Optional[Path] = typer.Option(
        None,
        "--mask",
        help="PNG mask; transparent areas are edited"
    ),
    size: str = typer.Option("auto", "--size", "-s", help="1024x1024, 1536x1024, 1024x1536 or auto"),
    model: str = typer.Option("gpt-image-1", "--model", "-m", help="Image model"),
    quality: str = typer.Option("auto", "--quality", "-q", help="low, medium, high or auto"),
    output_format: str = typer.Option("png", "--format", "-f", help="png, jpeg or webp"),
    transparent: bool = typer.Option(False, "--transparent", help="Transparent background (png/webp)"),
    count: int = typer.Option(1, "--count", "-n", min=1, max=10, help="Number of images"),
    ledger_path: Optional[Path] = typer.Option(
        None,
        "--ledger",
        help="Cost ledger file"
    )
):
    """Generate (or edit) images and print the paths they were written to."""
    _check_choice("size", size, VALID_SIZES)
    _check_choice("model", model, VALID_MODELS)
    _check_choice("quality", quality, VALID_QUALITIES)
    _check_choice("format", output_format, VALID_FORMATS)
    if transparent and output_format == "jpeg":
        fail("Transparent background not supported with JPEG format.")
    if input_image is not None and model == "dall-e-3":
        fail("DALL-E 3 does not support image editing. Use gpt-image-1 or gpt-image-1.5.")

    output = output or timestamped_path(f".{output_format}")

    with reported_errors():
        require_env("OPENAI_API_KEY", API_KEY_HINT)
        images_client = GuardedOpenAIImages(
            model=model,
            ledger=open_ledger(SKILL, ledger_path),
            download_timeout=load_config().http_timeout,
        )

        if input_image is not None:
            images = images_client.edit(
                prompt, input_image, mask_path=mask, n=count, size=size, quality=quality
            )
        else:
            images = images_client.generate(
                prompt,
                n=count,
                size=size,
                quality=quality,
                output_format=output_format,
                transparent=transparent,
            )

        paths = numbered_paths(output, len(images))
        for image, path in zip(images, paths):
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(image.data)

    if images and images[0].revised_prompt:
        note(f"Revised prompt: {images[0].revised_prompt}")
    for path in paths:
        echo(str(path.resolve()))


@app.command()
def costs(
    reset: bool = typer.Option(False, "--reset", help="Zero the totals and clear history"),
    last: int = typer.Option(10, "--last", help="Number of recent generations to show"),
    ledger_path: Optional[Path] = typer.Option(None, "--ledger", help="Cost ledger file")
):
    """Show estimated spend on OpenAI images."""
    with reported_errors():
        show_costs(open_ledger(SKILL, ledger_path), last=last, reset=reset)

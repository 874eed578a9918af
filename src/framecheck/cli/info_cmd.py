"""Inspect the timing and size of an animation."""

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from ..apng import open_animation
from ..error_handling import FrameCheckError
from .utils import EXIT_RESOURCE_ERROR, handle_generic_error


@click.command("info")
@click.argument(
    "animation",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
def info(animation: Path) -> None:
    """📋 Show dimensions, frame rate and frame count of an animation."""
    try:
        with open_animation(animation) as reader:
            table = Table(title=f"🎞️ {animation.name}", show_header=True, header_style="bold magenta")
            table.add_column("Property", style="cyan", no_wrap=True)
            table.add_column("Value", justify="right")
            table.add_row("Width", str(reader.width))
            table.add_row("Height", str(reader.height))
            table.add_row("FPS", str(reader.fps))
            table.add_row("Frames", str(reader.frame_count))
    except FrameCheckError as e:
        handle_generic_error("info", e, EXIT_RESOURCE_ERROR)
        return

    Console().print(table)

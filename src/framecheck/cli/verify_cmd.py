"""Verify an animation file against a golden animation."""

from pathlib import Path

import click
from rich.console import Console

from ..apng import open_animation
from ..config import DEFAULT_VERIFIER_CONFIG
from ..error_handling import FrameCheckError, VerificationFailure
from ..io import setup_logging
from ..verifier import AnimationVerifier
from .utils import (
    EXIT_MISMATCH,
    EXIT_RESOURCE_ERROR,
    default_delta_path,
    display_common_header,
    display_path_info,
    handle_generic_error,
)


@click.command("verify")
@click.argument(
    "golden",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.argument(
    "actual",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--delta",
    "-d",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Diagnostic animation path (default: delta-<ACTUAL>.png beside ACTUAL)",
)
@click.option(
    "--tolerance",
    "-t",
    type=click.FloatRange(0, 100),
    default=None,
    help=f"Max percent difference per frame (default: {DEFAULT_VERIFIER_CONFIG.MAX_PERCENT_DIFFERENCE})",
)
@click.option(
    "--no-error-text",
    is_flag=True,
    help="Omit labels on delta frames and captions on blank frames",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Logging level (default: WARNING)",
)
def verify(
    golden: Path,
    actual: Path,
    delta: Path | None,
    tolerance: float | None,
    no_error_text: bool,
    log_level: str,
) -> None:
    """🔍 Verify ACTUAL frame by frame against GOLDEN.

    Exits 0 when the animations match, 1 on a mismatch (a diagnostic animation is
    written) and 2 when either file cannot be read.
    """
    setup_logging(log_level=log_level)
    delta_path = delta or default_delta_path(actual)

    display_common_header("framecheck verify")
    display_path_info("Golden", golden)
    display_path_info("Actual", actual)

    console = Console()
    try:
        with open_animation(actual) as actual_reader:
            with AnimationVerifier(
                golden,
                delta_path,
                fps=actual_reader.fps,
                frame_count=actual_reader.frame_count,
                max_percent_difference=tolerance,
                with_error_text=False if no_error_text else None,
            ) as verifier:
                frame = actual_reader.read_next_frame()
                while frame is not None:
                    verifier.verify_frame(frame)
                    frame = actual_reader.read_next_frame()
                verifier.assert_finished()
    except VerificationFailure as e:
        console.print("[bold red]❌ Animations differ[/bold red]")
        click.echo(str(e), err=True)
        raise SystemExit(EXIT_MISMATCH) from e
    except FrameCheckError as e:
        handle_generic_error("verify", e, EXIT_RESOURCE_ERROR)
        return

    console.print("[bold green]✅ Animations match[/bold green]")

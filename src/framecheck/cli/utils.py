"""Shared utilities for CLI commands."""

import sys
from pathlib import Path

import click

EXIT_MISMATCH = 1
EXIT_RESOURCE_ERROR = 2


def handle_generic_error(command_name: str, error: Exception, exit_code: int = 1) -> None:
    """Handle generic command errors with consistent formatting."""
    click.echo(f"❌ {command_name} failed: {error}", err=True)
    sys.exit(exit_code)


def display_common_header(title: str) -> None:
    """Display a common header for CLI commands."""
    click.echo(f"🎞️  {title}")


def display_path_info(label: str, path: Path, emoji: str = "📁") -> None:
    """Display path information with consistent formatting."""
    click.echo(f"{emoji} {label}: {path}")


def default_delta_path(actual: Path) -> Path:
    """Diagnostic animation path next to *actual*."""
    return actual.with_name(f"delta-{actual.stem}.png")

"""CLI module for framecheck commands."""

import click

from .info_cmd import info
from .verify_cmd import verify


@click.group()
@click.version_option(version="0.1.0", prog_name="framecheck")
def main() -> None:
    """🎞️ framecheck — golden verification for animated snapshots."""
    pass


main.add_command(info)
main.add_command(verify)

__all__ = [
    "info",
    "main",
    "verify",
]

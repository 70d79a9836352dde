"""Command-line interface for schemagen."""

from schemagen.cli.main import main

__all__ = ["main"]

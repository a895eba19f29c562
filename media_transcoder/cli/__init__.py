"""Command-line interface."""

from media_transcoder.cli.main import app, main

__all__ = ["app", "main"]

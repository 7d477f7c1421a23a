"""Command line entry point (python -m gestionale.cli)."""

from .__main__ import main

__all__ = ["main"]

"""Command-line front end for procchain."""

from .main import app, main

__all__ = ["app", "main"]

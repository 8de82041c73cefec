"""Command-line interface for building and checking timeline trees."""

from .main import main

__all__ = ["main"]

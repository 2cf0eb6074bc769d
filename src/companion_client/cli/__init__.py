"""
CLI package for Companion Client.

This package contains the command-line interface built with Typer.
"""

__all__ = ["app"]

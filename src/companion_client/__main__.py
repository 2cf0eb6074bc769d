"""
Entry point for running Companion Client as a module.

This allows users to run the CLI using:
    python -m companion_client [command] [options]
"""

from companion_client.cli.app import app

if __name__ == "__main__":
    app()

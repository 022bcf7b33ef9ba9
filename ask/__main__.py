"""Entry point for ``python -m ask``."""

from ask.cli.commands import app

if __name__ == "__main__":
    app()

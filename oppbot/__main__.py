"""Entry point for ``python -m oppbot``."""

from oppbot.cli.commands import app

if __name__ == "__main__":
    app()

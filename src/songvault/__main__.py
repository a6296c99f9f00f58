"""Entry point for ``python -m songvault``."""

from songvault.cli import app

if __name__ == "__main__":
    app()

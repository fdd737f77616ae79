"""Allow running trackerwire as ``python -m trackerwire``."""

from trackerwire.cli import app

if __name__ == "__main__":
    app()

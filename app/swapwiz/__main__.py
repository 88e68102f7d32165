"""Allow running swapwiz as ``python -m swapwiz``."""

from swapwiz.cli.main import app

if __name__ == "__main__":
    app()

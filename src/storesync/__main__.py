"""Allow ``python -m storesync``."""

from storesync.cli import app

if __name__ == "__main__":
    app()

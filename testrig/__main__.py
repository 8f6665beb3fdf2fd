"""Allow ``python -m testrig``."""

from __future__ import annotations

from testrig.main import cli

if __name__ == "__main__":
    cli()

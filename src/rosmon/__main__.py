"""Allow ``python -m rosmon``."""

from __future__ import annotations

from rosmon.cli.main import main

if __name__ == "__main__":
    main()

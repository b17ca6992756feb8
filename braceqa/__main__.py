"""Entry point for ``python -m braceqa``."""

from braceqa.cli import main

if __name__ == "__main__":
    raise SystemExit(main())

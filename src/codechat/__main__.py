"""Entry point for `python -m codechat`."""

from codechat.cli import main

if __name__ == "__main__":
    raise SystemExit(main())

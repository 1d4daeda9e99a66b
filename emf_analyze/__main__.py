"""Module entry point: python -m emf_analyze ..."""

from __future__ import annotations

from emf_analyze.cli import main


if __name__ == "__main__":
    raise SystemExit(main())

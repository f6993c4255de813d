"""Single entrypoint for running a layout search."""

from __future__ import annotations

from layout_anneal.main import main

if __name__ == "__main__":
    raise SystemExit(main())

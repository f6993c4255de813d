#!/usr/bin/env python3

"""CLI to score a scene's starting layout without searching."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from layout_anneal.constants import PAIRWISE_MODES
from layout_anneal.demo import demo_scene
from layout_anneal.errors import LayoutSearchError
from layout_anneal.host import score_layout
from layout_anneal.scene_io import load_scene


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, evaluate the cost breakdown, and print JSON to stdout."""
    argv = list(sys.argv[1:] if argv is None else argv)
    ap = argparse.ArgumentParser(description="Score the starting layout of a scene")
    ap.add_argument("scene", type=Path, nargs="?", default=None, help="Scene file (JSON/YAML); demo scene if omitted")
    ap.add_argument("--pairwise", type=str, default="relational", choices=list(PAIRWISE_MODES))
    ap.add_argument("--pretty", action="store_true", help="Pretty-print JSON")
    args = ap.parse_args(argv)

    spec = load_scene(args.scene) if args.scene is not None else demo_scene()
    try:
        cost = score_layout(spec, pairwise=args.pairwise)
    except LayoutSearchError as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(cost, indent=2 if args.pretty else None))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

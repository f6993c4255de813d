"""Layout search runner.

This module provides a CLI (via `python -m layout_anneal`) that runs the
parallel annealing search on a scene file (or the built-in demo scene),
prints every suggestion's placements and cost breakdown, and optionally saves
a plot of the best suggestion.

Defaults can be supplied by a JSON/YAML config (`--config`, or
`configs/anneal.json` under the repository root); explicit flags win.
"""

from __future__ import annotations

import argparse
import json
import math
import sys
import time
from pathlib import Path

import jax

from .config import config_to_argv, default_config_path
from .constants import COST_TERMS, DEFAULT_BLOCK_MEMORY, PAIRWISE_MODES
from .demo import demo_scene
from .errors import LayoutSearchError
from .host import Suggestion, search_layouts
from .scene_io import load_scene


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Parallel simulated-annealing furniture layout search")
    ap.add_argument("--config", type=Path, default=None, help="JSON/YAML file with default flags")
    ap.add_argument("--no-config", action="store_true", help="Ignore configs/anneal.json")
    ap.add_argument("--scene", type=Path, default=None, help="Scene file (JSON/YAML); defaults to the demo scene")
    ap.add_argument("--suggestions", type=int, default=4, help="Independent suggestions (blocks)")
    ap.add_argument("--groups", type=int, default=32, help="Chains (lane groups) per block")
    ap.add_argument("--iterations", type=int, default=2000, help="Proposals per chain")
    ap.add_argument("--seed", type=int, default=None, help="Root seed (default: wall clock)")
    ap.add_argument("--pairwise", type=str, default="relational", choices=list(PAIRWISE_MODES))
    ap.add_argument(
        "--max-block-bytes",
        type=int,
        default=DEFAULT_BLOCK_MEMORY,
        help="Per-block working memory budget (2 layouts + 2 breakdowns per group)",
    )
    ap.add_argument("--json", action="store_true", help="Print results as JSON")
    ap.add_argument("--pretty", action="store_true", help="Pretty-print JSON")
    ap.add_argument("--plot", type=Path, default=None, help="Save a plot of the best suggestion")
    return ap


def _resolve_argv(argv: list[str]) -> list[str]:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", type=Path, default=None)
    pre.add_argument("--no-config", action="store_true")
    known, _ = pre.parse_known_args(argv)
    if known.config is not None and known.no_config:
        raise SystemExit("Use either --config or --no-config, not both.")
    if known.no_config:
        return argv
    path = known.config if known.config is not None else default_config_path()
    if path is None:
        return argv
    return config_to_argv(path) + argv


def format_suggestion(idx: int, suggestion: Suggestion) -> str:
    lines = [
        f"Suggestion {idx}: total={suggestion.cost['total']:.4f} "
        f"(group {suggestion.group}, beta={suggestion.beta:.4f}, accepted={suggestion.accepted})"
    ]
    for name in COST_TERMS:
        lines.append(f"  {name:<15} {suggestion.cost[name]: .4f}")
    for i, p in enumerate(suggestion.placements):
        label = p.name or f"object_{i}"
        frozen = " [frozen]" if p.frozen else ""
        lines.append(
            f"  {label:<18} x={p.position[0]: .3f} y={p.position[1]: .3f} "
            f"rot={math.degrees(p.rotation[1]):7.2f} deg{frozen}"
        )
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint for the layout search."""
    argv = list(sys.argv[1:] if argv is None else argv)
    args = build_parser().parse_args(_resolve_argv(argv))

    spec = load_scene(args.scene) if args.scene is not None else demo_scene()

    if not args.json:
        print("Running layout annealing with:")
        print(f"  Scene: {args.scene if args.scene is not None else 'demo'}")
        print(f"  Objects: {spec.n_objects}")
        print(f"  Suggestions: {args.suggestions}")
        print(f"  Groups/block: {args.groups}")
        print(f"  Iterations: {args.iterations}")
        print(f"  Device: {jax.devices()[0]}")

    start_time = time.time()
    try:
        suggestions = search_layouts(
            spec,
            suggestions=args.suggestions,
            groups=args.groups,
            iterations=args.iterations,
            seed=args.seed,
            pairwise=args.pairwise,
            max_block_bytes=args.max_block_bytes,
        )
    except LayoutSearchError as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        return 1
    elapsed = time.time() - start_time

    if args.json:
        data = {"elapsed_s": elapsed, "suggestions": [s.to_json() for s in suggestions]}
        print(json.dumps(data, indent=2 if args.pretty else None))
    else:
        print(f"Done in {elapsed:.2f}s")
        for idx, suggestion in enumerate(suggestions):
            print(format_suggestion(idx, suggestion))

    if args.plot is not None:
        from .plotting import plot_layout

        best = min(suggestions, key=lambda s: s.cost["total"])
        plot_layout(spec, best.placements, best.cost["total"], args.plot)
        if not args.json:
            print(f"Saved plot to {args.plot}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

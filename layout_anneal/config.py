"""Shared helpers for loading search configuration and scene files.

Config files live under `configs/` at the repository root and are committed
to version control so that runs are reproducible.

Supported formats: JSON and YAML (`.yaml`/`.yml`, parsed with `pyyaml`).

Supported config shapes:
- {"args": ["--groups", "32", ...]}  # explicit argv
- {"search": {"groups": 32, "iterations": 2000, ...}}  # section mapping
- {"groups": 32, "plot": {"path": "out.png"}}  # mapping (nested keys flattened)
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

import yaml

DEFAULT_CONFIG_NAME = "anneal.json"


def repo_root_from_cwd() -> Path:
    """Return the repository root (directory containing `pyproject.toml`), if found."""
    cwd = Path.cwd().resolve()
    for cand in (cwd, *cwd.parents):
        if (cand / "pyproject.toml").is_file():
            return cand
    return cwd


def default_config_path(filename: str = DEFAULT_CONFIG_NAME) -> Path | None:
    """Return `configs/<filename>` under the repo root if it exists."""
    path = (repo_root_from_cwd() / "configs" / filename).resolve()
    return path if path.is_file() else None


def load_document(path: Path) -> Any:
    """Parse a JSON or YAML (`.yaml`/`.yml`) document."""
    suffix = path.suffix.lower()
    raw = path.read_text(encoding="utf-8")
    if suffix in {".yaml", ".yml"}:
        return yaml.safe_load(raw)
    return json.loads(raw)


def _flatten_mapping(mapping: dict[str, Any]) -> dict[str, Any]:
    """Flatten nested keys by joining with '_' (e.g. plot.path -> plot_path)."""

    out: dict[str, Any] = {}

    def _walk(prefix: str, obj: dict[str, Any]) -> None:
        for key, value in obj.items():
            key_str = str(key).strip()
            if not key_str:
                continue
            name = f"{prefix}_{key_str}" if prefix else key_str
            if isinstance(value, dict):
                _walk(name, value)
            else:
                out[name] = value

    _walk("", mapping)
    return out


def config_to_argv(config_path: Path, *, section_keys: Iterable[str] = ("search",)) -> list[str]:
    """Convert a JSON/YAML config file into argv-like tokens.

    The result is meant to be prepended to the command line so that explicit
    flags override config defaults. Booleans become bare flags when true and
    are dropped when false; lists are joined with commas.
    """
    data = load_document(config_path)

    if isinstance(data, dict) and "args" in data:
        args = data["args"]
        if not isinstance(args, list):
            raise TypeError(f"{config_path}: expected 'args' to be a list, got {type(args).__name__}")
        argv = [str(x) for x in args]
        if any(tok == "--config" or tok.startswith("--config=") for tok in argv):
            raise ValueError(f"{config_path}: 'args' must not include --config")
        return argv

    if not isinstance(data, dict):
        raise TypeError(f"{config_path}: expected a mapping at top-level, got {type(data).__name__}")

    section = next((data[k] for k in section_keys if isinstance(data.get(k), dict)), data)

    argv: list[str] = []
    for key, value in _flatten_mapping(section).items():
        if key in {"config", "args"} or value is None:
            continue
        flag = key if key.startswith("--") else "--" + key.replace("_", "-")
        if isinstance(value, bool):
            if value:
                argv.append(flag)
            continue
        if isinstance(value, (list, tuple)):
            argv.extend([flag, ",".join(str(x) for x in value)])
            continue
        argv.extend([flag, str(value)])
    return argv

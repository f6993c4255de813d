"""Host-side scene documents.

A scene is a JSON or YAML mapping:

    {
      "weights": {"pairwise": 1.0, ...} | [w0, ..., w7],
      "centroid": [x, y],
      "focal_point": [x, y, rotation],
      "surface": [[x, y], [x, y], [x, y], [x, y]],
      "vertices": [[x, y, z], ...],
      "objects": [
        {"position": [x, y, z], "rotation": [rx, ry, rz],
         "length": l, "width": w, "frozen": false, "name": "sofa"}, ...
      ],
      "relationships": [
        {"source": 0, "target": 1, "distance": [start, end],
         "angle": [start, end], "exponent": 2.0}, ...
      ],
      "clearances": [{"vertices": [i0, i1, i2, i3], "owner": 0}, ...],
      "off_limits": [{"vertices": [i0, i1, i2, i3], "owner": 0}, ...]
    }

Missing weights default to 1.0; missing lists default to empty. Consistency
between indices and counts is a caller obligation and is not checked.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Sequence

from .config import load_document
from .constants import COST_TERMS


@dataclass
class PlacementSpec:
    position: tuple[float, float, float]
    rotation: tuple[float, float, float]
    length: float
    width: float
    frozen: bool = False
    name: str = ""


@dataclass
class RelationshipSpec:
    source: int
    target: int
    distance: tuple[float, float]
    angle: tuple[float, float] = (0.0, 0.0)
    exponent: float = 2.0


@dataclass
class RegionSpec:
    vertices: tuple[int, int, int, int]
    owner: int


@dataclass
class SceneSpec:
    """Everything the search needs, in plain Python types."""

    objects: list[PlacementSpec]
    surface: list[tuple[float, float]]
    weights: tuple[float, ...] = tuple(1.0 for _ in COST_TERMS)
    centroid: tuple[float, float] = (0.0, 0.0)
    focal_point: tuple[float, float, float] = (0.0, 0.0, 0.0)
    vertices: list[tuple[float, float, float]] = field(default_factory=list)
    relationships: list[RelationshipSpec] = field(default_factory=list)
    clearances: list[RegionSpec] = field(default_factory=list)
    off_limits: list[RegionSpec] = field(default_factory=list)

    @property
    def n_objects(self) -> int:
        return len(self.objects)

    def weight_map(self) -> dict[str, float]:
        return dict(zip(COST_TERMS, self.weights))


def _floats(values: Sequence[Any], n: int, what: str) -> tuple[float, ...]:
    out = tuple(float(v) for v in values)
    if len(out) != n:
        raise ValueError(f"{what}: expected {n} values, got {len(out)}")
    return out


def parse_weights(raw: Any) -> tuple[float, ...]:
    """Accept weights as a mapping by term name or as a list in term order."""
    if raw is None:
        return tuple(1.0 for _ in COST_TERMS)
    if isinstance(raw, dict):
        unknown = sorted(set(raw) - set(COST_TERMS))
        if unknown:
            raise ValueError(f"Unknown cost weights: {unknown} (expected a subset of {list(COST_TERMS)})")
        return tuple(float(raw.get(name, 1.0)) for name in COST_TERMS)
    if isinstance(raw, (list, tuple)):
        return _floats(raw, len(COST_TERMS), "weights")
    raise TypeError(f"weights: expected a mapping or a list, got {type(raw).__name__}")


def _placement_from_dict(obj: dict[str, Any]) -> PlacementSpec:
    position = list(obj.get("position", (0.0, 0.0, 0.0)))
    if len(position) == 2:
        position.append(0.0)
    rotation = obj.get("rotation", (0.0, 0.0, 0.0))
    if isinstance(rotation, (int, float)):
        rotation = (0.0, float(rotation), 0.0)
    return PlacementSpec(
        position=_floats(position, 3, "position"),  # type: ignore[arg-type]
        rotation=_floats(rotation, 3, "rotation"),  # type: ignore[arg-type]
        length=float(obj["length"]),
        width=float(obj["width"]),
        frozen=bool(obj.get("frozen", False)),
        name=str(obj.get("name", "")),
    )


def _region_from_dict(obj: dict[str, Any]) -> RegionSpec:
    ids = tuple(int(v) for v in obj["vertices"])
    if len(ids) != 4:
        raise ValueError(f"region vertices: expected 4 indices, got {len(ids)}")
    return RegionSpec(vertices=ids, owner=int(obj["owner"]))  # type: ignore[arg-type]


def scene_from_dict(data: dict[str, Any]) -> SceneSpec:
    """Build a `SceneSpec` from a parsed JSON/YAML mapping."""
    if not isinstance(data, dict):
        raise TypeError(f"scene: expected a mapping at top-level, got {type(data).__name__}")

    surface = [_floats(p, 2, "surface vertex") for p in data["surface"]]
    if len(surface) != 4:
        raise ValueError(f"surface: expected 4 vertices, got {len(surface)}")

    vertices = []
    for p in data.get("vertices", []):
        p = list(p)
        if len(p) == 2:
            p.append(0.0)
        vertices.append(_floats(p, 3, "vertex"))

    relationships = [
        RelationshipSpec(
            source=int(r["source"]),
            target=int(r["target"]),
            distance=_floats(r["distance"], 2, "relationship distance"),  # type: ignore[arg-type]
            angle=_floats(r.get("angle", (0.0, 0.0)), 2, "relationship angle"),  # type: ignore[arg-type]
            exponent=float(r.get("exponent", 2.0)),
        )
        for r in data.get("relationships", [])
    ]

    return SceneSpec(
        objects=[_placement_from_dict(o) for o in data["objects"]],
        surface=surface,  # type: ignore[arg-type]
        weights=parse_weights(data.get("weights")),
        centroid=_floats(data.get("centroid", (0.0, 0.0)), 2, "centroid"),  # type: ignore[arg-type]
        focal_point=_floats(data.get("focal_point", (0.0, 0.0, 0.0)), 3, "focal_point"),  # type: ignore[arg-type]
        vertices=vertices,  # type: ignore[arg-type]
        relationships=relationships,
        clearances=[_region_from_dict(r) for r in data.get("clearances", [])],
        off_limits=[_region_from_dict(r) for r in data.get("off_limits", [])],
    )


def scene_to_dict(spec: SceneSpec) -> dict[str, Any]:
    """Inverse of `scene_from_dict` (weights are written as a mapping)."""
    data = asdict(spec)
    data["weights"] = spec.weight_map()
    return data


def load_scene(path: Path) -> SceneSpec:
    """Load a scene document from a `.json`, `.yaml` or `.yml` file."""
    return scene_from_dict(load_document(Path(path)))


def save_scene(spec: SceneSpec, path: Path) -> None:
    Path(path).write_text(json.dumps(scene_to_dict(spec), indent=2) + "\n", encoding="utf-8")

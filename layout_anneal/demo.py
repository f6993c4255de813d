"""Built-in sample scene: a living room with ten pieces of furniture.

Every object gets three clearance strips (in front and on both sides) in its
local frame, giving 30 clearance regions sharing one vertex pool. The sofa
has one relationship with the coffee table: keep it 1-2 m away and not behind
the sofa.
"""

from __future__ import annotations

import math

from .scene_io import PlacementSpec, RegionSpec, RelationshipSpec, SceneSpec

ROOM_WIDTH = 10.0
ROOM_DEPTH = 8.0
CLEARANCE_DEPTH = 0.5

# name, x, y, rotation, length, width, frozen
_FURNITURE = [
    ("sofa", 2.0, 2.0, 0.0, 2.2, 0.9, False),
    ("coffee_table", 4.0, 2.0, 0.0, 1.2, 0.6, False),
    ("tv_stand", 5.0, 7.6, 1.5 * math.pi, 1.8, 0.45, True),
    ("armchair_left", 7.0, 2.0, 0.0, 0.9, 0.9, False),
    ("armchair_right", 8.0, 5.0, 0.0, 0.9, 0.9, False),
    ("bookshelf", 1.0, 6.0, 0.0, 1.0, 0.35, False),
    ("side_table_left", 3.0, 5.0, 0.0, 0.5, 0.5, False),
    ("side_table_right", 6.0, 4.0, 0.0, 0.5, 0.5, False),
    ("plant", 9.0, 7.0, 0.0, 0.4, 0.4, False),
    ("floor_lamp", 9.0, 1.0, 0.0, 0.4, 0.4, False),
]


def _strips(length: float, width: float, depth: float) -> list[list[tuple[float, float, float]]]:
    """Front (+x), left (+y) and right (-y) clearance rectangles in the local frame."""
    hw = width * 0.5
    hl = length * 0.5
    front = [(hw, -hl, 0.0), (hw + depth, -hl, 0.0), (hw + depth, hl, 0.0), (hw, hl, 0.0)]
    left = [(-hw, hl, 0.0), (hw, hl, 0.0), (hw, hl + depth, 0.0), (-hw, hl + depth, 0.0)]
    right = [(-hw, -hl - depth, 0.0), (hw, -hl - depth, 0.0), (hw, -hl, 0.0), (-hw, -hl, 0.0)]
    return [front, left, right]


def demo_scene() -> SceneSpec:
    """Return the sample living-room scene."""
    objects = []
    vertices: list[tuple[float, float, float]] = []
    clearances = []
    for owner, (name, x, y, rot, length, width, frozen) in enumerate(_FURNITURE):
        objects.append(
            PlacementSpec(
                position=(x, y, 0.0),
                rotation=(0.0, rot, 0.0),
                length=length,
                width=width,
                frozen=frozen,
                name=name,
            )
        )
        for strip in _strips(length, width, CLEARANCE_DEPTH):
            start = len(vertices)
            vertices.extend(strip)
            clearances.append(RegionSpec(vertices=(start, start + 1, start + 2, start + 3), owner=owner))

    return SceneSpec(
        objects=objects,
        surface=[(0.0, 0.0), (ROOM_WIDTH, 0.0), (ROOM_WIDTH, ROOM_DEPTH), (0.0, ROOM_DEPTH)],
        weights=(1.0, 0.5, 0.5, 0.05, 0.05, 2.0, 4.0, 4.0),
        centroid=(ROOM_WIDTH * 0.5, ROOM_DEPTH * 0.5),
        focal_point=(5.0, 7.6, 0.5 * math.pi),
        vertices=vertices,
        relationships=[
            RelationshipSpec(source=0, target=1, distance=(1.0, 2.0), angle=(0.5 * math.pi, 1.5 * math.pi), exponent=2.0)
        ],
        clearances=clearances,
    )

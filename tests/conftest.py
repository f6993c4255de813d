import pytest


def _build(
    objects,
    *,
    relationships=(),
    clearances=(),
    vertices=(),
    weights=None,
    surface=((0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0)),
    centroid=(0.0, 0.0),
    focal=(0.0, 0.0, 0.0),
):
    """Build device `(Scene, Layout)` from compact tuples.

    `objects` rows are `(x, y, theta, length, width[, frozen])`.
    """
    import jax

    from layout_anneal.host import layout_arrays, scene_arrays
    from layout_anneal.scene_io import PlacementSpec, RegionSpec, RelationshipSpec, SceneSpec

    placements = [
        PlacementSpec(
            position=(float(o[0]), float(o[1]), 0.0),
            rotation=(0.0, float(o[2]), 0.0),
            length=float(o[3]),
            width=float(o[4]),
            frozen=bool(o[5]) if len(o) > 5 else False,
        )
        for o in objects
    ]
    spec = SceneSpec(
        objects=placements,
        surface=list(surface),
        weights=tuple(weights) if weights is not None else (1.0,) * 8,
        centroid=centroid,
        focal_point=focal,
        vertices=[tuple(v) + (0.0,) * (3 - len(v)) for v in vertices],
        relationships=[RelationshipSpec(*r) for r in relationships],
        clearances=[RegionSpec(vertices=tuple(c[0]), owner=c[1]) for c in clearances],
    )
    return jax.device_put(scene_arrays(spec)), jax.device_put(layout_arrays(placements))


@pytest.fixture
def make_scene():
    return _build


@pytest.fixture
def front_strip():
    """One clearance strip in front (+x) of a 2 x 1 object: vertices and region."""
    vertices = [(0.5, -1.0), (1.0, -1.0), (1.0, 1.0), (0.5, 1.0)]
    return vertices, ((0, 1, 2, 3), 0)



import math

import numpy as np
import pytest

try:
    import jax
    import jax.numpy as jnp

    from layout_anneal.geometry import surface_bbox
    from layout_anneal.proposals import propose_move, rotate_move, swap_move, translate_move, wrap_rotation
except Exception:  # pragma: no cover
    pytest.skip("JAX not available", allow_module_level=True)


OBJECTS = [
    (1.0, 1.0, 0.0, 1.0, 2.0),
    (5.0, 5.0, 1.0, 2.0, 1.0),
    (8.0, 2.0, 2.0, 0.5, 0.5, True),
    (3.0, 7.0, 3.0, 1.5, 0.8),
]


def _sorted_rows(a) -> np.ndarray:
    a = np.asarray(a)
    return a[np.lexsort(a.T[::-1])]


def test_translate_clamps_to_surface(make_scene) -> None:
    scene, layout = make_scene([(9.9, 5.0, 0.0, 1.0, 1.0)])
    box = surface_bbox(scene.surface)
    out = translate_move(layout, jnp.array(0), jnp.array([100.0, 0.0]), box)
    np.testing.assert_allclose(np.array(out.position[0]), np.array([10.0, 5.0, 0.0]), atol=1e-6)


def test_translate_scales_with_surface(make_scene) -> None:
    # 10 x 10 surface -> sigma = 10 / 16 per axis.
    scene, layout = make_scene([(5.0, 5.0, 0.0, 1.0, 1.0)])
    box = surface_bbox(scene.surface)
    out = translate_move(layout, jnp.array(0), jnp.array([1.0, -2.0]), box)
    np.testing.assert_allclose(np.array(out.position[0, 0:2]), np.array([5.625, 3.75]), atol=1e-6)


def test_frozen_object_ignores_translate_and_rotate(make_scene) -> None:
    scene, layout = make_scene(OBJECTS)
    box = surface_bbox(scene.surface)
    idx = jnp.array(2)
    moved = translate_move(layout, idx, jnp.array([3.0, -3.0]), box)
    turned = rotate_move(layout, idx, jnp.array(2.0))
    for out in (moved, turned):
        for a, b in zip(out, layout):
            assert np.array_equal(np.array(a), np.array(b))


def test_rotate_wraps_into_full_turn(make_scene) -> None:
    _, layout = make_scene([(5.0, 5.0, 6.2, 1.0, 1.0)])
    out = rotate_move(layout, jnp.array(0), jnp.array(1.0))
    theta = float(out.rotation[0, 1])
    assert 0.0 <= theta < 2.0 * math.pi
    assert theta == pytest.approx(6.2 + 15.0 / 90.0 * math.pi - 2.0 * math.pi, abs=1e-5)


def test_wrap_rotation() -> None:
    out = wrap_rotation(jnp.array([-0.5, 0.0, 2.0 * math.pi, 7.0]))
    np.testing.assert_allclose(
        np.array(out), np.array([2.0 * math.pi - 0.5, 0.0, 0.0, 7.0 - 2.0 * math.pi]), atol=1e-5
    )
    assert bool(jnp.all(out < 2.0 * math.pi))


def test_swap_exchanges_position_and_rotation(make_scene) -> None:
    _, layout = make_scene(OBJECTS)
    out = swap_move(layout, jnp.array(0), jnp.array(1))
    np.testing.assert_allclose(np.array(out.position[0]), np.array(layout.position[1]))
    np.testing.assert_allclose(np.array(out.position[1]), np.array(layout.position[0]))
    np.testing.assert_allclose(np.array(out.rotation[0]), np.array(layout.rotation[1]))
    np.testing.assert_allclose(np.array(out.rotation[1]), np.array(layout.rotation[0]))
    # Sizes belong to the object, not to the slot.
    assert np.array_equal(np.array(out.size), np.array(layout.size))


def test_swap_noop_cases(make_scene) -> None:
    _, layout = make_scene(OBJECTS)
    for i, j in [(0, 0), (0, 2), (2, 3)]:
        out = swap_move(layout, jnp.array(i), jnp.array(j))
        for a, b in zip(out, layout):
            assert np.array_equal(np.array(a), np.array(b))

    _, single = make_scene([(5.0, 5.0, 0.0, 1.0, 1.0)])
    out = swap_move(single, jnp.array(0), jnp.array(0))
    assert np.array_equal(np.array(out.position), np.array(single.position))


def test_propose_move_properties(make_scene) -> None:
    scene, layout = make_scene(OBJECTS)
    box = surface_bbox(scene.surface)
    keys = jax.random.split(jax.random.PRNGKey(0), 512)
    candidates, moves = jax.vmap(lambda k: propose_move(k, layout, box))(keys)

    moves = np.array(moves)
    assert set(np.unique(moves)) <= {0, 1, 2}
    assert len(np.unique(moves)) == 3

    # The frozen object never changes.
    assert np.all(np.array(candidates.position[:, 2]) == np.array(layout.position[2]))
    assert np.all(np.array(candidates.rotation[:, 2]) == np.array(layout.rotation[2]))

    pos = np.array(candidates.position)
    assert np.all(pos[..., 0:2] >= 0.0) and np.all(pos[..., 0:2] <= 10.0)
    theta = np.array(candidates.rotation[..., 1])
    assert np.all(theta >= 0.0) and np.all(theta < 2.0 * math.pi)

    # Positions and rotations are permuted, never invented, by a swap.
    for c in np.flatnonzero(moves == 2):
        np.testing.assert_array_equal(_sorted_rows(pos[c]), _sorted_rows(layout.position))
        np.testing.assert_array_equal(
            _sorted_rows(np.array(candidates.rotation[c])), _sorted_rows(layout.rotation)
        )
        np.testing.assert_array_equal(np.array(candidates.size[c]), np.array(layout.size))


def test_propose_move_is_deterministic(make_scene) -> None:
    scene, layout = make_scene(OBJECTS)
    box = surface_bbox(scene.surface)
    key = jax.random.PRNGKey(42)
    a, move_a = propose_move(key, layout, box)
    b, move_b = propose_move(key, layout, box)
    assert int(move_a) == int(move_b)
    for x, y in zip(a, b):
        assert np.array_equal(np.array(x), np.array(y))

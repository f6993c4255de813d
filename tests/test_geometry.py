import math

import numpy as np
import pytest

try:
    import jax.numpy as jnp

    from layout_anneal.geometry import (
        complement_rectangles,
        intersection_area,
        minkowski_translate,
        object_bbox,
        object_bboxes,
        pairwise_intersection_areas,
        polygon_bbox,
        polygon_bbox_rotated,
        region_bboxes,
        rotate_point,
        surface_bbox,
    )
except Exception:  # pragma: no cover
    pytest.skip("JAX not available", allow_module_level=True)


def test_rotate_point_90_deg() -> None:
    out = rotate_point(jnp.array([1.0, 0.0]), jnp.pi / 2.0)
    np.testing.assert_allclose(np.array(out), np.array([0.0, 1.0]), atol=1e-6, rtol=0.0)


def test_object_bbox_unrotated() -> None:
    # length runs along y, width along x
    box = object_bbox(jnp.array([1.0, 2.0, 0.0]), jnp.array(0.0), jnp.array([4.0, 2.0]))
    np.testing.assert_allclose(np.array(box), np.array([0.0, 0.0, 2.0, 4.0]), atol=1e-6, rtol=0.0)


def test_object_bbox_quarter_turn_swaps_extents() -> None:
    box = object_bbox(jnp.array([1.0, 2.0, 0.0]), jnp.array(math.pi / 2), jnp.array([4.0, 2.0]))
    np.testing.assert_allclose(np.array(box), np.array([-1.0, 1.0, 3.0, 3.0]), atol=1e-6, rtol=0.0)


def test_object_bbox_45_deg() -> None:
    box = object_bbox(jnp.array([0.0, 0.0, 0.0]), jnp.array(math.pi / 4), jnp.array([2.0, 2.0]))
    half = math.sqrt(2.0)
    np.testing.assert_allclose(np.array(box), np.array([-half, -half, half, half]), atol=1e-6, rtol=0.0)


def test_polygon_bbox() -> None:
    poly = jnp.array([[2.0, -1.0], [0.5, 4.0], [3.0, 1.0]])
    bbox = polygon_bbox(poly)
    np.testing.assert_allclose(np.array(bbox), np.array([0.5, -1.0, 3.0, 4.0]), atol=1e-12, rtol=0.0)


def test_polygon_bbox_rotated_is_centered() -> None:
    verts = jnp.array([[4.0, 1.0], [6.0, 1.0], [6.0, 2.0], [4.0, 2.0]])
    np.testing.assert_allclose(
        np.array(polygon_bbox_rotated(verts, jnp.array(0.0))), np.array([-1.0, -0.5, 1.0, 0.5]), atol=1e-6
    )
    np.testing.assert_allclose(
        np.array(polygon_bbox_rotated(verts, jnp.array(math.pi / 2))), np.array([-0.5, -1.0, 0.5, 1.0]), atol=1e-6
    )


def test_minkowski_translate_moves_both_corners_by_the_same_offset() -> None:
    box = jnp.array([0.0, 1.0, 2.0, 3.0])
    out = minkowski_translate(jnp.array([10.0, 20.0]), box)
    np.testing.assert_allclose(np.array(out), np.array([10.0, 21.0, 12.0, 23.0]), atol=0.0, rtol=0.0)
    # Extents are preserved exactly.
    assert float(out[2] - out[0]) == pytest.approx(2.0)
    assert float(out[3] - out[1]) == pytest.approx(2.0)


def test_intersection_area() -> None:
    a = jnp.array([0.0, 0.0, 2.0, 2.0])
    assert float(intersection_area(a, jnp.array([1.0, 1.0, 3.0, 3.0]))) == pytest.approx(1.0)
    assert float(intersection_area(a, jnp.array([0.5, 0.5, 1.0, 1.0]))) == pytest.approx(0.25)
    # Touching and disjoint boxes clamp to zero.
    assert float(intersection_area(a, jnp.array([2.0, 0.0, 3.0, 2.0]))) == 0.0
    assert float(intersection_area(a, jnp.array([5.0, 5.0, 6.0, 6.0]))) == 0.0


def test_pairwise_intersection_areas_matches_scalar() -> None:
    boxes = jnp.array([[0.0, 0.0, 2.0, 2.0], [1.0, 1.0, 3.0, 3.0], [5.0, 5.0, 6.0, 6.0]])
    areas = np.array(pairwise_intersection_areas(boxes, boxes))
    for i in range(3):
        for j in range(3):
            assert areas[i, j] == pytest.approx(float(intersection_area(boxes[i], boxes[j])))


def test_complement_rectangles_tile_outside_of_surface() -> None:
    surface = jnp.array([0.0, 0.0, 10.0, 8.0])
    outside = complement_rectangles(surface)
    assert outside.shape == (4, 4)

    inside_box = jnp.array([1.0, 1.0, 9.0, 7.0])
    assert float(jnp.sum(pairwise_intersection_areas(inside_box[None, :], outside))) == 0.0

    # A box covering the surface plus a 1-unit margin: 12 x 10 - 10 x 8 outside, no double counting.
    big = jnp.array([-1.0, -1.0, 11.0, 9.0])
    assert float(jnp.sum(pairwise_intersection_areas(big[None, :], outside))) == pytest.approx(40.0)

    # Sticking out on the right only.
    right = jnp.array([9.0, 2.0, 11.0, 3.0])
    assert float(jnp.sum(pairwise_intersection_areas(right[None, :], outside))) == pytest.approx(1.0)


def test_surface_bbox() -> None:
    surface = jnp.array([[0.0, 0.0], [10.0, 0.0], [10.0, 8.0], [0.0, 8.0]])
    np.testing.assert_allclose(np.array(surface_bbox(surface)), np.array([0.0, 0.0, 10.0, 8.0]))


def test_region_bboxes_follow_owner_rotation(make_scene, front_strip) -> None:
    vertices, region = front_strip
    scene, layout = make_scene([(5.0, 5.0, math.pi / 2, 2.0, 1.0)], clearances=[region], vertices=vertices)
    boxes = region_bboxes(layout, scene.clearances, scene.vertices)
    # Local strip x in [0.5, 1], y in [-1, 1]; a quarter turn puts it above the owner.
    np.testing.assert_allclose(np.array(boxes[0]), np.array([4.0, 5.5, 6.0, 6.0]), atol=1e-5)


def test_region_bboxes_unrotated(make_scene, front_strip) -> None:
    vertices, region = front_strip
    scene, layout = make_scene([(5.0, 5.0, 0.0, 2.0, 1.0)], clearances=[region], vertices=vertices)
    boxes = region_bboxes(layout, scene.clearances, scene.vertices)
    np.testing.assert_allclose(np.array(boxes[0]), np.array([5.5, 4.0, 6.0, 6.0]), atol=1e-5)


def test_region_bboxes_empty(make_scene) -> None:
    scene, layout = make_scene([(5.0, 5.0, 0.0, 2.0, 1.0)])
    assert region_bboxes(layout, scene.clearances, scene.vertices).shape == (0, 4)


def test_object_bboxes_shape(make_scene) -> None:
    _, layout = make_scene([(1.0, 1.0, 0.0, 1.0, 1.0), (3.0, 3.0, 0.5, 1.0, 2.0)])
    assert object_bboxes(layout).shape == (2, 4)

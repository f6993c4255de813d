"""JAX geometry helpers for rigid rectangles.

This module implements the geometric primitives used by the cost evaluator:
rotation of points, rotated bounding boxes of objects and of local region
polygons, translation of boxes into world space (Minkowski sum with a point),
axis-aligned intersection areas and the complement of the surface.

Representation conventions:
- A point is a `(2,)` array.
- A polygon is a `(V, 2)` array of vertices.
- A bounding box is a `(4,)` array `[min_x, min_y, max_x, max_y]`.
- Angles are radians.
"""

import jax
import jax.numpy as jnp

from .scene import Layout, Regions


def rotate_point(p: jnp.ndarray, theta: float) -> jnp.ndarray:
    """Rotate a point around the origin.

    Args:
        p: Point `(2,)`.
        theta: Rotation angle in radians.

    Returns:
        Rotated point `(2,)`.
    """
    c = jnp.cos(theta)
    s = jnp.sin(theta)
    rotation_matrix = jnp.array([[c, -s], [s, c]])
    return jnp.dot(rotation_matrix, p)


def rotated_half_extents(extent_x: jax.Array, extent_y: jax.Array, theta: jax.Array) -> jax.Array:
    """Half extents `(dx, dy)` of a `extent_x` by `extent_y` rectangle rotated by `theta`."""
    c = jnp.abs(jnp.cos(theta))
    s = jnp.abs(jnp.sin(theta))
    dx = (extent_x * c + extent_y * s) * 0.5
    dy = (extent_x * s + extent_y * c) * 0.5
    return jnp.stack([dx, dy], axis=-1)


def object_bbox(position: jax.Array, theta: jax.Array, size: jax.Array) -> jax.Array:
    """Axis-aligned bounding box of a rotated object.

    The object's width runs along its local x axis and its length along its
    local y axis.

    Args:
        position: `(3,)` or `(2,)` object position; only x/y are used.
        theta: Rotation around the vertical axis (radians).
        size: `(2,)` `[length, width]`.

    Returns:
        A `(4,)` box centered at the object's position.
    """
    half = rotated_half_extents(size[1], size[0], theta)
    xy = position[0:2]
    return jnp.concatenate([xy - half, xy + half])


def polygon_bbox(poly: jnp.ndarray) -> jnp.ndarray:
    """Compute the axis-aligned bounding box (AABB) of a polygon.

    Args:
        poly: Polygon vertices `(V, 2)`.

    Returns:
        A `(4,)` array `[min_x, min_y, max_x, max_y]`.
    """
    min_vals = jnp.min(poly, axis=0)  # (2,)
    max_vals = jnp.max(poly, axis=0)  # (2,)
    return jnp.concatenate([min_vals, max_vals])


def polygon_bbox_rotated(vertices: jax.Array, theta: jax.Array) -> jax.Array:
    """Bounding box of a four-vertex local polygon rotated around its own centroid.

    The extents of the polygon's local AABB are rotated exactly like an
    object's footprint. The returned box is centered at the origin of the
    centroid frame; use `polygon_centroid` + `minkowski_translate` to place it.

    Args:
        vertices: `(4, 2)` local vertices.
        theta: Rotation (radians).

    Returns:
        A `(4,)` box centered at `(0, 0)`.
    """
    local = polygon_bbox(vertices)
    half = rotated_half_extents(local[2] - local[0], local[3] - local[1], theta)
    return jnp.concatenate([-half, half])


def polygon_centroid(vertices: jax.Array) -> jax.Array:
    """Center of the polygon's local AABB, `(2,)`."""
    local = polygon_bbox(vertices)
    return (local[0:2] + local[2:4]) * 0.5


def minkowski_translate(offset: jax.Array, box: jax.Array) -> jax.Array:
    """Minkowski sum of a box with a point: shift both corners by `offset`.

    Args:
        offset: `(2,)` world-space offset `(dx, dy)`.
        box: `(4,)` box.

    Returns:
        The translated `(4,)` box.
    """
    return box + jnp.concatenate([offset, offset])


def intersection_area(a: jax.Array, b: jax.Array) -> jax.Array:
    """Overlap area of two axis-aligned boxes, zero when they do not intersect.

    Unbounded boxes (`±inf` coordinates) are supported as long as the other box
    is finite.
    """
    w = jnp.minimum(a[2], b[2]) - jnp.maximum(a[0], b[0])
    h = jnp.minimum(a[3], b[3]) - jnp.maximum(a[1], b[1])
    return jnp.maximum(w, 0.0) * jnp.maximum(h, 0.0)


def pairwise_intersection_areas(boxes_a: jax.Array, boxes_b: jax.Array) -> jax.Array:
    """All-pairs intersection areas, `(A, B)`; same formula as `intersection_area`."""
    a = boxes_a[:, None, :]
    b = boxes_b[None, :, :]
    w = jnp.minimum(a[..., 2], b[..., 2]) - jnp.maximum(a[..., 0], b[..., 0])
    h = jnp.minimum(a[..., 3], b[..., 3]) - jnp.maximum(a[..., 1], b[..., 1])
    return jnp.maximum(w, 0.0) * jnp.maximum(h, 0.0)


def complement_rectangles(surface_box: jax.Array) -> jax.Array:
    """Four unbounded rectangles tiling the plane outside `surface_box`.

    Order: above, left, below, right. The left/right strips span only the
    surface's y range so that the four rectangles never overlap.

    Returns:
        A `(4, 4)` array of boxes.
    """
    min_x, min_y, max_x, max_y = surface_box[0], surface_box[1], surface_box[2], surface_box[3]
    inf = jnp.asarray(jnp.inf, dtype=surface_box.dtype)
    return jnp.stack(
        [
            jnp.stack([-inf, max_y, inf, inf]),
            jnp.stack([-inf, min_y, min_x, max_y]),
            jnp.stack([-inf, -inf, inf, min_y]),
            jnp.stack([max_x, min_y, inf, max_y]),
        ]
    )


def surface_bbox(surface: jax.Array) -> jax.Array:
    """Bounding box of the (unrotated) surface boundary polygon."""
    return polygon_bbox(surface[:, 0:2])


def object_bboxes(layout: Layout) -> jax.Array:
    """World boxes of every object in a layout, `(N, 4)`."""
    return jax.vmap(object_bbox)(layout.position, layout.theta(), layout.size)


def region_bboxes(layout: Layout, regions: Regions, vertices: jax.Array) -> jax.Array:
    """World boxes of every region, `(K, 4)`.

    Each region's local polygon is rotated with its owner and anchored at the
    owner's position plus the owner-rotated polygon centroid.
    """
    if regions.owner.shape[0] == 0:
        return jnp.zeros((0, 4), dtype=layout.position.dtype)

    local_polys = vertices[regions.vertex_ids][:, :, 0:2]  # (K, 4, 2)
    owner_xy = layout.position[regions.owner, 0:2]
    owner_theta = layout.theta()[regions.owner]

    def _one(poly: jax.Array, xy: jax.Array, theta: jax.Array) -> jax.Array:
        box = polygon_bbox_rotated(poly, theta)
        anchor = rotate_point(polygon_centroid(poly), theta)
        return minkowski_translate(xy + anchor, box)

    return jax.vmap(_one)(local_polys, owner_xy, owner_theta)

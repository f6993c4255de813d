"""Device-side records for the layout search.

All records are `NamedTuple`s so JAX treats them as pytrees: they can be
passed through `jax.jit`, batched with `jax.vmap` and carried by
`jax.lax.scan` without any registration.

Representation conventions:
- A layout is struct-of-arrays over `N` objects.
- Rotations are radians; only the y-axis rotation (`rotation[:, 1]`) is used
  by the cost terms and proposals.
- A bounding box is a `(4,)` array `[min_x, min_y, max_x, max_y]`.
"""

from __future__ import annotations

from typing import NamedTuple

import jax
import jax.numpy as jnp


class Layout(NamedTuple):
    """One configuration: every object's placement.

    Attributes:
        position: `(N, 3)` world position `[x, y, z]`.
        rotation: `(N, 3)` rotation `[rx, ry, rz]` in radians.
        frozen: `(N,)` bool; frozen objects are never moved.
        size: `(N, 2)` physical dimensions `[length, width]`.
    """

    position: jax.Array
    rotation: jax.Array
    frozen: jax.Array
    size: jax.Array

    @property
    def n_objects(self) -> int:
        return self.position.shape[-2]

    def theta(self) -> jax.Array:
        return self.rotation[..., 1]


class Relationships(NamedTuple):
    """Pairwise relationships, `R` rows.

    Attributes:
        source: `(R,)` int32 source object index.
        target: `(R,)` int32 target object index.
        distance: `(R, 2)` target distance range `[start, end]`.
        angle: `(R, 2)` forbidden bearing range `[start, end]` (radians).
        exponent: `(R,)` attraction exponent.
    """

    source: jax.Array
    target: jax.Array
    distance: jax.Array
    angle: jax.Array
    exponent: jax.Array


class Regions(NamedTuple):
    """Clearance or off-limit rectangles, `K` rows.

    Attributes:
        vertex_ids: `(K, 4)` int32 indices into the shared vertex pool.
        owner: `(K,)` int32 owning object index.
    """

    vertex_ids: jax.Array
    owner: jax.Array


class Scene(NamedTuple):
    """Static scene data, shared read-only by every chain."""

    weights: jax.Array  # (8,) in `constants.COST_TERMS` order
    centroid: jax.Array  # (2,)
    focal: jax.Array  # (3,) [x, y, rotation]
    relationships: Relationships
    clearances: Regions
    off_limits: Regions
    vertices: jax.Array  # (V, 3)
    surface: jax.Array  # (4, 2) surface boundary polygon


class CostBreakdown(NamedTuple):
    """Unweighted cost terms plus the weighted total."""

    pairwise: jax.Array
    visual_balance: jax.Array
    focal_point: jax.Array
    symmetry: jax.Array
    alignment: jax.Array
    clearance: jax.Array
    off_limits: jax.Array
    surface_area: jax.Array
    total: jax.Array

    def terms(self) -> jax.Array:
        """Stack the eight weighted terms along the last axis."""
        return jnp.stack(self[:8], axis=-1)


class ChainContext(NamedTuple):
    """Explicit identity of a chain inside the grid."""

    block: jax.Array
    group: jax.Array


def chain_key(root_key: jax.Array, ctx: ChainContext) -> jax.Array:
    """Derive the random stream owned by the chain at `ctx`."""
    return jax.random.fold_in(jax.random.fold_in(root_key, ctx.block), ctx.group)


def select_tree(pred: jax.Array, on_true, on_false):
    """Leaf-wise `jnp.where(pred, on_true, on_false)` over two matching pytrees."""
    return jax.tree_util.tree_map(lambda a, b: jnp.where(pred, a, b), on_true, on_false)


def take_tree(tree, idx: jax.Array):
    """Index the leading axis of every leaf."""
    return jax.tree_util.tree_map(lambda a: a[idx], tree)

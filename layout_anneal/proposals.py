"""Random local perturbations of a layout.

One move type is drawn uniformly from {translate, rotate, swap} and applied to
a single configuration. Moves that would touch a frozen object leave the
layout bit-identical (they are not retried).
"""

from __future__ import annotations

import jax
import jax.numpy as jnp

from .constants import MOVE_SWAP, ROTATE_SIGMA, TRANSLATE_DIVISOR, TWO_PI
from .scene import Layout


def wrap_rotation(theta: jax.Array) -> jax.Array:
    """Wrap into `[0, 2*pi)`; float rounding of `mod` can land on `2*pi` exactly."""
    theta = jnp.mod(theta, TWO_PI)
    return jnp.where(theta >= TWO_PI, jnp.zeros_like(theta), theta)


def translate_move(layout: Layout, idx: jax.Array, noise: jax.Array, surface_box: jax.Array) -> Layout:
    """Gaussian step of object `idx` scaled to 1/16 of the surface, clamped to it."""
    lo = surface_box[0:2]
    hi = surface_box[2:4]
    sigma = (hi - lo) / TRANSLATE_DIVISOR
    old_xy = layout.position[idx, 0:2]
    new_xy = jnp.clip(old_xy + noise * sigma, lo, hi)
    new_xy = jnp.where(layout.frozen[idx], old_xy, new_xy)
    return layout._replace(position=layout.position.at[idx, 0:2].set(new_xy))


def rotate_move(layout: Layout, idx: jax.Array, noise: jax.Array) -> Layout:
    """Gaussian step of object `idx`'s y-axis rotation."""
    old = layout.rotation[idx, 1]
    new = wrap_rotation(old + noise * ROTATE_SIGMA)
    new = jnp.where(layout.frozen[idx], old, new)
    return layout._replace(rotation=layout.rotation.at[idx, 1].set(new))


def swap_move(layout: Layout, i: jax.Array, j: jax.Array) -> Layout:
    """Exchange position and rotation of objects `i` and `j`; sizes stay put."""
    if layout.n_objects < 2:
        return layout
    ok = (i != j) & (~layout.frozen[i]) & (~layout.frozen[j])

    def _swap_rows(a: jax.Array) -> jax.Array:
        swapped = a.at[i].set(a[j]).at[j].set(a[i])
        return jnp.where(ok, swapped, a)

    return layout._replace(position=_swap_rows(layout.position), rotation=_swap_rows(layout.rotation))


def propose_move(key: jax.Array, layout: Layout, surface_box: jax.Array) -> tuple[Layout, jax.Array]:
    """Draw one random move and apply it.

    Args:
        key: PRNG key owned by the calling chain.
        layout: Current configuration (unbatched).
        surface_box: `(4,)` bounding box of the surface.

    Returns:
        `(candidate, move)` where `move` indexes `constants.MOVE_NAMES`.
    """
    n = layout.n_objects
    k_move, k_i, k_j, k_noise = jax.random.split(key, 4)
    move = jax.random.randint(k_move, (), 0, MOVE_SWAP + 1)
    i = jax.random.randint(k_i, (), 0, n)
    j = jax.random.randint(k_j, (), 0, n)
    noise = jax.random.normal(k_noise, (2,), dtype=layout.position.dtype)

    branches = (
        lambda lay: translate_move(lay, i, noise, surface_box),
        lambda lay: rotate_move(lay, i, noise[0]),
        lambda lay: swap_move(lay, i, j),
    )
    candidate = jax.lax.switch(move, branches, layout)
    return candidate, move

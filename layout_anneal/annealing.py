"""Fixed-temperature simulated annealing chain.

A chain keeps a *best* layout (the accepted baseline) and proposes one
candidate per iteration. The candidate is scored, then the Metropolis rule
either promotes it to the new baseline or discards it, which restores the
candidate slot from the baseline for the next iteration.

The loop is a `jax.lax.scan`, so iteration `i + 1` always sees the
accept/reject outcome of iteration `i`. The temperature `beta` is drawn once
when the chain starts and never changes.
"""

from __future__ import annotations

from functools import partial
from typing import NamedTuple

import jax
import jax.numpy as jnp

from .constants import BETA_MAX, BETA_MIN
from .costs import evaluate_cost
from .geometry import surface_bbox
from .proposals import propose_move
from .scene import CostBreakdown, Layout, Scene, select_tree


class ChainResult(NamedTuple):
    """Final state of one chain."""

    layout: Layout
    cost: CostBreakdown
    beta: jax.Array
    accepted: jax.Array  # number of accepted proposals


def acceptance_probability(candidate_total: jax.Array, current_total: jax.Array, beta: jax.Array) -> jax.Array:
    """`min(1, exp(-beta * (candidate - current)))`."""
    return jnp.minimum(1.0, jnp.exp(-beta * (candidate_total - current_total)))


def metropolis_accept(
    key: jax.Array, candidate_total: jax.Array, current_total: jax.Array, beta: jax.Array
) -> jax.Array:
    """Metropolis criterion at fixed temperature.

    A uniform draw in `[0, 1)` is compared against the acceptance probability,
    so improvements (`candidate <= current`) are always accepted.
    """
    u = jax.random.uniform(key, (), dtype=jnp.result_type(candidate_total))
    return u < acceptance_probability(candidate_total, current_total, beta)


def draw_beta(key: jax.Array) -> jax.Array:
    """Per-chain temperature in `[BETA_MIN, BETA_MAX)`."""
    return jax.random.uniform(key, (), minval=BETA_MIN, maxval=BETA_MAX)


@partial(jax.jit, static_argnames=["iterations", "pairwise"])
def run_chain(
    key: jax.Array,
    layout: Layout,
    scene: Scene,
    iterations: int,
    pairwise: str = "relational",
    beta: jax.Array | None = None,
) -> ChainResult:
    """Run one chain for exactly `iterations` proposals.

    Args:
        key: PRNG key owned by this chain.
        layout: Starting configuration (unbatched).
        scene: Static scene data.
        iterations: Number of proposals (no early stopping).
        pairwise: Pairwise cost variant, see `evaluate_cost`.
        beta: Optional fixed temperature; drawn from `key` when omitted.

    Returns:
        The chain's best layout, its cost breakdown, its `beta` and the number
        of accepted proposals.
    """
    key, k_beta = jax.random.split(key)
    if beta is None:
        beta = draw_beta(k_beta)
    else:
        beta = jnp.asarray(beta, dtype=layout.position.dtype)

    box = surface_bbox(scene.surface)
    cost = evaluate_cost(layout, scene, pairwise=pairwise)

    def step_fn(state, _):
        key, best, best_cost = state
        key, k_prop, k_accept = jax.random.split(key, 3)

        candidate, move = propose_move(k_prop, best, box)
        candidate_cost = evaluate_cost(candidate, scene, pairwise=pairwise)
        accept = metropolis_accept(k_accept, candidate_cost.total, best_cost.total, beta)

        best = select_tree(accept, candidate, best)
        best_cost = select_tree(accept, candidate_cost, best_cost)
        return (key, best, best_cost), (accept, move)

    (_, best, best_cost), (accepts, _) = jax.lax.scan(step_fn, (key, layout, cost), None, length=iterations)
    return ChainResult(layout=best, cost=best_cost, beta=beta, accepted=jnp.sum(accepts.astype(jnp.int32)))

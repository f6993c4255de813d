"""Grid scheduler: many independent chains, best-of reduction per block.

The grid is `(blocks, groups)`. Every block produces one layout suggestion:
its `groups` chains all start from the block's starting layout, each with its
own temperature and random stream, and the chain with the lowest final total
cost wins (first group on ties). Blocks never interact.
"""

from __future__ import annotations

from functools import partial
from typing import NamedTuple

import jax
import jax.numpy as jnp

from .annealing import run_chain
from .scene import ChainContext, CostBreakdown, Layout, Scene, chain_key, take_tree


class BlockResult(NamedTuple):
    """Winner of one block (batched over blocks when returned by `run_blocks`)."""

    layout: Layout
    cost: CostBreakdown
    group: jax.Array  # winning lane-group index
    beta: jax.Array
    accepted: jax.Array


def select_best(totals: jax.Array) -> jax.Array:
    """Index of the minimum total; the first occurrence wins ties."""
    return jnp.argmin(totals)


@partial(jax.jit, static_argnames=["n_groups", "iterations", "pairwise"])
def run_blocks(
    random_key: jax.Array,
    initial_layouts: Layout,
    scene: Scene,
    n_groups: int,
    iterations: int,
    pairwise: str = "relational",
) -> BlockResult:
    """Run `blocks x n_groups` chains and keep the best chain of each block.

    Args:
        random_key: Root PRNG key; each chain derives its own stream from it and
            its `ChainContext`.
        initial_layouts: Starting layouts with a leading block axis `(B, N, ...)`.
        scene: Static scene data shared by every chain.
        n_groups: Chains (lane groups) per block.
        iterations: Proposals per chain.
        pairwise: Pairwise cost variant, see `evaluate_cost`.

    Returns:
        A `BlockResult` whose leaves have a leading axis of size `B`.
    """
    n_blocks = initial_layouts.position.shape[0]

    def _run_block(block_id: jax.Array, layout: Layout) -> BlockResult:
        def _run_group(group_id: jax.Array):
            ctx = ChainContext(block=block_id, group=group_id)
            return run_chain(chain_key(random_key, ctx), layout, scene, iterations, pairwise=pairwise)

        chains = jax.vmap(_run_group)(jnp.arange(n_groups))
        winner = select_best(chains.cost.total)
        return BlockResult(
            layout=take_tree(chains.layout, winner),
            cost=take_tree(chains.cost, winner),
            group=winner,
            beta=chains.beta[winner],
            accepted=chains.accepted[winner],
        )

    return jax.vmap(_run_block)(jnp.arange(n_blocks), initial_layouts)

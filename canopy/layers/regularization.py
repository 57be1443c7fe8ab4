"""
Stochastic Regularisation Helpers.

Drop-path (stochastic depth) and drop-block are applied per block by the
stage assembler. This module owns their *policies*; the layers themselves
come from ``timm.layers``.

- ``drop_path_schedule``: linear per-block rates from 0 to the target rate.
- ``DROP_BLOCK_POLICIES``: per-stage drop-block settings (only the last two
  stages of a four-stage network are regularised).
"""

from __future__ import annotations

from dataclasses import dataclass

import torch.nn as nn
from timm.layers import DropBlock2d, DropPath


@dataclass(frozen=True)
class DropBlockPolicy:
    """Block size and gamma scale of one stage's drop-block layer."""

    block_size: int
    gamma_scale: float


# Indexed by zero-based stage position
DROP_BLOCK_POLICIES: tuple[DropBlockPolicy | None, ...] = (
    None,
    None,
    DropBlockPolicy(block_size=5, gamma_scale=0.25),
    DropBlockPolicy(block_size=3, gamma_scale=1.0),
)


def drop_path_schedule(drop_path_rate: float, total_blocks: int) -> list[float]:
    """
    Linear stochastic-depth schedule.

    Block ``i`` of ``T`` receives ``drop_path_rate * i / (T - 1)``, so the
    first block is never dropped and the last block receives the full rate.

    Args:
        drop_path_rate: Rate reached by the last block.
        total_blocks: Number of blocks in the network.

    Returns:
        One rate per block, in global block order. A single block gets 0.0.
    """
    if total_blocks <= 0:
        return []
    if total_blocks == 1:
        return [0.0]
    return [drop_path_rate * (i / (total_blocks - 1)) for i in range(total_blocks)]


def drop_block_policy(stage_index: int) -> DropBlockPolicy | None:
    """Drop-block policy for a zero-based stage index (None past the table)."""
    if 0 <= stage_index < len(DROP_BLOCK_POLICIES):
        return DROP_BLOCK_POLICIES[stage_index]
    return None


def make_drop_block(policy: DropBlockPolicy | None, drop_block_rate: float) -> nn.Module:
    """
    Instantiate a fresh drop-block layer, or an identity when disabled.

    Args:
        policy: Stage policy; None disables drop-block for the stage.
        drop_block_rate: Drop probability; 0 disables drop-block.

    Returns:
        ``timm.layers.DropBlock2d`` or ``nn.Identity``.
    """
    if policy is None or drop_block_rate <= 0.0:
        return nn.Identity()
    return DropBlock2d(
        drop_prob=drop_block_rate,
        block_size=policy.block_size,
        gamma_scale=policy.gamma_scale,
    )


def make_drop_path(drop_path_rate: float) -> nn.Module:
    """``timm.layers.DropPath`` for positive rates, identity otherwise."""
    return DropPath(drop_path_rate) if drop_path_rate > 0.0 else nn.Identity()

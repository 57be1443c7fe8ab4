"""
Block Kinds, Expansion Factors and Block Specifications.

The closed set of block kinds the package can build, their static channel
expansion factors, and the frozen ``BlockSpec`` record handed to the block
builder.

Expansion factors:

    basic                    1
    bottleneck               4
    inverted_residual        1
    fused_inverted_residual  1
    dense_bottleneck         1

A block of kind ``k`` with nominal width ``planes`` outputs
``planes * expansion_factor(k)`` channels, except the dense bottleneck which
concatenates ``planes`` (the growth rate) new channels onto its input.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Callable, Mapping

import torch.nn as nn

from ..core import LOGGER_NAME, AttentionConfig, LogStyle
from ..exceptions import ConfigurationError
from ..layers import DropBlockPolicy, SqueezeExcite

logger = logging.getLogger(LOGGER_NAME)


class BlockKind(str, Enum):
    """Block kinds understood by ``build_block``."""

    BASIC = "basic"
    BOTTLENECK = "bottleneck"
    INVERTED_RESIDUAL = "inverted_residual"
    FUSED_INVERTED_RESIDUAL = "fused_inverted_residual"
    DENSE_BOTTLENECK = "dense_bottleneck"


class MergeOp(str, Enum):
    """How a block combines its input with its main branch output."""

    ADD = "add"
    CONCAT = "concat"


_EXPANSION: Mapping[BlockKind, int] = MappingProxyType(
    {
        BlockKind.BASIC: 1,
        BlockKind.BOTTLENECK: 4,
        BlockKind.INVERTED_RESIDUAL: 1,
        BlockKind.FUSED_INVERTED_RESIDUAL: 1,
        BlockKind.DENSE_BOTTLENECK: 1,
    }
)

# Kinds whose first block in a stage receives a shortcut projection
RESIDUAL_KINDS: frozenset[BlockKind] = frozenset({BlockKind.BASIC, BlockKind.BOTTLENECK})


def resolve_kind(kind: BlockKind | str) -> BlockKind:
    """
    Normalise a block kind given as enum member or string.

    Raises:
        ConfigurationError: If the kind is not registered.
    """
    try:
        resolved = BlockKind(kind)
    except ValueError:
        resolved = None
    if resolved is None or resolved not in _EXPANSION:
        error_msg = (
            f"Block kind '{kind}' is not registered. "
            f"Choose from: {[k.value for k in BlockKind]}"
        )
        logger.error(f" {LogStyle.FAILURE} {error_msg}")
        raise ConfigurationError(error_msg)
    return resolved


def expansion_factor(kind: BlockKind | str) -> int:
    """
    Channel expansion factor of a block kind.

    Args:
        kind: ``BlockKind`` member or its string value.

    Returns:
        Ratio of a block's output channels to its nominal width.

    Raises:
        ConfigurationError: If the kind is not registered.
    """
    return _EXPANSION[resolve_kind(kind)]


@dataclass(frozen=True)
class BlockSpec:
    """
    Everything needed to build one block.

    Attributes:
        kind: Block kind.
        in_channels: Channels entering the block.
        planes: Nominal width (growth rate for dense bottlenecks).
        stride: Spatial stride, 1 or 2.
        cardinality: Groups of the bottleneck 3x3 convolution.
        base_width: Channels per group at the nominal width of 64.
        reduce_first: Divisor of the first convolution's width.
        dilation: Dilation of the block's spatial convolutions.
        first_dilation: Dilation of the first spatial convolution; None
            means ``dilation``.
        kernel_size: Depthwise / fused kernel for inverted-residual kinds.
        expansion_ratio: Hidden width ratio (inverted residual kinds) or
            inner width ratio (dense bottleneck).
        attention: Squeeze-excite options, or None.
        drop_path_rate: Stochastic depth rate of this block.
        drop_block: Drop-block policy of the enclosing stage, or None.
        drop_block_rate: Drop-block probability.
        norm_layer: Normalisation constructor taking the channel count.
        act_layer: Zero-argument activation constructor.
        attn_layer: Attention constructor
            ``attn_layer(channels, squeeze_channels, act_layer=..., gate_layer=...)``.
    """

    kind: BlockKind
    in_channels: int
    planes: int
    stride: int = 1
    cardinality: int = 1
    base_width: int = 64
    reduce_first: int = 1
    dilation: int = 1
    first_dilation: int | None = None
    kernel_size: int = 3
    expansion_ratio: float = 4.0
    attention: AttentionConfig | None = None
    drop_path_rate: float = 0.0
    drop_block: DropBlockPolicy | None = None
    drop_block_rate: float = 0.0
    norm_layer: Callable[[int], nn.Module] = nn.BatchNorm2d
    act_layer: Callable[[], nn.Module] = nn.ReLU
    attn_layer: Callable[..., nn.Module] = SqueezeExcite

    @property
    def out_channels(self) -> int:
        """Channels leaving the block."""
        kind = resolve_kind(self.kind)
        if kind is BlockKind.DENSE_BOTTLENECK:
            return self.in_channels + self.planes
        return self.planes * expansion_factor(kind)

    def make_attention(
        self,
        channels: int,
        reduce_from: int | None = None,
        gate_layer: Callable[[], nn.Module] = nn.Sigmoid,
    ) -> list[nn.Module]:
        """
        Attention layer as a (possibly empty) list, ready to splice into a chain.

        The squeeze width is ``(reduce_from or channels) // attention.reduction``.
        """
        if self.attention is None:
            return []
        squeeze_channels = (reduce_from or channels) // self.attention.reduction
        return [
            self.attn_layer(
                channels, squeeze_channels, act_layer=self.act_layer, gate_layer=gate_layer
            )
        ]

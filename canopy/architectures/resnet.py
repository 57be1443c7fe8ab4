"""
ResNet, ResNeXt, SE-ResNet and SE-ResNeXt Builders.

Depth-indexed wrappers around ``canopy.architectures.network.resnet``.
Every wrapper accepts the keyword options of ``resnet`` (stem, output
stride, downsample strategy, drop rates, classifier) and forwards them.

References:
    - Deep Residual Learning for Image Recognition (https://arxiv.org/abs/1512.03385)
    - Aggregated Residual Transformations (https://arxiv.org/abs/1611.05431)
    - Squeeze-and-Excitation Networks (https://arxiv.org/abs/1709.01507)
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from ..blocks import BlockKind
from ..core import LOGGER_NAME, AttentionConfig, BlockConfig, LogStyle
from ..exceptions import ConfigurationError
from .network import Network, resnet

logger = logging.getLogger(LOGGER_NAME)

RESNET_CONFIGS: Mapping[int, tuple[BlockKind, tuple[int, ...]]] = MappingProxyType(
    {
        18: (BlockKind.BASIC, (2, 2, 2, 2)),
        34: (BlockKind.BASIC, (3, 4, 6, 3)),
        50: (BlockKind.BOTTLENECK, (3, 4, 6, 3)),
        101: (BlockKind.BOTTLENECK, (3, 4, 23, 3)),
        152: (BlockKind.BOTTLENECK, (3, 8, 36, 3)),
    }
)

# Grouped convolutions only make sense inside bottlenecks
RESNEXT_DEPTHS: tuple[int, ...] = (50, 101, 152)


def build_resnet(depth: int, block_cfg: BlockConfig | None = None, **kwargs: Any) -> Network:
    """
    ResNet of the given depth (18, 34, 50, 101 or 152).

    Raises:
        ConfigurationError: If the depth is not tabulated.
    """
    block_kind, layers = _lookup_depth(depth, RESNET_CONFIGS, "ResNet")
    return resnet(block_kind, layers, block_cfg=block_cfg, **kwargs)


def build_resnext(
    depth: int,
    cardinality: int = 32,
    base_width: int = 4,
    block_cfg: BlockConfig | None = None,
    **kwargs: Any,
) -> Network:
    """
    ResNeXt of the given depth with ``cardinality`` groups of ``base_width`` channels.

    Raises:
        ConfigurationError: If the depth is not 50, 101 or 152.
    """
    _lookup_depth(depth, RESNEXT_DEPTHS, "ResNeXt")
    block_cfg = _update(block_cfg, cardinality=cardinality, base_width=base_width)
    return build_resnet(depth, block_cfg=block_cfg, **kwargs)


def build_seresnet(
    depth: int, reduction: int = 16, block_cfg: BlockConfig | None = None, **kwargs: Any
) -> Network:
    """ResNet with squeeze-excite attention at the end of every block."""
    block_cfg = _update(block_cfg, attention=AttentionConfig(reduction=reduction))
    return build_resnet(depth, block_cfg=block_cfg, **kwargs)


def build_seresnext(
    depth: int,
    cardinality: int = 32,
    base_width: int = 4,
    reduction: int = 16,
    block_cfg: BlockConfig | None = None,
    **kwargs: Any,
) -> Network:
    """ResNeXt with squeeze-excite attention at the end of every block."""
    block_cfg = _update(block_cfg, attention=AttentionConfig(reduction=reduction))
    return build_resnext(
        depth, cardinality=cardinality, base_width=base_width, block_cfg=block_cfg, **kwargs
    )


# INTERNAL HELPERS
def _update(block_cfg: BlockConfig | None, **changes: Any) -> BlockConfig:
    """Copy of ``block_cfg`` (or the defaults) with ``changes`` applied and re-validated."""
    base = (block_cfg or BlockConfig()).model_dump()
    base.update(
        {
            key: value.model_dump() if isinstance(value, AttentionConfig) else value
            for key, value in changes.items()
        }
    )
    return BlockConfig(**base)


def _lookup_depth(depth: int, table: Mapping[int, Any] | Iterable[int], family: str) -> Any:
    if depth not in table:
        error_msg = f"Invalid depth {depth} for {family}. Choose from: {sorted(table)}"
        logger.error(f" {LogStyle.FAILURE} {error_msg}")
        raise ConfigurationError(error_msg)
    return table[depth] if isinstance(table, Mapping) else depth

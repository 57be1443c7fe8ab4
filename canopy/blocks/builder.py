"""
Composite Block Builder.

Single dispatch point from ``BlockSpec`` to a built ``CompositeBlock``.
Specs are validated before any layer is allocated, so an invalid request
never produces a partially built block.

Example:
    >>> spec = BlockSpec(BlockKind.BOTTLENECK, in_channels=64, planes=64)
    >>> block = build_block(spec, downsample=select_downsample("conv", 64, 64, 4))
"""

from __future__ import annotations

import dataclasses
import logging
from types import MappingProxyType
from typing import Callable, Mapping, NoReturn

import torch.nn as nn

from ..core import LOGGER_NAME, LogStyle
from ..exceptions import ConfigurationError
from .composite import CompositeBlock
from .dense import dense_bottleneck_block
from .inverted import fused_inverted_residual_block, inverted_residual_block
from .kinds import RESIDUAL_KINDS, BlockKind, BlockSpec, resolve_kind
from .residual import basic_block, bottleneck_block

logger = logging.getLogger(LOGGER_NAME)

_BLOCK_BUILDERS: Mapping[BlockKind, Callable[..., CompositeBlock]] = MappingProxyType(
    {
        BlockKind.BASIC: basic_block,
        BlockKind.BOTTLENECK: bottleneck_block,
        BlockKind.INVERTED_RESIDUAL: inverted_residual_block,
        BlockKind.FUSED_INVERTED_RESIDUAL: fused_inverted_residual_block,
        BlockKind.DENSE_BOTTLENECK: dense_bottleneck_block,
    }
)


def build_block(spec: BlockSpec, downsample: nn.Module | None = None) -> CompositeBlock:
    """
    Build one block from its specification.

    Args:
        spec: Block specification.
        downsample: Shortcut projection for residual kinds. ``nn.Identity``
            and None both mean an identity shortcut.

    Returns:
        CompositeBlock with ``main``, ``shortcut``, ``merge`` and ``act``.

    Raises:
        ConfigurationError: If the spec is invalid for its kind.
    """
    spec = validate_block_spec(spec)
    if isinstance(downsample, nn.Identity):
        downsample = None

    if downsample is not None and spec.kind not in RESIDUAL_KINDS:
        _fail(f"Block kind '{spec.kind.value}' does not take a shortcut projection")

    builder = _BLOCK_BUILDERS[spec.kind]
    if spec.kind in RESIDUAL_KINDS:
        return builder(spec, downsample)
    return builder(spec)


def validate_block_spec(spec: BlockSpec) -> BlockSpec:
    """
    Check a spec against the constraints of its kind.

    Returns:
        The spec with its kind normalised to a ``BlockKind`` member.

    Raises:
        ConfigurationError: On the first violated constraint.
    """
    kind = resolve_kind(spec.kind)
    if kind is not spec.kind:
        spec = dataclasses.replace(spec, kind=kind)

    if spec.stride not in (1, 2):
        _fail(f"Block stride must be 1 or 2, got {spec.stride}")
    if spec.in_channels < 1 or spec.planes < 1:
        _fail(
            f"Block channels must be positive, got in_channels={spec.in_channels}, "
            f"planes={spec.planes}"
        )
    if kind is BlockKind.BASIC and (spec.cardinality != 1 or spec.base_width != 64):
        _fail(
            "Basic blocks only support cardinality=1 and base_width=64, "
            f"got cardinality={spec.cardinality}, base_width={spec.base_width}"
        )
    if kind is BlockKind.DENSE_BOTTLENECK and spec.stride != 1:
        _fail(f"Dense bottlenecks must have stride 1, got {spec.stride}")
    return spec


def _fail(error_msg: str) -> NoReturn:
    logger.error(f" {LogStyle.FAILURE} {error_msg}")
    raise ConfigurationError(error_msg)

"""
Shortcut Downsample Selection.

Builds the projection that aligns a residual shortcut with its main branch
whenever the block changes resolution or width:

- ``conv``: strided convolution + norm (ResNet "type B" shortcut).
- ``pool``: average pooling + 1x1 convolution + norm (ResNet-D shortcut).

When neither resolution nor width changes the shortcut is an identity.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

import torch.nn as nn
from timm.layers import AvgPool2dSame

from ..core import LOGGER_NAME, LogStyle
from ..exceptions import ConfigurationError
from .conv_norm import get_padding

logger = logging.getLogger(LOGGER_NAME)


class DownsampleStrategy(str, Enum):
    """Shortcut projection strategies."""

    CONV = "conv"
    POOL = "pool"


def resolve_strategy(strategy: DownsampleStrategy | str) -> DownsampleStrategy:
    """
    Normalise a strategy given as enum member or string.

    Raises:
        ConfigurationError: If the strategy is unknown.
    """
    try:
        return DownsampleStrategy(strategy)
    except ValueError:
        error_msg = (
            f"Unknown downsample strategy '{strategy}'. "
            f"Choose from: {[s.value for s in DownsampleStrategy]}"
        )
        logger.error(f" {LogStyle.FAILURE} {error_msg}")
        raise ConfigurationError(error_msg) from None


def downsample_conv(
    in_channels: int,
    out_channels: int,
    kernel_size: int = 1,
    stride: int = 1,
    dilation: int = 1,
    norm_layer: Callable[[int], nn.Module] = nn.BatchNorm2d,
) -> nn.Sequential:
    """
    Strided convolution shortcut.

    The kernel collapses to 1x1 when the projection neither strides nor
    dilates, and dilation is dropped for 1x1 kernels.
    """
    kernel_size = 1 if stride == 1 and dilation == 1 else kernel_size
    dilation = dilation if kernel_size > 1 else 1
    padding = get_padding(kernel_size, stride, dilation)

    return nn.Sequential(
        nn.Conv2d(
            in_channels,
            out_channels,
            kernel_size,
            stride=stride,
            padding=padding,
            dilation=dilation,
            bias=False,
        ),
        norm_layer(out_channels),
    )


def downsample_pool(
    in_channels: int,
    out_channels: int,
    stride: int = 1,
    dilation: int = 1,
    norm_layer: Callable[[int], nn.Module] = nn.BatchNorm2d,
) -> nn.Sequential:
    """
    Average-pool shortcut followed by a 1x1 projection.

    Dilated stages keep their resolution, so the pool becomes a stride-1
    'same' pool there.
    """
    avg_stride = stride if dilation == 1 else 1
    if stride == 1 and dilation == 1:
        pool: nn.Module = nn.Identity()
    elif avg_stride == 1 and dilation > 1:
        pool = AvgPool2dSame(2, avg_stride, ceil_mode=True, count_include_pad=False)
    else:
        pool = nn.AvgPool2d(2, avg_stride, ceil_mode=True, count_include_pad=False)

    return nn.Sequential(
        pool,
        nn.Conv2d(in_channels, out_channels, 1, stride=1, padding=0, bias=False),
        norm_layer(out_channels),
    )


def select_downsample(
    strategy: DownsampleStrategy | str,
    in_channels: int,
    planes: int,
    expansion: int,
    *,
    stride: int = 1,
    dilation: int = 1,
    kernel_size: int = 1,
    norm_layer: Callable[[int], nn.Module] = nn.BatchNorm2d,
) -> nn.Module:
    """
    Choose the shortcut branch for the first block of a stage.

    Args:
        strategy: 'conv' or 'pool' (or the matching ``DownsampleStrategy``).
        in_channels: Channels entering the block.
        planes: Nominal block width.
        expansion: Expansion factor of the block kind.
        stride: Block stride.
        dilation: Dilation of the stage the block belongs to.
        kernel_size: Kernel of the strided conv projection.
        norm_layer: Normalisation constructor.

    Returns:
        ``nn.Identity`` when ``stride == 1`` and ``in_channels == planes *
        expansion``, otherwise a projection producing ``planes * expansion``
        channels.

    Raises:
        ConfigurationError: If the strategy is unknown.
    """
    strategy = resolve_strategy(strategy)
    out_channels = planes * expansion

    if stride == 1 and in_channels == out_channels:
        return nn.Identity()

    if strategy is DownsampleStrategy.POOL:
        return downsample_pool(
            in_channels, out_channels, stride=stride, dilation=dilation, norm_layer=norm_layer
        )
    return downsample_conv(
        in_channels,
        out_channels,
        kernel_size=kernel_size,
        stride=stride,
        dilation=dilation,
        norm_layer=norm_layer,
    )

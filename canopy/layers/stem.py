"""
ResNet Stem Builder.

Every stem reduces the input resolution by 4 (``STEM_STRIDE``): a stride-2
convolution stage followed by a stride-2 pooling stage.

Layouts:
    - default:      7x7/2 conv (64 ch) → norm → act
    - deep:         3x3/2 (w) → 3x3 (w) → 3x3 (2w), each with norm → act
    - deep_tiered:  as 'deep' with a first width of 3 * (w // 4)

Pooling is a 3x3/2 max-pool, or a 3x3/2 conv → norm → act when
``replace_stem_pool`` is set.
"""

from __future__ import annotations

import logging
from typing import Callable

import torch.nn as nn

from ..core import LOGGER_NAME, LogStyle
from ..exceptions import ConfigurationError
from .conv_norm import conv_norm

logger = logging.getLogger(LOGGER_NAME)

STEM_TYPES = ("default", "deep", "deep_tiered")


def resnet_stem(
    stem_type: str = "default",
    in_channels: int = 3,
    replace_stem_pool: bool = False,
    stem_width: int = 64,
    norm_layer: Callable[[int], nn.Module] = nn.BatchNorm2d,
    act_layer: Callable[[], nn.Module] = nn.ReLU,
) -> tuple[nn.Sequential, int]:
    """
    Build a ResNet stem.

    Args:
        stem_type: One of 'default', 'deep', 'deep_tiered'.
        in_channels: Input image channels.
        replace_stem_pool: Replace the max-pool with a strided conv block.
        stem_width: Width of the deep stem's first convolutions.
        norm_layer: Normalisation constructor.
        act_layer: Activation constructor.

    Returns:
        Tuple of the stem module and its output channel count.

    Raises:
        ConfigurationError: If the stem type is unknown.
    """
    if stem_type not in STEM_TYPES:
        error_msg = f"Unknown stem type '{stem_type}'. Choose from: {list(STEM_TYPES)}"
        logger.error(f" {LogStyle.FAILURE} {error_msg}")
        raise ConfigurationError(error_msg)

    layers: list[nn.Module] = []
    if stem_type == "default":
        out_channels = 64
        layers += conv_norm(
            7, in_channels, out_channels, act_layer, norm_layer=norm_layer, stride=2, padding=3
        )
    else:
        out_channels = 2 * stem_width
        first_width = 3 * (stem_width // 4) if stem_type == "deep_tiered" else stem_width
        layers += conv_norm(3, in_channels, first_width, act_layer, norm_layer=norm_layer, stride=2)
        layers += conv_norm(3, first_width, stem_width, act_layer, norm_layer=norm_layer)
        layers += conv_norm(3, stem_width, out_channels, act_layer, norm_layer=norm_layer)

    if replace_stem_pool:
        layers += conv_norm(
            3, out_channels, out_channels, act_layer, norm_layer=norm_layer, stride=2, padding=1
        )
    else:
        layers.append(nn.MaxPool2d(kernel_size=3, stride=2, padding=1))

    return nn.Sequential(*layers), out_channels

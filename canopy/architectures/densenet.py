"""
DenseNet Builders.

Dense blocks concatenate every bottleneck's output onto its input, so the
channel count grows by the growth rate ``k`` per bottleneck. Transitions
compress the channels by ``reduction`` and halve the resolution.

Architecture:
    Input → conv7x7/2 → norm → act → maxpool/2
          → [dense block → transition] x (N-1) → dense block
          → norm → act → pool → dropout → projection

Reference:
    Densely Connected Convolutional Networks (https://arxiv.org/abs/1608.06993)
"""

from __future__ import annotations

import logging
import math
from collections import OrderedDict
from types import MappingProxyType
from typing import Any, Callable, Mapping, NoReturn, Sequence

import torch.nn as nn

from ..blocks import BlockKind, BlockSpec, build_block
from ..core import LOGGER_NAME, STEM_STRIDE, ClassifierConfig, LogStyle
from ..exceptions import ConfigurationError
from ..layers import ClassifierHead, conv_norm
from .network import Network
from .stages import StageInfo

logger = logging.getLogger(LOGGER_NAME)

DENSENET_CONFIGS: Mapping[int, tuple[int, ...]] = MappingProxyType(
    {
        121: (6, 12, 24, 16),
        161: (6, 12, 36, 24),
        169: (6, 12, 32, 32),
        201: (6, 12, 48, 32),
    }
)


def dense_block(
    in_channels: int,
    growth_rates: Sequence[int],
    *,
    expansion_ratio: float = 4.0,
    norm_layer: Callable[[int], nn.Module] = nn.BatchNorm2d,
    act_layer: Callable[[], nn.Module] = nn.ReLU,
) -> nn.Sequential:
    """
    Sequence of dense bottlenecks, the i-th adding ``growth_rates[i]`` channels.

    Args:
        in_channels: Channels entering the block.
        growth_rates: Growth rate of each bottleneck.
        expansion_ratio: Inner width of each bottleneck as a multiple of its growth rate.
        norm_layer: Normalisation constructor.
        act_layer: Activation constructor.

    Returns:
        ``nn.Sequential`` producing ``in_channels + sum(growth_rates)`` channels.
    """
    layers = []
    channels = in_channels
    for growth_rate in growth_rates:
        spec = BlockSpec(
            kind=BlockKind.DENSE_BOTTLENECK,
            in_channels=channels,
            planes=growth_rate,
            expansion_ratio=expansion_ratio,
            norm_layer=norm_layer,
            act_layer=act_layer,
        )
        layers.append(build_block(spec))
        channels = spec.out_channels
    return nn.Sequential(*layers)


def transition(
    in_channels: int,
    out_channels: int,
    norm_layer: Callable[[int], nn.Module] = nn.BatchNorm2d,
    act_layer: Callable[[], nn.Module] = nn.ReLU,
) -> nn.Sequential:
    """Pre-activation 1x1 compression followed by 2x2 average pooling."""
    return nn.Sequential(
        *conv_norm(1, in_channels, out_channels, act_layer, norm_layer=norm_layer, revnorm=True),
        nn.AvgPool2d(2),
    )


def densenet(
    inplanes: int,
    growth_rates: Sequence[Sequence[int]],
    *,
    reduction: float = 0.5,
    dropout_rate: float = 0.0,
    in_channels: int = 3,
    num_classes: int = 1000,
    expansion_ratio: float = 4.0,
    norm_layer: Callable[[int], nn.Module] = nn.BatchNorm2d,
    act_layer: Callable[[], nn.Module] = nn.ReLU,
    classifier: ClassifierConfig | None = None,
) -> Network:
    """
    Build a DenseNet from explicit per-block growth rates.

    Args:
        inplanes: Channels produced by the stem.
        growth_rates: One sequence of growth rates per dense block.
        reduction: Channel compression of every transition (0 < r <= 1).
        dropout_rate: Dropout before the classifier projection.
        in_channels: Input image channels.
        num_classes: Output classes.
        expansion_ratio: Bottleneck inner width ratio.
        norm_layer: Normalisation constructor.
        act_layer: Activation constructor.
        classifier: Head pooling and projection options.

    Returns:
        Assembled ``Network`` with a final norm and activation before the head.

    Raises:
        ConfigurationError: If ``reduction`` is outside (0, 1] or no dense block is given.
    """
    if not 0.0 < reduction <= 1.0:
        _fail(f"DenseNet reduction must be in (0, 1], got {reduction}")
    if not growth_rates:
        _fail("DenseNet needs at least one dense block")
    classifier = classifier or ClassifierConfig()

    stem = nn.Sequential(
        *conv_norm(7, in_channels, inplanes, act_layer, norm_layer=norm_layer, stride=2, padding=3),
        nn.MaxPool2d(kernel_size=3, stride=2, padding=1),
    )

    stages: list[tuple[str, nn.Module]] = []
    feature_info: list[StageInfo] = []
    channels = inplanes
    net_stride = STEM_STRIDE
    for idx, rates in enumerate(growth_rates, start=1):
        stages.append(
            (
                f"denseblock{idx}",
                dense_block(
                    channels,
                    rates,
                    expansion_ratio=expansion_ratio,
                    norm_layer=norm_layer,
                    act_layer=act_layer,
                ),
            )
        )
        channels += sum(rates)
        feature_info.append(StageInfo(idx, len(rates), channels, net_stride, 1))
        logger.debug(
            f"{LogStyle.INDENT}{LogStyle.ARROW} [Stage {idx}] dense_bottleneck x{len(rates)} | "
            f"channels: {channels} | stride: {net_stride} | dilation: 1"
        )

        if idx != len(growth_rates):
            compressed = math.floor(channels * reduction)
            stages.append((f"transition{idx}", transition(channels, compressed, norm_layer, act_layer)))
            channels = compressed
            net_stride *= 2

    head = ClassifierHead(
        channels,
        num_classes,
        pool_type=classifier.pool_type,
        drop_rate=dropout_rate,
        use_conv=classifier.use_conv,
    )
    return Network(
        stem,
        nn.Sequential(OrderedDict(stages)),
        head,
        feature_info=feature_info,
        num_features=channels,
        final_norm=nn.Sequential(norm_layer(channels), act_layer()),
    )


def build_densenet(
    depth: int, growth_rate: int = 32, reduction: float = 0.5, **kwargs: Any
) -> Network:
    """
    DenseNet-BC of the given depth (121, 161, 169 or 201).

    The stem produces ``2 * growth_rate`` channels and every bottleneck grows
    the features by ``growth_rate``.

    Raises:
        ConfigurationError: If the depth is not tabulated.
    """
    if depth not in DENSENET_CONFIGS:
        _fail(f"Invalid depth {depth} for DenseNet. Choose from: {sorted(DENSENET_CONFIGS)}")
    growth_rates = [[growth_rate] * n for n in DENSENET_CONFIGS[depth]]
    return densenet(2 * growth_rate, growth_rates, reduction=reduction, **kwargs)


def _fail(error_msg: str) -> NoReturn:
    logger.error(f" {LogStyle.FAILURE} {error_msg}")
    raise ConfigurationError(error_msg)

"""
DenseNet Bottleneck.

Pre-activation (norm → act → conv) bottleneck whose output is concatenated
onto its input, so every block adds ``growth_rate`` channels:

    norm → act → conv1x1 (inner) → norm → act → conv3x3 (growth) ; cat([x, out])

The inner width is ``int(expansion_ratio * growth_rate)`` (4k in DenseNet-BC).
"""

from __future__ import annotations

import torch.nn as nn

from ..layers import conv_norm
from .composite import CompositeBlock
from .kinds import BlockSpec, MergeOp


def dense_bottleneck_block(spec: BlockSpec) -> CompositeBlock:
    growth_rate = spec.planes
    inner_channels = int(spec.expansion_ratio * growth_rate)

    layers = conv_norm(
        1,
        spec.in_channels,
        inner_channels,
        spec.act_layer,
        norm_layer=spec.norm_layer,
        revnorm=True,
        bias=False,
    )
    layers += conv_norm(
        3,
        inner_channels,
        growth_rate,
        spec.act_layer,
        norm_layer=spec.norm_layer,
        revnorm=True,
        padding=1,
        bias=False,
    )
    return CompositeBlock(nn.Sequential(*layers), merge=MergeOp.CONCAT)

"""
Residual Blocks: Basic and Bottleneck.

Basic (ResNet-18/34):

    conv3x3(stride) → norm → drop_block → act → conv3x3 → norm → attn → drop_path
    (+ shortcut) → act

Bottleneck (ResNet-50+, ResNeXt, SE-ResNeXt):

    conv1x1 → norm → act → conv3x3(stride, groups) → norm → drop_block → act
    → conv1x1 → norm → attn → drop_path  (+ shortcut) → act

The bottleneck's inner width is ``floor(planes * base_width / 64) * cardinality``
and its output is ``4 * planes``.
"""

from __future__ import annotations

import math

import torch.nn as nn

from ..layers import conv_norm, make_drop_block, make_drop_path
from .composite import CompositeBlock
from .kinds import BlockSpec, MergeOp


def basic_block(spec: BlockSpec, downsample: nn.Module | None = None) -> CompositeBlock:
    """Two 3x3 convolutions with an additive shortcut."""
    first_dilation = spec.first_dilation or spec.dilation
    first_planes = spec.planes // spec.reduce_first
    out_planes = spec.out_channels

    layers = conv_norm(
        3,
        spec.in_channels,
        first_planes,
        None,
        norm_layer=spec.norm_layer,
        stride=spec.stride,
        padding=first_dilation,
        dilation=first_dilation,
    )
    layers.append(make_drop_block(spec.drop_block, spec.drop_block_rate))
    layers.append(spec.act_layer())
    layers += conv_norm(
        3,
        first_planes,
        out_planes,
        None,
        norm_layer=spec.norm_layer,
        padding=spec.dilation,
        dilation=spec.dilation,
    )
    layers += spec.make_attention(out_planes)
    layers.append(make_drop_path(spec.drop_path_rate))

    return CompositeBlock(
        nn.Sequential(*layers), shortcut=downsample, merge=MergeOp.ADD, act=spec.act_layer()
    )


def bottleneck_block(spec: BlockSpec, downsample: nn.Module | None = None) -> CompositeBlock:
    """1x1 reduce, grouped 3x3, 1x1 expand, with an additive shortcut."""
    first_dilation = spec.first_dilation or spec.dilation
    width = int(math.floor(spec.planes * (spec.base_width / 64)) * spec.cardinality)
    first_planes = width // spec.reduce_first
    out_planes = spec.out_channels

    layers = conv_norm(1, spec.in_channels, first_planes, spec.act_layer, norm_layer=spec.norm_layer)
    layers += conv_norm(
        3,
        first_planes,
        width,
        None,
        norm_layer=spec.norm_layer,
        stride=spec.stride,
        padding=first_dilation,
        dilation=first_dilation,
        groups=spec.cardinality,
    )
    layers.append(make_drop_block(spec.drop_block, spec.drop_block_rate))
    layers.append(spec.act_layer())
    layers += conv_norm(1, width, out_planes, None, norm_layer=spec.norm_layer)
    layers += spec.make_attention(out_planes)
    layers.append(make_drop_path(spec.drop_path_rate))

    return CompositeBlock(
        nn.Sequential(*layers), shortcut=downsample, merge=MergeOp.ADD, act=spec.act_layer()
    )

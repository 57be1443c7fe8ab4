"""
Inverted Residual Blocks (MobileNetV2/V3, EfficientNetV2).

MBConv:

    [conv1x1 expand → norm → act] → [squeeze-excite] →
    depthwise conv(k, stride) → norm → act → conv1x1 project → norm

Fused-MBConv:

    conv(k, stride) → norm → act → conv1x1 project → norm     (hidden != in)
    conv1x1(stride) → norm → act                              (hidden == in)

Both add their input back only when the block keeps resolution and width
(``stride == 1 and in == out``); otherwise the block is a plain chain. There
is no activation after the merge.
"""

from __future__ import annotations

import torch.nn as nn

from ..layers import conv_norm, make_drop_path
from .composite import CompositeBlock
from .kinds import BlockSpec, MergeOp


def _hidden_channels(spec: BlockSpec) -> int:
    return int(round(spec.in_channels * spec.expansion_ratio))


def _wrap(spec: BlockSpec, layers: list[nn.Module]) -> CompositeBlock:
    if spec.stride == 1 and spec.in_channels == spec.out_channels:
        layers.append(make_drop_path(spec.drop_path_rate))
        return CompositeBlock(nn.Sequential(*layers), merge=MergeOp.ADD)
    return CompositeBlock(nn.Sequential(*layers))


def inverted_residual_block(spec: BlockSpec) -> CompositeBlock:
    """Depthwise-separable inverted residual with optional hard-sigmoid SE."""
    hidden = _hidden_channels(spec)
    out_planes = spec.out_channels

    layers: list[nn.Module] = []
    if hidden != spec.in_channels:
        layers += conv_norm(1, spec.in_channels, hidden, spec.act_layer, norm_layer=spec.norm_layer)
    layers += spec.make_attention(hidden, reduce_from=spec.in_channels, gate_layer=nn.Hardsigmoid)
    layers += conv_norm(
        spec.kernel_size,
        hidden,
        hidden,
        spec.act_layer,
        norm_layer=spec.norm_layer,
        stride=spec.stride,
        dilation=spec.dilation,
        groups=hidden,
    )
    layers += conv_norm(1, hidden, out_planes, None, norm_layer=spec.norm_layer)
    return _wrap(spec, layers)


def fused_inverted_residual_block(spec: BlockSpec) -> CompositeBlock:
    """Inverted residual with the expansion and depthwise convs fused into one."""
    hidden = _hidden_channels(spec)
    out_planes = spec.out_channels

    if hidden != spec.in_channels:
        layers = conv_norm(
            spec.kernel_size,
            spec.in_channels,
            hidden,
            spec.act_layer,
            norm_layer=spec.norm_layer,
            stride=spec.stride,
            dilation=spec.dilation,
        )
        layers += conv_norm(1, hidden, out_planes, None, norm_layer=spec.norm_layer)
    else:
        layers = conv_norm(
            1,
            spec.in_channels,
            out_planes,
            spec.act_layer,
            norm_layer=spec.norm_layer,
            stride=spec.stride,
        )
    return _wrap(spec, layers)

"""
Squeeze-and-Excitation Channel Attention.

Recalibrates channel responses with a global descriptor:

    pool(x) → conv_reduce → act → conv_expand → gate → x * gate

The gate is pluggable: residual blocks use a sigmoid (SE-ResNet), inverted
residual blocks use a hard sigmoid (MobileNetV3).

Reference:
    Squeeze-and-Excitation Networks (https://arxiv.org/abs/1709.01507)
"""

from __future__ import annotations

from typing import Callable

import torch
import torch.nn as nn


class SqueezeExcite(nn.Module):
    """Squeeze-and-excitation module with 1x1 convolution projections."""

    def __init__(
        self,
        channels: int,
        squeeze_channels: int,
        act_layer: Callable[[], nn.Module] = nn.ReLU,
        gate_layer: Callable[[], nn.Module] = nn.Sigmoid,
    ) -> None:
        """
        Args:
            channels: Channels of the attended feature map.
            squeeze_channels: Width of the squeeze projection (clamped to >= 1).
            act_layer: Activation between the two projections.
            gate_layer: Gating non-linearity producing the channel weights.
        """
        super().__init__()
        squeeze_channels = max(1, squeeze_channels)

        self.pool = nn.AdaptiveAvgPool2d(1)
        self.conv_reduce = nn.Conv2d(channels, squeeze_channels, kernel_size=1, bias=True)
        self.act = act_layer()
        self.conv_expand = nn.Conv2d(squeeze_channels, channels, kernel_size=1, bias=True)
        self.gate = gate_layer()

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        s = self.pool(x)
        s = self.act(self.conv_reduce(s))
        s = self.gate(self.conv_expand(s))
        return x * s

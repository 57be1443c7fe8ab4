"""
Classifier Head.

Global pooling → dropout → projection. The projection is a linear layer by
default, or a 1x1 convolution followed by a flatten when ``use_conv`` is set.
``num_classes == 0`` replaces the projection with an identity so the network
returns pooled features.
"""

from __future__ import annotations

import torch
import torch.nn as nn
from timm.layers import SelectAdaptivePool2d


class ClassifierHead(nn.Module):
    """Pooling, dropout and projection on top of the final stage."""

    def __init__(
        self,
        in_channels: int,
        num_classes: int,
        pool_type: str = "avg",
        drop_rate: float = 0.0,
        use_conv: bool = False,
    ) -> None:
        """
        Args:
            in_channels: Channels of the final feature map.
            num_classes: Output classes; 0 disables the projection.
            pool_type: Pooling policy understood by ``SelectAdaptivePool2d``.
            drop_rate: Dropout probability applied to the pooled features.
            use_conv: Project with a 1x1 convolution instead of ``nn.Linear``.
        """
        super().__init__()
        self.num_classes = num_classes

        self.global_pool = SelectAdaptivePool2d(pool_type=pool_type, flatten=not use_conv)
        self.num_pooled_features = in_channels * self.global_pool.feat_mult()
        self.drop = nn.Dropout(drop_rate) if drop_rate > 0 else nn.Identity()

        if num_classes <= 0:
            self.fc: nn.Module = nn.Identity()
        elif use_conv:
            self.fc = nn.Conv2d(self.num_pooled_features, num_classes, 1, bias=True)
        else:
            self.fc = nn.Linear(self.num_pooled_features, num_classes, bias=True)
        self.flatten = nn.Flatten(1) if use_conv else nn.Identity()

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        x = self.global_pool(x)
        x = self.drop(x)
        x = self.fc(x)
        return self.flatten(x)

"""
Network Assembler.

Combines a stem, an assembled body and a classifier head into a ``Network``:

    Input [B×C×H×W] → stem (/4) → stages (/output_stride) → [final norm]
                    → pool → dropout → projection → [B×num_classes]

``resnet`` is the convenience entry point for the ResNet family: it builds
the stem from a ``StemConfig`` and delegates to ``build_network``.
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence

import torch
import torch.nn as nn

from ..blocks import BlockKind
from ..core import (
    LOGGER_NAME,
    RESNET_STAGE_CHANNELS,
    BlockConfig,
    ClassifierConfig,
    DropRatesConfig,
    LogStyle,
    StemConfig,
)
from ..exceptions import ConfigurationError
from ..layers import ClassifierHead, DownsampleStrategy, get_act_layer, get_norm_layer, resnet_stem
from .stages import StageInfo, StagePlan, assemble_stages

logger = logging.getLogger(LOGGER_NAME)


# MODEL DEFINITION
class Network(nn.Module):
    """Stem, stages and classifier head, with per-stage feature metadata."""

    def __init__(
        self,
        stem: nn.Module,
        stages: nn.Module,
        head: ClassifierHead,
        feature_info: Sequence[StageInfo],
        num_features: int,
        final_norm: nn.Module | None = None,
    ) -> None:
        """
        Args:
            stem: Input stem.
            stages: Network body.
            head: Classifier head.
            feature_info: Geometry of each stage in ``stages``.
            num_features: Channels entering the head.
            final_norm: Optional layers applied between the body and the head.
        """
        super().__init__()
        self.stem = stem
        self.stages = stages
        self.final_norm = final_norm if final_norm is not None else nn.Identity()
        self.head = head
        self.feature_info = list(feature_info)
        self.num_features = num_features
        self.num_classes = head.num_classes

    def forward_features(self, x: torch.Tensor) -> torch.Tensor:
        """Feature map before global pooling."""
        x = self.stem(x)
        x = self.stages(x)
        return self.final_norm(x)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """Forward pass through the network."""
        return self.head(self.forward_features(x))


# ASSEMBLY
def build_network(
    stem: tuple[nn.Module, int],
    block_kind: BlockKind | str,
    stage_plan: StagePlan,
    *,
    num_classes: int = 1000,
    output_stride: int = 32,
    downsample: DownsampleStrategy | str = "conv",
    down_kernel_size: int = 1,
    drop_rates: DropRatesConfig | None = None,
    block_cfg: BlockConfig | None = None,
    classifier: ClassifierConfig | None = None,
    norm_layer: Callable[[int], nn.Module] | None = None,
    act_layer: Callable[[], nn.Module] | None = None,
    attn_layer: Callable[..., nn.Module] | None = None,
) -> Network:
    """
    Assemble a complete network around a prebuilt stem.

    Args:
        stem: ``(stem_module, stem_out_channels)``.
        block_kind: Kind of every block.
        stage_plan: ``(planes, repeats)`` per stage.
        num_classes: Output classes; 0 turns the network into a feature extractor.
        output_stride: Target cumulative stride (8, 16 or 32).
        downsample: Shortcut projection strategy.
        down_kernel_size: Kernel of strided conv projections.
        drop_rates: Dropout, drop-path and drop-block rates.
        block_cfg: Per-block options.
        classifier: Head pooling and projection options.
        norm_layer: Overrides the normalisation named in ``block_cfg``.
        act_layer: Overrides the activation named in ``block_cfg``.
        attn_layer: Attention constructor.

    Returns:
        Assembled ``Network``.

    Raises:
        ConfigurationError: If the body cannot be assembled.
    """
    drop_rates = drop_rates or DropRatesConfig()
    classifier = classifier or ClassifierConfig()
    stem_module, stem_channels = stem

    body = assemble_stages(
        block_kind,
        stage_plan,
        stem_channels,
        output_stride=output_stride,
        downsample=downsample,
        down_kernel_size=down_kernel_size,
        drop_rates=drop_rates,
        block_cfg=block_cfg,
        norm_layer=norm_layer,
        act_layer=act_layer,
        attn_layer=attn_layer,
    )

    head = ClassifierHead(
        body.out_channels,
        num_classes,
        pool_type=classifier.pool_type,
        drop_rate=drop_rates.dropout_rate,
        use_conv=classifier.use_conv,
    )
    return Network(
        stem_module,
        body.stages,
        head,
        feature_info=body.feature_info,
        num_features=body.out_channels,
    )


def resnet(
    block_kind: BlockKind | str,
    layers: Sequence[int],
    *,
    in_channels: int = 3,
    num_classes: int = 1000,
    channels: Sequence[int] = RESNET_STAGE_CHANNELS,
    stem_cfg: StemConfig | None = None,
    output_stride: int = 32,
    downsample: DownsampleStrategy | str = "conv",
    down_kernel_size: int = 1,
    drop_rates: DropRatesConfig | None = None,
    block_cfg: BlockConfig | None = None,
    classifier: ClassifierConfig | None = None,
) -> Network:
    """
    Build a ResNet-family network.

    Args:
        block_kind: 'basic' or 'bottleneck' (or any non-dense kind).
        layers: Repeats per stage.
        in_channels: Input image channels.
        num_classes: Output classes.
        channels: Nominal width per stage.
        stem_cfg: Stem layout options.
        output_stride: Target cumulative stride.
        downsample: Shortcut projection strategy.
        down_kernel_size: Kernel of strided conv projections.
        drop_rates: Dropout, drop-path and drop-block rates.
        block_cfg: Per-block options.
        classifier: Head options.

    Returns:
        Assembled ``Network``.

    Raises:
        ConfigurationError: If ``layers`` and ``channels`` differ in length.
    """
    if len(channels) != len(layers):
        error_msg = f"Got {len(layers)} repeat counts for {len(channels)} stage widths"
        logger.error(f" {LogStyle.FAILURE} {error_msg}")
        raise ConfigurationError(error_msg)

    stem_cfg = stem_cfg or StemConfig()
    block_cfg = block_cfg or BlockConfig()

    stem = resnet_stem(
        stem_cfg.stem_type,
        in_channels=in_channels,
        replace_stem_pool=stem_cfg.replace_stem_pool,
        stem_width=stem_cfg.stem_width,
        norm_layer=get_norm_layer(block_cfg.norm),
        act_layer=get_act_layer(block_cfg.activation),
    )
    return build_network(
        stem,
        block_kind,
        list(zip(channels, layers)),
        num_classes=num_classes,
        output_stride=output_stride,
        downsample=downsample,
        down_kernel_size=down_kernel_size,
        drop_rates=drop_rates,
        block_cfg=block_cfg,
        classifier=classifier,
    )

"""
Block Configuration Schema.

Declarative description of the per-block options shared by every block in
a network: grouping, bottleneck width, inverted-residual geometry, layer
identities (activation, normalisation) and optional channel attention.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .types import ActivationName, KernelSize, NormName, PositiveFloat, PositiveInt


# ATTENTION CONFIGURATION
class AttentionConfig(BaseModel):
    """
    Squeeze-excite attention options.

    Attributes:
        reduction: Channel reduction factor of the squeeze projection.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    reduction: PositiveInt = Field(
        default=16, description="Squeeze projection reduction factor (SE-ResNet uses 16)."
    )


# BLOCK CONFIGURATION
class BlockConfig(BaseModel):
    """
    Options forwarded to every block built by the stage assembler.

    Attributes:
        cardinality: Number of groups in the bottleneck 3x3 convolution.
        base_width: Channels per group at the nominal width of 64.
        reduce_first: Divisor applied to the width of the first convolution.
        kernel_size: Depthwise / fused kernel size for inverted-residual kinds.
        expansion_ratio: Hidden-width ratio for inverted-residual kinds and
            inner-width ratio for dense bottlenecks.
        activation: Activation identifier resolved by ``canopy.layers.registry``.
        norm: Normalisation identifier resolved by ``canopy.layers.registry``.
        attention: Squeeze-excite options, or None to disable attention.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    cardinality: PositiveInt = Field(
        default=1, description="Grouped-convolution cardinality (basic blocks require 1)."
    )

    base_width: PositiveInt = Field(
        default=64, description="Bottleneck base width (basic blocks require 64)."
    )

    reduce_first: PositiveInt = Field(
        default=1, description="Reduction factor of the first convolution's output width."
    )

    kernel_size: KernelSize = Field(
        default=3, description="Kernel size for inverted-residual and fused blocks."
    )

    expansion_ratio: PositiveFloat = Field(
        default=4.0,
        description=(
            "Hidden width ratio (inverted residual: hidden = in * ratio; "
            "dense bottleneck: inner = growth * ratio)."
        ),
    )

    activation: ActivationName = Field(default="relu", description="Block activation.")

    norm: NormName = Field(default="batchnorm", description="Block normalisation layer.")

    attention: AttentionConfig | None = Field(
        default=None, description="Squeeze-excite attention; None disables it."
    )

"""
Stem and Classifier Head Configuration Schemas.

The stem fixes the network's input contract (raw image → 4x downsampled
feature map) and the head fixes its output contract (feature map → class
scores). Both are pure composition; no assembly state flows through them.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .types import PoolType, PositiveInt, StemType


# STEM CONFIGURATION
class StemConfig(BaseModel):
    """
    ResNet stem options.

    Attributes:
        stem_type: 'default' (single 7x7), 'deep' (three 3x3) or 'deep_tiered'.
        stem_width: Width of the deep stem's first convolutions.
        replace_stem_pool: Replace the 3x3 max-pool with a strided conv.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    stem_type: StemType = Field(default="default", description="Stem layout.")

    stem_width: PositiveInt = Field(
        default=64,
        description="Deep stem width; the deep stem outputs 2 * stem_width channels.",
    )

    replace_stem_pool: bool = Field(
        default=False, description="Use a stride-2 conv+norm+act instead of max pooling."
    )


# CLASSIFIER CONFIGURATION
class ClassifierConfig(BaseModel):
    """
    Classifier head options.

    Attributes:
        pool_type: Global pooling policy (see ``timm.layers.SelectAdaptivePool2d``).
        use_conv: Project with a 1x1 convolution instead of a linear layer.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    pool_type: PoolType = Field(default="avg", description="Global pooling policy.")

    use_conv: bool = Field(
        default=False, description="Use a 1x1 convolution as the final projection."
    )

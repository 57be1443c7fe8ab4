"""
Network Manifest: top-level configuration for one architecture.

Aggregates the block, regularisation, stem, head and DenseNet sub-configs
into a single frozen schema, and provides the YAML-first factory used by
the ``canopy`` CLI.

Example:
    >>> cfg = NetworkConfig.from_recipe(
    ...     Path("recipes/seresnext50.yaml"),
    ...     overrides={"drop_rates.drop_path_rate": 0.1},
    ... )
    >>> model = get_model(cfg)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..io import load_config_from_yaml
from .block_config import BlockConfig
from .head_config import ClassifierConfig, StemConfig
from .regularization_config import DropRatesConfig
from .types import (
    BlockKindName,
    Channels,
    DownsampleType,
    KernelSize,
    NonNegativeInt,
    PositiveInt,
    ReductionRatio,
)


# DENSENET CONFIGURATION
class DenseConfig(BaseModel):
    """
    DenseNet-specific growth options.

    Attributes:
        growth_rate: Channels added by every dense bottleneck (``k``).
        reduction: Channel compression applied by each transition.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    growth_rate: PositiveInt = Field(default=32, description="Dense growth rate k.")

    reduction: ReductionRatio = Field(
        default=0.5, description="Transition compression factor (0 < r <= 1)."
    )


# NETWORK CONFIGURATION
class NetworkConfig(BaseModel):
    """
    Complete, validated description of one network.

    ``name`` selects a registered architecture (e.g. 'resnet50',
    'seresnext101_32x8d', 'densenet121') or 'custom', in which case the
    network is assembled from ``block_kind``, ``layers`` and ``channels``.

    Attributes:
        name: Registered architecture identifier or 'custom'.
        in_channels: Input image channels.
        num_classes: Output classes (0 keeps the pooled features).
        output_stride: Target ratio of input to final feature resolution.
        downsample: Shortcut projection strategy ('conv' or 'pool').
        down_kernel_size: Kernel size of strided conv projections.
        block_kind: Block kind for 'custom' networks.
        layers: Per-stage repeat counts for 'custom' networks.
        channels: Per-stage nominal widths for 'custom' networks.
        block: Options forwarded to every block.
        drop_rates: Stochastic regularisation rates.
        stem: Stem options.
        classifier: Classifier head options.
        dense: DenseNet growth options.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(
        default="resnet50",
        description="Registered architecture identifier, or 'custom'.",
    )

    in_channels: Channels = Field(default=3, description="Input image channels.")

    num_classes: NonNegativeInt = Field(
        default=1000, description="Output classes; 0 returns pooled features."
    )

    output_stride: PositiveInt = Field(
        default=32, description="Network output stride (one of 8, 16, 32)."
    )

    downsample: DownsampleType = Field(
        default="conv", description="Shortcut projection strategy."
    )

    down_kernel_size: KernelSize = Field(
        default=1, description="Kernel size of strided convolutional shortcuts."
    )

    block_kind: BlockKindName = Field(
        default="bottleneck",
        description="Block kind. Only wired for 'custom'; registered names fix their own kind.",
    )

    layers: tuple[NonNegativeInt, ...] = Field(
        default=(3, 4, 6, 3),
        description="Per-stage repeat counts. Only wired for 'custom'.",
    )

    channels: tuple[PositiveInt, ...] = Field(
        default=(64, 128, 256, 512),
        description="Per-stage nominal widths. Only wired for 'custom'.",
    )

    block: BlockConfig = Field(default_factory=BlockConfig)
    drop_rates: DropRatesConfig = Field(default_factory=DropRatesConfig)
    stem: StemConfig = Field(default_factory=StemConfig)
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    dense: DenseConfig = Field(default_factory=DenseConfig)

    @classmethod
    def from_recipe(
        cls, recipe_path: Path, overrides: dict[str, Any] | None = None
    ) -> "NetworkConfig":
        """
        Build a NetworkConfig from a YAML recipe.

        Args:
            recipe_path: YAML file whose top-level keys are NetworkConfig fields.
            overrides: Optional dotted-key overrides (e.g. ``{"block.cardinality": 32}``)
                applied on top of the recipe before validation.

        Returns:
            Validated, frozen NetworkConfig.

        Raises:
            FileNotFoundError: If the recipe does not exist.
            ConfigurationError: If the recipe is not a YAML mapping.
            pydantic.ValidationError: If the merged recipe violates the schema.
        """
        data = load_config_from_yaml(recipe_path)
        for key, value in (overrides or {}).items():
            _deep_set(data, key, value)
        return cls(**data)


def _deep_set(data: dict[str, Any], dotted_key: str, value: Any) -> None:
    """
    Assign ``value`` at ``dotted_key`` inside a nested dict, creating parents.

    Args:
        data: Mutable nested mapping.
        dotted_key: Path such as 'block.attention.reduction'.
        value: Value to store.
    """
    keys = dotted_key.split(".")
    node = data
    for key in keys[:-1]:
        child = node.get(key)
        if not isinstance(child, dict):
            child = {}
            node[key] = child
        node = child
    node[keys[-1]] = value

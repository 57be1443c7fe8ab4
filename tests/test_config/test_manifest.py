"""
Test Suite for the configuration schemas.

Covers defaults, field-level range checks, strictness (extra keys
forbidden) and immutability of every sub-config and of ``NetworkConfig``.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from canopy.core.config import (
    AttentionConfig,
    BlockConfig,
    ClassifierConfig,
    DenseConfig,
    DropRatesConfig,
    NetworkConfig,
    StemConfig,
)


# NETWORK CONFIG: DEFAULTS
@pytest.mark.unit
class TestNetworkConfigDefaults:
    """Tests for the default network description."""

    def test_defaults(self):
        cfg = NetworkConfig()
        assert cfg.name == "resnet50"
        assert cfg.in_channels == 3
        assert cfg.num_classes == 1000
        assert cfg.output_stride == 32
        assert cfg.downsample == "conv"
        assert cfg.layers == (3, 4, 6, 3)
        assert cfg.channels == (64, 128, 256, 512)

    def test_sub_config_defaults(self):
        cfg = NetworkConfig()
        assert cfg.block == BlockConfig()
        assert cfg.block.attention is None
        assert cfg.drop_rates == DropRatesConfig()
        assert cfg.stem.stem_type == "default"
        assert cfg.classifier.pool_type == "avg"
        assert cfg.dense.growth_rate == 32

    def test_nested_dicts_coerced(self):
        cfg = NetworkConfig(block={"attention": {"reduction": 4}}, layers=[2, 2])
        assert isinstance(cfg.block.attention, AttentionConfig)
        assert cfg.block.attention.reduction == 4
        assert cfg.layers == (2, 2)

    def test_json_dump_round_trips(self):
        cfg = NetworkConfig(name="custom", block={"activation": "silu"})
        assert NetworkConfig(**cfg.model_dump(mode="json")) == cfg


# NETWORK CONFIG: VALIDATION
@pytest.mark.unit
class TestNetworkConfigValidation:
    """Tests for field-level rejection."""

    @pytest.mark.parametrize(
        "field, value",
        [
            ("in_channels", 0),
            ("in_channels", 17),
            ("num_classes", -1),
            ("output_stride", 0),
            ("downsample", "max"),
            ("down_kernel_size", 0),
            ("block_kind", "transformer"),
            ("layers", (3, -1)),
            ("channels", (64, 0)),
        ],
    )
    def test_rejects_out_of_range(self, field, value):
        with pytest.raises(ValidationError):
            NetworkConfig(**{field: value})

    def test_extra_forbidden(self):
        with pytest.raises(ValidationError, match="extra"):
            NetworkConfig(depth=50)

    def test_frozen(self):
        cfg = NetworkConfig()
        with pytest.raises(ValidationError):
            cfg.name = "resnet18"

    def test_output_stride_semantics_deferred(self):
        """Cross-field rules are checked by the assembler, not the schema."""
        assert NetworkConfig(output_stride=12).output_stride == 12


# SUB-CONFIGS
@pytest.mark.unit
class TestBlockConfig:
    """Tests for per-block options."""

    @pytest.mark.parametrize(
        "field, value",
        [
            ("cardinality", 0),
            ("base_width", 0),
            ("reduce_first", 0),
            ("kernel_size", 12),
            ("expansion_ratio", 0.0),
            ("activation", "swish"),
            ("norm", "layernorm"),
        ],
    )
    def test_rejects(self, field, value):
        with pytest.raises(ValidationError):
            BlockConfig(**{field: value})

    def test_attention_reduction_positive(self):
        with pytest.raises(ValidationError):
            AttentionConfig(reduction=0)

    def test_frozen(self):
        with pytest.raises(ValidationError):
            BlockConfig().cardinality = 32


@pytest.mark.unit
class TestDropRatesConfig:
    """Tests for regularisation rates."""

    @pytest.mark.parametrize(
        "field, value",
        [
            ("dropout_rate", 0.95),
            ("dropout_rate", -0.1),
            ("drop_path_rate", 1.1),
            ("drop_block_rate", -0.5),
        ],
    )
    def test_rejects(self, field, value):
        with pytest.raises(ValidationError):
            DropRatesConfig(**{field: value})

    def test_boundaries_accepted(self):
        cfg = DropRatesConfig(dropout_rate=0.9, drop_path_rate=1.0, drop_block_rate=0.0)
        assert cfg.drop_path_rate == 1.0


@pytest.mark.unit
class TestHeadAndStemConfig:
    """Tests for stem, classifier and dense options."""

    def test_stem_type(self):
        assert StemConfig(stem_type="deep_tiered").stem_type == "deep_tiered"
        with pytest.raises(ValidationError):
            StemConfig(stem_type="wide")

    def test_pool_type(self):
        assert ClassifierConfig(pool_type="catavgmax").pool_type == "catavgmax"
        with pytest.raises(ValidationError):
            ClassifierConfig(pool_type="median")

    @pytest.mark.parametrize("reduction", [0.0, 1.01])
    def test_dense_reduction(self, reduction):
        with pytest.raises(ValidationError):
            DenseConfig(reduction=reduction)

    def test_dense_growth_rate(self):
        with pytest.raises(ValidationError):
            DenseConfig(growth_rate=0)

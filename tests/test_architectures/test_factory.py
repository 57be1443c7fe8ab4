"""
Test Suite for the Models Factory Module.

Validates registry resolution, configuration forwarding, device placement
and log suppression of ``get_model``.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
import torch
import torch.nn as nn

from canopy.architectures import Network, available_models, get_model
from canopy.architectures import factory
from canopy.core import NetworkConfig
from canopy.exceptions import ConfigurationError
from canopy.layers import SqueezeExcite


def _tiny(**overrides) -> NetworkConfig:
    data = dict(
        name="custom",
        block_kind="basic",
        layers=(1, 1),
        channels=(16, 32),
        num_classes=10,
    )
    data.update(overrides)
    return NetworkConfig(**data)


# FACTORY: BASIC INSTANTIATION
@pytest.mark.unit
def test_get_model_returns_network(image_batch):
    """Test get_model returns an assembled Network."""
    model = get_model(_tiny())

    assert isinstance(model, Network)
    assert model(image_batch).shape == (2, 10)


@pytest.mark.unit
def test_get_model_deploys_to_device():
    """Test get_model deploys model to specified device."""
    model = get_model(_tiny(), device=torch.device("cpu"))

    assert next(model.parameters()).device.type == "cpu"


@pytest.mark.unit
def test_get_model_invalid_architecture():
    """Test get_model raises ConfigurationError for unknown architecture."""
    with pytest.raises(ConfigurationError, match="not registered in the Factory"):
        get_model(NetworkConfig(name="invalid_model_xyz"))


@pytest.mark.unit
def test_configuration_error_is_value_error():
    """Test unknown architectures are also catchable as ValueError."""
    with pytest.raises(ValueError):
        get_model(NetworkConfig(name="vit_tiny"))


@pytest.mark.unit
def test_get_model_case_insensitive():
    """Test get_model handles case-insensitive model names."""
    model = get_model(_tiny(name="CUSTOM"))

    assert isinstance(model, nn.Module)


# FACTORY: REGISTRY VALIDATION
@pytest.mark.unit
def test_available_models():
    """Test the registry lists every family and the custom entry."""
    names = available_models()

    assert names == sorted(names)
    assert "custom" in names
    for name in ("resnet18", "resnet152", "seresnet50", "resnext50_32x4d", "densenet121"):
        assert name in names
    assert "seresnext101_32x8d" in names


@pytest.mark.integration
@pytest.mark.parametrize(
    "model_name",
    ["resnet18", "seresnet18", "resnext50_32x4d", "seresnext50_32x4d", "densenet121"],
)
def test_get_model_registered_models(model_name, image_batch):
    """Test get_model can instantiate registered models and run them."""
    model = get_model(NetworkConfig(name=model_name, num_classes=10), verbose=False)
    model.eval()

    with torch.no_grad():
        assert model(image_batch).shape == (2, 10)


# FACTORY: CONFIG FORWARDING
@pytest.mark.unit
def test_registered_name_fixes_block_options():
    """Test named SE variants enable attention regardless of the block config."""
    model = get_model(NetworkConfig(name="seresnet18", num_classes=10), verbose=False)

    assert any(isinstance(m, SqueezeExcite) for m in model.stages.layer1[0].main)


@pytest.mark.unit
def test_config_options_forwarded():
    """Test stem, stride, head and drop options reach the built network."""
    cfg = _tiny(
        in_channels=1,
        output_stride=16,
        layers=(1, 1, 1, 1),
        channels=(8, 16, 32, 64),
        stem={"stem_type": "deep", "stem_width": 8},
        classifier={"pool_type": "max"},
        drop_rates={"dropout_rate": 0.1},
    )
    model = get_model(cfg, verbose=False)

    assert model.stem[0].in_channels == 1
    assert model.feature_info[-1].dilation == 2
    assert model.head.global_pool.pool_type == "max"
    assert isinstance(model.head.drop, nn.Dropout)


@pytest.mark.unit
def test_custom_dense_network(image_batch):
    """Test 'custom' with dense bottlenecks builds a DenseNet of the given block sizes."""
    cfg = _tiny(
        block_kind="dense_bottleneck",
        layers=(2, 3),
        dense={"growth_rate": 8, "reduction": 0.5},
    )
    model = get_model(cfg, verbose=False)

    assert [info.num_blocks for info in model.feature_info] == [2, 3]
    # stem 16 -> +16 = 32 -> 16 -> +24 = 40
    assert model.num_features == 40
    assert model(image_batch).shape == (2, 10)


@pytest.mark.unit
def test_custom_invalid_combination():
    """Test semantic errors from the assembler surface through the factory."""
    cfg = _tiny(block={"cardinality": 32})

    with pytest.raises(ConfigurationError, match="Basic blocks only support"):
        get_model(cfg, verbose=False)


# FACTORY: UNUSED OPTIONS
@pytest.mark.unit
class TestUnusedOptions:
    """Options a network family never reads are refused instead of dropped."""

    @pytest.mark.parametrize(
        "overrides, field",
        [
            ({"output_stride": 16}, "output_stride"),
            ({"downsample": "pool"}, "downsample"),
            ({"stem": {"stem_type": "deep"}}, "stem.stem_type"),
            ({"block": {"cardinality": 32}}, "block.cardinality"),
            ({"drop_rates": {"drop_path_rate": 0.1}}, "drop_rates.drop_path_rate"),
        ],
    )
    def test_densenet_rejects(self, overrides, field):
        cfg = NetworkConfig(name="densenet121", **overrides)

        with pytest.raises(ConfigurationError, match=rf"'densenet121' does not use: {field}"):
            get_model(cfg, verbose=False)

    def test_custom_dense_rejects_stem_options(self):
        cfg = _tiny(block_kind="dense_bottleneck", stem={"replace_stem_pool": True})

        with pytest.raises(ConfigurationError, match="stem.replace_stem_pool"):
            get_model(cfg, verbose=False)

    @pytest.mark.parametrize("kind", ["inverted_residual", "fused_mbconv"])
    def test_inverted_kinds_reject_grouping(self, kind):
        cfg = _tiny(block_kind=kind, block={"cardinality": 2, "reduce_first": 2})

        with pytest.raises(
            ConfigurationError, match="does not use: block.cardinality, block.reduce_first"
        ):
            get_model(cfg, verbose=False)

    def test_inverted_kinds_reject_shortcut_options(self):
        cfg = _tiny(block_kind="inverted_residual", down_kernel_size=3)

        with pytest.raises(ConfigurationError, match="down_kernel_size"):
            get_model(cfg, verbose=False)

    def test_named_resnet_rejects_dense_options(self):
        cfg = NetworkConfig(name="resnet18", dense={"growth_rate": 12})

        with pytest.raises(ConfigurationError, match="dense.growth_rate"):
            get_model(cfg, verbose=False)

    def test_inverted_kind_accepts_its_own_options(self, image_batch):
        cfg = _tiny(
            block_kind="inverted_residual", block={"kernel_size": 5, "expansion_ratio": 4.0}
        )

        model = get_model(cfg, verbose=False)

        assert model(image_batch).shape == (2, 10)


# FACTORY: LOGGING
@pytest.mark.unit
def test_get_model_logs_architecture():
    """Test verbose mode logs the architecture and deployment lines."""
    with patch.object(factory.logger, "info") as mock_info:
        get_model(_tiny())

    messages = " ".join(str(call.args[0]) for call in mock_info.call_args_list)
    assert "Architecture" in messages
    assert "Deployed" in messages


@pytest.mark.unit
def test_get_model_verbose_false_suppresses_logs():
    """Test verbose=False suppresses factory logs and restores the level."""
    previous_level = factory.logger.level

    with patch.object(factory.logger, "info") as mock_info:
        model = get_model(_tiny(), verbose=False)

    assert isinstance(model, nn.Module)
    mock_info.assert_not_called()
    assert factory.logger.level == previous_level


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

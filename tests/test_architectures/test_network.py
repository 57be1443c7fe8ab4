"""
Test Suite for the network assembler and the ``Network`` module.
"""

from __future__ import annotations

import pytest
import torch
import torch.nn as nn

from canopy.architectures import Network, build_network, resnet
from canopy.core import BlockConfig, ClassifierConfig, DropRatesConfig, StemConfig
from canopy.exceptions import ConfigurationError

TINY_WIDTHS = (16, 32, 64, 128)


@pytest.fixture
def tiny_resnet():
    return resnet("basic", [1, 1, 1, 1], channels=TINY_WIDTHS, num_classes=10)


# FORWARD PASS
@pytest.mark.unit
class TestNetworkForward:
    """Tests for output shapes of assembled networks."""

    def test_logits(self, tiny_resnet, image_batch):
        assert isinstance(tiny_resnet, Network)
        assert tiny_resnet(image_batch).shape == (2, 10)
        assert tiny_resnet.num_classes == 10

    def test_forward_features(self, tiny_resnet, image_batch):
        assert tiny_resnet.forward_features(image_batch).shape == (2, 128, 2, 2)

    def test_feature_extractor(self, image_batch):
        model = resnet("basic", [1, 1, 1, 1], channels=TINY_WIDTHS, num_classes=0)
        assert model(image_batch).shape == (2, 128)

    def test_conv_classifier(self, image_batch):
        model = resnet(
            "basic",
            [1, 1, 1, 1],
            channels=TINY_WIDTHS,
            num_classes=10,
            classifier=ClassifierConfig(use_conv=True),
        )
        assert isinstance(model.head.fc, nn.Conv2d)
        assert model(image_batch).shape == (2, 10)

    def test_concat_pooling(self, image_batch):
        model = resnet(
            "basic",
            [1, 1, 1, 1],
            channels=TINY_WIDTHS,
            num_classes=10,
            classifier=ClassifierConfig(pool_type="catavgmax"),
        )
        assert model.head.fc.in_features == 256
        assert model(image_batch).shape == (2, 10)

    def test_output_stride_keeps_resolution(self, image_batch):
        model = resnet("basic", [1, 1, 1, 1], channels=TINY_WIDTHS, output_stride=8)
        assert model.forward_features(image_batch).shape == (2, 128, 8, 8)

    def test_single_channel_input(self):
        model = resnet("basic", [1, 1], channels=(16, 32), in_channels=1, num_classes=3)
        assert model(torch.randn(2, 1, 32, 32)).shape == (2, 3)

    def test_dropout_in_head(self):
        model = resnet(
            "basic",
            [1, 1],
            channels=(16, 32),
            drop_rates=DropRatesConfig(dropout_rate=0.3),
        )
        assert isinstance(model.head.drop, nn.Dropout)
        assert model.head.drop.p == pytest.approx(0.3)


# METADATA
@pytest.mark.unit
class TestNetworkMetadata:
    """Tests for feature info and feature count."""

    def test_feature_info(self, tiny_resnet):
        assert len(tiny_resnet.feature_info) == 4
        assert [info.out_channels for info in tiny_resnet.feature_info] == list(TINY_WIDTHS)
        assert [info.net_stride for info in tiny_resnet.feature_info] == [4, 8, 16, 32]

    def test_num_features_follows_expansion(self):
        model = resnet("bottleneck", [1, 1], channels=(16, 32))
        assert model.num_features == 128
        assert model.head.fc.in_features == 128

    def test_no_final_norm_for_resnet(self, tiny_resnet):
        assert isinstance(tiny_resnet.final_norm, nn.Identity)


# STEM AND LAYERS
@pytest.mark.unit
class TestResnetEntryPoint:
    """Tests for the ResNet convenience builder."""

    def test_deep_stem(self, image_batch):
        model = resnet(
            "basic",
            [1, 1],
            channels=(16, 32),
            stem_cfg=StemConfig(stem_type="deep", stem_width=8),
            num_classes=4,
        )
        assert model.stages.layer1[0].main[0].in_channels == 16
        assert model(image_batch).shape == (2, 4)

    def test_stem_follows_block_layers(self):
        model = resnet(
            "basic", [1], channels=(16,), block_cfg=BlockConfig(activation="silu")
        )
        assert isinstance(model.stem[2], nn.SiLU)

    def test_mismatched_lengths(self):
        with pytest.raises(ConfigurationError, match="Got 3 repeat counts for 4 stage widths"):
            resnet("basic", [1, 1, 1])


# CUSTOM STEM
@pytest.mark.unit
def test_build_network_with_custom_stem():
    """Test assembly around a caller-provided stem."""
    stem = nn.Sequential(nn.Conv2d(3, 16, 3, stride=2, padding=1), nn.ReLU())
    model = build_network(
        (stem, 16),
        "inverted_residual",
        [(16, 1), (24, 2)],
        num_classes=5,
        block_cfg=BlockConfig(expansion_ratio=2.0, activation="hardswish"),
    )
    assert model.stem is stem
    assert model(torch.randn(2, 3, 32, 32)).shape == (2, 5)

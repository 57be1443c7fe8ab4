"""
Test Suite for the squeeze-excite module, classifier head and ResNet stem.
"""

from __future__ import annotations

import pytest
import torch
import torch.nn as nn

from canopy.exceptions import ConfigurationError
from canopy.layers import ClassifierHead, SqueezeExcite, resnet_stem


# SQUEEZE-EXCITE
@pytest.mark.unit
class TestSqueezeExcite:
    """Tests for channel attention."""

    def test_preserves_shape(self):
        module = SqueezeExcite(32, 2)
        x = torch.randn(2, 32, 8, 8)
        assert module(x).shape == x.shape

    def test_projection_widths(self):
        module = SqueezeExcite(64, 4)
        assert module.conv_reduce.out_channels == 4
        assert module.conv_expand.out_channels == 64
        assert module.conv_reduce.bias is not None

    def test_squeeze_width_clamped(self):
        assert SqueezeExcite(8, 0).conv_reduce.out_channels == 1

    def test_pluggable_layers(self):
        module = SqueezeExcite(16, 4, act_layer=nn.SiLU, gate_layer=nn.Hardsigmoid)
        assert isinstance(module.act, nn.SiLU)
        assert isinstance(module.gate, nn.Hardsigmoid)

    def test_gate_scales_input(self):
        module = SqueezeExcite(4, 2)
        x = torch.ones(1, 4, 3, 3)
        out = module(x)
        assert torch.all(out > 0)
        assert torch.all(out < 1)


# CLASSIFIER HEAD
@pytest.mark.unit
class TestClassifierHead:
    """Tests for pooling, dropout and projection."""

    def test_linear_projection(self):
        head = ClassifierHead(64, 10)
        assert isinstance(head.fc, nn.Linear)
        assert head(torch.randn(2, 64, 7, 7)).shape == (2, 10)

    def test_conv_projection(self):
        head = ClassifierHead(64, 10, use_conv=True)
        assert isinstance(head.fc, nn.Conv2d)
        assert head(torch.randn(2, 64, 7, 7)).shape == (2, 10)

    @pytest.mark.parametrize("use_conv", [False, True])
    def test_feature_extractor(self, use_conv):
        head = ClassifierHead(64, 0, use_conv=use_conv)
        assert isinstance(head.fc, nn.Identity)
        assert head(torch.randn(2, 64, 7, 7)).shape == (2, 64)

    def test_concat_pooling_doubles_features(self):
        head = ClassifierHead(64, 10, pool_type="catavgmax")
        assert head.num_pooled_features == 128
        assert head(torch.randn(2, 64, 7, 7)).shape == (2, 10)

    def test_dropout(self):
        assert isinstance(ClassifierHead(64, 10, drop_rate=0.2).drop, nn.Dropout)
        assert isinstance(ClassifierHead(64, 10).drop, nn.Identity)


# STEM
@pytest.mark.unit
class TestResnetStem:
    """Tests for the ResNet stem layouts."""

    @pytest.mark.parametrize("stem_type", ["default", "deep", "deep_tiered"])
    def test_output_stride_is_four(self, image_batch, stem_type):
        stem, out_channels = resnet_stem(stem_type)
        out = stem(image_batch)
        assert out.shape == (2, out_channels, 16, 16)

    def test_default_layout(self):
        stem, out_channels = resnet_stem()
        assert out_channels == 64
        assert stem[0].kernel_size == (7, 7)
        assert isinstance(stem[-1], nn.MaxPool2d)

    def test_deep_stem_widths(self):
        stem, out_channels = resnet_stem("deep", stem_width=32)
        convs = [m for m in stem if isinstance(m, nn.Conv2d)]
        assert out_channels == 64
        assert [c.out_channels for c in convs] == [32, 32, 64]

    def test_tiered_first_width(self):
        stem, _ = resnet_stem("deep_tiered", stem_width=64)
        convs = [m for m in stem if isinstance(m, nn.Conv2d)]
        assert convs[0].out_channels == 48

    def test_replace_stem_pool(self, image_batch):
        stem, out_channels = resnet_stem(replace_stem_pool=True)
        assert not any(isinstance(m, nn.MaxPool2d) for m in stem)
        assert stem(image_batch).shape == (2, out_channels, 16, 16)

    def test_in_channels(self):
        stem, _ = resnet_stem(in_channels=1)
        assert stem[0].in_channels == 1

    def test_unknown_stem_type(self):
        with pytest.raises(ConfigurationError, match="Unknown stem type 'wide'"):
            resnet_stem("wide")

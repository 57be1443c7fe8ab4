"""
Test Suite for the stage assembler.

Covers stride and dilation bookkeeping, shortcut placement, drop-path and
drop-block wiring, empty stages, determinism and up-front validation.
"""

from __future__ import annotations

import pytest
import torch
import torch.nn as nn
from timm.layers import DropBlock2d, DropPath

from canopy.architectures import assemble_stages
from canopy.core import BlockConfig, DropRatesConfig
from canopy.exceptions import ConfigurationError

SMALL_PLAN = [(8, 1), (16, 1), (32, 1), (64, 1)]


def _param_shapes(body):
    return [(name, tensor.shape) for name, tensor in body.stages.state_dict().items()]


# GEOMETRY
@pytest.mark.unit
class TestStageGeometry:
    """Tests for channel, stride and dilation threading."""

    def test_bottleneck_resnet_body(self):
        plan = [(64, 2), (128, 2), (256, 2), (512, 2)]
        body = assemble_stages("bottleneck", plan, 64)

        assert len(body.stages) == 4
        assert sum(len(stage) for stage in body.stages) == 8
        assert body.out_channels == 2048
        assert body.state.block_idx == 8
        assert [info.net_stride for info in body.feature_info] == [4, 8, 16, 32]
        assert [info.out_channels for info in body.feature_info] == [256, 512, 1024, 2048]

    def test_first_block_projects_without_striding(self):
        body = assemble_stages("bottleneck", [(64, 2)], 64)
        first, second = body.stages.layer1
        assert isinstance(first.shortcut, nn.Sequential)
        assert first.shortcut[0].stride == (1, 1)
        assert first.shortcut[0].out_channels == 256
        assert second.shortcut is None

    def test_later_stages_stride_first_block_only(self):
        body = assemble_stages("basic", [(8, 2), (16, 2)], 8)
        first, second = body.stages.layer2
        assert first.main[0].stride == (2, 2)
        assert second.main[0].stride == (1, 1)
        assert first.shortcut is not None
        assert second.shortcut is None

    def test_stage_names(self):
        body = assemble_stages("basic", SMALL_PLAN, 8)
        assert [name for name, _ in body.stages.named_children()] == [
            "layer1",
            "layer2",
            "layer3",
            "layer4",
        ]

    @pytest.mark.parametrize(
        "output_stride, strides, dilations",
        [
            (32, [4, 8, 16, 32], [1, 1, 1, 1]),
            (16, [4, 8, 16, 16], [1, 1, 1, 2]),
            (8, [4, 8, 8, 8], [1, 1, 2, 4]),
        ],
    )
    def test_output_stride(self, output_stride, strides, dilations):
        body = assemble_stages("basic", SMALL_PLAN, 16, output_stride=output_stride)
        assert [info.net_stride for info in body.feature_info] == strides
        assert [info.dilation for info in body.feature_info] == dilations
        assert body.state.net_stride == output_stride

    @pytest.mark.parametrize("downsample", ["conv", "pool"])
    def test_dilated_forward(self, downsample):
        body = assemble_stages(
            "basic", SMALL_PLAN, 16, output_stride=8, downsample=downsample
        )
        out = body.stages(torch.randn(1, 16, 16, 16))
        assert out.shape == (1, 64, 8, 8)

    def test_dilated_block_uses_previous_dilation_first(self):
        body = assemble_stages("basic", [(8, 1), (16, 1), (32, 2), (64, 1)], 8, output_stride=8)
        first, second = body.stages.layer3
        assert first.main[0].dilation == (1, 1)
        assert first.main[4].dilation == (2, 2)
        assert second.main[0].dilation == (2, 2)

    def test_dilated_shortcut_uses_stage_dilation(self):
        """Strided-conv shortcuts in a dilated stage dilate like the stage itself."""
        body = assemble_stages(
            "bottleneck", SMALL_PLAN, 16, output_stride=16, downsample="conv", down_kernel_size=3
        )
        shortcut = body.stages.layer4[0].shortcut[0]
        assert body.feature_info[3].dilation == 2
        assert shortcut.kernel_size == (3, 3)
        assert shortcut.dilation == (2, 2)
        assert shortcut.padding == (2, 2)
        out = body.stages(torch.randn(1, 16, 32, 32))
        assert out.shape == (1, 256, 8, 8)

    def test_empty_stage(self):
        body = assemble_stages("basic", [(64, 1), (128, 0), (256, 1)], 64)
        assert len(body.stages.layer2) == 0
        assert body.feature_info[1].out_channels == 64
        assert body.feature_info[1].num_blocks == 0
        assert body.out_channels == 256

    def test_inverted_residual_has_no_projection(self):
        body = assemble_stages(
            "inverted_residual",
            [(16, 2), (24, 2)],
            16,
            block_cfg=BlockConfig(expansion_ratio=2.0),
        )
        blocks = [block for stage in body.stages for block in stage]
        assert all(block.shortcut is None for block in blocks)
        assert body.stages(torch.randn(1, 16, 16, 16)).shape == (1, 24, 8, 8)

    def test_layer_identities_from_config(self):
        body = assemble_stages(
            "basic", [(8, 1)], 8, block_cfg=BlockConfig(activation="silu", norm="instancenorm")
        )
        block = body.stages.layer1[0]
        assert isinstance(block.act, nn.SiLU)
        assert isinstance(block.main[1], nn.InstanceNorm2d)

    def test_deterministic(self):
        first = assemble_stages("bottleneck", [(16, 2), (32, 1)], 16)
        second = assemble_stages("bottleneck", [(16, 2), (32, 1)], 16)
        assert _param_shapes(first) == _param_shapes(second)


# REGULARISATION
@pytest.mark.unit
class TestStageRegularization:
    """Tests for drop-path and drop-block wiring."""

    def test_drop_path_over_global_index(self):
        body = assemble_stages(
            "basic",
            [(8, 2), (16, 2)],
            8,
            drop_rates=DropRatesConfig(drop_path_rate=0.3),
        )
        assert body.drop_path_rates == pytest.approx((0.0, 0.1, 0.2, 0.3))

        blocks = [block for stage in body.stages for block in stage]
        assert isinstance(blocks[0].main[-1], nn.Identity)
        assert [block.main[-1].drop_prob for block in blocks[1:]] == pytest.approx([0.1, 0.2, 0.3])
        assert all(isinstance(block.main[-1], DropPath) for block in blocks[1:])

    def test_drop_block_in_last_two_stages(self):
        body = assemble_stages(
            "basic", SMALL_PLAN, 8, drop_rates=DropRatesConfig(drop_block_rate=0.1)
        )
        enabled = [isinstance(stage[0].main[2], DropBlock2d) for stage in body.stages]
        assert enabled == [False, False, True, True]
        assert body.stages.layer3[0].main[2].block_size == 5
        assert body.stages.layer4[0].main[2].block_size == 3


# VALIDATION
@pytest.mark.unit
class TestStageValidation:
    """Tests for rejected assembly requests."""

    def test_too_many_stages(self):
        with pytest.raises(ConfigurationError, match="At most 4 stages are supported, got 5"):
            assemble_stages("basic", SMALL_PLAN + [(128, 1)], 8)

    def test_dense_kind(self):
        with pytest.raises(ConfigurationError, match="dense_block"):
            assemble_stages("dense_bottleneck", [(32, 6)], 64)

    def test_unsupported_output_stride(self):
        with pytest.raises(ConfigurationError, match="output_stride must be one of"):
            assemble_stages("basic", SMALL_PLAN, 8, output_stride=12)

    def test_basic_with_cardinality(self):
        with pytest.raises(ConfigurationError, match="Basic blocks only support"):
            assemble_stages("basic", SMALL_PLAN, 8, block_cfg=BlockConfig(cardinality=32))

    @pytest.mark.parametrize("plan", [[(8, -1)], [(0, 1)]])
    def test_invalid_stage_entries(self, plan):
        with pytest.raises(ConfigurationError, match="Stage 1"):
            assemble_stages("basic", plan, 8)

    def test_unknown_downsample(self):
        with pytest.raises(ConfigurationError, match="Unknown downsample strategy"):
            assemble_stages("basic", SMALL_PLAN, 8, downsample="max")

    def test_unknown_kind(self):
        with pytest.raises(ConfigurationError, match="not registered"):
            assemble_stages("convnext", SMALL_PLAN, 8)

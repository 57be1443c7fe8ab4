"""
Stage Assembler.

Turns a block kind and a stage plan (``(planes, repeats)`` per stage) into
the body of a network, threading channel, stride and dilation state through
every block in order.

Assembly rules:

- Stage 1 keeps resolution; every later stage nominally halves it.
- Once the cumulative stride reaches ``output_stride`` further strides are
  folded into dilation, so the body never exceeds the target stride.
- Only the first block of a stage strides and receives a shortcut
  projection; later blocks see stride 1 and an identity shortcut.
- Drop-path rates grow linearly over the *global* block index; drop-block is
  enabled per stage from a fixed policy table.

All validation happens before the first module is allocated.
"""

from __future__ import annotations

import dataclasses
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, NoReturn, Sequence

import torch.nn as nn

from ..blocks import RESIDUAL_KINDS, BlockKind, BlockSpec, build_block, expansion_factor, resolve_kind
from ..core import (
    LOGGER_NAME,
    MAX_STAGES,
    STEM_STRIDE,
    SUPPORTED_OUTPUT_STRIDES,
    BlockConfig,
    DropRatesConfig,
    LogStyle,
)
from ..exceptions import ConfigurationError
from ..layers import (
    DownsampleStrategy,
    SqueezeExcite,
    drop_block_policy,
    drop_path_schedule,
    get_act_layer,
    get_norm_layer,
    resolve_strategy,
    select_downsample,
)

logger = logging.getLogger(LOGGER_NAME)

StagePlan = Sequence[tuple[int, int]]


# ASSEMBLY STATE
@dataclass(frozen=True)
class BuildState:
    """
    Running state threaded through the assembler, replaced after every block.

    Attributes:
        in_channels: Channels entering the next block.
        dilation: Dilation of the current stage.
        prev_dilation: Dilation of the previously built block.
        net_stride: Cumulative stride reached so far (the stem contributes 4).
        block_idx: Global index of the next block.
    """

    in_channels: int
    dilation: int = 1
    prev_dilation: int = 1
    net_stride: int = STEM_STRIDE
    block_idx: int = 0


@dataclass(frozen=True)
class StageInfo:
    """Geometry of one assembled stage."""

    index: int
    num_blocks: int
    out_channels: int
    net_stride: int
    dilation: int


@dataclass(frozen=True)
class StageAssembly:
    """
    Result of ``assemble_stages``.

    Attributes:
        stages: One ``nn.Sequential`` of blocks per stage.
        out_channels: Channels leaving the last stage.
        state: Final assembly state.
        drop_path_rates: Per-block stochastic depth rates, in global order.
        feature_info: Per-stage geometry.
    """

    stages: nn.Sequential
    out_channels: int
    state: BuildState
    drop_path_rates: tuple[float, ...]
    feature_info: tuple[StageInfo, ...]


# ASSEMBLER
def assemble_stages(
    block_kind: BlockKind | str,
    stage_plan: StagePlan,
    in_channels: int,
    *,
    output_stride: int = 32,
    downsample: DownsampleStrategy | str = "conv",
    down_kernel_size: int = 1,
    drop_rates: DropRatesConfig | None = None,
    block_cfg: BlockConfig | None = None,
    norm_layer: Callable[[int], nn.Module] | None = None,
    act_layer: Callable[[], nn.Module] | None = None,
    attn_layer: Callable[..., nn.Module] | None = None,
) -> StageAssembly:
    """
    Build every stage of a network body.

    Args:
        block_kind: Kind of every block (not 'dense_bottleneck').
        stage_plan: ``(planes, repeats)`` per stage, at most four stages.
        in_channels: Channels produced by the stem.
        output_stride: Target cumulative stride (8, 16 or 32).
        downsample: Shortcut projection strategy ('conv' or 'pool').
        down_kernel_size: Kernel of strided conv projections.
        drop_rates: Drop-path and drop-block rates (defaults to all zero).
        block_cfg: Per-block options (defaults to ``BlockConfig()``).
        norm_layer: Overrides the normalisation named in ``block_cfg``.
        act_layer: Overrides the activation named in ``block_cfg``.
        attn_layer: Attention constructor (defaults to ``SqueezeExcite``).

    Returns:
        StageAssembly with the stages, output channels and final state.

    Raises:
        ConfigurationError: If any argument is invalid; nothing is built.
    """
    drop_rates = drop_rates or DropRatesConfig()
    block_cfg = block_cfg or BlockConfig()

    kind = _validate_plan(block_kind, stage_plan, output_stride, block_cfg)
    strategy = resolve_strategy(downsample)
    norm_layer = norm_layer or get_norm_layer(block_cfg.norm)
    act_layer = act_layer or get_act_layer(block_cfg.activation)
    attn_layer = attn_layer or SqueezeExcite

    expansion = expansion_factor(kind)
    dpr = drop_path_schedule(drop_rates.drop_path_rate, sum(repeats for _, repeats in stage_plan))
    state = BuildState(in_channels=in_channels)

    stages: OrderedDict[str, nn.Module] = OrderedDict()
    feature_info: list[StageInfo] = []

    for stage_idx, (planes, repeats) in enumerate(stage_plan):
        stride = 1 if stage_idx == 0 else 2
        if state.net_stride >= output_stride:
            state = dataclasses.replace(state, dilation=state.dilation * stride)
            stride = 1
        else:
            state = dataclasses.replace(state, net_stride=state.net_stride * stride)

        policy = drop_block_policy(stage_idx)
        blocks: list[nn.Module] = []
        for i in range(repeats):
            block_stride = stride if i == 0 else 1
            shortcut = None
            if i == 0 and kind in RESIDUAL_KINDS:
                shortcut = select_downsample(
                    strategy,
                    state.in_channels,
                    planes,
                    expansion,
                    stride=block_stride,
                    dilation=state.dilation,
                    kernel_size=down_kernel_size,
                    norm_layer=norm_layer,
                )

            spec = BlockSpec(
                kind=kind,
                in_channels=state.in_channels,
                planes=planes,
                stride=block_stride,
                cardinality=block_cfg.cardinality,
                base_width=block_cfg.base_width,
                reduce_first=block_cfg.reduce_first,
                dilation=state.dilation,
                first_dilation=state.prev_dilation,
                kernel_size=block_cfg.kernel_size,
                expansion_ratio=block_cfg.expansion_ratio,
                attention=block_cfg.attention,
                drop_path_rate=dpr[state.block_idx],
                drop_block=policy,
                drop_block_rate=drop_rates.drop_block_rate,
                norm_layer=norm_layer,
                act_layer=act_layer,
                attn_layer=attn_layer,
            )
            blocks.append(build_block(spec, downsample=shortcut))

            state = dataclasses.replace(
                state,
                in_channels=planes * expansion,
                prev_dilation=state.dilation,
                block_idx=state.block_idx + 1,
            )

        stages[f"layer{stage_idx + 1}"] = nn.Sequential(*blocks)
        info = StageInfo(
            index=stage_idx + 1,
            num_blocks=repeats,
            out_channels=state.in_channels,
            net_stride=state.net_stride,
            dilation=state.dilation,
        )
        feature_info.append(info)
        logger.debug(
            f"{LogStyle.INDENT}{LogStyle.ARROW} [Stage {info.index}] {kind.value} x{repeats} | "
            f"channels: {info.out_channels} | stride: {info.net_stride} | "
            f"dilation: {info.dilation}"
        )

    return StageAssembly(
        stages=nn.Sequential(stages),
        out_channels=state.in_channels,
        state=state,
        drop_path_rates=tuple(dpr),
        feature_info=tuple(feature_info),
    )


# VALIDATION
def _validate_plan(
    block_kind: BlockKind | str,
    stage_plan: StagePlan,
    output_stride: int,
    block_cfg: BlockConfig,
) -> BlockKind:
    """
    Reject invalid assembly requests up front.

    Returns:
        The resolved block kind.

    Raises:
        ConfigurationError: On the first violated constraint.
    """
    if output_stride not in SUPPORTED_OUTPUT_STRIDES:
        _fail(
            f"output_stride must be one of {sorted(SUPPORTED_OUTPUT_STRIDES)}, got {output_stride}"
        )

    kind = resolve_kind(block_kind)
    if kind is BlockKind.DENSE_BOTTLENECK:
        _fail("Dense bottlenecks concatenate their input; assemble them with 'dense_block'")

    if len(stage_plan) > MAX_STAGES:
        _fail(f"At most {MAX_STAGES} stages are supported, got {len(stage_plan)}")

    for stage_idx, (planes, repeats) in enumerate(stage_plan, start=1):
        if repeats < 0:
            _fail(f"Stage {stage_idx}: repeat count must be >= 0, got {repeats}")
        if planes < 1:
            _fail(f"Stage {stage_idx}: planes must be >= 1, got {planes}")

    if kind is BlockKind.BASIC and (block_cfg.cardinality != 1 or block_cfg.base_width != 64):
        _fail(
            "Basic blocks only support cardinality=1 and base_width=64, "
            f"got cardinality={block_cfg.cardinality}, base_width={block_cfg.base_width}"
        )
    return kind


def _fail(error_msg: str) -> NoReturn:
    logger.error(f" {LogStyle.FAILURE} {error_msg}")
    raise ConfigurationError(error_msg)

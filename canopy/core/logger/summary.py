"""
Network Summary Logging.

Formatted logging utilities that describe an assembled network: per-stage
geometry (blocks, output channels, cumulative stride, dilation) and
parameter counts.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from ..constants import LOGGER_NAME
from .styles import LogStyle

if TYPE_CHECKING:  # pragma: no cover
    import torch
    import torch.nn as nn

logger = logging.getLogger(LOGGER_NAME)


def count_parameters(model: "nn.Module", trainable_only: bool = False) -> int:
    """
    Count the parameters of a module.

    Args:
        model: Module to inspect.
        trainable_only: Only count tensors with ``requires_grad=True``.

    Returns:
        Total number of scalar parameters.
    """
    return sum(p.numel() for p in model.parameters() if p.requires_grad or not trainable_only)


def log_network_summary(
    model: "nn.Module",
    name: str,
    logger_instance: logging.Logger | None = None,
) -> None:
    """
    Log a per-stage table for an assembled network.

    Networks built by ``build_network`` / ``densenet`` expose ``feature_info``
    (one ``StageInfo`` per stage); other modules only get the parameter line.

    Args:
        model: Assembled network.
        name: Display name (e.g. registry identifier).
        logger_instance: Logger instance to use (defaults to module logger)
    """
    log = logger_instance or logger

    LogStyle.log_phase_header(log, f"NETWORK SUMMARY - {name.upper()}", LogStyle.DOUBLE)

    stage_info: Sequence = getattr(model, "feature_info", ())
    for info in stage_info:
        log.info(
            f"{LogStyle.INDENT}{LogStyle.ARROW} [Stage {info.index}] "
            f"blocks: {info.num_blocks:<3} | channels: {info.out_channels:<5} | "
            f"stride: {info.net_stride:<3} | dilation: {info.dilation}"
        )

    num_features = getattr(model, "num_features", None)
    if num_features is not None:
        log.info(f"{LogStyle.INDENT}{LogStyle.ARROW} {'Head features':<18}: {num_features}")

    log.info(f"{LogStyle.INDENT}{LogStyle.ARROW} {'Parameters':<18}: {count_parameters(model):,}")
    log.info(
        f"{LogStyle.INDENT}{LogStyle.ARROW} {'Trainable':<18}: "
        f"{count_parameters(model, trainable_only=True):,}"
    )
    log.info(LogStyle.DOUBLE)


def log_forward_check(
    input_shape: "torch.Size | tuple[int, ...]",
    output_shape: "torch.Size | tuple[int, ...]",
    logger_instance: logging.Logger | None = None,
) -> None:
    """
    Log the result of a dry forward pass.

    Args:
        input_shape: Shape of the random sample tensor.
        output_shape: Shape returned by the network.
        logger_instance: Logger instance to use (defaults to module logger)
    """
    log = logger_instance or logger
    log.info(
        f"{LogStyle.INDENT}{LogStyle.SUCCESS} Forward pass: "
        f"{tuple(input_shape)} {LogStyle.ARROW} {tuple(output_shape)}"
    )

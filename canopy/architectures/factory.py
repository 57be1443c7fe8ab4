"""
Models Factory Module.

Registry-based resolution of architecture names to builders, decoupling
model instantiation from the code that consumes the model.

Architecture:

- Registry Pattern: Internal _MODEL_REGISTRY maps names to builders
- Uniform Builders: Every entry takes the validated ``NetworkConfig``
- Device Management: Automatic model transfer to target device

Key Components:

- ``get_model``: Factory function for architecture resolution and instantiation
- ``available_models``: Registered identifiers, sorted
- ``_MODEL_REGISTRY``: Internal mapping of architecture names to builders

Example:
    >>> from canopy.architectures.factory import get_model
    >>> model = get_model(NetworkConfig(name="seresnext50_32x4d", num_classes=10))
    >>> print(f"Parameters: {sum(p.numel() for p in model.parameters()):,}")
"""

from __future__ import annotations

import logging
from functools import partial, reduce
from types import MappingProxyType
from typing import Any, Callable, Mapping

import torch
import torch.nn as nn

from ..blocks import RESIDUAL_KINDS, BlockKind, resolve_kind
from ..core import LOGGER_NAME, LogStyle, NetworkConfig, count_parameters
from ..exceptions import ConfigurationError
from ..layers import get_act_layer, get_norm_layer
from .densenet import build_densenet, densenet
from .network import resnet
from .resnet import build_resnet, build_resnext, build_seresnet, build_seresnext

# LOGGER CONFIGURATION
logger = logging.getLogger(LOGGER_NAME)


_BuilderFn = Callable[[NetworkConfig], nn.Module]


# BUILDER ADAPTERS
def _resnet_kwargs(cfg: NetworkConfig) -> dict[str, Any]:
    return dict(
        in_channels=cfg.in_channels,
        num_classes=cfg.num_classes,
        stem_cfg=cfg.stem,
        output_stride=cfg.output_stride,
        downsample=cfg.downsample,
        down_kernel_size=cfg.down_kernel_size,
        drop_rates=cfg.drop_rates,
        block_cfg=cfg.block,
        classifier=cfg.classifier,
    )


def _densenet_kwargs(cfg: NetworkConfig) -> dict[str, Any]:
    return dict(
        reduction=cfg.dense.reduction,
        dropout_rate=cfg.drop_rates.dropout_rate,
        in_channels=cfg.in_channels,
        num_classes=cfg.num_classes,
        expansion_ratio=cfg.block.expansion_ratio,
        norm_layer=get_norm_layer(cfg.block.norm),
        act_layer=get_act_layer(cfg.block.activation),
        classifier=cfg.classifier,
    )


# UNUSED OPTIONS
# Dotted NetworkConfig fields a network family never reads
_DENSE_FIELDS = ("dense.growth_rate", "dense.reduction")
_UNUSED_BY_RESIDUAL = ("block.kernel_size", "block.expansion_ratio") + _DENSE_FIELDS
_UNUSED_BY_INVERTED = (
    "downsample",
    "down_kernel_size",
    "block.cardinality",
    "block.base_width",
    "block.reduce_first",
) + _DENSE_FIELDS
_UNUSED_BY_DENSENET = (
    "output_stride",
    "downsample",
    "down_kernel_size",
    "stem.stem_type",
    "stem.stem_width",
    "stem.replace_stem_pool",
    "block.cardinality",
    "block.base_width",
    "block.reduce_first",
    "block.kernel_size",
    "block.attention",
    "drop_rates.drop_path_rate",
    "drop_rates.drop_block_rate",
)

_DEFAULTS = NetworkConfig()


def _reject_unused(cfg: NetworkConfig, fields: tuple[str, ...], label: str) -> None:
    """
    Refuse options that would be ignored by the selected network.

    Raises:
        ConfigurationError: If any of ``fields`` differs from its default.
    """
    changed = [f for f in fields if _lookup(cfg, f) != _lookup(_DEFAULTS, f)]
    if changed:
        error_msg = f"{label} does not use: {', '.join(changed)}. Leave them at their defaults."
        logger.error(f" {LogStyle.FAILURE} {error_msg}")
        raise ConfigurationError(error_msg)


def _lookup(cfg: NetworkConfig, dotted: str) -> Any:
    return reduce(getattr, dotted.split("."), cfg)


def _from_depth(
    builder: Callable[..., nn.Module], depth: int, cfg: NetworkConfig, **fixed: Any
) -> nn.Module:
    _reject_unused(cfg, _UNUSED_BY_RESIDUAL, f"'{cfg.name}'")
    return builder(depth, **fixed, **_resnet_kwargs(cfg))


def _densenet_from_depth(depth: int, cfg: NetworkConfig) -> nn.Module:
    _reject_unused(cfg, _UNUSED_BY_DENSENET, f"'{cfg.name}'")
    return build_densenet(depth, growth_rate=cfg.dense.growth_rate, **_densenet_kwargs(cfg))


def _custom(cfg: NetworkConfig) -> nn.Module:
    """Network assembled from ``block_kind``, ``layers`` and ``channels``."""
    label = f"'custom' with block_kind '{cfg.block_kind}'"
    if cfg.block_kind == BlockKind.DENSE_BOTTLENECK.value:
        _reject_unused(cfg, _UNUSED_BY_DENSENET, label)
        growth = cfg.dense.growth_rate
        return densenet(2 * growth, [[growth] * n for n in cfg.layers], **_densenet_kwargs(cfg))
    if resolve_kind(cfg.block_kind) in RESIDUAL_KINDS:
        _reject_unused(cfg, _UNUSED_BY_RESIDUAL, label)
    else:
        _reject_unused(cfg, _UNUSED_BY_INVERTED, label)
    return resnet(cfg.block_kind, cfg.layers, channels=cfg.channels, **_resnet_kwargs(cfg))


def _build_registry() -> Mapping[str, _BuilderFn]:
    registry: dict[str, _BuilderFn] = {}
    for depth in (18, 34, 50, 101, 152):
        registry[f"resnet{depth}"] = partial(_from_depth, build_resnet, depth)
        registry[f"seresnet{depth}"] = partial(_from_depth, build_seresnet, depth)
    for depth, cardinality, base_width in ((50, 32, 4), (101, 32, 8), (101, 64, 4), (152, 32, 4)):
        registry[f"resnext{depth}_{cardinality}x{base_width}d"] = partial(
            _from_depth, build_resnext, depth, cardinality=cardinality, base_width=base_width
        )
    for depth, cardinality, base_width in ((50, 32, 4), (101, 32, 8)):
        registry[f"seresnext{depth}_{cardinality}x{base_width}d"] = partial(
            _from_depth, build_seresnext, depth, cardinality=cardinality, base_width=base_width
        )
    for depth in (121, 161, 169, 201):
        registry[f"densenet{depth}"] = partial(_densenet_from_depth, depth)
    # Extension point: register your custom architecture here
    registry["custom"] = _custom
    return MappingProxyType(registry)


_MODEL_REGISTRY: Mapping[str, _BuilderFn] = _build_registry()


# MODEL FACTORY LOGIC
def available_models() -> list[str]:
    """Sorted identifiers accepted by ``NetworkConfig.name``."""
    return sorted(_MODEL_REGISTRY)


def get_model(
    cfg: NetworkConfig,
    device: torch.device | str | None = None,
    verbose: bool = True,
) -> nn.Module:
    """
    Factory function to resolve, instantiate, and prepare architectures.

    It maps the configuration identifier to a builder via an internal
    registry and forwards the whole validated config to it.

    Args:
        cfg: Validated network configuration.
        device: Target device (defaults to CPU).
        verbose: Suppress builder-internal INFO logging when False.

    Returns:
        nn.Module: The instantiated model on the target device.

    Example:
        >>> model = get_model(NetworkConfig(name="resnet50"), device="cuda")

    Raises:
        ConfigurationError: If the requested architecture is not found in the
            registry or its options are inconsistent.
    """
    model_name_lower = cfg.name.lower()
    device = torch.device(device) if device is not None else torch.device("cpu")

    if verbose:
        logger.info(  # pragma: no mutant
            f"{LogStyle.INDENT}{LogStyle.ARROW} {'Architecture':<18}: "
            f"{cfg.name} | Input channels: {cfg.in_channels} | "
            f"Output: {cfg.num_classes} classes"
        )

    builder = _MODEL_REGISTRY.get(model_name_lower)
    if builder is None:
        error_msg = f"Architecture '{cfg.name}' is not registered in the Factory."
        logger.error(f" {LogStyle.FAILURE} {error_msg}")
        raise ConfigurationError(error_msg)

    # When verbose=False suppress builder-internal INFO logs
    _prev_level = logger.level
    if not verbose:
        logger.setLevel(logging.WARNING)
    try:
        model = builder(cfg)
    finally:
        logger.setLevel(_prev_level)

    # Centralised device placement (builders stay device-agnostic)
    model = model.to(device)

    # Parameter telemetry
    if verbose:
        logger.info(  # pragma: no mutant
            f"{LogStyle.INDENT}{LogStyle.ARROW} {'Deployed':<18}: "
            f"{str(device).upper()} | Parameters: {count_parameters(model):,}"
        )
        logger.info("")  # pragma: no mutant

    return model

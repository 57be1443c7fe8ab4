"""
Layer Registries.

Resolves the identifiers accepted by ``BlockConfig`` to layer constructors,
so configs stay YAML-serialisable while builders receive plain callables.
Lookups go through timm's ``get_act_layer`` / ``get_norm_layer``; only the
names timm does not know (or spells differently) are kept here.

- Activation constructors take no arguments: ``act_layer()``.
- Normalisation constructors take the channel count: ``norm_layer(channels)``.
"""

from __future__ import annotations

import logging
from functools import partial
from types import MappingProxyType
from typing import Callable, Mapping, NoReturn

import torch.nn as nn
from timm.layers import get_act_layer as timm_get_act_layer
from timm.layers import get_norm_layer as timm_get_norm_layer

from ..core import LOGGER_NAME, LogStyle
from ..exceptions import ConfigurationError

logger = logging.getLogger(LOGGER_NAME)

ActLayer = Callable[[], nn.Module]
NormLayer = Callable[[int], nn.Module]


def _identity_norm(channels: int) -> nn.Module:
    return nn.Identity()


# canopy name -> timm name
_ACT_ALIASES: Mapping[str, str] = MappingProxyType({"hardswish": "hard_swish"})

_LOCAL_NORMS: Mapping[str, NormLayer] = MappingProxyType(
    {
        "instancenorm": partial(nn.InstanceNorm2d, affine=True),
        "identity": _identity_norm,
    }
)


def get_act_layer(name: str) -> ActLayer:
    """
    Resolve an activation identifier.

    Args:
        name: A timm activation name, or 'hardswish' (case-insensitive).

    Returns:
        Zero-argument activation constructor.

    Raises:
        ConfigurationError: If timm does not know the identifier.
    """
    key = name.lower()
    try:
        layer = timm_get_act_layer(_ACT_ALIASES.get(key, key)) if key else None
    except KeyError:
        layer = None
    if layer is None:
        _unknown("activation", name)
    return layer


def get_norm_layer(name: str) -> NormLayer:
    """
    Resolve a normalisation identifier.

    Args:
        name: 'instancenorm', 'identity' or a timm normalisation name such as
            'batchnorm', 'groupnorm' or 'layernorm2d' (case-insensitive).

    Returns:
        Normalisation constructor taking the channel count.

    Raises:
        ConfigurationError: If the identifier is unknown.
    """
    key = name.lower()
    if key in _LOCAL_NORMS:
        return _LOCAL_NORMS[key]
    try:
        layer = timm_get_norm_layer(key) if key else None
    except KeyError:
        layer = None
    if layer is None:
        _unknown("normalisation", name)
    return layer


def _unknown(what: str, name: str) -> NoReturn:
    error_msg = f"Unknown {what} '{name}'"
    logger.error(f" {LogStyle.FAILURE} {error_msg}")
    raise ConfigurationError(error_msg)

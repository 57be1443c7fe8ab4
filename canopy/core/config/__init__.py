"""
Configuration Package Initialization.

Provides a unified, flat public API for configuration components while
avoiding eager imports of pydantic until a schema is actually used.

Architecture:

- Lazy Import Pattern (PEP 562): Uses __getattr__ for on-demand loading
- Flat API: All configs accessible from canopy.core.config namespace
- Caching: Loaded attributes cached in globals() for performance

Example:
    >>> from canopy.core.config import NetworkConfig, BlockConfig
    >>> cfg = NetworkConfig(name="resnext50_32x4d")
"""

from importlib import import_module
from typing import Any

__all__ = [
    "NetworkConfig",
    "DenseConfig",
    "BlockConfig",
    "AttentionConfig",
    "DropRatesConfig",
    "StemConfig",
    "ClassifierConfig",
]

# LAZY IMPORTS MAPPING
_PKG = "canopy.core.config"
_HEAD_MOD = f"{_PKG}.head_config"
_BLOCK_MOD = f"{_PKG}.block_config"
_MANIFEST_MOD = f"{_PKG}.manifest"

_LAZY_IMPORTS: dict[str, str] = {
    "NetworkConfig": _MANIFEST_MOD,
    "DenseConfig": _MANIFEST_MOD,
    "BlockConfig": _BLOCK_MOD,
    "AttentionConfig": _BLOCK_MOD,
    "DropRatesConfig": f"{_PKG}.regularization_config",
    "StemConfig": _HEAD_MOD,
    "ClassifierConfig": _HEAD_MOD,
}


# LAZY LOADER FUNCTION
def __getattr__(name: str) -> Any:
    """
    Lazily import configuration components on first access.

    Args:
        name: Name of the configuration class to import.

    Returns:
        The requested configuration class.

    Raises:
        AttributeError: If name is not in the public API (__all__).
    """
    if name not in _LAZY_IMPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module = import_module(_LAZY_IMPORTS[name])
    attr = getattr(module, name)

    globals()[name] = attr
    return attr


# DIR SUPPORT
def __dir__() -> list[str]:
    """
    Support for dir() and IDE auto-completion.
    """
    return sorted(__all__)

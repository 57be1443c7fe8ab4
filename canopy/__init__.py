"""
Canopy: residual and dense CNN architectures assembled from typed recipes.

Top-level convenience API re-exporting the most commonly used components
from subpackages, so users and the ``canopy`` CLI can write:

    from canopy import NetworkConfig, get_model, resnet, assemble_stages
"""

from importlib.metadata import version as _pkg_version

__version__ = _pkg_version("canopy")

from .architectures import (
    Network,
    assemble_stages,
    available_models,
    build_densenet,
    build_network,
    build_resnet,
    build_resnext,
    build_seresnet,
    build_seresnext,
    densenet,
    get_model,
    resnet,
)
from .blocks import BlockKind, BlockSpec, build_block, expansion_factor
from .core import (
    LOGGER_NAME,
    BlockConfig,
    Logger,
    LogStyle,
    NetworkConfig,
    log_forward_check,
    log_network_summary,
)
from .exceptions import CanopyError, ConfigurationError
from .layers import DownsampleStrategy, conv_norm, resnet_stem, select_downsample

__all__ = [
    "__version__",
    # Core
    "NetworkConfig",
    "BlockConfig",
    "LOGGER_NAME",
    "Logger",
    "LogStyle",
    "log_network_summary",
    "log_forward_check",
    # Exceptions
    "CanopyError",
    "ConfigurationError",
    # Layers
    "conv_norm",
    "DownsampleStrategy",
    "select_downsample",
    "resnet_stem",
    # Blocks
    "BlockKind",
    "BlockSpec",
    "build_block",
    "expansion_factor",
    # Architectures
    "assemble_stages",
    "Network",
    "build_network",
    "resnet",
    "build_resnet",
    "build_resnext",
    "build_seresnet",
    "build_seresnext",
    "densenet",
    "build_densenet",
    "get_model",
    "available_models",
]

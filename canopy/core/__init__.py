"""
Core Utilities Package

Exposes the configuration schemas, logging utilities, YAML I/O and the
project-wide constants shared by every architecture builder.
"""

# Configuration
from .config import (
    AttentionConfig,
    BlockConfig,
    ClassifierConfig,
    DenseConfig,
    DropRatesConfig,
    NetworkConfig,
    StemConfig,
)

# Constants
from .constants import (
    LOGGER_NAME,
    MAX_STAGES,
    RESNET_STAGE_CHANNELS,
    STEM_STRIDE,
    SUPPORTED_OUTPUT_STRIDES,
)

# Input/Output Utilities
from .io import load_config_from_yaml, save_config_as_yaml

# Logging
from .logger import (
    Logger,
    LogStyle,
    count_parameters,
    log_forward_check,
    log_network_summary,
)

__all__ = [
    # Configuration
    "NetworkConfig",
    "DenseConfig",
    "BlockConfig",
    "AttentionConfig",
    "DropRatesConfig",
    "StemConfig",
    "ClassifierConfig",
    # Constants
    "LOGGER_NAME",
    "STEM_STRIDE",
    "SUPPORTED_OUTPUT_STRIDES",
    "RESNET_STAGE_CHANNELS",
    "MAX_STAGES",
    # I/O
    "save_config_as_yaml",
    "load_config_from_yaml",
    # Logging
    "Logger",
    "LogStyle",
    "count_parameters",
    "log_network_summary",
    "log_forward_check",
]

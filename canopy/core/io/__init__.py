"""
Input/Output & Persistence Utilities.

YAML recipe serialization for network configurations.
"""

from .serialization import load_config_from_yaml, save_config_as_yaml

__all__ = [
    "save_config_as_yaml",
    "load_config_from_yaml",
]

"""
Canopy Exception Hierarchy.

CanopyError (base, Exception)
└── ConfigurationError(CanopyError, ValueError)   ← architecture/config validation

ConfigurationError multi-inherits from ValueError so callers can keep
catching the builtin type around model construction.
"""


class CanopyError(Exception):
    """Base exception for all Canopy errors."""


class ConfigurationError(CanopyError, ValueError):
    """Invalid architecture configuration, detected before any layer is built."""

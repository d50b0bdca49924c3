"""
Configuration management for the signal relay.

Defaults live in frozen dataclasses; the loader layers the YAML file,
environment variables and explicit overrides on top of them.
"""

from .defaults import RelayConfig, get_default_config
from .loader import ConfigLoader, build_config
from .validation import ConfigValidator, ValidationError

__all__ = [
    "RelayConfig",
    "get_default_config",
    "ConfigLoader",
    "build_config",
    "ConfigValidator",
    "ValidationError",
]

"""
Logging configuration and utilities for the signal relay.
"""
from .config import LOG_LEVELS, configure_logging, get_logger

__all__ = ["LOG_LEVELS", "configure_logging", "get_logger"]

"""Utility functions and classes."""

from redeploy.utils.paths import expand_path
from redeploy.utils.logging import get_logger, setup_logging

__all__ = ["expand_path", "get_logger", "setup_logging"]

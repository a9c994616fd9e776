"""Utilities."""

from .logger import console, print_banner, print_result, setup_logging

__all__ = ["console", "print_banner", "print_result", "setup_logging"]

"""Terminal user interface."""

from .app import VercoApp

__all__ = ["VercoApp"]

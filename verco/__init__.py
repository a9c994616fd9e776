"""Verco - keyboard driven version control in the terminal."""

__version__ = "0.1.0"

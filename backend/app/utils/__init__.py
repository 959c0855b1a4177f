"""Utility modules for the serial reader backend."""

from .text import safe_truncate

__all__ = ["safe_truncate"]

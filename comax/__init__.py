"""Comax translation management console."""

__version__ = "0.1.0"

"""Hybrid spell checking for presentation speaker notes."""

__version__ = "0.1.0"

"""Pocket Reader: a terminal client for a Pocket reading list."""

__version__ = "0.1.0"

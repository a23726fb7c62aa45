"""Substitute-teacher coverage tracking service."""

__version__ = "0.1.0"

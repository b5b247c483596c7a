"""Utility functions and classes for cosistore."""

from cosistore.utils import logging

__all__ = ("logging",)

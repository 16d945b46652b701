"""Vegan restaurant discovery for Spain: search API, map discovery engine and chat guide."""

__version__ = "0.1.0"

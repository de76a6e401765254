"""Proximity search and eco-friendly parking recommendations for Melbourne."""

__version__ = "0.1.0"

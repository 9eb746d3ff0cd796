"""Metrics exporter driven by a live-reloading properties file."""

__version__ = "0.1.0"

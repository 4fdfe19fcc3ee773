"""GEET: helpers for Google Earth Engine image processing."""

__version__ = "0.1.0"

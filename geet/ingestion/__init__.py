"""Ingestion package: Earth Engine session, sensor registry, indices and loaders."""

from .eemanager import EarthEngineManager, ee_manager
from .sensorspec import SensorSpec

__all__ = ["EarthEngineManager", "SensorSpec", "ee_manager"]

"""
Module `ingestion.sensorspec` defines the SensorSpec class, which encapsulates
sensor metadata (band aliases, collection ids per processing level, mosaic
display settings and cloud-mask strategy).
"""

import json
import os
from pathlib import Path
from typing import Optional

import ee

from geet.core.utils import normalize_sensor

_DEFAULT_SPEC_PATH = (
    Path(__file__).resolve().parent.parent / "resources" / "sensor_specs.json"
)


class SensorSpec:
    """
    Holds metadata for a sensor (bands, collection ids, mask strategy).
    """

    _registry: Optional[dict] = None

    def __init__(
        self,
        name: str,
        bands: dict,
        collections: dict,
        index_suite: str | None = None,
        mosaic_collection: str | None = None,
        cloud_property: str | None = None,
        mosaic_vis: dict | None = None,
        cloud_mask_config: dict | None = None,
        thermal_constants: dict | None = None,
        description: str = "",
    ):
        self.name = name
        self.bands = bands
        self.collections = collections
        self.index_suite = index_suite
        self.mosaic_collection = mosaic_collection
        self.cloud_property = cloud_property
        self.mosaic_vis = mosaic_vis or {}
        self.cloud_mask_config = cloud_mask_config or {"method": "none"}
        self.thermal_constants = thermal_constants or {}
        self.description = description

    def __repr__(self) -> str:
        return f"SensorSpec({self.name!r})"

    def band(self, alias: str) -> str:
        """Return the band id for a lower-case alias such as ``'nir'``."""
        key = alias.lower()
        if key not in self.bands:
            raise ValueError(
                f"Sensor {self.name} has no '{alias}' band. "
                f"Choose from: {sorted(self.bands)}"
            )
        return self.bands[key]

    def collection(self, level: str) -> str:
        """Return the collection id for a processing level (raw, toa, sr)."""
        key = level.lower()
        if key not in self.collections:
            raise ValueError(
                f"Collection type '{level}' is not available for {self.name}. "
                f"Choose from: {sorted(self.collections)}"
            )
        return self.collections[key]

    def cloud_mask(self, img: ee.Image) -> ee.Image:
        """
        Apply the sensor's cloud mask.
        Supports 'qa_bits'; sensors configured with 'none' are returned unchanged.
        """
        method = self.cloud_mask_config.get("method", "none").lower()
        if method == "qa_bits":
            exclude_mask = sum(self.cloud_mask_config.get("exclude", []))
            qa = img.select(self.cloud_mask_config["band"])
            valid = qa.bitwiseAnd(exclude_mask).eq(0)
            return img.updateMask(valid)
        return img

    @classmethod
    def _load_registry(cls) -> dict:
        """Load sensor specs from resources/sensor_specs.json (or GEET_SENSOR_SPECS)."""
        if cls._registry is None:
            spec_file = os.getenv("GEET_SENSOR_SPECS") or _DEFAULT_SPEC_PATH
            with open(spec_file, "r", encoding="utf-8") as f:
                cls._registry = json.load(f)
        return cls._registry

    @classmethod
    def names(cls) -> list[str]:
        """Return the registered sensor keys."""
        return list(cls._load_registry())

    @classmethod
    def from_name(cls, name: str) -> "SensorSpec":
        """
        Factory method: create a SensorSpec from a sensor key ('L5', 'L7', 'L8', 'S2').
        """
        key = normalize_sensor(name)
        registry = cls._load_registry()
        spec = registry.get(key)
        if spec is None:
            raise ValueError(
                f"Wrong sensor '{name}'. Choose between {', '.join(registry)}"
            )
        return cls(
            name=key,
            bands={k.lower(): v for k, v in spec["bands"].items()},
            collections=spec.get("collections", {}),
            index_suite=spec.get("index_suite"),
            mosaic_collection=spec.get("mosaic_collection"),
            cloud_property=spec.get("cloud_property"),
            mosaic_vis=spec.get("mosaic_vis"),
            cloud_mask_config=spec.get("cloud_mask"),
            thermal_constants=spec.get("thermal_constants"),
            description=spec.get("description", ""),
        )


def resolve_sensor(sensor) -> SensorSpec:
    """Accept either a SensorSpec or a sensor key and return a SensorSpec."""
    if isinstance(sensor, SensorSpec):
        return sensor
    return SensorSpec.from_name(sensor)

"""
Module `ingestion.indices` provides spectral index computation by loading
formulas from `resources/index_formulas.json`.

Formulas are grouped in suites. The ``landsat`` suite holds the indices that
work across Landsat 5/7/8 and Sentinel-2; the ``sentinel2`` suite holds the
larger Sentinel-2 catalogue. Formulas reference lower-case band aliases which
each :class:`SensorSpec` maps to its own band ids.
"""

import json
import os
from functools import partial
from pathlib import Path

import ee

from .sensorspec import SensorSpec, resolve_sensor

_FORMULA_PATH = os.getenv("GEET_INDEX_FORMULAS") or (
    Path(__file__).resolve().parent.parent / "resources" / "index_formulas.json"
)
with open(_FORMULA_PATH, "r", encoding="utf-8") as _f:
    INDEX_REGISTRY: dict = json.load(_f)

LANDSAT_SENSORS = ("L5", "L7", "L8", "S2")


def _suite(name: str) -> dict:
    if name not in INDEX_REGISTRY:
        raise ValueError(
            f"Index suite '{name}' not found. Choose from: {list(INDEX_REGISTRY)}"
        )
    return INDEX_REGISTRY[name]


def available_indices(sensor, suite: str | None = None) -> list[str]:
    """Return the index keys of *suite* that can be computed for *sensor*."""
    spec = resolve_sensor(sensor)
    suite_name = suite or spec.index_suite
    if suite_name is None:
        return []
    return [
        key
        for key, formula in _suite(suite_name).items()
        if spec.name not in formula.get("exclude_sensors", [])
    ]


def compute_index(
    img: ee.Image, index: str, sensor, suite: str | None = None
) -> ee.Image:
    """
    Compute a named spectral index on the given EE Image.

    Args:
        img: ee.Image carrying the sensor's native band names.
        index: key of the formula (case-insensitive), e.g. 'ndvi' or 'logR'.
        sensor: SensorSpec or sensor key used to resolve band aliases.
        suite: formula suite; defaults to the sensor's own suite.

    Returns:
        ee.Image with a single band named after the index (e.g. 'NDVI').
    """
    spec: SensorSpec = resolve_sensor(sensor)
    formulas = _suite(suite or spec.index_suite or "landsat")
    key = index.lower()
    formula = formulas.get(key)
    if formula is None or spec.name in formula.get("exclude_sensors", []):
        raise ValueError(
            f"Index '{index}' not supported for {spec.name}. "
            f"Choose from: {available_indices(spec, suite)}"
        )

    if "normalized_difference" in formula:
        first, second = formula["normalized_difference"]
        result = img.normalizedDifference([spec.band(first), spec.band(second)])
    else:
        # Alias tokens are upper-cased in the formula text
        token_map = {
            alias.upper(): img.select(spec.band(alias)) for alias in formula["bands"]
        }
        token_map.update(formula.get("params", {}))
        result = img.expression(formula["expr"], token_map)

    post = formula.get("post")
    if post == "log":
        result = result.log()
    elif post == "sqrt":
        result = result.sqrt()
    return result.rename(formula["name"])


def _add_indices(img: ee.Image, sensor, index, suite: str) -> ee.Image:
    if index is not None:
        return img.addBands(compute_index(img, index, sensor, suite=suite))
    bands = [
        compute_index(img, key, sensor, suite=suite)
        for key in available_indices(sensor, suite=suite)
    ]
    return img.addBands(ee.Image.cat(bands))


def landsat_indices(img: ee.Image, sensor: str, index: str | None = None) -> ee.Image:
    """
    Add NDVI, NDWI, NDBI, NRVI, EVI, SAVI and GOSAVI to a Landsat 5/7/8 or
    Sentinel-2 image.

    When ``index`` is given only that band is added; otherwise every index
    available for the sensor is added (NRVI is not defined for S2).
    """
    spec = resolve_sensor(sensor)
    if spec.name not in LANDSAT_SENSORS:
        raise ValueError(
            f"Wrong sensor '{sensor}'. Choose between {', '.join(LANDSAT_SENSORS)}"
        )
    return _add_indices(img, spec, index, "landsat")


def sentinel2_indices(img: ee.Image, index: str | None = None) -> ee.Image:
    """Add one (or all) of the Sentinel-2 indices to a Sentinel-2 image."""
    return _add_indices(img, SensorSpec.from_name("S2"), index, "sentinel2")


def add_ndvi(img: ee.Image, sensor: str) -> ee.Image:
    """Return *img* with an extra ``NDVI`` band for the given sensor."""
    return img.addBands(compute_index(img, "ndvi", sensor, suite="landsat"))


ndvi_l5 = partial(add_ndvi, sensor="L5")
ndvi_l7 = partial(add_ndvi, sensor="L7")
ndvi_l8 = partial(add_ndvi, sensor="L8")
ndvi_s2 = partial(add_ndvi, sensor="S2")

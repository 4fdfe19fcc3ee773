"""Least-cloudy-on-top mosaics for Landsat, Sentinel-2 and MODIS NDVI."""

from __future__ import annotations

from functools import partial

import ee

from geet.core.logger import Logger
from .sensorspec import SensorSpec, resolve_sensor

logger = Logger.get_logger(__name__)

MOSAIC_SENSORS = ("L5", "L7", "L8", "S2")
MODIS_NDVI_SCALE = 0.0001


def mosaic(sensor, start_date, end_date, roi=None) -> ee.Image:
    """
    Build a mosaic for *sensor* between two dates.

    Scenes are sorted by cloud cover in descending order so the clearest
    scene ends up on top of the mosaic.
    """
    spec: SensorSpec = resolve_sensor(sensor)
    if spec.name not in MOSAIC_SENSORS:
        raise ValueError(
            f"Wrong sensor '{sensor}'. Choose between {', '.join(MOSAIC_SENSORS)}"
        )
    coll = ee.ImageCollection(spec.mosaic_collection)
    if roi is not None:
        coll = coll.filterBounds(roi)
    coll = coll.filterDate(ee.Date(start_date), ee.Date(end_date)).sort(
        spec.cloud_property, False
    )
    logger.debug("Mosaicking %s from %s to %s", spec.name, start_date, end_date)
    return coll.mosaic()


s2_mosaic = partial(mosaic, "S2")
landsat5_mosaic = partial(mosaic, "L5")
landsat7_mosaic = partial(mosaic, "L7")
landsat8_mosaic = partial(mosaic, "L8")


def _rescale_ndvi(img: ee.Image) -> ee.Image:
    rescaled = img.select("NDVI").multiply(MODIS_NDVI_SCALE).rename("NDVI_rescaled")
    return img.addBands(rescaled)


def modis_ndvi_mosaic(start_date, end_date, roi=None) -> ee.Image:
    """Mosaic of the MOD13Q1 NDVI product rescaled to [-1, 1] (``NDVI_rescaled``)."""
    spec = SensorSpec.from_name("MODIS")
    coll = ee.ImageCollection(spec.mosaic_collection).filterDate(
        ee.Date(start_date), ee.Date(end_date)
    )
    if roi is not None:
        coll = coll.filterBounds(roi)
    return coll.map(_rescale_ndvi).select("NDVI_rescaled").mosaic()


def mosaic_vis_params(sensor) -> dict:
    """Return the display parameters used for *sensor* mosaics."""
    return dict(resolve_sensor(sensor).mosaic_vis)

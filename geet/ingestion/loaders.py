"""
Scene loaders: quick Landsat test images, Sentinel-2 product lookup and
WRS path/row collections.
"""

from __future__ import annotations

import ee

from geet.core.logger import Logger
from .sensorspec import SensorSpec, resolve_sensor

logger = Logger.get_logger(__name__)

DEFAULT_ROI = (-43.25, -22.90)
PATH_ROW_SENSORS = ("L5", "L7", "L8")

# Display stretch for the RGB composite of each processing level
_VIS_PARAMS = {
    "raw": {"bands": ["B4", "B3", "B2"], "min": 6809, "max": 12199},
    "toa": {"bands": ["B4", "B3", "B2"], "max": 0.3},
    "sr": {"bands": ["SR_B4", "SR_B3", "SR_B2"], "min": 7273, "max": 18182},
}


def _landsat_for_year(year: int) -> SensorSpec:
    if year >= 2013:
        return SensorSpec.from_name("L8")
    if 1985 <= year < 2013:
        return SensorSpec.from_name("L5")
    raise ValueError(f"Wrong year parameter {year}: Landsat archive starts in 1985")


def _level(collection: str) -> str:
    level = str(collection).lower()
    if level not in _VIS_PARAMS:
        raise ValueError(
            f"Wrong collection type '{collection}'. "
            "Possible inputs: 'RAW', 'TOA' or 'SR'."
        )
    return level


def image_vis_params(collection: str = "TOA") -> dict:
    """Return RGB display parameters matching a ``load_image`` collection type."""
    return dict(_VIS_PARAMS[_level(collection)])


def load_image(
    collection: str = "TOA",
    year: int = 2015,
    roi=None,
    cloud_free: bool = True,
) -> ee.Image:
    """
    Return a Landsat image of *roi* for a calendar year, handy for testing code.

    Landsat 8 is used from 2013 onwards and Landsat 5 for 1985-2012. With
    ``cloud_free`` and a TOA collection the result is the median of the
    cloud-masked scenes; otherwise the least cloudy scene is returned.
    """
    level = _level(collection)
    sensor = _landsat_for_year(int(year))
    if roi is None:
        roi = ee.Geometry.Point(*DEFAULT_ROI)

    coll = (
        ee.ImageCollection(sensor.collection(level))
        .filterBounds(roi)
        .filterDate(f"{year}-01-01", f"{int(year) + 1}-01-01")
        .sort("CLOUD_COVER")
    )
    if cloud_free and level == "toa":
        result = coll.map(sensor.cloud_mask).median()
    else:
        result = ee.Image(coll.first())
    logger.info("Loaded %s %s image for %s", sensor.name, level.upper(), year)
    return result


def load_s2_by_id(product_id: str) -> ee.ImageCollection:
    """
    Filter the Sentinel-2 collection by the Product ID obtained from the
    Copernicus Open Access Hub.
    """
    s2 = SensorSpec.from_name("S2")
    return ee.ImageCollection(s2.collection("toa")).filter(
        ee.Filter.eq("PRODUCT_ID", product_id)
    )


def load_by_path_row(
    sensor: str,
    path: int,
    row: int,
    start_date: str,
    end_date: str,
    collection: str = "raw",
) -> ee.ImageCollection:
    """Return a Landsat collection for one WRS-2 path/row and date range."""
    spec = resolve_sensor(sensor)
    if spec.name not in PATH_ROW_SENSORS:
        raise ValueError(
            f"Wrong sensor '{sensor}'. Choose between {', '.join(PATH_ROW_SENSORS)}"
        )
    level = str(collection).lower() if collection is not None else "raw"
    if level not in ("raw", "toa", "sr"):
        raise ValueError(
            'Choose between "raw", "toa" or "sr" for the collection type!'
        )
    return (
        ee.ImageCollection(spec.collection(level))
        .filterDate(ee.Date(start_date), ee.Date(end_date))
        .filter(ee.Filter.eq("WRS_PATH", path))
        .filter(ee.Filter.eq("WRS_ROW", row))
    )


def cloud_mask(image: ee.Image, sensor: str = "L8") -> ee.Image:
    """Mask clouds and cloud shadows using the sensor's QA band."""
    if image is None:
        raise ValueError("You need to specify an input image.")
    return resolve_sensor(sensor).cloud_mask(image)

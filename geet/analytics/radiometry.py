"""
Radiometric conversions for Landsat: DN to TOA radiance/reflectance, solar
angle correction, brightness temperature and the land surface temperature
chain (proportion of vegetation, emissivity, LST). Also holds resampling
helpers.

Formulas (Landsat Level-1 product guide)::

    L  = ML * Qcal + AL            TOA spectral radiance
    p' = Mp * Qcal + Ap            TOA reflectance without sun angle
    p  = p' / sin(SE) = p' / cos(SZ),  SZ = 90 - SE
    T  = K2 / ln(K1 / L + 1)       brightness temperature (K)
"""

from __future__ import annotations

import math

import ee

from geet.core.logger import Logger
from geet.ingestion.sensorspec import resolve_sensor

logger = Logger.get_logger(__name__)

KELVIN_OFFSET = 273.15
SOLAR_ANGLE_MODES = ("SE", "SZ")

# Planck * speed of light / Boltzmann, in micrometre kelvin
RHO = 14380
NDVI_SOIL = 0.05
NDVI_VEGETATION = 0.7


def _band_name(band) -> str:
    return f"B{band}"


def toa_radiance(image: ee.Image, band) -> ee.Image:
    """Add a ``TOA_Radiance`` band computed from band number *band*."""
    dn = image.select(_band_name(band))
    radiance = dn.expression(
        "(Ml * band) + Al",
        {
            "Ml": ee.Number(image.get(f"RADIANCE_MULT_BAND_{band}")),
            "Al": ee.Number(image.get(f"RADIANCE_ADD_BAND_{band}")),
            "band": dn,
        },
    ).rename("TOA_Radiance")
    return image.addBands(radiance)


def _raw_reflectance(image: ee.Image, band) -> ee.Image:
    dn = image.select(_band_name(band))
    return dn.expression(
        "(Mp * image) + Ap",
        {
            "Mp": ee.Number(image.get(f"REFLECTANCE_MULT_BAND_{band}")),
            "Ap": ee.Number(image.get(f"REFLECTANCE_ADD_BAND_{band}")),
            "image": dn,
        },
    )


def toa_reflectance(image: ee.Image, band) -> ee.Image:
    """
    Return TOA planetary reflectance of *band*, without sun angle correction,
    as a single band named ``B<n>_TOA_Reflectance``.
    """
    return _raw_reflectance(image, band).rename(f"{_band_name(band)}_TOA_Reflectance")


def toa_reflectance_l8(image: ee.Image, band, solar_angle: str = "SZ") -> ee.Image:
    """
    Landsat 8 TOA reflectance corrected for the sun angle.

    ``solar_angle`` is 'SE' (local sun elevation) or 'SZ' (local solar
    zenith). Any other value is reported and 'SZ' is used.
    """
    mode = str(solar_angle).upper() if solar_angle is not None else "SZ"
    if mode not in SOLAR_ANGLE_MODES:
        logger.warning(
            "Solar angle mode '%s' unknown; use 'SE' for the local sun elevation "
            "angle or 'SZ' for the local solar zenith angle. Falling back to 'SZ'.",
            solar_angle,
        )
        mode = "SZ"

    reflectance = _raw_reflectance(image, band)
    sun_elevation = ee.Number(image.get("SUN_ELEVATION"))
    if mode == "SE":
        factor = sun_elevation.multiply(math.pi / 180).sin()
    else:
        factor = ee.Number(90).subtract(sun_elevation).multiply(math.pi / 180).cos()
    return reflectance.divide(factor).rename(f"TOA_Reflectance_{mode}")


def brightness_temperature(image: ee.Image, sensor: str, unit: str = "K") -> ee.Image:
    """
    Add a ``Brightness_Temperature`` band derived from the ``TOA_Radiance`` band.

    Landsat 5 and 7 use fixed thermal constants; Landsat 8 reads band 10's
    constants from the scene metadata. ``unit`` is 'K' or 'C'.
    """
    spec = resolve_sensor(sensor)
    if not spec.thermal_constants:
        raise ValueError(f"Sensor {spec.name} has no thermal constants")
    if unit.upper() not in ("K", "C"):
        raise ValueError(f"Unit must be 'K' or 'C', got '{unit}'")

    k1, k2 = spec.thermal_constants["K1"], spec.thermal_constants["K2"]
    # String constants name scene metadata properties
    if isinstance(k1, str):
        k1 = ee.Number(image.get(k1))
    if isinstance(k2, str):
        k2 = ee.Number(image.get(k2))

    ratio_log = image.expression(
        "K1 / L + 1", {"K1": k1, "L": image.select("TOA_Radiance")}
    ).log()
    temperature = image.expression(
        "K2 / ratio_log", {"K2": k2, "ratio_log": ratio_log}
    ).rename("Brightness_Temperature")
    if unit.upper() == "C":
        temperature = temperature.subtract(KELVIN_OFFSET)
    return image.addBands(temperature)


def brightness_temp_l5_k(image):
    return brightness_temperature(image, "L5", "K")


def brightness_temp_l5_c(image):
    return brightness_temperature(image, "L5", "C")


def brightness_temp_l7_k(image):
    return brightness_temperature(image, "L7", "K")


def brightness_temp_l7_c(image):
    return brightness_temperature(image, "L7", "C")


def brightness_temp_l8_k(image):
    return brightness_temperature(image, "L8", "K")


def brightness_temp_l8_c(image):
    return brightness_temperature(image, "L8", "C")


def prop_veg(image: ee.Image) -> ee.Image:
    """Add the proportion of vegetation (``propVeg``) from an ``NDVI`` band."""
    ndvi = image.select("NDVI")
    pv = ndvi.expression(
        "((ndvi - ndvi_min) / (ndvi_max - ndvi_min)) ** 2",
        {"ndvi_max": NDVI_VEGETATION, "ndvi_min": NDVI_SOIL, "ndvi": ndvi},
    ).rename("propVeg")
    return image.addBands(pv)


def land_surface_emissivity(image: ee.Image) -> ee.Image:
    """Add the land surface emissivity (``LSE``) from a ``propVeg`` band."""
    lse = image.expression(
        "(0.004 * pv_img) + 0.986", {"pv_img": image.select("propVeg")}
    ).rename("LSE")
    return image.addBands(lse)


def land_surface_temperature(image: ee.Image, wavelength: float = 10.8) -> ee.Image:
    """
    Add the land surface temperature (``LST``).

    Needs ``Brightness_Temperature`` and ``LSE`` bands. ``wavelength`` is the
    centre of the thermal band in micrometres (10.8 for Landsat 8 band 10).
    """
    lst = image.expression(
        "BT / (1 + (w * BT / p) * lse_log)",
        {
            "BT": image.select("Brightness_Temperature"),
            "w": wavelength,
            "p": RHO,
            "lse_log": image.select("LSE").log(),
        },
    ).rename("LST")
    return image.addBands(lst)


def resample(image: ee.Image, scale: float, ref_band: str = "B2") -> ee.Image:
    """Bilinear resample of *image* to *scale* metres in the CRS of *ref_band*."""
    band = image.select(ref_band)
    return image.resample("bilinear").reproject(
        crs=band.projection().crs(), scale=scale
    )


def resample_band(band: ee.Image, scale: float) -> ee.Image:
    """Bilinear resample of a single-band image to *scale* metres."""
    return band.resample("bilinear").reproject(
        crs=band.projection().crs(), scale=scale
    )

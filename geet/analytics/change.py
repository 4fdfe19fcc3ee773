"""Threshold-based change detection between two dates of the same sensor."""

from __future__ import annotations

import ee

from geet.ingestion.indices import compute_index

CHANGE_INDICES = ("ndvi", "ndwi", "ndbi")


def simple_change_detection(
    img1: ee.Image, img2: ee.Image, sensor: str, index: str, threshold: float
) -> ee.Image:
    """
    Flag pixels whose index is greater than or equal to *threshold* in each
    image and return the sum of both flags.

    The result is 0 (below threshold in both), 1 (above in one date) or 2
    (above in both); ``class_vis_params(3)`` or ``change_vis_params()``
    display it well.
    """
    key = index.lower()
    if key not in CHANGE_INDICES:
        raise ValueError(
            f"Index '{index}' not supported. Choose from: {list(CHANGE_INDICES)}"
        )
    first = compute_index(img1, key, sensor, suite="landsat")
    second = compute_index(img2, key, sensor, suite="landsat")
    band = key.upper()
    first_mask = first.select(band).gte(threshold)
    second_mask = second.select(band).gte(threshold)
    return first_mask.add(second_mask).rename(f"{band}_change")


def simple_ndvi_change_detection(img1, img2, sensor, threshold):
    """NDVI flavour of :func:`simple_change_detection`."""
    return simple_change_detection(img1, img2, sensor, "ndvi", threshold)


def simple_ndwi_change_detection(img1, img2, sensor, threshold):
    """NDWI flavour of :func:`simple_change_detection`."""
    return simple_change_detection(img1, img2, sensor, "ndwi", threshold)


def simple_ndbi_change_detection(img1, img2, sensor, threshold):
    """NDBI flavour of :func:`simple_change_detection`."""
    return simple_change_detection(img1, img2, sensor, "ndbi", threshold)

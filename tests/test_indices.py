"""
Tests for spectral index computation from the formula registry.
"""

# pylint: disable=W0621,W0613

import pytest
import ee

from geet.ingestion.indices import (
    INDEX_REGISTRY,
    add_ndvi,
    available_indices,
    compute_index,
    landsat_indices,
    ndvi_l5,
    ndvi_s2,
    sentinel2_indices,
)


def test_registry_has_both_suites():
    assert {"landsat", "sentinel2"} <= set(INDEX_REGISTRY)
    for suite in INDEX_REGISTRY.values():
        for formula in suite.values():
            assert "name" in formula
            assert "normalized_difference" in formula or "expr" in formula


def test_available_indices_respects_exclusions():
    l8 = available_indices("L8")
    assert l8 == list(INDEX_REGISTRY["landsat"])
    s2_landsat = available_indices("S2", suite="landsat")
    assert "nrvi" not in s2_landsat
    assert "ndvi" in s2_landsat
    assert "logr" in available_indices("S2")
    assert available_indices("MODIS") == []


def test_normalized_difference_uses_sensor_bands(image):
    ndvi = compute_index(image, "NDVI", "L8")
    assert ndvi.find("normalizedDifference")[0][0] == (["B5", "B4"],)
    assert ndvi.names()[-1] == "rename"
    assert ndvi.find("rename")[0][0] == ("NDVI",)

    ndvi5 = compute_index(image, "ndvi", "L5")
    assert ndvi5.find("normalizedDifference")[0][0] == (["B4", "B3"],)


def test_ndwi_differs_between_suites(image):
    landsat = compute_index(image, "ndwi", "S2", suite="landsat")
    sentinel = compute_index(image, "ndwi", "S2")
    assert landsat.find("normalizedDifference")[0][0] == (["B3", "B11"],)
    assert sentinel.find("normalizedDifference")[0][0] == (["B3", "B8"],)


def test_expression_index_maps_tokens(image):
    savi = compute_index(image, "savi", "L8")
    (expr, tokens), _ = savi.find("expression")[0]
    assert "(NIR + RED + L)" in expr
    assert tokens["L"] == pytest.approx(0.2)
    assert tokens["NIR"].find("select")[-1][0] == ("B5",)
    assert tokens["RED"].find("select")[-1][0] == ("B4",)
    assert savi.find("rename")[0][0] == ("SAVI",)


def test_post_operations(image):
    logr = compute_index(image, "logR", "S2")
    assert logr.names()[-2:] == ["log", "rename"]
    assert logr.find("rename")[0][0] == ("logR",)
    tvi = compute_index(image, "tvi", "S2")
    assert tvi.names()[-2:] == ["sqrt", "rename"]


def test_unknown_or_excluded_index_raises(image):
    with pytest.raises(ValueError, match="not supported"):
        compute_index(image, "foo", "L8")
    with pytest.raises(ValueError, match="not supported"):
        compute_index(image, "nrvi", "S2", suite="landsat")


def test_landsat_indices_single_and_all(image):
    single = landsat_indices(image, "L7", "evi")
    assert single.names()[-1] == "addBands"
    (band,), _ = single.find("addBands")[0]
    assert band.find("rename")[0][0] == ("EVI",)

    every = landsat_indices(image, "S2")
    (stack,), _ = every.find("addBands")[0]
    (bands,), _ = stack.find("FakeImage.cat")[0]
    assert len(bands) == len(INDEX_REGISTRY["landsat"]) - 1


def test_landsat_indices_rejects_other_sensors(image):
    with pytest.raises(ValueError, match="Wrong sensor"):
        landsat_indices(image, "MODIS")


def test_sentinel2_indices(image):
    every = sentinel2_indices(image)
    (stack,), _ = every.find("addBands")[0]
    (bands,), _ = stack.find("FakeImage.cat")[0]
    assert len(bands) == len(INDEX_REGISTRY["sentinel2"])

    one = sentinel2_indices(image, "mndwi")
    (band,), _ = one.find("addBands")[0]
    assert band.find("normalizedDifference")[0][0] == (["B3", "B12"],)


def test_ndvi_shortcuts(image):
    for func, bands in ((ndvi_l5, ["B4", "B3"]), (ndvi_s2, ["B8", "B4"])):
        out = func(image)
        (band,), _ = out.find("addBands")[0]
        assert band.find("normalizedDifference")[0][0] == (bands,)
    out = add_ndvi(image, "l8")
    (band,), _ = out.find("addBands")[0]
    assert band.find("normalizedDifference")[0][0] == (["B5", "B4"],)

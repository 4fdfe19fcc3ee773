"""Tests for threshold-based change detection."""

# pylint: disable=W0621,W0613

import pytest
import ee

from geet.analytics.change import (
    simple_change_detection,
    simple_ndbi_change_detection,
    simple_ndvi_change_detection,
    simple_ndwi_change_detection,
)


def test_change_sums_thresholded_indices():
    img1, img2 = ee.Image("t1"), ee.Image("t2")
    change = simple_ndvi_change_detection(img1, img2, "L8", 0.5)
    assert change.find("rename")[-1][0] == ("NDVI_change",)
    (second,), _ = change.find("add")[0]
    assert change.calls[0][1] == ("t1",)
    assert second.calls[0][1] == ("t2",)
    for flags in (change, second):
        assert flags.find("normalizedDifference")[0][0] == (["B5", "B4"],)
        assert flags.find("select")[-1][0] == ("NDVI",)
        assert flags.find("gte")[0][0] == (0.5,)


@pytest.mark.parametrize(
    "func, band, bands",
    [
        (simple_ndwi_change_detection, "NDWI", ["B2", "B5"]),
        (simple_ndbi_change_detection, "NDBI", ["B5", "B4"]),
    ],
)
def test_wrappers_use_their_index(func, band, bands):
    change = func(ee.Image("a"), ee.Image("b"), "L5", -0.1)
    assert change.find("rename")[-1][0] == (f"{band}_change",)
    assert change.find("normalizedDifference")[0][0] == (bands,)
    assert change.find("gte")[0][0] == (-0.1,)


def test_unknown_index_raises():
    with pytest.raises(ValueError):
        simple_change_detection(ee.Image("a"), ee.Image("b"), "L8", "evi", 0.2)

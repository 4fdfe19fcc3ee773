"""Tests for neighbourhood filters and per-pixel band statistics."""

import ee

from geet.analytics import filters, stats


def test_texture_and_majority(image):
    tex = filters.texture(image, 3)
    _, kwargs = tex.find("reduceNeighborhood")[0]
    assert kwargs["reducer"].names() == ["FakeReducer.stdDev"]
    assert kwargs["kernel"].find("FakeKernel.circle")[0][0] == (3,)

    maj = filters.majority(image, 2)
    _, kwargs = maj.find("reduceNeighborhood")[0]
    assert kwargs["reducer"].names() == ["FakeReducer.mode"]


def test_band_max_min(image):
    (reducer,), _ = stats.max(image).find("reduce")[0]
    assert reducer.names() == ["FakeReducer.max"]
    (reducer,), _ = stats.min(image).find("reduce")[0]
    assert reducer.names() == ["FakeReducer.min"]

"""Tests for the folium map wrapper."""

# pylint: disable=W0621,W0613,W0212

from types import SimpleNamespace

import folium
import pytest
import ee

from geet.visualization.map import GeetMap

TILE_URL = "https://earthengine.googleapis.com/v1/projects/p/maps/abc/tiles/{z}/{x}/{y}"


@pytest.fixture
def map_ids():
    """Vis params each layer was rendered with, in order."""
    return []


@pytest.fixture
def map_image(monkeypatch, map_ids):
    """A recording image that can also hand out tile URLs."""

    class MapImage(ee.Image):
        def getMapId(self, vis_params):  # pylint: disable=invalid-name
            map_ids.append(vis_params)
            return {"tile_fetcher": SimpleNamespace(url_format=TILE_URL)}

    monkeypatch.setattr(ee, "Image", MapImage)
    return MapImage("scene")


def test_plot_methods_add_layers(map_image, map_ids):
    m = GeetMap()
    m.plot_rgb(map_image).plot_ndvi(map_image, "ndvi").plot_ndwi(map_image)
    m.plot_class(map_image, 3).plot_change(map_image, "cd")
    assert m.layers == ["image_RGB", "ndvi", "NDWI", "class_final", "cd"]
    assert map_ids[0]["gamma"] == 1.6
    assert map_ids[3]["palette"] == ["ff0000", "009933", "0066ff"]
    assert map_ids[4]["max"] == 2


def test_plot_class_rejects_bad_count(map_image):
    with pytest.raises(ValueError):
        GeetMap().plot_class(map_image, 7)


def test_plot_clusters_adds_roi_and_clusters(map_image, map_ids):
    m = GeetMap().plot_clusters(map_image, "roi")
    assert m.layers == ["roi_kmeans", "clusters"]
    assert map_ids == [{}, {}]


def test_save_writes_html(tmp_path, map_image):
    out = (
        GeetMap(center=(0, 0), zoom=3)
        .add_ee_layer(map_image, {"min": 0}, "x")
        .save(tmp_path / "map.html")
    )
    html = out.read_text(encoding="utf-8")
    assert "earthengine.googleapis.com" in html


def test_save_adds_one_layer_control(tmp_path, map_image):
    m = GeetMap(center=(0, 0), zoom=3).add_ee_layer(map_image, {}, "x")
    m.save(tmp_path / "first.html")
    m.save(tmp_path / "second.html")
    controls = [
        c for c in m.map._children.values() if isinstance(c, folium.LayerControl)
    ]
    assert len(controls) == 1
    assert (tmp_path / "second.html").exists()

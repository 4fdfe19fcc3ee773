"""Folium map that renders Earth Engine images as tile layers."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

import ee
import folium
from folium.raster_layers import TileLayer

from geet.core.logger import Logger
from .palettes import (
    change_vis_params,
    class_vis_params,
    ndvi_vis_params,
    ndwi_vis_params,
    rgb_vis_params,
)

EE_ATTRIBUTION = "Map Data &copy; Google Earth Engine"


class GeetMap:
    """
    Thin wrapper around :class:`folium.Map`.

    Each ``plot_*`` method only adds a layer and returns ``self`` so calls
    can be chained; nothing is rendered until :meth:`save`.
    """

    def __init__(
        self,
        center: tuple[float, float] = (-22.90, -43.25),
        zoom: int = 9,
        logger=None,
        **kwargs,
    ):
        self.map = folium.Map(location=list(center), zoom_start=zoom, **kwargs)
        self.logger = logger or Logger.get_logger(__name__)
        self.layers: list[str] = []
        self._layer_control = False

    def add_ee_layer(
        self, image: ee.Image, vis_params: Mapping | None = None, name: str = "layer"
    ) -> "GeetMap":
        """Add *image* as a tile layer styled with *vis_params*."""
        map_id = image.getMapId(dict(vis_params or {}))
        TileLayer(
            tiles=map_id["tile_fetcher"].url_format,
            attr=EE_ATTRIBUTION,
            name=name,
            overlay=True,
            control=True,
        ).add_to(self.map)
        self.layers.append(name)
        self.logger.debug("Added EE layer %s", name)
        return self

    def plot_rgb(self, image: ee.Image, title: str = "image_RGB") -> "GeetMap":
        return self.add_ee_layer(image, rgb_vis_params(), title)

    def plot_ndvi(self, image: ee.Image, title: str = "NDVI") -> "GeetMap":
        return self.add_ee_layer(image, ndvi_vis_params(), title)

    def plot_ndwi(self, image: ee.Image, title: str = "NDWI") -> "GeetMap":
        return self.add_ee_layer(image, ndwi_vis_params(), title)

    def plot_class(
        self, image: ee.Image, num_classes: int, title: str = "class_final"
    ) -> "GeetMap":
        return self.add_ee_layer(image, class_vis_params(num_classes), title)

    def plot_change(self, image: ee.Image, title: str = "change") -> "GeetMap":
        return self.add_ee_layer(image, change_vis_params(), title)

    def plot_clusters(
        self, result: ee.Image, roi, title: str = "clusters"
    ) -> "GeetMap":
        """Show the ROI outline and the clusters with random colors."""
        self.add_ee_layer(ee.Image().paint(roi, 0, 2), {}, "roi_kmeans")
        return self.add_ee_layer(result.randomVisualizer(), {}, title)

    def save(self, path) -> Path:
        """Add a layer control and write the map to an HTML file."""
        if not self._layer_control:
            folium.LayerControl().add_to(self.map)
            self._layer_control = True
        out = Path(path)
        self.map.save(str(out))
        self.logger.info("Saved map with %d layers to %s", len(self.layers), out)
        return out

"""
Module `geo.aoi` defines the AOI (Area of Interest) class, which holds a single
geographic feature (Polygon/MultiPolygon) and its static properties.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Union

import ee
import geopandas as gpd
from shapely.geometry import MultiPolygon, Polygon, mapping, shape
from shapely.ops import unary_union


@dataclass
class AOI:
    """Area of Interest used as a region for filtering, reductions and exports."""

    geometry: Union[Polygon, MultiPolygon]
    static_props: Dict[str, Any]

    @classmethod
    def from_file(cls, path: str, id_col: str = "id") -> List["AOI"]:
        """
        Load a vector file (GeoJSON, Shapefile, etc.) into AOI instances,
        reprojected to EPSG:4326.
        """
        gdf = gpd.read_file(path)
        if gdf.crs is not None and gdf.crs.to_epsg() != 4326:
            gdf = gdf.to_crs(epsg=4326)
        return cls.from_gdf(gdf, id_col)

    @classmethod
    def from_geojson(cls, geojson: Union[str, dict], id_col: str = "id") -> List["AOI"]:
        """
        Parse a GeoJSON object (or path to a GeoJSON file) and return AOI instances.
        """
        if isinstance(geojson, str):
            with open(geojson, "r", encoding="utf-8") as f:
                data = json.load(f)
        else:
            data = geojson
        features = data.get("features", [])
        gdf = gpd.GeoDataFrame(
            [
                {**feat.get("properties", {}), "geometry": shape(feat["geometry"])}
                for feat in features
            ],
            geometry="geometry",
            crs="EPSG:4326",
        )
        return cls.from_gdf(gdf, id_col)

    @classmethod
    def from_gdf(cls, gdf: gpd.GeoDataFrame, id_col: str = "id") -> List["AOI"]:
        """
        Build AOI instances from a GeoDataFrame, numbering rows from 1 when
        *id_col* is missing.
        """
        if id_col not in gdf.columns:
            gdf = gdf.copy()
            gdf[id_col] = range(1, len(gdf) + 1)
        aois: List[AOI] = []
        for _, row in gdf.iterrows():
            props: Dict = row.drop(labels="geometry").to_dict()
            aois.append(cls(row.geometry, props))
        return aois

    def ee_geometry(self) -> ee.Geometry:
        """Return the Earth Engine Geometry of this AOI."""
        return ee.Geometry(mapping(self.geometry))


def union_geometry(aois: List[AOI]) -> ee.Geometry:
    """Return one Earth Engine Geometry covering every AOI."""
    if not aois:
        raise ValueError("At least one AOI is required")
    return ee.Geometry(mapping(unary_union([a.geometry for a in aois])))

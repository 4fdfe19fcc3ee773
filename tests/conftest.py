# pylint: disable=missing-module-docstring,missing-function-docstring,invalid-name,unused-argument,redefined-outer-name

from unittest.mock import MagicMock

import pytest
from shapely.geometry import Polygon
import geopandas as gpd
import ee

from geet.geo.aoi import AOI


class _ChainMeta(type):
    """Class-level attribute access (``ee.Image.cat``) starts a new chain."""

    def __getattr__(cls, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return cls._from_calls(((f"{cls.__name__}.{name}", None, None),))


class Chain(metaclass=_ChainMeta):
    """
    Stand-in for Earth Engine objects that records every attribute access and
    call. ``obj.calls`` is a tuple of ``(name, args, kwargs)``; ``args`` is
    None for attribute access that was never called.
    """

    def __init__(self, *args, **kwargs):
        self.calls = ((type(self).__name__, args, kwargs),)

    @classmethod
    def _from_calls(cls, calls):
        obj = cls.__new__(cls)
        obj.calls = tuple(calls)
        return obj

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return type(self)._from_calls(self.calls + ((name, None, None),))

    def __call__(self, *args, **kwargs):
        name, pending, _ = self.calls[-1]
        if pending is None:
            return type(self)._from_calls(self.calls[:-1] + ((name, args, kwargs),))
        return type(self)._from_calls(self.calls + (("__call__", args, kwargs),))

    def __getitem__(self, key):
        return type(self)._from_calls(self.calls + (("__getitem__", (key,), {}),))

    def __repr__(self):
        return f"<{type(self).__name__} {'.'.join(c[0] for c in self.calls)}>"

    # helpers used by the tests
    def names(self):
        return [c[0] for c in self.calls]

    def find(self, name):
        """Return ``(args, kwargs)`` of every recorded call to *name*."""
        return [(args, kwargs) for n, args, kwargs in self.calls if n == name]


class FakeImage(Chain):
    pass


class FakeImageCollection(Chain):
    pass


class FakeNumber(Chain):
    pass


class FakeList(Chain):
    pass


class FakeDictionary(Chain):
    pass


class FakeArray(Chain):
    pass


class FakeGeometry(Chain):
    pass


@pytest.fixture(autouse=True)
def mock_ee(monkeypatch):
    """
    Replace the Earth Engine entry points used by geet with recording fakes so
    that computation graphs can be built and inspected without network access.
    """
    monkeypatch.setattr(ee, "Initialize", lambda *args, **kwargs: None)
    monkeypatch.setattr(ee, "Authenticate", lambda *args, **kwargs: None)
    monkeypatch.setattr(ee, "ServiceAccountCredentials", lambda a, b: MagicMock())

    monkeypatch.setattr(ee, "Image", FakeImage)
    monkeypatch.setattr(ee, "ImageCollection", FakeImageCollection)
    monkeypatch.setattr(ee, "Number", FakeNumber)
    monkeypatch.setattr(ee, "List", FakeList)
    monkeypatch.setattr(ee, "Dictionary", FakeDictionary)
    monkeypatch.setattr(ee, "Array", FakeArray)
    monkeypatch.setattr(ee, "Geometry", FakeGeometry)
    monkeypatch.setattr(ee, "Date", type("FakeDate", (Chain,), {}))
    monkeypatch.setattr(ee, "Feature", type("FakeFeature", (Chain,), {}))
    monkeypatch.setattr(
        ee, "FeatureCollection", type("FakeFeatureCollection", (Chain,), {})
    )
    fakes = ("Filter", "Reducer", "Kernel", "Classifier", "Clusterer", "Algorithms")
    for name in fakes:
        monkeypatch.setattr(ee, name, type(f"Fake{name}", (Chain,), {}))

    batch = MagicMock()
    batch.Export.image.toDrive.return_value = MagicMock(id="TASK123")
    monkeypatch.setattr(ee, "batch", batch)
    yield


@pytest.fixture
def image():
    """A fresh recording image."""
    return ee.Image("LANDSAT/TEST/IMAGE")


@pytest.fixture
def square():
    return Polygon([(0, 0), (0, 1), (1, 1), (1, 0)])


@pytest.fixture
def dummy_aoi(square):
    """A unit-square AOI with ``id=1``."""
    return AOI(geometry=square, static_props={"id": 1})


@pytest.fixture
def roi_file(tmp_path, square):
    """GeoJSON file with one square polygon."""
    gdf = gpd.GeoDataFrame({"id": [1], "geometry": [square]}, crs="EPSG:4326")
    path = tmp_path / "roi.geojson"
    gdf.to_file(path, driver="GeoJSON")
    return path


@pytest.fixture
def roi_geojson():
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"id": 42, "name": "TestSquare"},
                "geometry": {
                    "type": "Polygon",
                    "coordinates": [[[0, 0], [0, 1], [1, 1], [1, 0], [0, 0]]],
                },
            }
        ],
    }

"""Visualization helpers."""

from .map import GeetMap
from .palettes import (
    COLOR,
    change_vis_params,
    class_vis_params,
    color,
    ndvi_vis_params,
    ndwi_vis_params,
    rgb_vis_params,
)

__all__ = [
    "COLOR",
    "GeetMap",
    "change_vis_params",
    "class_vis_params",
    "color",
    "ndvi_vis_params",
    "ndwi_vis_params",
    "rgb_vis_params",
]

"""Batch export of images to Google Drive."""

from __future__ import annotations

import ee

from geet.core.logger import Logger
from geet.core.utils import sanitize_identifier

logger = Logger.get_logger(__name__)


def export_img(
    image: ee.Image,
    out_filename: str,
    scale: float = 30,
    max_pixels: float = 1e10,
    region=None,
    folder: str | None = None,
) -> ee.batch.Task:
    """
    Start a Drive export of *image* and return the running task.

    Args:
        image: image to export.
        out_filename: task description and output file prefix.
        scale: output resolution in metres.
        max_pixels: maximum number of pixels the export may produce.
        region: optional export geometry; the image footprint otherwise.
        folder: optional Drive folder.
    """
    name = sanitize_identifier(out_filename)
    export_kwargs = {
        "image": image,
        "description": name,
        "fileNamePrefix": name,
        "scale": scale,
        "maxPixels": max_pixels,
    }
    if region is not None:
        export_kwargs["region"] = region
    if folder:
        export_kwargs["folder"] = folder
    task = ee.batch.Export.image.toDrive(**export_kwargs)
    task.start()
    logger.info("Started Drive export %s (scale=%s)", name, scale)
    return task

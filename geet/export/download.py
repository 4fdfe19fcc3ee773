"""Direct GeoTIFF download through ``getDownloadURL``."""

from __future__ import annotations

import ee
import requests

from geet.core.logger import Logger
from geet.core.storage import LocalFS, StorageAdapter

logger = Logger.get_logger(__name__)


def download_image(
    image: ee.Image,
    out_path: str,
    region,
    scale: float = 30,
    storage: StorageAdapter | None = None,
    timeout: int = 60,
) -> str:
    """Download *image* clipped to *region* as a GeoTIFF and return its path."""
    storage = storage or LocalFS()
    url = image.getDownloadURL(
        {"scale": scale, "region": region, "format": "GEOTIFF"}
    )
    resp = requests.get(url, timeout=timeout)
    resp.raise_for_status()
    storage.write_bytes(out_path, resp.content)
    logger.info("Wrote image to %s", out_path)
    return out_path

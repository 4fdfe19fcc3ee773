"""Principal components of a multi-band image, computed server-side."""

from __future__ import annotations

import ee

from geet.ingestion.eemanager import EarthEngineManager, ee_manager


def pca(
    image: ee.Image,
    n_bands: int | None = None,
    scale: float = 30,
    max_pixels: float = 1e9,
    manager: EarthEngineManager | None = None,
) -> tuple[ee.Image, ee.Array]:
    """
    Principal components analysis of *image*.

    The image is mean-centred, its centred covariance matrix is
    eigen-decomposed and the pixels are projected onto the eigenvectors.

    Args:
        image: input image.
        n_bands: number of bands of *image*; fetched with one ``getInfo``
            call when omitted.
        scale: reduction scale in metres.
        max_pixels: pixel budget for each reduction.
        manager: Earth Engine manager used to fetch the band count.

    Returns:
        ``(pcs, lambdas)``: an image with bands ``pc1..pcN`` and the array of
        eigenvalues (one per row).
    """
    band_names = image.bandNames()
    if n_bands is None:
        n_bands = len((manager or ee_manager).safe_get_info(band_names))
    pc_names = [f"pc{i}" for i in range(1, n_bands + 1)]

    mean_dict = image.reduceRegion(
        reducer=ee.Reducer.mean(), scale=scale, maxPixels=max_pixels
    )
    means = ee.Image.constant(mean_dict.values(band_names))
    centered = image.subtract(means).toArray()

    covar = centered.reduceRegion(
        reducer=ee.Reducer.centeredCovariance(), scale=scale, maxPixels=max_pixels
    )
    eigens = ee.Array(covar.get("array")).eigen()
    # Column 0 holds the eigenvalues, the rest of each row its eigenvector
    lambdas = eigens.slice(1, 0, 1)
    eivs = eigens.slice(1, 1)

    pcs = (
        ee.Image(eivs)
        .matrixMultiply(centered.toArray(1))
        .arrayProject([0])
        .arrayFlatten([pc_names])
    )
    return pcs, lambdas

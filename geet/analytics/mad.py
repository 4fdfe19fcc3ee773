"""
Iteratively re-weighted Multivariate Alteration Detection (iMAD) and
automatic radiometric normalization.

iMAD finds the canonical variates of two co-registered images and
re-weights pixels by their probability of no change until the canonical
correlations settle. Pixels that are almost certainly unchanged (invariant)
then drive an orthogonal regression of each target band on the matching
reference band.

Every step runs on the Earth Engine servers through ``ee.List.iterate``:
the Python functions below only describe the computation graph.

References:
    Canty, M. J. and Nielsen, A. A. (2008). Automatic radiometric
    normalization of multitemporal satellite imagery with the iteratively
    re-weighted MAD transformation. Remote Sensing of Environment 112.
"""

from __future__ import annotations

from dataclasses import dataclass

import ee
import pandas as pd

from geet.core.logger import Logger
from geet.ingestion.eemanager import EarthEngineManager, ee_manager

logger = Logger.get_logger(__name__)

MAD_ITERATIONS = 50
MAD_TOLERANCE = 0.001
INVARIANT_THRESHOLD = 0.05
MAX_PIXELS = 1e9


def chi2cdf(chi2: ee.Image, df) -> ee.Image:
    """Chi square cumulative distribution function."""
    return ee.Image(chi2.divide(2)).gammainc(ee.Number(df).divide(2))


def geneiv(c, b) -> tuple[ee.Array, ee.Array]:
    """
    Solve the generalized eigenproblem ``C x = lambda B x``.

    With ``L`` the Cholesky factor of ``B`` the problem reduces to the
    symmetric one ``L^-1 C L^-T y = lambda y`` with ``x = L^-T y``.

    Returns:
        ``(lambdas, eigenvectors)``: eigenvalues as a row vector and the
        generalized eigenvectors as columns.
    """
    c = ee.Array(c)
    b = ee.Array(b)
    li = ee.Array(b.matrixCholeskyDecomposition().get("L")).matrixInverse()
    xa = li.matrixMultiply(c).matrixMultiply(li.matrixTranspose()).eigen()
    lambdas = xa.slice(1, 0, 1).matrixTranspose()
    x = xa.slice(1, 1).matrixTranspose()
    eigenvecs = li.matrixTranspose().matrixMultiply(x)
    return lambdas, eigenvecs


def covarw(image: ee.Image, weights: ee.Image, max_pixels: float = MAX_PIXELS):
    """Return the weighted centred image and its weighted covariance matrix."""
    geometry = image.geometry()
    band_names = image.bandNames()
    n = band_names.length()
    scale = image.select(0).projection().nominalScale()
    weights_image = image.multiply(ee.Image.constant(0)).add(weights)
    means = (
        image.addBands(weights_image)
        .reduceRegion(
            reducer=ee.Reducer.mean().repeat(n).splitWeights(),
            scale=scale,
            maxPixels=max_pixels,
        )
        .toArray()
        .project([1])
    )
    centered = image.toArray().subtract(means)
    first_band = centered.bandNames().get(0)
    weight_band = weights.bandNames().get(0)
    n_pixels = ee.Number(
        centered.reduceRegion(
            reducer=ee.Reducer.count(), scale=scale, maxPixels=max_pixels
        ).get(first_band)
    )
    sum_weights = ee.Number(
        weights.reduceRegion(
            reducer=ee.Reducer.sum(),
            geometry=geometry,
            scale=scale,
            maxPixels=max_pixels,
        ).get(weight_band)
    )
    covw = (
        centered.multiply(weights.sqrt())
        .toArray()
        .reduceRegion(
            reducer=ee.Reducer.centeredCovariance(),
            geometry=geometry,
            scale=scale,
            maxPixels=max_pixels,
        )
        .get("array")
    )
    covw = ee.Array(covw).multiply(n_pixels).divide(sum_weights)
    return centered.arrayFlatten([band_names]), covw


def _imad_iteration(
    prev, tolerance: float, max_pixels: float = MAX_PIXELS
) -> ee.Dictionary:
    """One re-weighted MAD iteration on the state dictionary *prev*."""
    prev = ee.Dictionary(prev)
    image = ee.Image(prev.get("image"))
    chi2 = ee.Image(prev.get("chi2"))
    allrhos = ee.List(prev.get("allrhos"))
    region = image.geometry()
    nbands = image.bandNames().length().divide(2)
    weights = chi2cdf(chi2, nbands).subtract(1).multiply(-1)

    centered_image, covar_array = covarw(image, weights, max_pixels)
    names = centered_image.bandNames()
    names1 = names.slice(0, nbands)
    names2 = names.slice(nbands)
    centered1 = centered_image.select(names1)
    centered2 = centered_image.select(names2)

    s11 = covar_array.slice(0, 0, nbands).slice(1, 0, nbands)
    s22 = covar_array.slice(0, nbands).slice(1, nbands)
    s12 = covar_array.slice(0, 0, nbands).slice(1, nbands)
    s21 = covar_array.slice(0, nbands).slice(1, 0, nbands)
    c1 = s12.matrixMultiply(s22.matrixInverse()).matrixMultiply(s21)
    c2 = s21.matrixMultiply(s11.matrixInverse()).matrixMultiply(s12)

    lambdas, a = geneiv(c1, s11)
    _, b = geneiv(c2, s22)
    rhos = lambdas.sqrt().project(ee.List([1]))

    # sort in increasing order
    keys = ee.List.sequence(nbands, 1, -1)
    a = a.sort([keys])
    b = b.sort([keys])
    rhos = rhos.sort(keys)

    lastrhos = ee.Array(allrhos.get(-1))
    done = (
        rhos.subtract(lastrhos)
        .abs()
        .reduce(ee.Reducer.max(), ee.List([0]))
        .lt(ee.Number(tolerance))
        .toList()
        .get(0)
    )
    allrhos = allrhos.cat([rhos.toList()])

    # MAD variances
    sigma2s = ee.Image.constant(rhos.subtract(1).multiply(-2).toList())

    # sum of correlations between X and U must be positive
    tmp = s11.matrixDiagonal().sqrt()
    ones = tmp.multiply(0).add(1)
    tmp = ones.divide(tmp).matrixToDiag()
    s = (
        tmp.matrixMultiply(s11)
        .matrixMultiply(a)
        .reduce(ee.Reducer.sum(), [0])
        .transpose()
    )
    a = a.matrixMultiply(s.divide(s.abs()).matrixToDiag())

    # correlation between U and V must be positive
    tmp = a.transpose().matrixMultiply(s12).matrixMultiply(b).matrixDiagonal()
    tmp = tmp.divide(tmp.abs()).matrixToDiag()
    b = b.matrixMultiply(tmp)

    # canonical and MAD variates
    u = (
        ee.Image(a.transpose())
        .matrixMultiply(centered1.toArray().toArray(1))
        .arrayProject([0])
        .arrayFlatten([names1])
    )
    v = (
        ee.Image(b.transpose())
        .matrixMultiply(centered2.toArray().toArray(1))
        .arrayProject([0])
        .arrayFlatten([names2])
    )
    mad = u.subtract(v)
    chi2 = mad.pow(2).divide(sigma2s).reduce(ee.Reducer.sum()).clip(region)
    return ee.Dictionary(
        {
            "done": done,
            "image": image,
            "allrhos": allrhos,
            "chi2": chi2,
            "MAD": mad,
        }
    )


def _imad_step(tolerance: float, max_pixels: float = MAX_PIXELS):
    """Build the ``iterate`` callback; converged states pass through untouched."""

    def step(current, prev):  # pylint: disable=unused-argument
        done = ee.Number(ee.Dictionary(prev).get("done"))
        return ee.Algorithms.If(
            done, prev, _imad_iteration(prev, tolerance, max_pixels)
        )

    return step


def _imad_start(image: ee.Image, nbands) -> ee.Dictionary:
    return ee.Dictionary(
        {
            "done": ee.Number(0),
            "image": image,
            "allrhos": [ee.List.sequence(1, nbands)],
            "chi2": ee.Image.constant(0),
            "MAD": ee.Image.constant(0),
        }
    )


def imad(
    image1: ee.Image,
    image2: ee.Image,
    region=None,
    niter: int = MAD_ITERATIONS,
    tolerance: float = MAD_TOLERANCE,
    max_pixels: float = MAX_PIXELS,
) -> ee.Dictionary:
    """
    Run iMAD on two co-registered images with the same band layout.

    Args:
        image1: first (reference) image.
        image2: second image.
        region: optional geometry the images are clipped to.
        niter: maximum number of iterations.
        tolerance: convergence threshold on the largest change of the
            canonical correlations between iterations.
        max_pixels: pixel budget of the region reductions.

    Returns:
        ee.Dictionary with keys ``done``, ``image`` (the band
        concatenation), ``allrhos`` (canonical correlations per iteration,
        the first entry being a placeholder), ``chi2`` and ``MAD``.
    """
    image = image1.addBands(image2)
    if region is not None:
        image = image.clip(region)
    nbands = image1.bandNames().length()
    first = _imad_start(image, nbands)
    step = _imad_step(tolerance, max_pixels)
    result = ee.List.sequence(1, niter).iterate(step, first)
    return ee.Dictionary(result)


def _radcal_step(current, prev):
    """Orthogonal regression of band *current* of the target on the reference."""
    k = ee.Number(current)
    prev = ee.Dictionary(prev)
    # image is the concatenation of reference and target
    image = ee.Image(prev.get("image"))
    ncmask = ee.Image(prev.get("ncmask"))
    nbands = ee.Number(prev.get("nbands"))
    rect = ee.Geometry(prev.get("rect"))
    coeffs = ee.List(prev.get("coeffs"))
    normalized = ee.Image(prev.get("normalized"))
    max_pixels = ee.Number(prev.get("max_pixels"))
    scale = image.select(0).projection().nominalScale()

    pair = (
        image.clip(rect)
        .select(k.add(nbands), k)
        .updateMask(ncmask)
        .rename(["x", "y"])
    )
    means = (
        pair.reduceRegion(
            reducer=ee.Reducer.mean(), scale=scale, maxPixels=max_pixels
        )
        .toArray()
        .project([0])
    )
    xm = means.get([0])
    ym = means.get([1])
    cov = ee.Array(
        pair.toArray()
        .reduceRegion(
            reducer=ee.Reducer.covariance(),
            geometry=rect,
            scale=scale,
            maxPixels=max_pixels,
        )
        .get("array")
    )
    # Pearson correlation
    r = cov.get([0, 1]).divide(cov.get([0, 0]).multiply(cov.get([1, 1])).sqrt())
    eivs = cov.eigen()
    e1 = eivs.get([0, 1])
    e2 = eivs.get([0, 2])
    slope = e2.divide(e1)
    intercept = ym.subtract(slope.multiply(xm))
    coeffs = coeffs.add(ee.List([slope, intercept, r]))
    normalized = normalized.addBands(
        image.select(k.add(nbands)).multiply(slope).add(intercept)
    )
    return ee.Dictionary(
        {
            "image": image,
            "ncmask": ncmask,
            "nbands": nbands,
            "rect": rect,
            "coeffs": coeffs,
            "normalized": normalized,
            "max_pixels": max_pixels,
        }
    )


def invariant_mask(chi2: ee.Image, nbands, threshold: float = INVARIANT_THRESHOLD):
    """Pixels whose probability of change is below *threshold*."""
    return chi2cdf(chi2, nbands).lt(ee.Image.constant(threshold))


def radcal(
    reference: ee.Image,
    target: ee.Image,
    ncmask: ee.Image,
    rect,
    max_pixels: float = MAX_PIXELS,
):
    """
    Normalize every band of *target* to *reference* over the invariant pixels.

    Returns:
        ee.Dictionary with ``normalized`` (the normalized target) and
        ``coeffs`` (``[slope, intercept, correlation]`` per band).
    """
    nbands = reference.bandNames().length()
    first = ee.Dictionary(
        {
            "image": reference.addBands(target),
            "ncmask": ncmask,
            "nbands": nbands,
            "rect": rect,
            "coeffs": ee.List([]),
            "normalized": ee.Image(),
            "max_pixels": max_pixels,
        }
    )
    bands = ee.List.sequence(0, nbands.subtract(1))
    result = ee.Dictionary(bands.iterate(_radcal_step, first))
    # the first band of the accumulator is the empty seed image
    normalized = ee.Image(result.get("normalized")).select(
        ee.List.sequence(1, nbands)
    )
    return ee.Dictionary({"normalized": normalized, "coeffs": result.get("coeffs")})


def _radcal_batch_step(niter, tolerance, threshold, max_pixels=MAX_PIXELS):
    def step(current, prev):
        prev = ee.Dictionary(prev)
        target = ee.Image(current)
        reference = ee.Image(prev.get("reference"))
        rect = ee.Geometry(prev.get("rect"))
        normalized_images = ee.List(prev.get("normalized"))
        log = ee.List(prev.get("log"))
        nbands = reference.bandNames().length()

        mad = imad(
            reference,
            target,
            region=rect,
            niter=niter,
            tolerance=tolerance,
            max_pixels=max_pixels,
        )
        chi2 = ee.Image(mad.get("chi2")).rename(["chi2"])
        allrhos = ee.List(mad.get("allrhos"))
        ncmask = invariant_mask(chi2, nbands, threshold)

        calibrated = radcal(reference, target, ncmask, rect, max_pixels)
        scale = reference.select(0).projection().nominalScale()
        invariant_pixels = ee.Number(
            ncmask.reduceRegion(
                reducer=ee.Reducer.sum().unweighted(),
                geometry=rect,
                scale=scale,
                maxPixels=max_pixels,
            ).get("chi2")
        )
        iterations = allrhos.length().subtract(1)
        entry = ee.Dictionary(
            {
                "id": target.get("system:id"),
                "iterations": iterations,
                "converged": iterations.lt(niter),
                "invariant_pixels": invariant_pixels,
                "coefficients": calibrated.get("coeffs"),
            }
        )
        return ee.Dictionary(
            {
                "reference": reference,
                "rect": rect,
                "log": log.add(entry),
                "normalized": normalized_images.add(calibrated.get("normalized")),
            }
        )

    return step


@dataclass
class RadcalResult:
    """Handles on the outputs of :func:`radcal_batch`."""

    normalized: ee.List
    log: ee.List

    def image(self, i: int) -> ee.Image:
        """Return the *i*-th normalized target."""
        return ee.Image(self.normalized.get(i))

    def coefficients_frame(
        self, manager: EarthEngineManager | None = None
    ) -> pd.DataFrame:
        """
        Fetch the log and return one row per target band with the regression
        coefficients and the iMAD diagnostics.
        """
        entries = (manager or ee_manager).safe_get_info(self.log) or []
        rows = []
        for entry in entries:
            if not entry["converged"]:
                logger.warning(
                    "No convergence for %s after %s iterations",
                    entry["id"],
                    entry["iterations"],
                )
            for band, (slope, intercept, corr) in enumerate(entry["coefficients"]):
                rows.append(
                    {
                        "target": entry["id"],
                        "band": band,
                        "slope": slope,
                        "intercept": intercept,
                        "correlation": corr,
                        "iterations": entry["iterations"],
                        "converged": bool(entry["converged"]),
                        "invariant_pixels": entry["invariant_pixels"],
                    }
                )
        return pd.DataFrame(
            rows,
            columns=[
                "target",
                "band",
                "slope",
                "intercept",
                "correlation",
                "iterations",
                "converged",
                "invariant_pixels",
            ],
        )


def radcal_batch(
    reference: ee.Image,
    targets,
    rect,
    niter: int = MAD_ITERATIONS,
    tolerance: float = MAD_TOLERANCE,
    threshold: float = INVARIANT_THRESHOLD,
    max_pixels: float = MAX_PIXELS,
) -> RadcalResult:
    """
    Radiometrically normalize each of *targets* to *reference* inside *rect*.

    Args:
        reference: reference image.
        targets: ee.ImageCollection, ee.List or Python list of images with
            the reference's band layout.
        rect: geometry used to run iMAD and fit the regressions.
        niter: maximum iMAD iterations per target.
        tolerance: iMAD convergence threshold.
        threshold: change probability under which a pixel is invariant.
        max_pixels: pixel budget of the region reductions.
    """
    if isinstance(targets, ee.ImageCollection):
        targets = targets.toList(targets.size())
    first = ee.Dictionary(
        {
            "reference": reference,
            "rect": rect,
            "log": ee.List([]),
            "normalized": ee.List([]),
        }
    )
    result = ee.Dictionary(
        ee.List(targets).iterate(
            _radcal_batch_step(niter, tolerance, threshold, max_pixels), first
        )
    )
    return RadcalResult(
        normalized=ee.List(result.get("normalized")), log=ee.List(result.get("log"))
    )

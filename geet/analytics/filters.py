"""Neighbourhood filters over a circular kernel."""

import ee


def texture(image: ee.Image, radius: float) -> ee.Image:
    """Local standard deviation; larger radii generalize more."""
    return image.reduceNeighborhood(
        reducer=ee.Reducer.stdDev(), kernel=ee.Kernel.circle(radius)
    )


def majority(image: ee.Image, radius: float) -> ee.Image:
    """Modal filter that clears the salt-and-pepper effect of a classification."""
    return image.reduceNeighborhood(
        reducer=ee.Reducer.mode(), kernel=ee.Kernel.circle(radius)
    )

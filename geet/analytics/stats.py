"""Per-pixel reductions across bands."""

import ee


def max(image: ee.Image) -> ee.Image:  # pylint: disable=redefined-builtin
    """Maximum value across the bands of each pixel."""
    return image.reduce(ee.Reducer.max())


def min(image: ee.Image) -> ee.Image:  # pylint: disable=redefined-builtin
    """Minimum value across the bands of each pixel."""
    return image.reduce(ee.Reducer.min())

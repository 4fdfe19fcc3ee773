"""Supervised (SVM, CART, random forest) and unsupervised (k-means) classification."""

from __future__ import annotations

import ee

from geet.core.logger import Logger

logger = Logger.get_logger(__name__)

DEFAULT_SCALE = 30
SVM_COST = 10


def _training_samples(image: ee.Image, training_data, field_name: str, scale):
    return image.sampleRegions(
        collection=training_data, properties=[field_name], scale=scale
    )


def svm(
    image: ee.Image,
    training_data: ee.FeatureCollection,
    field_name: str,
    kernel_type: str = "RBF",
    scale: float = DEFAULT_SCALE,
) -> ee.Image:
    """
    Classify *image* with a support vector machine.

    Args:
        image: image to classify.
        training_data: labelled sample features.
        field_name: property holding the class label.
        kernel_type: SVM kernel, 'RBF' by default.
        scale: sampling resolution in metres (30 for Landsat).
    """
    training = _training_samples(image, training_data, field_name, scale)
    classifier = ee.Classifier.libsvm(kernelType=kernel_type, cost=SVM_COST)
    trained = classifier.train(training, field_name)
    return image.classify(trained)


def cart(
    image: ee.Image,
    training_data: ee.FeatureCollection,
    field_name: str,
    scale: float = DEFAULT_SCALE,
) -> ee.Image:
    """Classify *image* with a CART decision tree."""
    training = _training_samples(image, training_data, field_name, scale)
    classifier = ee.Classifier.smileCart().train(
        features=training, classProperty=field_name
    )
    return image.classify(classifier)


def rf(
    image: ee.Image,
    training_data: ee.FeatureCollection,
    field_name: str,
    num_trees: int = 10,
    scale: float = DEFAULT_SCALE,
) -> ee.Image:
    """Classify *image* with a random forest of ``num_trees`` trees."""
    training = _training_samples(image, training_data, field_name, scale)
    classifier = ee.Classifier.smileRandomForest(num_trees).train(
        features=training, classProperty=field_name
    )
    return image.classify(classifier)


def kmeans(
    image: ee.Image,
    roi,
    num_clusters: int = 15,
    scale: float = DEFAULT_SCALE,
    num_pixels: int = 5000,
) -> ee.Image:
    """
    Cluster *image* with k-means trained on ``num_pixels`` samples from *roi*.

    Raises:
        ValueError: when no roi is given to collect the samples from.
    """
    if roi is None:
        raise ValueError(
            "You need to define and pass a roi as argument to collect the samples "
            "for the classification process."
        )
    training = image.sample(region=roi, scale=scale, numPixels=num_pixels)
    clusterer = ee.Clusterer.wekaKMeans(num_clusters).train(training)
    logger.debug("Training k-means with %d clusters", num_clusters)
    return image.cluster(clusterer)

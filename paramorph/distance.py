"""
Morphological distance transform.

Erosion with the parabola ``d**2`` (scale 1 in physical units) of an image that
is 0 on the "outside" samples and a large value everywhere else gives, at every
sample, the squared Euclidean distance to the nearest outside sample.  Being a
parabolic erosion it is separable and exact on the sample grid.
"""
from __future__ import annotations

import numpy as np
from scipy import ndimage

from .config import ParabolicAlgorithm
from .image import Image, as_image
from .morph import parabolic_erode


def threshold_mask(
    image,
    upper: float,
    lower: float = -np.inf,
    inside_value: float = 0,
    outside_value: float = 255,
) -> Image:
    """
    Binary threshold: ``inside_value`` where ``lower <= image <= upper``, else ``outside_value``.

    Returns a uint8 Image when both values fit, otherwise float64.
    """
    image = as_image(image)
    inside = (image.data >= lower) & (image.data <= upper)
    dtype = np.uint8 if all(float(v).is_integer() and 0 <= v <= 255
                            for v in (inside_value, outside_value)) else np.float64
    out = np.where(inside, inside_value, outside_value).astype(dtype)
    return image.with_data(out)


def _background_value(image: Image, use_image_spacing: bool) -> float:
    """A value larger than any squared distance inside *image*."""
    spacing = image.spacing if use_image_spacing else (1.0,) * image.ndim
    return float(sum((n * s) ** 2 for n, s in zip(image.shape, spacing))) + 1.0


def distance_transform(
    image,
    outside_value: float = 0,
    use_image_spacing: bool = True,
    squared: bool = False,
    algorithm=ParabolicAlgorithm.INTERSECTION,
) -> Image:
    """
    Distance from every sample to the nearest sample equal to *outside_value*.

    Parameters
    ----------
    image : Image or ndarray
    outside_value : float
        Samples with this value are the "outside" (distance 0).
    use_image_spacing : bool
        Measure distances in physical units.
    squared : bool
        Return squared distances.
    algorithm : ParabolicAlgorithm or str

    Returns
    -------
    Image of float64
        ``inf`` everywhere when the image has no outside sample.
    """
    image = as_image(image)
    outside = image.data == outside_value
    big = _background_value(image, use_image_spacing)

    seeds = image.with_data(np.where(outside, 0.0, big))
    eroded = parabolic_erode(
        seeds, scale=1.0, use_image_spacing=use_image_spacing, algorithm=algorithm,
    )
    dist = np.array(eroded.data, dtype=np.float64)
    dist[dist >= big] = np.inf
    if not squared:
        dist = np.sqrt(dist)
    return image.with_data(dist)


def signed_distance_transform(
    image,
    outside_value: float = 0,
    inside_is_positive: bool = False,
    use_image_spacing: bool = True,
    algorithm=ParabolicAlgorithm.INTERSECTION,
) -> Image:
    """
    Signed distance to the object boundary.

    Outside samples get their distance to the nearest inside sample, inside
    samples the negated distance to the nearest outside sample (flipped with
    ``inside_is_positive``).
    """
    image = as_image(image)
    outside = image.data == outside_value
    if outside.all() or not outside.any():
        raise ValueError("Signed distance needs both inside and outside samples")

    inside_dist = distance_transform(
        image, outside_value=outside_value,
        use_image_spacing=use_image_spacing, algorithm=algorithm,
    ).data
    # Swap roles: inside samples become the zero set
    flipped = image.with_data(np.where(outside, 1, 0).astype(np.uint8))
    outside_dist = distance_transform(
        flipped, outside_value=0,
        use_image_spacing=use_image_spacing, algorithm=algorithm,
    ).data

    signed = np.where(outside, outside_dist, -inside_dist)
    if inside_is_positive:
        signed = -signed
    return image.with_data(signed)


def reference_distance_transform(
    image,
    outside_value: float = 0,
    use_image_spacing: bool = True,
) -> Image:
    """Exact Euclidean distance transform from ``scipy.ndimage`` for comparison."""
    image = as_image(image)
    sampling = image.spacing if use_image_spacing else None
    dist = ndimage.distance_transform_edt(image.data != outside_value, sampling=sampling)
    return image.with_data(np.asarray(dist, dtype=np.float64))

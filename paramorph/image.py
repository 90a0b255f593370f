"""
Image container and the whole-image primitives the filters are built from.

An ``Image`` is an N-dimensional NumPy array with per-axis spacing and origin.
Images are immutable: the stored array is a read-only view and every
operation below returns a new Image.

Primitives:
  - compute_statistics  min / max / mean / sigma / sum over all samples
  - pad_image           constant padding on both sides of every axis
  - crop_image          extract an index region
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np


@dataclass(frozen=True, eq=False)
class Image:
    """N-dimensional scalar image with physical spacing and origin."""

    data: np.ndarray
    spacing: Optional[Tuple[float, ...]] = None
    origin: Optional[Tuple[float, ...]] = None

    def __post_init__(self):
        data = np.asarray(self.data)
        if data.ndim == 0:
            raise ValueError("Image must have at least one axis")
        if 0 in data.shape:
            raise ValueError(f"Image has a zero-length axis: shape {data.shape}")

        spacing = _per_axis(self.spacing, data.ndim, 1.0, "spacing")
        if any(not np.isfinite(s) or s <= 0 for s in spacing):
            raise ValueError(f"spacing must be finite and > 0, got {spacing}")
        origin = _per_axis(self.origin, data.ndim, 0.0, "origin")

        view = data.view()
        view.flags.writeable = False
        object.__setattr__(self, "data", view)
        object.__setattr__(self, "spacing", spacing)
        object.__setattr__(self, "origin", origin)

    @property
    def ndim(self) -> int:
        return self.data.ndim

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.data.shape

    @property
    def dtype(self) -> np.dtype:
        return self.data.dtype

    def with_data(self, data: np.ndarray) -> "Image":
        """Return a new Image with *data* and this image's geometry."""
        return Image(data, spacing=self.spacing, origin=self.origin)


def _per_axis(values, ndim: int, default: float, name: str) -> Tuple[float, ...]:
    if values is None:
        return (default,) * ndim
    if np.ndim(values) == 0:
        return (float(values),) * ndim
    values = tuple(float(v) for v in values)
    if len(values) != ndim:
        raise ValueError(f"{name} has {len(values)} components but the image has {ndim} axes")
    return values


def as_image(image, spacing=None) -> Image:
    """Wrap a bare array as an Image; pass Images through (optionally respaced)."""
    if isinstance(image, Image):
        if spacing is None:
            return image
        return Image(image.data, spacing=spacing, origin=image.origin)
    return Image(np.asarray(image), spacing=spacing)


# --------------------------------------------------------------------------- #
# Statistics
# --------------------------------------------------------------------------- #

@dataclass(frozen=True)
class ImageStatistics:
    minimum: float
    maximum: float
    mean: float
    sigma: float
    total: float

    @property
    def value_range(self) -> float:
        return self.maximum - self.minimum


def compute_statistics(image: Image) -> ImageStatistics:
    """Single scan over *image* returning min, max, mean, standard deviation and sum."""
    data = np.asarray(image.data, dtype=np.float64)
    return ImageStatistics(
        minimum=float(np.min(data)),
        maximum=float(np.max(data)),
        mean=float(np.mean(data)),
        sigma=float(np.std(data)),
        total=float(np.sum(data)),
    )


# --------------------------------------------------------------------------- #
# Pad / crop
# --------------------------------------------------------------------------- #

def pad_image(image: Image, pad: Sequence[int], value: float) -> Image:
    """
    Pad *image* by ``pad[d]`` samples on both sides of axis ``d`` with *value*.

    The origin moves so that the original samples keep their physical
    coordinates.
    """
    pad = tuple(int(p) for p in pad)
    if len(pad) != image.ndim:
        raise ValueError(f"pad has {len(pad)} components but the image has {image.ndim} axes")
    if any(p < 0 for p in pad):
        raise ValueError(f"pad amounts must be >= 0, got {pad}")

    data = np.pad(image.data, [(p, p) for p in pad], mode="constant",
                  constant_values=value)
    origin = tuple(o - p * s for o, p, s in zip(image.origin, pad, image.spacing))
    return Image(data, spacing=image.spacing, origin=origin)


def crop_image(image: Image, start: Sequence[int], size: Sequence[int]) -> Image:
    """Return the region ``[start, start + size)`` of *image* as a new Image."""
    start = tuple(int(s) for s in start)
    size = tuple(int(s) for s in size)
    if len(start) != image.ndim or len(size) != image.ndim:
        raise ValueError("crop region must have one start and one size per axis")
    for d, (b, n) in enumerate(zip(start, size)):
        if b < 0 or n <= 0 or b + n > image.shape[d]:
            raise ValueError(
                f"crop region [{b}, {b + n}) is outside axis {d} of length {image.shape[d]}"
            )

    region = tuple(slice(b, b + n) for b, n in zip(start, size))
    data = np.array(image.data[region], copy=True)
    origin = tuple(o + b * s for o, b, s in zip(image.origin, start, image.spacing))
    return Image(data, spacing=image.spacing, origin=origin)

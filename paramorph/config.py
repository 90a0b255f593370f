"""
MorphConfig — all tunable parameters for parabolic opening/closing in one dataclass.

Also defines the two tagged choices that travel with a configuration:
``Operation`` (OPEN / CLOSE) and ``ParabolicAlgorithm``.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

import numpy as np

ScaleType = Union[float, Tuple[float, ...]]


class ParabolicAlgorithm(str, Enum):
    """Line envelope algorithm.

    AUTO is resolved to INTERSECTION; no threshold for preferring the contact
    point algorithm has been established.
    """

    AUTO = "auto"
    CONTACT_POINT = "contact_point"   # sometimes faster at low scale
    INTERSECTION = "intersection"     # default

    @classmethod
    def coerce(cls, value) -> "ParabolicAlgorithm":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower().replace("-", "_"))
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ValueError(
                f"Unknown parabolic algorithm {value!r}; expected one of: {choices}"
            ) from None


class Operation(str, Enum):
    """Opening or closing, with the pass order and pad extremum it implies."""

    OPEN = "open"
    CLOSE = "close"

    @classmethod
    def coerce(cls, value) -> "Operation":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(
                f"Unknown operation {value!r}; expected 'open' or 'close'"
            ) from None

    @property
    def dilate_first(self) -> bool:
        """True when the first pass is a dilation (closing)."""
        return self is Operation.CLOSE

    def pad_value(self, stats) -> float:
        """
        Fill value that makes a padded border invisible to this operation.

        Opening pads with the image maximum so the erosion is never pulled down
        by the border; closing mirrors that with the minimum.
        """
        return stats.maximum if self is Operation.OPEN else stats.minimum


def normalize_scale(scale) -> ScaleType:
    """
    Validate *scale* and return it as a float or a tuple of floats.

    Raises
    ------
    ValueError
        If any component is negative, NaN or infinite, or the vector is empty.
    """
    is_vector = np.ndim(scale) > 0
    values = tuple(float(s) for s in np.ravel(scale))
    if not values:
        raise ValueError("scale vector must have at least one component")

    for s in values:
        if not math.isfinite(s):
            raise ValueError(f"scale must be finite, got {s}")
        if s < 0:
            raise ValueError(f"scale must be >= 0, got {s}")

    return values if is_vector else values[0]


def same_scale(a: ScaleType, b: ScaleType) -> bool:
    """
    Compare two normalized scales, form included.

    A uniform value and a vector of that value differ: only the uniform one
    broadcasts to images of any dimension.
    """
    return type(a) is type(b) and a == b


@dataclass
class MorphConfig:
    # ------------------------------------------------------------------ #
    # Parabola width: one value for every axis, or one per axis.
    # Zero on an axis disables processing along that axis.
    # ------------------------------------------------------------------ #
    scale: ScaleType = 1.0

    # ------------------------------------------------------------------ #
    # Interpret scale in physical units (divided by spacing**2 per axis)
    # ------------------------------------------------------------------ #
    use_image_spacing: bool = False

    # ------------------------------------------------------------------ #
    # Pad before / crop after so borders behave like an infinite image
    # ------------------------------------------------------------------ #
    safe_border: bool = True

    # ------------------------------------------------------------------ #
    # Line envelope algorithm
    # ------------------------------------------------------------------ #
    algorithm: ParabolicAlgorithm = ParabolicAlgorithm.INTERSECTION

    def __post_init__(self):
        self.scale = normalize_scale(self.scale)
        self.algorithm = ParabolicAlgorithm.coerce(self.algorithm)
        self.use_image_spacing = bool(self.use_image_spacing)
        self.safe_border = bool(self.safe_border)

    def scale_for(self, ndim: int) -> Tuple[float, ...]:
        """Return the per-axis scale for an image with *ndim* axes."""
        return broadcast_scale(self.scale, ndim)


def broadcast_scale(scale: ScaleType, ndim: int) -> Tuple[float, ...]:
    """
    Expand a normalized scale to *ndim* components.

    Raises
    ------
    ValueError
        If a scale vector has a different length than *ndim*.
    """
    if isinstance(scale, tuple):
        if len(scale) != ndim:
            raise ValueError(
                f"scale has {len(scale)} components but the image has {ndim} axes"
            )
        return scale
    return (float(scale),) * ndim

"""
Separable parabolic erosion, dilation, opening and closing.

A parabolic structuring element is separable: eroding with the N-D paraboloid
equals eroding with a 1-D parabola along axis 0, then axis 1, ... axis N-1.
Opening runs the full erosion pass and then the full dilation pass; closing
swaps them.

With ``use_image_spacing`` the parabola is evaluated on physical distances,
``(di * spacing)**2 / scale``, so the per-axis scale handed to the line solver
is ``scale / spacing**2``.
"""
from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from .config import Operation, ParabolicAlgorithm, broadcast_scale, normalize_scale
from .envelope import envelope_along_axis
from .image import Image, as_image


def effective_scale(
    scale: Sequence[float],
    spacing: Sequence[float],
    use_image_spacing: bool,
) -> Tuple[float, ...]:
    """
    Per-axis scale in sample units.

    Parameters
    ----------
    scale : sequence of float
        Configured scale, one value per axis.
    spacing : sequence of float
        Physical sample spacing per axis.
    use_image_spacing : bool
        If False the scale is already in samples and is returned unchanged.
    """
    if not use_image_spacing:
        return tuple(float(s) for s in scale)
    return tuple(float(s) / (float(sp) * float(sp)) for s, sp in zip(scale, spacing))


def output_dtype(dtype) -> np.dtype:
    """Floating dtype of a filter result for an input of *dtype*."""
    return np.result_type(dtype, np.float32)


def _prepare(image, scale, use_image_spacing) -> Tuple[Image, Tuple[float, ...]]:
    image = as_image(image)
    per_axis = broadcast_scale(normalize_scale(scale), image.ndim)
    return image, effective_scale(per_axis, image.spacing, use_image_spacing)


def _separable_pass(data, scales, dilate, algorithm) -> np.ndarray:
    out = np.asarray(data, dtype=np.float64)
    for axis, s in enumerate(scales):
        out = envelope_along_axis(out, axis, s, dilate=dilate, algorithm=algorithm)
    return out


def parabolic_erode(
    image,
    scale=1.0,
    use_image_spacing: bool = False,
    algorithm=ParabolicAlgorithm.INTERSECTION,
) -> Image:
    """
    Erode *image* with a parabolic structuring element.

    Parameters
    ----------
    image : Image or ndarray
    scale : float or sequence of float
        Uniform or per-axis parabola scale (>= 0).
    use_image_spacing : bool
    algorithm : ParabolicAlgorithm or str

    Returns
    -------
    Image
        Same shape and geometry; floating dtype.
    """
    image, scales = _prepare(image, scale, use_image_spacing)
    out = _separable_pass(image.data, scales, False, algorithm)
    return image.with_data(out.astype(output_dtype(image.dtype), copy=False))


def parabolic_dilate(
    image,
    scale=1.0,
    use_image_spacing: bool = False,
    algorithm=ParabolicAlgorithm.INTERSECTION,
) -> Image:
    """Dilate *image* with a parabolic structuring element; see ``parabolic_erode``."""
    image, scales = _prepare(image, scale, use_image_spacing)
    out = _separable_pass(image.data, scales, True, algorithm)
    return image.with_data(out.astype(output_dtype(image.dtype), copy=False))


def parabolic_open_close(
    image,
    operation,
    scale=1.0,
    use_image_spacing: bool = False,
    algorithm=ParabolicAlgorithm.INTERSECTION,
) -> Image:
    """
    Parabolic opening or closing without any border handling.

    Samples near the edge are evaluated as if the image stopped there; use
    ``paramorph.border.safe_open_close`` for edge-correct results.

    Parameters
    ----------
    image : Image or ndarray
    operation : Operation or str
        ``"open"`` (erode then dilate) or ``"close"`` (dilate then erode).
    scale : float or sequence of float
    use_image_spacing : bool
    algorithm : ParabolicAlgorithm or str

    Returns
    -------
    Image
    """
    operation = Operation.coerce(operation)
    image, scales = _prepare(image, scale, use_image_spacing)

    first_dilate = operation.dilate_first
    out = _separable_pass(image.data, scales, first_dilate, algorithm)
    out = _separable_pass(out, scales, not first_dilate, algorithm)
    return image.with_data(out.astype(output_dtype(image.dtype), copy=False))

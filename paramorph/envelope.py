"""
Line envelope solver: the 1-D primitive behind every parabolic filter.

For samples f[0..N-1] and a scale s > 0 the erosion is

    g[i] = min_j  f[j] + (i - j)**2 / s

i.e. the lower envelope of parabolas of curvature 1/s anchored at every
sample.  Dilation is the upper envelope ``max_j f[j] - (i - j)**2 / s`` and is
computed as the negated erosion of the negated line.

Two algorithms produce the same envelope:

  INTERSECTION   Stack of hull parabolas plus the abscissae where consecutive
                 ones intersect.  Each new sample pops entries whose
                 intersection falls at or before the previous boundary, then a
                 forward sweep reads off the active parabola.  O(N) per line.
  CONTACT_POINT  Left sweep with the left half-parabola, then right sweep with
                 the right half over the left result.  Each sweep starts its
                 search at the previous contact point, so it is fast when the
                 parabola is narrow and degrades as the scale grows.

Lines are independent: ``envelope_along_axis`` solves every line of an axis in
parallel with Numba ``prange``.
"""
from __future__ import annotations

import numba as nb
import numpy as np

from .config import ParabolicAlgorithm


# --------------------------------------------------------------------------- #
# Numba kernels
# --------------------------------------------------------------------------- #

@nb.njit(cache=True, nogil=True)
def _erode_line_intersection(f, out, magnitude, v, z):
    n = f.shape[0]
    k = 0
    v[0] = 0
    z[0] = -np.inf
    z[1] = np.inf

    # Build the lower hull
    for q in range(1, n):
        fq = f[q] + magnitude * (q * q)
        s = 0.0
        while True:
            p = v[k]
            fp = f[p] + magnitude * (p * p)
            s = (fq - fp) / (2.0 * magnitude * (q - p))
            if k > 0 and s <= z[k]:
                k -= 1
            else:
                break
        k += 1
        v[k] = q
        z[k] = s
        z[k + 1] = np.inf

    # Read the envelope
    k = 0
    for i in range(n):
        while z[k + 1] < i:
            k += 1
        d = i - v[k]
        out[i] = f[v[k]] + magnitude * (d * d)


@nb.njit(cache=True, nogil=True)
def _erode_line_contact_point(f, out, magnitude, tmp):
    n = f.shape[0]

    # Left half of the parabola: anchors at or before pos
    koffset = 0
    contact = 0
    for pos in range(n):
        best = np.inf
        for k in range(koffset, 1):
            t = f[pos + k] + magnitude * (k * k)
            if t <= best:
                best = t
                contact = k
        tmp[pos] = best
        koffset = contact - 1

    # Right half, applied to the left result
    koffset = 0
    contact = 0
    for pos in range(n - 1, -1, -1):
        best = np.inf
        for k in range(koffset, -1, -1):
            t = tmp[pos + k] + magnitude * (k * k)
            if t <= best:
                best = t
                contact = k
        out[pos] = best
        koffset = contact + 1


@nb.njit(parallel=True, cache=True, nogil=True)
def _erode_lines(lines, magnitude, use_contact_point):
    n_lines, n = lines.shape
    out = np.empty_like(lines)
    for r in nb.prange(n_lines):
        if use_contact_point:
            tmp = np.empty(n, dtype=np.float64)
            _erode_line_contact_point(lines[r], out[r], magnitude, tmp)
        else:
            v = np.empty(n, dtype=np.int64)
            z = np.empty(n + 1, dtype=np.float64)
            _erode_line_intersection(lines[r], out[r], magnitude, v, z)
    return out


# --------------------------------------------------------------------------- #
# Python API
# --------------------------------------------------------------------------- #

def resolve_algorithm(algorithm) -> ParabolicAlgorithm:
    """Map AUTO to a concrete algorithm (INTERSECTION)."""
    algorithm = ParabolicAlgorithm.coerce(algorithm)
    if algorithm is ParabolicAlgorithm.AUTO:
        return ParabolicAlgorithm.INTERSECTION
    return algorithm


def _solve_lines(
    lines: np.ndarray,
    scale: float,
    dilate: bool,
    algorithm,
) -> np.ndarray:
    """Envelope of every row of a 2-D float64 array."""
    use_contact_point = resolve_algorithm(algorithm) is ParabolicAlgorithm.CONTACT_POINT
    magnitude = 1.0 / float(scale)
    if dilate:
        return -_erode_lines(np.ascontiguousarray(-lines), magnitude, use_contact_point)
    return _erode_lines(np.ascontiguousarray(lines), magnitude, use_contact_point)


def line_envelope(
    values,
    scale: float,
    dilate: bool = False,
    algorithm=ParabolicAlgorithm.INTERSECTION,
) -> np.ndarray:
    """
    Parabolic erosion (or dilation) of a single 1-D line.

    Parameters
    ----------
    values : array_like, shape (N,)
    scale : float
        Parabola scale ``s`` (>= 0).  0 returns the line unchanged.
    dilate : bool
        Upper envelope instead of lower.
    algorithm : ParabolicAlgorithm or str

    Returns
    -------
    ndarray of float64, shape (N,)
    """
    line = np.asarray(values, dtype=np.float64)
    if line.ndim != 1:
        raise ValueError(f"Expected a 1-D line, got shape {line.shape}")
    if line.size == 0:
        raise ValueError("Cannot compute the envelope of an empty line")
    if scale < 0:
        raise ValueError(f"scale must be >= 0, got {scale}")
    if scale == 0:
        return line.copy()
    return _solve_lines(line[None, :], scale, dilate, algorithm)[0]


def envelope_along_axis(
    data: np.ndarray,
    axis: int,
    scale: float,
    dilate: bool = False,
    algorithm=ParabolicAlgorithm.INTERSECTION,
) -> np.ndarray:
    """
    Solve the line envelope for every line of *data* parallel to *axis*.

    Parameters
    ----------
    data : ndarray
        Any shape; converted to float64.  Not modified.
    axis : int
    scale : float
        Parabola scale in samples along *axis*.  0 returns a copy.
    dilate : bool
    algorithm : ParabolicAlgorithm or str

    Returns
    -------
    ndarray of float64, same shape as *data*
    """
    data = np.asarray(data, dtype=np.float64)
    if scale < 0:
        raise ValueError(f"scale must be >= 0, got {scale}")
    if scale == 0 or data.shape[axis] == 1:
        return data.copy()

    moved = np.moveaxis(data, axis, -1)
    lines = moved.reshape(-1, moved.shape[-1])
    solved = _solve_lines(lines, scale, dilate, algorithm)
    return np.moveaxis(solved.reshape(moved.shape), -1, axis)

"""
Shared fixtures for paramorph tests.

Provides small synthetic images (noise, Gaussian blobs, spikes) plus a
brute-force envelope used as the reference for the line solvers.
"""
from __future__ import annotations

import numpy as np
import pytest


def brute_envelope(values, scale, dilate=False):
    """O(N^2) reference: min_j f[j] + (i-j)^2/s, or max_j f[j] - (i-j)^2/s."""
    f = np.asarray(values, dtype=np.float64)
    idx = np.arange(f.size)
    penalty = (idx[:, None] - idx[None, :]) ** 2 / scale
    if dilate:
        return np.max(f[None, :] - penalty, axis=1)
    return np.min(f[None, :] + penalty, axis=1)


def make_blob(
    image: np.ndarray,
    center,
    sigma: float,
    amplitude: float = 1.0,
) -> None:
    """Add an isotropic Gaussian blob to the N-D `image` in-place."""
    grids = np.ogrid[tuple(slice(0, n) for n in image.shape)]
    r2 = sum((g - c) ** 2 for g, c in zip(grids, center))
    image += amplitude * np.exp(-r2 / (2 * sigma ** 2))


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def noisy_image(rng):
    """48×40 float64 image: smooth blobs plus noise."""
    image = rng.normal(0.0, 0.2, size=(48, 40))
    make_blob(image, (12, 10), sigma=4.0, amplitude=3.0)
    make_blob(image, (30, 28), sigma=6.0, amplitude=-2.0)
    return image


@pytest.fixture
def volume(rng):
    """16×18×20 float32 volume of uniform noise."""
    return rng.uniform(0.0, 10.0, size=(16, 18, 20)).astype(np.float32)


@pytest.fixture
def binary_mask(rng):
    """40×36 mask: 0 = outside (distance seeds), 255 = inside."""
    mask = np.full((40, 36), 255, dtype=np.uint8)
    mask[rng.random(mask.shape) < 0.03] = 0
    mask[5, 5] = 0
    return mask

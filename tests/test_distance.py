"""
Tests for the morphological distance transform (distance.py).
"""
from __future__ import annotations

import numpy as np
import pytest

from paramorph import Image
from paramorph.distance import (
    distance_transform,
    reference_distance_transform,
    signed_distance_transform,
    threshold_mask,
)


class TestThresholdMask:
    def test_inside_outside_values(self):
        image = np.array([[0.0, 50.0, 100.0, 200.0]])
        mask = threshold_mask(image, upper=100.0)
        assert mask.dtype == np.uint8
        np.testing.assert_array_equal(mask.data, [[0, 0, 0, 255]])

    def test_band(self):
        image = np.arange(6, dtype=float)
        mask = threshold_mask(image, upper=3.0, lower=2.0, inside_value=1, outside_value=0)
        np.testing.assert_array_equal(mask.data, [0, 0, 1, 1, 0, 0])

    def test_float_values(self):
        mask = threshold_mask(np.arange(4.0), upper=1.0, inside_value=-1.5)
        assert mask.dtype == np.float64
        np.testing.assert_array_equal(mask.data, [-1.5, -1.5, 255.0, 255.0])

    def test_geometry_kept(self):
        image = Image(np.zeros((3, 4)), spacing=(0.5, 2.0), origin=(1.0, 1.0))
        mask = threshold_mask(image, upper=1.0)
        assert mask.spacing == (0.5, 2.0)
        assert mask.origin == (1.0, 1.0)


class TestDistanceTransform:
    """Parabolic erosion of the seed image equals the exact Euclidean distance."""

    def test_matches_scipy_2d(self, binary_mask):
        ours = distance_transform(binary_mask).data
        ref = reference_distance_transform(binary_mask).data
        np.testing.assert_allclose(ours, ref, rtol=1e-12, atol=1e-12)

    @pytest.mark.parametrize("spacing", [(1.0, 1.0, 1.0), (0.5, 0.25, 1.0), (2.0, 1.0, 3.0)])
    def test_matches_scipy_3d_with_spacing(self, rng, spacing):
        mask = np.full((12, 14, 10), 255, dtype=np.uint8)
        mask[rng.random(mask.shape) < 0.02] = 0
        mask[0, 0, 0] = 0
        image = Image(mask, spacing=spacing)
        ours = distance_transform(image).data
        ref = reference_distance_transform(image).data
        np.testing.assert_allclose(ours, ref, rtol=1e-10, atol=1e-10)

    def test_spacing_ignored_when_disabled(self, binary_mask):
        image = Image(binary_mask, spacing=(3.0, 0.5))
        ours = distance_transform(image, use_image_spacing=False).data
        ref = reference_distance_transform(binary_mask).data
        np.testing.assert_allclose(ours, ref, rtol=1e-12, atol=1e-12)

    def test_contact_point_algorithm(self, binary_mask):
        a = distance_transform(binary_mask, algorithm="intersection").data
        b = distance_transform(binary_mask, algorithm="contact_point").data
        np.testing.assert_allclose(a, b, rtol=1e-9, atol=1e-9)

    def test_squared(self, binary_mask):
        d = distance_transform(binary_mask).data
        d2 = distance_transform(binary_mask, squared=True).data
        np.testing.assert_allclose(d2, d ** 2, rtol=1e-12, atol=1e-9)

    def test_single_seed(self):
        mask = np.ones((7, 9), dtype=np.uint8)
        mask[3, 4] = 0
        d = distance_transform(mask, squared=True).data
        ii, jj = np.indices(mask.shape)
        np.testing.assert_array_equal(d, (ii - 3) ** 2 + (jj - 4) ** 2)

    def test_zero_at_outside_samples(self, binary_mask):
        d = distance_transform(binary_mask).data
        assert np.all(d[binary_mask == 0] == 0.0)
        assert np.all(d[binary_mask != 0] >= 1.0)

    def test_custom_outside_value(self):
        line = np.array([7, 1, 1, 1, 7, 1])
        d = distance_transform(line, outside_value=7).data
        np.testing.assert_allclose(d, [0, 1, 2, 1, 0, 1])

    def test_no_outside_sample_is_inf(self):
        d = distance_transform(np.ones((4, 4))).data
        assert np.all(np.isinf(d))

    def test_geometry_kept(self, binary_mask):
        image = Image(binary_mask, spacing=(0.5, 0.5), origin=(-1.0, 2.0))
        out = distance_transform(image)
        assert out.spacing == image.spacing
        assert out.origin == image.origin
        assert out.dtype == np.float64

    def test_thresholded_pipeline(self, noisy_image):
        """Threshold, then distance from the thresholded region."""
        mask = threshold_mask(noisy_image, upper=0.0)
        ours = distance_transform(mask).data
        ref = reference_distance_transform(mask).data
        np.testing.assert_allclose(ours, ref, rtol=1e-12, atol=1e-12)


class TestSignedDistance:
    def test_signs(self, binary_mask):
        sd = signed_distance_transform(binary_mask).data
        inside = binary_mask != 0
        assert np.all(sd[inside] < 0)
        assert np.all(sd[~inside] > 0)

    def test_magnitudes(self, binary_mask):
        sd = signed_distance_transform(binary_mask).data
        inside = binary_mask != 0
        inner = reference_distance_transform(binary_mask).data
        np.testing.assert_allclose(-sd[inside], inner[inside], rtol=1e-12)

    def test_inside_is_positive(self, binary_mask):
        a = signed_distance_transform(binary_mask).data
        b = signed_distance_transform(binary_mask, inside_is_positive=True).data
        np.testing.assert_array_equal(a, -b)

    def test_one_dimensional(self):
        line = np.array([0, 0, 5, 5, 5, 0])
        sd = signed_distance_transform(line).data
        np.testing.assert_allclose(sd, [2, 1, -1, -2, -1, 1])

    @pytest.mark.parametrize("value", [0, 1])
    def test_needs_both_regions(self, value):
        with pytest.raises(ValueError, match="both inside and outside"):
            signed_distance_transform(np.full((3, 3), value))

"""
Tests for the change-tracking filter (filters.py).
"""
from __future__ import annotations

import numpy as np
import pytest

from paramorph import (
    Image,
    MorphConfig,
    Operation,
    ParabolicAlgorithm,
    ParabolicCloseFilter,
    ParabolicOpenCloseFilter,
    ParabolicOpenFilter,
)
from paramorph.border import safe_open_close
from paramorph.filters import Stage
from paramorph.morph import parabolic_open_close


@pytest.fixture
def open_filter(noisy_image):
    filt = ParabolicOpenFilter(scale=2.0)
    filt.set_input(noisy_image)
    return filt


class TestStage:
    def test_pull_caches(self):
        calls = []
        source = Stage("source", lambda: calls.append(1) or 3)
        double = Stage("double", lambda x: 2 * x, [source])
        assert double.pull() == 6
        assert double.pull() == 6
        assert len(calls) == 1
        assert double.executions == 1

    def test_invalidate_walks_downstream(self):
        a = Stage("a", lambda: 1)
        b = Stage("b", lambda x: x + 1, [a])
        c = Stage("c", lambda x: x + 1, [b])
        c.pull()
        assert not c.needs_update
        a.invalidate()
        assert b.needs_update and c.needs_update
        assert c.pull() == 3
        assert (a.executions, b.executions, c.executions) == (2, 2, 2)


class TestExecution:
    def test_matches_functional_api(self, open_filter, noisy_image):
        expected = safe_open_close(noisy_image, "open", MorphConfig(scale=2.0)).data
        np.testing.assert_allclose(open_filter.update().data, expected)

    def test_repeated_update_is_cached(self, open_filter):
        first = open_filter.update()
        assert not open_filter.needs_update
        second = open_filter.update()
        assert second is first
        assert open_filter.stage("morph").executions == 1

    def test_safe_border_off_uses_bare_operator(self, noisy_image):
        filt = ParabolicCloseFilter(scale=3.0, safe_border=False)
        filt.set_input(noisy_image)
        np.testing.assert_array_equal(
            filt.update().data,
            parabolic_open_close(noisy_image, "close", 3.0).data,
        )
        assert filt.stage("pad").executions == 0
        assert filt.stage("morph_direct").executions == 1

    def test_no_input(self):
        filt = ParabolicOpenFilter()
        assert filt.needs_update
        with pytest.raises(ValueError, match="No input image set"):
            filt.update()

    def test_call_returns_array(self, noisy_image):
        filt = ParabolicOpenCloseFilter("close", scale=1.0)
        out = filt(noisy_image)
        assert isinstance(out, np.ndarray)
        assert out.shape == noisy_image.shape

    def test_spacing_passed_with_input(self, noisy_image):
        filt = ParabolicOpenFilter(scale=4.0, use_image_spacing=True)
        filt.set_input(noisy_image, spacing=(2.0, 2.0))
        expected = safe_open_close(noisy_image, "open", MorphConfig(scale=1.0)).data
        np.testing.assert_allclose(filt.update().data, expected)
        assert filt.update().spacing == (2.0, 2.0)

    def test_scale_dimension_checked_at_update(self, noisy_image):
        filt = ParabolicOpenFilter(scale=(1.0, 2.0, 3.0))
        filt.set_input(noisy_image)
        with pytest.raises(ValueError, match="3 components but the image has 2 axes"):
            filt.update()


class TestChangeTracking:
    def test_same_scale_is_noop(self, open_filter):
        open_filter.update()
        count = open_filter.modified_count
        open_filter.set_scale(2.0)
        assert open_filter.modified_count == count
        assert not open_filter.needs_update
        open_filter.update()
        assert open_filter.stage("morph").executions == 1

    def test_same_vector_is_noop(self, noisy_image):
        filt = ParabolicOpenFilter(scale=(2.0, 3.0))
        filt.set_input(noisy_image)
        count = filt.modified_count
        filt.set_scale([2.0, 3.0])
        assert filt.modified_count == count

    def test_vector_to_uniform_is_a_change(self, volume):
        """A uniform scale replaces an equal-valued vector and broadcasts to 3-D."""
        filt = ParabolicOpenFilter(scale=(2.0, 2.0))
        count = filt.modified_count
        filt.set_scale(2.0)
        assert filt.get_scale() == 2.0
        assert filt.modified_count == count + 1

        filt.set_input(volume)
        expected = safe_open_close(volume, "open", MorphConfig(scale=2.0)).data
        np.testing.assert_allclose(filt.update().data, expected)

    def test_uniform_to_vector_is_a_change(self, open_filter):
        count = open_filter.modified_count
        open_filter.set_scale((2.0, 2.0))
        assert open_filter.get_scale() == (2.0, 2.0)
        assert open_filter.modified_count == count + 1

    def test_new_scale_invalidates_every_stage(self, open_filter):
        open_filter.update()
        count = open_filter.modified_count
        open_filter.set_scale(5.0)
        assert open_filter.modified_count == count + 1
        assert open_filter.needs_update
        for stage in open_filter.stages.values():
            assert stage.needs_update, stage.name

    def test_new_scale_recomputes(self, open_filter, noisy_image):
        first = open_filter.update()
        open_filter.scale = 8.0
        second = open_filter.update()
        assert second is not first
        expected = safe_open_close(noisy_image, "open", MorphConfig(scale=8.0)).data
        np.testing.assert_allclose(second.data, expected)
        assert open_filter.stage("morph").executions == 2

    def test_internal_stage_never_stale(self, open_filter, noisy_image):
        """Pulling the pad stage directly reflects the latest configuration."""
        open_filter.update()
        small = open_filter.stage("pad").pull().shape
        open_filter.set_scale(50.0)
        large = open_filter.stage("pad").pull().shape
        assert all(b > a for a, b in zip(small, large))

    def test_negative_scale_rejected_and_state_kept(self, open_filter):
        open_filter.update()
        count = open_filter.modified_count
        with pytest.raises(ValueError, match="scale must be >= 0"):
            open_filter.set_scale(-1.0)
        assert open_filter.get_scale() == 2.0
        assert open_filter.modified_count == count
        assert not open_filter.needs_update

    @pytest.mark.parametrize("setter, value", [
        ("set_use_image_spacing", True),
        ("set_safe_border", False),
        ("set_algorithm", "contact_point"),
    ])
    def test_flag_setters(self, open_filter, setter, value):
        open_filter.update()
        count = open_filter.modified_count
        getattr(open_filter, setter)(value)
        assert open_filter.modified_count == count + 1
        getattr(open_filter, setter)(value)
        assert open_filter.modified_count == count + 1

    def test_algorithm_enum_and_string_equal(self, open_filter):
        count = open_filter.modified_count
        open_filter.set_algorithm("INTERSECTION")
        open_filter.set_algorithm(ParabolicAlgorithm.INTERSECTION)
        assert open_filter.modified_count == count

    def test_same_input_is_noop(self, open_filter, noisy_image):
        count = open_filter.modified_count
        open_filter.set_input(noisy_image)
        assert open_filter.modified_count == count

    def test_same_input_same_spacing_is_noop(self, noisy_image):
        filt = ParabolicOpenFilter(scale=2.0)
        filt.set_input(noisy_image, spacing=(2.0, 2.0))
        filt.update()
        count = filt.modified_count
        filt.set_input(noisy_image, spacing=(2.0, 2.0))
        assert filt.modified_count == count
        assert not filt.needs_update

    def test_dropping_spacing_restores_default(self, noisy_image):
        filt = ParabolicOpenFilter(scale=2.0)
        filt.set_input(noisy_image, spacing=(2.0, 2.0))
        assert filt.update().spacing == (2.0, 2.0)
        count = filt.modified_count
        filt.set_input(noisy_image)
        assert filt.modified_count == count + 1
        assert filt.update().spacing == (1.0, 1.0)

    def test_new_spacing_invalidates(self, open_filter, noisy_image):
        open_filter.update()
        open_filter.set_input(noisy_image, spacing=(0.5, 0.5))
        assert open_filter.needs_update
        assert open_filter.update().spacing == (0.5, 0.5)

    def test_new_input_invalidates(self, open_filter, noisy_image):
        open_filter.update()
        open_filter.set_input(noisy_image * 2.0)
        assert open_filter.needs_update
        assert open_filter.stage("stats").needs_update

    def test_observer_notified(self, open_filter):
        seen = []
        open_filter.add_observer(seen.append)
        open_filter.set_scale(2.0)
        open_filter.set_scale(3.0)
        open_filter.set_safe_border(False)
        assert seen == [open_filter, open_filter]

    def test_toggle_safe_border_back(self, open_filter):
        safe = open_filter.update().data.copy()
        open_filter.safe_border = False
        open_filter.update()
        open_filter.safe_border = True
        np.testing.assert_array_equal(open_filter.update().data, safe)


class TestConfigurationSurface:
    def test_operation_fixed(self):
        filt = ParabolicCloseFilter()
        assert filt.operation is Operation.CLOSE
        with pytest.raises(AttributeError):
            filt.operation = Operation.OPEN

    def test_defaults(self):
        filt = ParabolicOpenCloseFilter("open")
        assert filt.scale == 1.0
        assert filt.safe_border is True
        assert filt.use_image_spacing is False
        assert filt.algorithm is ParabolicAlgorithm.INTERSECTION

    def test_config_copy(self, open_filter):
        cfg = open_filter.config
        cfg.scale = 99.0
        assert open_filter.scale == 2.0

    def test_unknown_stage(self, open_filter):
        with pytest.raises(KeyError, match="No stage 'blur'"):
            open_filter.stage("blur")

    def test_repr(self, open_filter):
        text = repr(open_filter)
        assert "ParabolicOpenFilter" in text
        assert "scale=2.0" in text

    def test_image_input(self, noisy_image):
        image = Image(noisy_image, spacing=(1.0, 1.0))
        filt = ParabolicOpenFilter(scale=2.0)
        filt.set_input(image)
        assert filt.update().shape == image.shape

"""
Change-tracking opening / closing filter.

``ParabolicOpenCloseFilter`` is a pull-based filter: ``update()`` recomputes
only what is out of date and otherwise returns the cached result.  Internally
it owns a small graph of cacheable stages

    input ─┬─ stats ─┐
           ├─────────┴─ pad ── morph ── crop      (safe border)
           └─ morph_direct                        (no safe border)

Every setter is an invalidation point: setting the current value does nothing;
a new value is validated, stored, and then every internal stage is invalidated
before the setter returns, so querying an internal stage directly can never
yield a stale result.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from .border import border_pad_amount
from .config import (
    MorphConfig,
    Operation,
    ParabolicAlgorithm,
    ScaleType,
    normalize_scale,
    same_scale,
)
from .image import Image, ImageStatistics, as_image, compute_statistics, crop_image, pad_image
from .morph import parabolic_open_close


class Stage:
    """
    One cacheable node of a filter graph.

    Parameters
    ----------
    name : str
    compute : callable
        Called with the outputs of *inputs* (in order).
    inputs : sequence of Stage
    """

    def __init__(self, name: str, compute: Callable, inputs: Sequence["Stage"] = ()):
        self.name = name
        self._compute = compute
        self.inputs = tuple(inputs)
        self.downstream: List[Stage] = []
        for stage in self.inputs:
            stage.downstream.append(self)
        self._output = None
        self._valid = False
        self.executions = 0

    @property
    def needs_update(self) -> bool:
        return not self._valid or any(s.needs_update for s in self.inputs)

    def invalidate(self) -> None:
        """Drop the cached output here and in every downstream stage."""
        self._valid = False
        self._output = None
        for stage in self.downstream:
            stage.invalidate()

    def pull(self):
        """Return the output, recomputing this stage and its inputs as needed."""
        args = [stage.pull() for stage in self.inputs]
        if not self._valid:
            self._output = self._compute(*args)
            self._valid = True
            self.executions += 1
        return self._output

    def __repr__(self) -> str:
        state = "valid" if self._valid else "invalid"
        return f"Stage({self.name!r}, {state}, executions={self.executions})"


class ParabolicOpenCloseFilter:
    """
    Parabolic opening or closing with optional safe border.

    Parameters
    ----------
    operation : Operation or str
        Fixed for the lifetime of the filter.
    scale : float or sequence of float
    use_image_spacing : bool
    safe_border : bool
    algorithm : ParabolicAlgorithm or str

    Examples
    --------
    >>> filt = ParabolicOpenCloseFilter("open", scale=4.0)
    >>> filt.set_input(image)
    >>> opened = filt.update()          # computes
    >>> filt.update() is opened         # cached
    True
    """

    def __init__(
        self,
        operation,
        scale: ScaleType = 1.0,
        use_image_spacing: bool = False,
        safe_border: bool = True,
        algorithm=ParabolicAlgorithm.INTERSECTION,
    ):
        self._operation = Operation.coerce(operation)
        self._cfg = MorphConfig(
            scale=scale,
            use_image_spacing=use_image_spacing,
            safe_border=safe_border,
            algorithm=algorithm,
        )
        self._raw_input = None
        self._input_image: Optional[Image] = None
        self._observers: List[Callable] = []
        self.modified_count = 0

        self._input = Stage("input", self._read_input)
        self._stats = Stage("stats", compute_statistics, [self._input])
        self._pad = Stage("pad", self._pad_input, [self._input, self._stats])
        self._morph = Stage("morph", self._open_close, [self._pad])
        self._crop = Stage("crop", self._crop_result, [self._morph, self._input])
        self._direct = Stage("morph_direct", self._open_close, [self._input])
        self._stages: Dict[str, Stage] = {
            s.name: s for s in (self._input, self._stats, self._pad,
                                self._morph, self._crop, self._direct)
        }

    # ------------------------------------------------------------------ #
    # Stage computations
    # ------------------------------------------------------------------ #

    def _read_input(self) -> Image:
        if self._input_image is None:
            raise ValueError("No input image set; call set_input() first")
        return self._input_image

    def _pad_input(self, image: Image, stats: ImageStatistics) -> Image:
        pad = border_pad_amount(
            self._cfg.scale_for(image.ndim), image.spacing,
            self._cfg.use_image_spacing, stats.value_range,
        )
        return pad_image(image, pad, self._operation.pad_value(stats))

    def _open_close(self, image: Image) -> Image:
        return parabolic_open_close(
            image, self._operation, self._cfg.scale_for(image.ndim),
            use_image_spacing=self._cfg.use_image_spacing,
            algorithm=self._cfg.algorithm,
        )

    def _crop_result(self, result: Image, original: Image) -> Image:
        start = [(n_pad - n) // 2 for n_pad, n in zip(result.shape, original.shape)]
        cropped = crop_image(result, start=start, size=original.shape)
        return original.with_data(cropped.data)

    # ------------------------------------------------------------------ #
    # Change tracking
    # ------------------------------------------------------------------ #

    def modified(self) -> None:
        """Invalidate every internal stage and notify observers."""
        for stage in self._stages.values():
            stage.invalidate()
        self.modified_count += 1
        for callback in self._observers:
            callback(self)

    def add_observer(self, callback: Callable) -> None:
        """Register ``callback(filter)`` to be called on every modification."""
        self._observers.append(callback)

    def stage(self, name: str) -> Stage:
        """Return the internal stage called *name*."""
        try:
            return self._stages[name]
        except KeyError:
            raise KeyError(f"No stage {name!r}; stages: {', '.join(self._stages)}") from None

    @property
    def stages(self) -> Dict[str, Stage]:
        return dict(self._stages)

    def _active_stages(self) -> List[Stage]:
        if self._cfg.safe_border:
            return [self._input, self._stats, self._pad, self._morph, self._crop]
        return [self._input, self._direct]

    @property
    def needs_update(self) -> bool:
        """True when any stage on the active path must recompute."""
        return any(stage.needs_update for stage in self._active_stages())

    # ------------------------------------------------------------------ #
    # Configuration surface
    # ------------------------------------------------------------------ #

    @property
    def operation(self) -> Operation:
        return self._operation

    @property
    def config(self) -> MorphConfig:
        return replace(self._cfg)

    def set_input(self, image, spacing=None) -> None:
        """Set the input; the same data with the same geometry is a no-op."""
        candidate = as_image(image, spacing=spacing)
        current = self._input_image
        if (current is not None and image is self._raw_input
                and candidate.spacing == current.spacing
                and candidate.origin == current.origin):
            return
        self._input_image = candidate
        self._raw_input = image
        self.modified()

    def get_scale(self) -> ScaleType:
        return self._cfg.scale

    def set_scale(self, scale) -> None:
        """Set one scale for every axis, or a per-axis vector; negative values are rejected."""
        scale = normalize_scale(scale)
        if same_scale(scale, self._cfg.scale):
            return
        self._cfg = replace(self._cfg, scale=scale)
        self.modified()

    def get_use_image_spacing(self) -> bool:
        return self._cfg.use_image_spacing

    def set_use_image_spacing(self, flag: bool) -> None:
        flag = bool(flag)
        if flag == self._cfg.use_image_spacing:
            return
        self._cfg = replace(self._cfg, use_image_spacing=flag)
        self.modified()

    def get_safe_border(self) -> bool:
        return self._cfg.safe_border

    def set_safe_border(self, flag: bool) -> None:
        flag = bool(flag)
        if flag == self._cfg.safe_border:
            return
        self._cfg = replace(self._cfg, safe_border=flag)
        self.modified()

    def get_algorithm(self) -> ParabolicAlgorithm:
        return self._cfg.algorithm

    def set_algorithm(self, algorithm) -> None:
        algorithm = ParabolicAlgorithm.coerce(algorithm)
        if algorithm is self._cfg.algorithm:
            return
        self._cfg = replace(self._cfg, algorithm=algorithm)
        self.modified()

    scale = property(get_scale, set_scale)
    use_image_spacing = property(get_use_image_spacing, set_use_image_spacing)
    safe_border = property(get_safe_border, set_safe_border)
    algorithm = property(get_algorithm, set_algorithm)

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #

    def update(self) -> Image:
        """Bring the output up to date and return it."""
        if self._cfg.safe_border:
            return self._crop.pull()
        return self._direct.pull()

    @property
    def output(self) -> Image:
        return self.update()

    def __call__(self, image) -> np.ndarray:
        """Set *image* as input and return the result array."""
        self.set_input(image)
        return self.update().data

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(operation={self._operation.value!r}, "
            f"scale={self._cfg.scale!r}, use_image_spacing={self._cfg.use_image_spacing}, "
            f"safe_border={self._cfg.safe_border}, algorithm={self._cfg.algorithm.value!r})"
        )


class ParabolicOpenFilter(ParabolicOpenCloseFilter):
    """Parabolic opening; removes bright structures narrower than the parabola."""

    def __init__(self, **kwargs):
        super().__init__(Operation.OPEN, **kwargs)


class ParabolicCloseFilter(ParabolicOpenCloseFilter):
    """Parabolic closing; fills dark structures narrower than the parabola."""

    def __init__(self, **kwargs):
        super().__init__(Operation.CLOSE, **kwargs)

"""
paramorph — Border-safe parabolic morphology for N-dimensional images.

Quick start:
    from paramorph import MorphConfig, open_close, ParabolicOpenFilter
    from paramorph.io import read_image

    image = read_image("volume.mrc")
    cfg = MorphConfig(scale=16.0, use_image_spacing=True)
    opened = open_close(image, "open", cfg)            # Image
    # or: a cached, change-tracking filter
    filt = ParabolicOpenFilter(scale=16.0)
    filt.set_input(image)
    opened = filt.update()
"""

__version__ = "0.1.0"

from .config import MorphConfig, Operation, ParabolicAlgorithm
from .image import Image
from .envelope import line_envelope
from .morph import parabolic_erode, parabolic_dilate, parabolic_open_close
from .border import safe_open_close
from .filters import ParabolicOpenCloseFilter, ParabolicOpenFilter, ParabolicCloseFilter
from .distance import distance_transform, signed_distance_transform
from .pipeline import open_close, process_image, process_batch

__all__ = [
    "MorphConfig",
    "Operation",
    "ParabolicAlgorithm",
    "Image",
    "line_envelope",
    "parabolic_erode",
    "parabolic_dilate",
    "parabolic_open_close",
    "safe_open_close",
    "ParabolicOpenCloseFilter",
    "ParabolicOpenFilter",
    "ParabolicCloseFilter",
    "distance_transform",
    "signed_distance_transform",
    "open_close",
    "process_image",
    "process_batch",
    "__version__",
]

"""
I/O helpers: read and write images (NumPy / MRC / TIFF) with their spacing.
"""
from __future__ import annotations

from pathlib import Path
from typing import List

import numpy as np

from .image import Image


IMAGE_EXTENSIONS = (".npy", ".mrc", ".mrcs", ".map", ".tif", ".tiff")


# --------------------------------------------------------------------------- #
# Reading
# --------------------------------------------------------------------------- #

def read_image(path: str | Path) -> Image:
    """
    Load an N-dimensional image.

    Supports:
      - NumPy          (.npy)               spacing 1.0
      - MRC / MRC2014  (.mrc, .mrcs, .map)  spacing from the voxel size
      - TIFF           (.tif, .tiff)        spacing 1.0
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".npy":
        return Image(np.load(str(path)))
    elif suffix in {".mrc", ".mrcs", ".map"}:
        return _read_mrc(path)
    elif suffix in {".tif", ".tiff"}:
        return _read_tiff(path)
    else:
        raise ValueError(
            f"Unsupported file format: {suffix!r}. Use .npy, .mrc/.map or .tif/.tiff"
        )


def _read_mrc(path: Path) -> Image:
    try:
        import mrcfile
    except ImportError:
        raise ImportError("mrcfile is required to read MRC files: pip install mrcfile")

    with mrcfile.open(str(path), mode="r", permissive=True) as mrc:
        data = np.array(mrc.data)
        voxel = mrc.voxel_size

    # MRC data is stored (z, y, x); voxel_size is (x, y, z)
    sizes = [float(voxel.z), float(voxel.y), float(voxel.x)][-data.ndim:]
    spacing = tuple(s if s > 0 else 1.0 for s in sizes)
    if data.ndim == 3 and data.shape[0] == 1:
        data = data[0]
        spacing = spacing[1:]
    return Image(data, spacing=spacing)


def _read_tiff(path: Path) -> Image:
    try:
        import tifffile
    except ImportError:
        raise ImportError("tifffile is required to read TIFF files: pip install tifffile")

    data = tifffile.imread(str(path))
    if data.ndim == 3 and data.shape[2] in {3, 4}:
        # HxWxC: convert to grayscale
        data = data.mean(axis=2)
    return Image(data)


# --------------------------------------------------------------------------- #
# Writing
# --------------------------------------------------------------------------- #

def write_image(image: Image, path: str | Path) -> Path:
    """Write *image* to *path*; the format follows the file extension."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    suffix = path.suffix.lower()

    if suffix == ".npy":
        np.save(str(path), np.asarray(image.data))
    elif suffix in {".mrc", ".mrcs", ".map"}:
        _write_mrc(image, path)
    elif suffix in {".tif", ".tiff"}:
        try:
            import tifffile
        except ImportError:
            raise ImportError("tifffile is required to write TIFF files: pip install tifffile")
        tifffile.imwrite(str(path), np.asarray(image.data))
    else:
        raise ValueError(f"Unsupported file format: {suffix!r}")
    return path


def _write_mrc(image: Image, path: Path) -> None:
    try:
        import mrcfile
    except ImportError:
        raise ImportError("mrcfile is required to write MRC files: pip install mrcfile")

    if image.ndim not in (2, 3):
        raise ValueError(f"MRC files hold 2-D or 3-D data, got {image.ndim}-D")
    data = np.asarray(image.data)
    if data.dtype not in (np.int8, np.int16, np.uint8, np.uint16, np.float32):
        data = data.astype(np.float32)
    with mrcfile.new(str(path), overwrite=True) as mrc:
        mrc.set_data(np.ascontiguousarray(data))
        # voxel_size is (x, y, z); image axes are (z,) y, x
        spacing = tuple(reversed(image.spacing))
        mrc.voxel_size = spacing if len(spacing) == 3 else spacing + (1.0,)


# --------------------------------------------------------------------------- #
# Utility
# --------------------------------------------------------------------------- #

def list_images(directory: str | Path, extensions=IMAGE_EXTENSIONS) -> List[Path]:
    """Return sorted list of image paths in a directory."""
    directory = Path(directory)
    paths = []
    for ext in extensions:
        paths.extend(directory.glob(f"*{ext}"))
    return sorted(set(paths))

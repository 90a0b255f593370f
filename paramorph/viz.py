"""
Visualisation helpers: before/after comparison figures and save_figure.

All figures are saved as PNG (300 DPI) + SVG by default.
"""
from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

import numpy as np
import matplotlib
matplotlib.use("Agg")   # headless by default; overridden when display available
import matplotlib.pyplot as plt


def save_figure(
    fig: plt.Figure,
    name: str,
    outdir: str | Path,
    formats: Sequence[str] = ("png", "svg"),
    dpi: int = 300,
) -> List[Path]:
    """
    Save a matplotlib Figure to one or more formats.

    Parameters
    ----------
    fig : Figure
    name : str
        Base filename without extension.
    outdir : str or Path
        Output directory (created if needed).
    formats : sequence of str
        File formats to write (e.g. ("png", "svg")).
    dpi : int
        Resolution for raster formats.

    Returns
    -------
    list of Path
        Paths to saved files.
    """
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    saved = []
    for fmt in formats:
        p = outdir / f"{name}.{fmt}"
        fig.savefig(str(p), dpi=dpi, bbox_inches="tight")
        saved.append(p)
    return saved


def central_slice(data: np.ndarray) -> np.ndarray:
    """
    Reduce an N-D array to something ``imshow`` can draw.

    1-D arrays become a single row; N-D arrays (N > 2) are cut through the
    middle of every leading axis.
    """
    data = np.asarray(data)
    if data.ndim == 1:
        return data[None, :]
    while data.ndim > 2:
        data = data[data.shape[0] // 2]
    return data


def plot_comparison(
    before: np.ndarray,
    after: np.ndarray,
    outdir: str | Path,
    name: str = "comparison",
    title: str = "",
    formats: Sequence[str] = ("png", "svg"),
    dpi: int = 300,
) -> List[Path]:
    """
    Side-by-side input / result / difference figure.

    Both panels share the input's 2–98 percentile grey window so the effect of
    the filter is visible as a change in brightness.
    """
    b = central_slice(before).astype(np.float64)
    a = central_slice(after).astype(np.float64)
    p2, p98 = np.percentile(b, (2, 98))

    fig, axes = plt.subplots(1, 3, figsize=(12, 4.2))
    axes[0].imshow(b, cmap="gray", vmin=p2, vmax=p98)
    axes[0].set_title("Input", fontsize=10)
    axes[1].imshow(a, cmap="gray", vmin=p2, vmax=p98)
    axes[1].set_title("Result", fontsize=10)
    diff = axes[2].imshow(a - b, cmap="RdBu_r")
    axes[2].set_title("Result − input", fontsize=10)
    fig.colorbar(diff, ax=axes[2], fraction=0.046, pad=0.04)
    for ax in axes:
        ax.set_xticks([])
        ax.set_yticks([])
    if title:
        fig.suptitle(title, fontsize=11)
    fig.tight_layout()

    saved = save_figure(fig, name, outdir, formats=formats, dpi=dpi)
    plt.close(fig)
    return saved

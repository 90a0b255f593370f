"""
Orchestrator: one-shot opening/closing and file-level batch processing.

Stages per image (process_image):
  1. Read the image (with spacing, when the format carries it)
  2. Border-safe parabolic opening or closing
  3. Write the result next to the other outputs
  4. Optional before/after figure
"""
from __future__ import annotations

import csv
import multiprocessing
import time
from pathlib import Path
from typing import List, Optional

from .border import safe_open_close
from .config import MorphConfig, Operation
from .image import Image, as_image, compute_statistics
from .io import list_images, read_image, write_image


def open_close(image, operation, cfg: Optional[MorphConfig] = None) -> Image:
    """
    Parabolic opening or closing of an array or Image.

    Parameters
    ----------
    image : Image or ndarray
    operation : Operation or str
    cfg : MorphConfig or None (uses defaults: scale 1, safe border)

    Returns
    -------
    Image
    """
    return safe_open_close(as_image(image), operation, cfg)


def process_image(
    path: str | Path,
    outdir: str | Path,
    operation,
    cfg: Optional[MorphConfig] = None,
    verbose: bool = True,
    write_figure: bool = False,
    suffix: str = ".npy",
) -> dict:
    """
    Full pipeline for one file: read → open/close → write.

    Parameters
    ----------
    path : str or Path
    outdir : str or Path
        Directory for the result (and figure).
    operation : Operation or str
    cfg : MorphConfig or None (uses defaults)
    verbose : bool
    write_figure : bool
        Also write an input / result comparison figure.
    suffix : str
        Output format, by extension.

    Returns
    -------
    result : dict
        {"path": str, "output": str, "shape": tuple, "time_s": float,
         "input_min", "input_max", "output_min", "output_max": float}
    """
    path = Path(path)
    outdir = Path(outdir)
    operation = Operation.coerce(operation)
    if cfg is None:
        cfg = MorphConfig()

    t0 = time.perf_counter()

    if verbose:
        print(f"  Reading: {path.name}")
    image = read_image(path)

    result = safe_open_close(image, operation, cfg)

    out_path = write_image(result, outdir / f"{path.stem}_{operation.value}{suffix}")

    if write_figure:
        from .viz import plot_comparison
        plot_comparison(
            image.data, result.data, outdir,
            name=f"{path.stem}_{operation.value}",
            title=f"{path.stem}: {operation.value}, scale={cfg.scale}",
        )

    elapsed = time.perf_counter() - t0
    if verbose:
        print(f"  {operation.value} {image.shape}  ({elapsed:.2f}s)")

    in_stats = compute_statistics(image)
    out_stats = compute_statistics(result)
    return {
        "path": str(path),
        "output": str(out_path),
        "shape": tuple(image.shape),
        "time_s": round(elapsed, 3),
        "input_min": in_stats.minimum,
        "input_max": in_stats.maximum,
        "output_min": out_stats.minimum,
        "output_max": out_stats.maximum,
    }


def process_batch(
    image_dir,
    outdir: str | Path,
    operation,
    cfg: Optional[MorphConfig] = None,
    verbose: bool = True,
    workers: int = 1,
    write_figure: bool = False,
) -> List[dict]:
    """
    Process all images in a directory (or from a pre-built path list).

    Parameters
    ----------
    image_dir : str, Path, or list of Path
        Directory of images, or a list of image paths.
    outdir : str or Path
    operation : Operation or str
    cfg : MorphConfig or None
    verbose : bool
    workers : int
        Number of parallel workers.  1 = sequential (no multiprocessing
        overhead).  >1 uses ``multiprocessing.Pool``.
    write_figure : bool

    Returns
    -------
    results : list of dict
    """
    if isinstance(image_dir, (list, tuple)):
        paths = sorted(Path(p) for p in image_dir)
    else:
        paths = list_images(image_dir)
    if not paths:
        print(f"No images found in {image_dir}")
        return []

    operation = Operation.coerce(operation)
    if cfg is None:
        cfg = MorphConfig()

    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    if verbose:
        print(f"Found {len(paths)} image(s) in {image_dir}")
        if workers > 1:
            print(f"Using {workers} workers")

    t0_wall = time.perf_counter()

    if workers > 1:
        args_list = [(str(p), str(outdir), operation.value, cfg, verbose, write_figure)
                     for p in paths]
        with multiprocessing.Pool(workers) as pool:
            results = pool.starmap(_process_one, args_list)
    else:
        results = []
        for i, p in enumerate(paths, 1):
            if verbose:
                print(f"[{i}/{len(paths)}] {p.name}")
            results.append(process_image(p, outdir, operation, cfg=cfg,
                                         verbose=verbose, write_figure=write_figure))

    wall_time = time.perf_counter() - t0_wall
    total_cpu = sum(r["time_s"] for r in results)

    summary_path = outdir / "summary.csv"
    write_summary_csv(results, summary_path)
    if verbose:
        print(f"\nDone. {len(results)} image(s) ({wall_time:.1f}s wall, {total_cpu:.1f}s CPU)")
        print(f"Summary CSV: {summary_path}")

    return results


# --------------------------------------------------------------------------- #
# Multiprocessing helper (must be module-level for pickling)
# --------------------------------------------------------------------------- #

def _process_one(path: str, outdir: str, operation: str, cfg: MorphConfig,
                 verbose: bool, write_figure: bool) -> dict:
    """Thin wrapper around process_image for multiprocessing.Pool.starmap."""
    return process_image(path, outdir, operation, cfg=cfg, verbose=verbose,
                         write_figure=write_figure)


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #

SUMMARY_CSV_FIELDS = [
    "image", "output", "shape", "time_s",
    "input_min", "input_max", "output_min", "output_max",
]


def write_summary_csv(results: List[dict], path: Path) -> None:
    """Write one row per processed image."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="") as fh:
        writer = csv.DictWriter(fh, fieldnames=SUMMARY_CSV_FIELDS)
        writer.writeheader()
        for r in results:
            writer.writerow({
                "image": Path(r["path"]).stem,
                "output": r["output"],
                "shape": "x".join(str(n) for n in r["shape"]),
                "time_s": r["time_s"],
                "input_min": f"{r['input_min']:.6g}",
                "input_max": f"{r['input_max']:.6g}",
                "output_min": f"{r['output_min']:.6g}",
                "output_max": f"{r['output_max']:.6g}",
            })

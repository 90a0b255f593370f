#!/usr/bin/env python3
"""
compare_algorithms.py — time the two line envelope algorithms across scales.

Runs a border-safe opening with CONTACT_POINT and INTERSECTION for every
scale in SCALES, reports the mean time of each and the largest difference
between their results, and writes a timing plot.

Usage (CLI):
    python scripts/compare_algorithms.py --input volume.mrc --outdir outputs/ \\
        --scales 0.5 2 8 32

Usage (Spyder / notebook):
    Edit the CONFIGURATION block below and run the script directly.
"""
from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

import numpy as np

# ============================================================
# CONFIGURATION — Edit these for your data (Spyder-friendly)
# ============================================================
INPUT_PATH = None          # image file; None = synthetic noise volume
OUTPUT_DIR = "outputs/algorithm_timing"

SCALES = (0.25, 1.0, 4.0, 16.0, 64.0)
OPERATION = "open"
USE_IMAGE_SPACING = False
REPEATS = 5
SYNTHETIC_SHAPE = (64, 128, 128)
FIGURE_DPI = 150
VERBOSE = True
# ============================================================


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Time CONTACT_POINT against INTERSECTION for parabolic opening/closing",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("--input", "-i", type=str, default=None,
                   help="Image to process (default: synthetic noise volume)")
    p.add_argument("--outdir", "-o", type=str, default=None,
                   help="Output directory for the CSV and plot")
    p.add_argument("--scales", type=float, nargs="+", default=None,
                   help="Scales to time")
    p.add_argument("--operation", type=str, default=None, choices=["open", "close"])
    p.add_argument("--repeats", "-n", type=int, default=None,
                   help="Timed repetitions per scale and algorithm")
    p.add_argument("--quiet", "-q", action="store_true",
                   help="Suppress progress output")
    return p.parse_args(argv)


def time_call(func, repeats: int) -> float:
    """Mean wall time of *func()* over *repeats* calls, after one warm-up call."""
    func()
    times = []
    for _ in range(repeats):
        t0 = time.perf_counter()
        func()
        times.append(time.perf_counter() - t0)
    return float(np.mean(times))


def main(argv=None):
    args = parse_args(argv)

    outdir = Path(args.outdir) if args.outdir else Path(OUTPUT_DIR)
    scales = tuple(args.scales) if args.scales else SCALES
    operation = args.operation or OPERATION
    repeats = args.repeats if args.repeats is not None else REPEATS
    input_path = args.input or INPUT_PATH
    verbose = not args.quiet and VERBOSE

    from paramorph import Image, MorphConfig, safe_open_close
    from paramorph.io import read_image
    from paramorph.viz import save_figure

    if input_path is not None:
        if not Path(input_path).is_file():
            print(f"ERROR: Input not found: {input_path}", file=sys.stderr)
            sys.exit(1)
        image = read_image(input_path)
    else:
        rng = np.random.default_rng(0)
        image = Image(rng.uniform(0.0, 255.0, size=SYNTHETIC_SHAPE).astype(np.float32))

    if verbose:
        print(f"compare_algorithms  |  {operation}  shape={image.shape}  repeats={repeats}")

    rows = []
    for scale in scales:
        results = {}
        timings = {}
        for algorithm in ("contact_point", "intersection"):
            cfg = MorphConfig(scale=scale, use_image_spacing=USE_IMAGE_SPACING,
                              algorithm=algorithm)
            results[algorithm] = safe_open_close(image, operation, cfg).data
            timings[algorithm] = time_call(
                lambda: safe_open_close(image, operation, cfg), repeats)
        diff = float(np.max(np.abs(results["contact_point"] - results["intersection"])))
        rows.append((scale, timings["contact_point"], timings["intersection"], diff))
        if verbose:
            print(f"  scale={scale:<8g} contact_point={timings['contact_point']:.4f}s"
                  f"  intersection={timings['intersection']:.4f}s  max diff={diff:.3g}")

    outdir.mkdir(parents=True, exist_ok=True)
    csv_path = outdir / "algorithm_timing.csv"
    with open(csv_path, "w") as fh:
        fh.write("scale,contact_point_s,intersection_s,max_abs_diff\n")
        for scale, t_cp, t_int, diff in rows:
            fh.write(f"{scale:g},{t_cp:.6f},{t_int:.6f},{diff:.6g}\n")

    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(figsize=(5.5, 4))
    ax.plot([r[0] for r in rows], [r[1] for r in rows], "o-", label="contact point")
    ax.plot([r[0] for r in rows], [r[2] for r in rows], "s-", label="intersection")
    ax.set_xscale("log")
    ax.set_xlabel("scale")
    ax.set_ylabel("time per call (s)")
    ax.set_title(f"Parabolic {operation}, shape {'x'.join(map(str, image.shape))}", fontsize=10)
    ax.legend(fontsize=9)
    fig.tight_layout()
    saved = save_figure(fig, "algorithm_timing", outdir, formats=("png",), dpi=FIGURE_DPI)
    plt.close(fig)

    print(f"\nTiming CSV: {csv_path}")
    print(f"Plot:       {saved[0]}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

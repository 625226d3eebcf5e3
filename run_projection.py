#!/usr/bin/env python3
"""
run_projection.py – Planar homography estimation & court projection

Loads configuration from configs/default.yaml (or a user-specified file),
estimates the image-to-court homography for every scene defined in the
config, projects the scene's query points onto the court, and writes the
matrices and visualisations to the results directory.

Usage
-----
    python run_projection.py
    python run_projection.py --config configs/default.yaml
    python run_projection.py --scenes broadcast
    python run_projection.py --method ransac --no-plots
"""

import argparse
import os
import sys
import time

import numpy as np
import yaml

# Ensure the project root is on the Python path when invoked directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from planar_homography.court.layout import CourtLayout
from planar_homography.court.mapping import project_to_court
from planar_homography.geometry.homography import compute_homography, reprojection_errors
from planar_homography.geometry.ransac import count_inliers
from planar_homography.utils.point_io import (
    as_points,
    ensure_output_dirs,
    load_points,
    save_matrix,
)
from planar_homography.utils.visualization import save_correspondences, save_court_projection


# ──────────────────────────────────────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────────────────────────────────────

def load_config(path: str) -> dict:
    with open(path, "r") as fh:
        return yaml.safe_load(fh)


def banner(text: str) -> None:
    width = 60
    print("\n" + "─" * width)
    print(f"  {text}")
    print("─" * width)


def scene_points(scene_cfg: dict, key: str) -> np.ndarray:
    """Read ``key`` inline from the scene, or from the CSV named by ``key_file``."""
    if f"{key}_file" in scene_cfg:
        return load_points(scene_cfg[f"{key}_file"])
    return as_points(scene_cfg.get(key, []))


def court_layout(cfg: dict) -> CourtLayout:
    court = cfg.get("court", {})
    defaults = CourtLayout()
    return CourtLayout(
        width=court.get("width", defaults.width),
        length=court.get("length", defaults.length),
        service_line=court.get("service_line", defaults.service_line),
    )


# ──────────────────────────────────────────────────────────────────────────────
# Per-scene pipeline
# ──────────────────────────────────────────────────────────────────────────────

def run_scene(scene_cfg: dict, cfg: dict, results_dir: str,
              save_plots: bool = True) -> dict:
    """Estimate H for a single scene, project its queries and return metrics."""
    name = scene_cfg["name"]
    banner(f"Scene: {name}")

    est_cfg = cfg.get("estimation", {})
    court_cfg = cfg.get("court", {})
    method = est_cfg.get("method", "dlt")
    r_cfg = est_cfg.get("ransac", {})
    threshold = r_cfg.get("inlier_threshold", 3.0)

    metrics = {
        "scene": name,
        "points": 0,
        "method": method,
        "inliers": None,
        "mean_error": None,
        "queries": 0,
        "projected": 0,
        "clamped": 0,
    }

    # ── 1. Correspondences ────────────────────────────────────────────────────
    try:
        src = scene_points(scene_cfg, "image_points")
        dst = scene_points(scene_cfg, "court_points")
    except ValueError as exc:
        print(f"  Invalid correspondences ({exc}), scene skipped")
        return metrics
    metrics["points"] = src.shape[0]
    print(f"  Loaded {src.shape[0]} image points / {dst.shape[0]} court points")

    # ── 2. Homography estimation ─────────────────────────────────────────────
    print(f"  Stage 1 – Homography estimation ({method})")
    kwargs = {}
    if method == "ransac":
        kwargs = dict(num_iterations=r_cfg.get("num_iterations", 2000),
                      threshold=threshold,
                      rng=r_cfg.get("seed"))
    H = compute_homography(src, dst, method=method, **kwargs)

    if H is None:
        print("  Homography estimation failed – too few or degenerate "
              "correspondences, scene skipped")
        return metrics

    with np.printoptions(precision=6, suppress=True):
        print(f"    H =\n{H}")
    save_matrix(os.path.join(results_dir, name, "homography.txt"), H)

    errors = reprojection_errors(H, src, dst)
    inliers = count_inliers(H, src, dst, threshold) if method == "ransac" \
        else np.ones(src.shape[0], dtype=bool)
    metrics["inliers"] = int(inliers.sum())
    metrics["mean_error"] = float(np.mean(errors[inliers]))
    print(f"    Mean reprojection error: {metrics['mean_error']:.4g} "
          f"over {metrics['inliers']} points")

    # ── 3. Court projection ──────────────────────────────────────────────────
    queries = as_points(scene_cfg["query_points"]) if scene_cfg.get("query_points") \
        else np.empty((0, 2))
    metrics["queries"] = queries.shape[0]
    layout = court_layout(cfg)
    corners = scene_cfg.get("court_corners", src[:4])

    projections = []
    if queries.shape[0]:
        print(f"  Stage 2 – Court projection ({queries.shape[0]} points)")
    for q in queries:
        proj = project_to_court(q, H, corners, layout,
                                margin=court_cfg.get("clamp_margin", 1.0),
                                tolerance=court_cfg.get("quad_tolerance", 20.0))
        projections.append(proj)
        if proj is None:
            print(f"    ({q[0]:.1f}, {q[1]:.1f}) → at infinity, skipped")
            continue
        metrics["projected"] += 1
        metrics["clamped"] += int(proj.clamped)
        note = "" if proj.inside else "  [outside court]"
        if proj.clamped:
            note += f"  clamped from ({proj.raw[0]:.2f}, {proj.raw[1]:.2f})"
        print(f"    ({q[0]:.1f}, {q[1]:.1f}) → "
              f"({proj.corrected[0]:.2f}, {proj.corrected[1]:.2f}) m{note}")

    if save_plots:
        save_correspondences(src, dst, H, name, results_dir, inliers=inliers)
        if projections:
            save_court_projection(layout, projections, name, results_dir)

    return metrics


# ──────────────────────────────────────────────────────────────────────────────
# Entry point
# ──────────────────────────────────────────────────────────────────────────────

def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Planar homography estimation and court projection"
    )
    p.add_argument(
        "--config", default="configs/default.yaml",
        help="Path to YAML configuration file (default: configs/default.yaml)",
    )
    p.add_argument(
        "--scenes", nargs="*", default=None,
        help="Subset of scene names to process (default: all scenes in config)",
    )
    p.add_argument(
        "--method", choices=("dlt", "ransac"), default=None,
        help="Override the estimation method from the config",
    )
    p.add_argument(
        "--no-plots", action="store_true",
        help="Skip writing visualisations",
    )
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    # Load configuration
    if not os.path.exists(args.config):
        print(f"[ERROR] Config file not found: {args.config}")
        sys.exit(1)
    cfg = load_config(args.config)

    if args.method:
        cfg.setdefault("estimation", {})["method"] = args.method

    results_dir = cfg.get("results_dir", "results")
    scenes = cfg.get("scenes", [])

    # Optionally restrict to a subset of scenes
    if args.scenes:
        scenes = [s for s in scenes if s["name"] in args.scenes]
        if not scenes:
            print(f"[ERROR] No matching scenes found for: {args.scenes}")
            sys.exit(1)

    # Validate that point files exist
    for sc in scenes:
        for key in ("image_points_file", "court_points_file"):
            if key in sc and not os.path.exists(sc[key]):
                print(f"[ERROR] Point file not found: {sc[key]}")
                sys.exit(1)

    # Create output directories
    ensure_output_dirs([s["name"] for s in scenes], base=results_dir)

    banner("Planar Homography & Court Projection")
    print(f"  Config : {args.config}")
    print(f"  Scenes : {[s['name'] for s in scenes]}")
    print(f"  Method : {cfg.get('estimation', {}).get('method', 'dlt')}")
    print(f"  Output : {results_dir}/")

    t0 = time.time()
    all_metrics = []

    for sc in scenes:
        metrics = run_scene(sc, cfg, results_dir, save_plots=not args.no_plots)
        all_metrics.append(metrics)

    # ── Summary table ──────────────────────────────────────────────────────
    banner("Results Summary")
    header = f"{'Scene':<12} {'Method':>7} {'Points':>7} {'Inliers':>8} {'MeanErr':>10} {'Queries':>8} {'Proj':>5} {'Clamp':>6}"
    print(header)
    print("─" * len(header))
    for m in all_metrics:
        inl = str(m["inliers"]) if m["inliers"] is not None else "–"
        err = f"{m['mean_error']:.3g}" if m["mean_error"] is not None else "–"
        print(f"{m['scene']:<12} {m['method']:>7} {m['points']:>7} {inl:>8} "
              f"{err:>10} {m['queries']:>8} {m['projected']:>5} {m['clamped']:>6}")

    elapsed = time.time() - t0
    print(f"\nRun complete in {elapsed:.1f}s")
    print(f"Results saved to: {os.path.abspath(results_dir)}/")
    return all_metrics


if __name__ == "__main__":
    main()

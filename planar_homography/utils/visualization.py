"""
Visualization utilities for homography estimation and court projection.

All functions save figures to disk rather than displaying them interactively,
making the module suitable for headless execution.
"""

import os
import numpy as np
import matplotlib
matplotlib.use("Agg")          # non-interactive backend
import matplotlib.pyplot as plt

from planar_homography.geometry.homography import apply_homography, reprojection_errors


# ---------------------------------------------------------------------------
# Correspondences and reprojection
# ---------------------------------------------------------------------------

def save_correspondences(src: np.ndarray, dst: np.ndarray, H: np.ndarray,
                         scene: str, out_dir: str, inliers=None) -> str:
    """Save source points next to destination points and their reprojections."""
    if inliers is None:
        inliers = np.ones(src.shape[0], dtype=bool)
    projected = apply_homography(H, src)
    errors = reprojection_errors(H, src, dst)

    fig, axes = plt.subplots(1, 2, figsize=(14, 6))

    axes[0].plot(src[inliers, 0], src[inliers, 1], "go", markersize=6, label="inlier")
    axes[0].plot(src[~inliers, 0], src[~inliers, 1], "rx", markersize=8, label="outlier")
    for i, (x, y) in enumerate(src):
        axes[0].annotate(str(i), (x, y), textcoords="offset points", xytext=(4, 4))
    axes[0].invert_yaxis()     # image coordinates
    axes[0].set_title(f"{scene} – source points ({src.shape[0]})")
    axes[0].legend()

    axes[1].plot(dst[:, 0], dst[:, 1], "bo", markersize=6, label="destination")
    axes[1].plot(projected[:, 0], projected[:, 1], "r+", markersize=10,
                 markeredgewidth=2, label="H · source")
    for i, (x, y) in enumerate(dst):
        axes[1].annotate(str(i), (x, y), textcoords="offset points", xytext=(4, 4))
    finite = np.isfinite(errors[inliers])
    mean_err = float(np.mean(errors[inliers][finite])) if finite.any() else float("nan")
    axes[1].set_title(f"Reprojection (mean inlier error {mean_err:.3g})")
    axes[1].set_aspect("equal", adjustable="datalim")
    axes[1].legend()

    plt.tight_layout()
    path = os.path.join(out_dir, scene, "correspondences.jpg")
    plt.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return path


# ---------------------------------------------------------------------------
# Court projection
# ---------------------------------------------------------------------------

def save_court_projection(layout, projections: list, scene: str, out_dir: str) -> str:
    """Draw the half court with raw and clamped projected query points."""
    fig, ax = plt.subplots(figsize=(6, 8))

    for (x0, y0), (x1, y1) in layout.court_lines():
        ax.plot([x0, x1], [y0, y1], "k-", linewidth=1.5)

    for proj in projections:
        if proj is None:
            continue
        rx, ry = proj.raw
        cx, cy = proj.corrected
        colour = "g" if proj.inside else "orange"
        ax.plot(cx, cy, "o", color=colour, markersize=7)
        if proj.clamped:
            ax.plot([rx, cx], [ry, cy], "r:", linewidth=1)
            ax.plot(rx, ry, "rx", markersize=6)

    ax.set_xlim(-2, layout.width + 2)
    ax.set_ylim(layout.length + 2, -2)   # net at top, baseline at bottom
    ax.set_aspect("equal")
    ax.set_xlabel("x (m)")
    ax.set_ylabel("y (m)")
    ax.set_title(f"{scene} – court projection ({len(projections)} points)")
    ax.grid(True, alpha=0.3)

    path = os.path.join(out_dir, scene, "court_projection.jpg")
    plt.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return path

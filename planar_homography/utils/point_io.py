"""
Point and matrix I/O helpers.

Thin wrappers around NumPy for coercing point lists into the ``N x 2`` arrays
used throughout the package, reading correspondences from CSV files, and
managing per-scene output directories.
"""

import os
import numpy as np


def as_points(data) -> np.ndarray:
    """Coerce *data* into an ``N x 2`` float64 array of (x, y) points.

    Parameters
    ----------
    data : array-like
        Sequence of (x, y) pairs, or a single (x, y) pair.

    Returns
    -------
    np.ndarray
        N x 2 float64 array.

    Raises
    ------
    ValueError
        If *data* cannot be interpreted as a list of 2D points.
    """
    points = np.asarray(data, dtype=float)
    if points.ndim == 1 and points.shape[0] == 2:
        points = points.reshape(1, 2)
    if points.ndim != 2 or points.shape[1] != 2:
        raise ValueError(f"Expected an N x 2 array of points, got shape {points.shape}")
    return points


def load_points(path: str) -> np.ndarray:
    """Load ``x,y`` points from a CSV file (``#`` starts a comment)."""
    points = np.loadtxt(path, delimiter=",", comments="#", ndmin=2)
    return as_points(points)


def save_matrix(path: str, H: np.ndarray) -> None:
    """Write a 3 x 3 homography as whitespace-separated text."""
    np.savetxt(path, np.asarray(H, dtype=float).reshape(3, 3), fmt="%.10g")


def ensure_output_dirs(scenes: list, base: str = "results") -> None:
    """Create output subdirectories for each scene name.

    Parameters
    ----------
    scenes : list of str
        Scene identifiers (one subdirectory is created per scene).
    base : str
        Root output directory.
    """
    for scene in scenes:
        os.makedirs(os.path.join(base, scene), exist_ok=True)

"""
Homography estimation from point correspondences.

A planar homography (projective transformation) maps points on one plane to
corresponding points on another, e.g. a camera image of a court to metric
court coordinates.  The 3x3 matrix is estimated via the normalised Direct
Linear Transform (DLT) and solved with SVD.

Matrices are returned as 3 x 3 float arrays normalised so ``H[2, 2] == 1``.
Any function that accepts a matrix also accepts the nine row-major values as
a flat sequence.
"""

import numpy as np

from planar_homography.geometry.errors import (
    DegenerateGeometry,
    HomographyError,
    InsufficientCorrespondences,
)
from planar_homography.utils.point_io import as_points

MIN_CORRESPONDENCES = 4

# Relative singular-value floor below which a system is treated as rank deficient
_RANK_TOL = 1e-8
# |w| at or below this maps a point to infinity
_W_EPS = 1e-12


def as_matrix(values) -> np.ndarray:
    """Return *values* (3 x 3 or nine row-major numbers) as a 3 x 3 float array."""
    H = np.asarray(values, dtype=float)
    if H.size != 9 or H.ndim not in (1, 2) or (H.ndim == 2 and H.shape != (3, 3)):
        raise ValueError(f"Homography must be 3x3 or 9 values, got shape {H.shape}")
    return H.reshape(3, 3)


def check_correspondences(src, dst):
    """Validate a correspondence set and return it as two N x 2 arrays."""
    try:
        src = as_points(src)
        dst = as_points(dst)
    except ValueError as exc:
        raise HomographyError(str(exc)) from exc

    if src.shape != dst.shape:
        raise HomographyError(
            f"Source and destination point counts differ: "
            f"{src.shape[0]} vs {dst.shape[0]}")
    if not (np.all(np.isfinite(src)) and np.all(np.isfinite(dst))):
        raise HomographyError("Point coordinates must be finite")
    if src.shape[0] < MIN_CORRESPONDENCES:
        raise InsufficientCorrespondences(
            f"At least {MIN_CORRESPONDENCES} point pairs are required, "
            f"got {src.shape[0]}")
    return src, dst


def _is_collinear(points: np.ndarray) -> bool:
    """True when all *points* lie on one line (or coincide)."""
    centred = points - points.mean(axis=0)
    s = np.linalg.svd(centred, compute_uv=False)
    return s[0] <= _W_EPS or s[1] <= _RANK_TOL * s[0]


def _normalisation_transform(points: np.ndarray) -> np.ndarray:
    """Similarity moving the centroid to the origin with mean distance sqrt(2)."""
    centroid = points.mean(axis=0)
    mean_dist = np.mean(np.linalg.norm(points - centroid, axis=1))
    scale = np.sqrt(2.0) / mean_dist
    return np.array([
        [scale, 0,     -scale * centroid[0]],
        [0,     scale, -scale * centroid[1]],
        [0,     0,      1                  ],
    ], dtype=float)


def _dlt(src: np.ndarray, dst: np.ndarray) -> np.ndarray:
    """Solve the (already normalised) DLT system; returns an unscaled 3x3."""
    n = src.shape[0]
    x1, y1 = src[:, 0], src[:, 1]
    x2, y2 = dst[:, 0], dst[:, 1]
    zeros = np.zeros(n)
    ones = np.ones(n)

    A = np.empty((2 * n, 9), dtype=float)
    A[0::2] = np.column_stack([-x1, -y1, -ones, zeros, zeros, zeros,
                               x2 * x1, x2 * y1, x2])
    A[1::2] = np.column_stack([zeros, zeros, zeros, -x1, -y1, -ones,
                               y2 * x1, y2 * y1, y2])

    _, s, Vt = np.linalg.svd(A)
    # The null space must be one-dimensional: the 8th singular value is the
    # smallest one that has to stay clear of zero.
    if s[7] <= _RANK_TOL * s[0]:
        raise DegenerateGeometry("Correspondences do not determine a unique homography")
    return Vt[-1].reshape(3, 3)


def estimate_homography(src, dst) -> np.ndarray:
    """Estimate the homography mapping *src* points onto *dst* points.

    Each correspondence contributes two linear equations in the nine
    homography entries.  Both point sets are first normalised (Hartley) so
    the system is well conditioned; with four points the system is exactly
    determined up to scale, with more it is solved in the least-squares sense.

    Parameters
    ----------
    src, dst : array-like
        N x 2 (x, y) coordinates, paired by row, N >= 4.

    Returns
    -------
    H : np.ndarray
        3 x 3 homography (normalised so H[2, 2] == 1) such that
        ``dst ≈ H @ src`` in homogeneous coordinates.

    Raises
    ------
    InsufficientCorrespondences
        Fewer than four pairs.
    DegenerateGeometry
        Collinear/coincident points or a singular solution.
    HomographyError
        Malformed or mismatched inputs.
    """
    src, dst = check_correspondences(src, dst)

    if _is_collinear(src) or _is_collinear(dst):
        raise DegenerateGeometry("Point set is collinear")

    T_src = _normalisation_transform(src)
    T_dst = _normalisation_transform(dst)
    Hn = _dlt(apply_homography(T_src, src), apply_homography(T_dst, dst))

    H = np.linalg.inv(T_dst) @ Hn @ T_src
    if abs(H[2, 2]) <= _W_EPS * np.max(np.abs(H)):
        raise DegenerateGeometry("Cannot normalise homography: H[2, 2] is zero")
    H = H / H[2, 2]

    s = np.linalg.svd(H, compute_uv=False)
    if not np.all(np.isfinite(H)) or s[-1] <= _W_EPS * s[0]:
        raise DegenerateGeometry("Estimated homography is singular")
    return H


def compute_homography(src, dst, method: str = "dlt", **ransac_kwargs):
    """Estimate a homography, returning *None* instead of raising on failure.

    Parameters
    ----------
    src, dst : array-like
        N x 2 corresponding (x, y) coordinates, N >= 4.
    method : str
        ``"dlt"`` fits all correspondences; ``"ransac"`` rejects outliers
        first (see :func:`planar_homography.geometry.ransac.ransac_homography`).
    **ransac_kwargs
        Forwarded to ``ransac_homography`` when ``method="ransac"``.

    Returns
    -------
    np.ndarray or None
        3 x 3 homography, or *None* when there are too few correspondences or
        the geometry is degenerate.
    """
    if method == "dlt":
        try:
            return estimate_homography(src, dst)
        except HomographyError:
            return None

    if method == "ransac":
        from planar_homography.geometry.ransac import ransac_homography
        try:
            H, _ = ransac_homography(src, dst, **ransac_kwargs)
        except HomographyError:
            return None
        return H

    raise ValueError(f"Unknown estimation method: {method!r}")


def apply_homography(H, points) -> np.ndarray:
    """Apply a homography to a set of (x, y) coordinates.

    Parameters
    ----------
    H : array-like
        3 x 3 homography matrix (or nine row-major values).
    points : array-like
        N x 2 array of (x, y) coordinates.

    Returns
    -------
    np.ndarray
        N x 2 array of transformed coordinates.  Rows whose homogeneous
        scale is zero (mapped to infinity) are NaN.
    """
    H = as_matrix(H)
    points = as_points(points)

    homog = np.column_stack([points, np.ones(points.shape[0])]) @ H.T
    w = homog[:, 2]

    result = np.full((points.shape[0], 2), np.nan)
    finite = np.abs(w) > _W_EPS
    result[finite] = homog[finite, :2] / w[finite, np.newaxis]
    return result


def project_point(point, matrix):
    """Project a single (x, y) point through *matrix*.

    Returns
    -------
    tuple of (float, float) or None
        Transformed point, or *None* when the point maps to infinity.
    """
    H = as_matrix(matrix)
    points = as_points(point)
    if points.shape[0] != 1:
        raise ValueError(f"Expected a single (x, y) point, got {points.shape[0]} points")
    x, y = points[0]

    xh, yh, w = H @ np.array([x, y, 1.0])
    if abs(w) <= _W_EPS:
        return None

    px, py = xh / w, yh / w
    if not (np.isfinite(px) and np.isfinite(py)):
        return None
    return float(px), float(py)


def reprojection_errors(H, src, dst) -> np.ndarray:
    """Per-correspondence distance ``||H(src_i) - dst_i||`` (inf at infinity)."""
    projected = apply_homography(H, src)
    errors = np.linalg.norm(projected - as_points(dst), axis=1)
    return np.where(np.isnan(errors), np.inf, errors)

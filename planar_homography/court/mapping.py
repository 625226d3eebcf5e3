"""
Projection of image points onto the court plane.

Screen points (taps, player foot positions) are mapped through the
image-to-court homography.  Points outside the calibrated court quad are
still projected, but the result is clamped to a margin around the court so
that wildly extrapolated positions stay usable for display.
"""

from dataclasses import dataclass

import numpy as np
from matplotlib.path import Path

from planar_homography.court.layout import CourtLayout
from planar_homography.geometry.homography import project_point
from planar_homography.utils.point_io import as_points


@dataclass(frozen=True)
class CourtProjection:
    """Result of projecting one image point onto the court."""

    raw: tuple
    corrected: tuple
    inside: bool
    clamped: bool


def order_quad(corners) -> np.ndarray:
    """Order four corners by angle around their centroid.

    Calibration corners come in (TL, TR, BL, BR) order, which traced as a
    polygon gives a bow-tie; sorting by angle gives a simple quadrilateral.
    """
    corners = as_points(corners)
    if corners.shape[0] != 4:
        raise ValueError(f"Expected 4 corners, got {corners.shape[0]}")
    centre = corners.mean(axis=0)
    angles = np.arctan2(corners[:, 1] - centre[1], corners[:, 0] - centre[0])
    quad = corners[np.argsort(angles)]
    if np.any(np.all(np.roll(quad, -1, axis=0) == quad, axis=1)):
        raise ValueError("Court corners must be distinct")
    return quad


def _distance_to_edges(point: np.ndarray, quad: np.ndarray) -> float:
    """Shortest distance from *point* to the boundary of *quad*."""
    a = quad
    b = np.roll(quad, -1, axis=0)
    ab = b - a
    t = np.clip(np.sum((point - a) * ab, axis=1) / np.sum(ab * ab, axis=1), 0.0, 1.0)
    nearest = a + t[:, np.newaxis] * ab
    return float(np.min(np.linalg.norm(nearest - point, axis=1)))


def is_point_in_quad(point, corners, tolerance: float = 20.0) -> bool:
    """True when *point* lies inside the quad or within *tolerance* of its edges."""
    quad = order_quad(corners)
    p = as_points(point)[0]

    path = Path(np.vstack([quad, quad[:1]]), closed=True)
    if path.contains_point(p):
        return True
    return tolerance > 0 and _distance_to_edges(p, quad) <= tolerance


def clamp_to_court(point, layout: CourtLayout = CourtLayout(), margin: float = 1.0):
    """Clamp a court-space point to within *margin* metres of the court.

    Returns
    -------
    corrected : tuple of (float, float)
    clamped : bool
        Whether either coordinate was changed.
    """
    x, y = (float(v) for v in point)
    cx = min(max(x, -margin), layout.width + margin)
    # Beyond the net / beyond the baseline
    cy = min(max(y, -margin), layout.length + margin)
    return (cx, cy), (cx, cy) != (x, y)


def project_to_court(point, matrix, corners, layout: CourtLayout = CourtLayout(),
                     margin: float = 1.0, tolerance: float = 20.0):
    """Project an image point to court coordinates with out-of-bounds correction.

    Parameters
    ----------
    point : (float, float)
        Image (screen) point.
    matrix : array-like
        Image-to-court homography, 3 x 3 or nine row-major values.
    corners : array-like
        Four image-space court corners in any order.
    layout : CourtLayout
        Court dimensions used for clamping.
    margin : float
        How far (metres) outside the court a result may land.
    tolerance : float
        Image-space slack (pixels) for the inside-court test.

    Returns
    -------
    CourtProjection or None
        *None* only when the point maps to infinity.
    """
    inside = is_point_in_quad(point, corners, tolerance)

    raw = project_point(point, matrix)
    if raw is None:
        return None

    corrected, clamped = clamp_to_court(raw, layout, margin)
    return CourtProjection(raw=raw, corrected=corrected, inside=inside, clamped=clamped)

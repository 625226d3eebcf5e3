"""
RANSAC-based robust homography estimation.

Random Sample Consensus (RANSAC) handles outliers among the correspondences
by repeatedly drawing minimal subsets, fitting a homography, and counting
geometrically consistent inliers.  The hypothesis with the highest inlier
count is refitted on all of its inliers and returned.
"""

import numpy as np
from planar_homography.geometry.errors import HomographyError
from planar_homography.geometry.homography import (
    MIN_CORRESPONDENCES,
    check_correspondences,
    estimate_homography,
    reprojection_errors,
)


def count_inliers(H: np.ndarray, src: np.ndarray, dst: np.ndarray,
                  threshold: float = 3.0) -> np.ndarray:
    """Flag correspondences consistent with homography *H*.

    A pair is an inlier when the reprojection error ``||H * p1 - p2||``
    is below *threshold*.

    Parameters
    ----------
    H : np.ndarray
        3 x 3 homography matrix.
    src, dst : np.ndarray
        N x 2 corresponding (x, y) coordinates.
    threshold : float
        Maximum allowed reprojection error for an inlier.

    Returns
    -------
    np.ndarray
        Boolean mask of length N.
    """
    return reprojection_errors(H, src, dst) < threshold


def ransac_homography(src, dst, num_iterations: int = 2000,
                      threshold: float = 3.0, rng=None):
    """Estimate a robust homography via RANSAC.

    Parameters
    ----------
    src, dst : array-like
        N x 2 corresponding (x, y) coordinates, N >= 4.
    num_iterations : int
        Maximum number of RANSAC iterations.
    threshold : float
        Inlier reprojection error threshold (destination units).
    rng : int, np.random.Generator or None
        Seed or generator used to draw samples.

    Returns
    -------
    best_H : np.ndarray or None
        Best-scoring 3 x 3 homography, or *None* if estimation failed.
    inlier_mask : np.ndarray
        Boolean mask of the correspondences supporting *best_H*.
    """
    src, dst = check_correspondences(src, dst)
    rng = np.random.default_rng(rng)
    n = src.shape[0]

    print(f"  Running RANSAC ({num_iterations} iterations, "
          f"threshold={threshold})...")

    best_H = None
    best_inliers = np.zeros(n, dtype=bool)

    for _ in range(num_iterations):
        sample = rng.choice(n, MIN_CORRESPONDENCES, replace=False)

        try:
            H = estimate_homography(src[sample], dst[sample])
        except HomographyError:
            continue

        inliers = count_inliers(H, src, dst, threshold)

        if inliers.sum() > best_inliers.sum():
            best_H = H
            best_inliers = inliers

        # Early exit when a dominant consensus is found
        if best_inliers.sum() > 0.8 * n:
            break

    if best_H is None or best_inliers.sum() < MIN_CORRESPONDENCES:
        print(f"  No consensus: {int(best_inliers.sum())} inliers / {n} matches")
        return None, np.zeros(n, dtype=bool)

    # Refit on the full consensus set
    try:
        refined = estimate_homography(src[best_inliers], dst[best_inliers])
    except HomographyError:
        refined = None
    if refined is not None:
        refined_inliers = count_inliers(refined, src, dst, threshold)
        if refined_inliers.sum() >= best_inliers.sum():
            best_H, best_inliers = refined, refined_inliers

    n_in = int(best_inliers.sum())
    print(f"  Best H: {n_in} inliers / {n} matches ({100.0 * n_in / n:.1f}%)")

    return best_H, best_inliers

"""Tests for RANSAC homography estimation."""

import numpy as np
import pytest

from planar_homography.geometry.errors import InsufficientCorrespondences
from planar_homography.geometry.homography import compute_homography
from planar_homography.geometry.ransac import count_inliers, ransac_homography

H_TRUE = np.array([
    [1.2,  0.1,  5.0],
    [0.05, 0.9, -3.0],
    [1e-3, 2e-3, 1.0],
])

OUTLIERS = [3, 11, 17]


def warp(H, points):
    homog = np.column_stack([points, np.ones(len(points))]) @ H.T
    return homog[:, :2] / homog[:, 2:3]


@pytest.fixture
def noisy_correspondences():
    xs, ys = np.meshgrid(np.linspace(0, 100, 5), np.linspace(0, 80, 5))
    src = np.column_stack([xs.ravel(), ys.ravel()])
    dst = warp(H_TRUE, src)
    dst[OUTLIERS] += [30.0, -25.0]
    return src, dst


class TestRansacHomography:

    def test_rejects_outliers(self, noisy_correspondences):
        src, dst = noisy_correspondences
        H, inliers = ransac_homography(src, dst, threshold=1.0, rng=0)

        np.testing.assert_allclose(H, H_TRUE, rtol=1e-6, atol=1e-9)
        expected = np.ones(len(src), dtype=bool)
        expected[OUTLIERS] = False
        np.testing.assert_array_equal(inliers, expected)

    def test_plain_dlt_is_skewed_by_outliers(self, noisy_correspondences):
        src, dst = noisy_correspondences
        H = compute_homography(src, dst, method="dlt")
        assert not np.allclose(H, H_TRUE, rtol=1e-3)

    def test_compute_homography_ransac_method(self, noisy_correspondences):
        src, dst = noisy_correspondences
        H = compute_homography(src, dst, method="ransac", threshold=1.0, rng=0)
        np.testing.assert_allclose(H, H_TRUE, rtol=1e-6, atol=1e-9)

    def test_seeded_runs_are_reproducible(self, noisy_correspondences):
        src, dst = noisy_correspondences
        H1, m1 = ransac_homography(src, dst, threshold=1.0, rng=42)
        H2, m2 = ransac_homography(src, dst, threshold=1.0, rng=np.random.default_rng(42))
        np.testing.assert_array_equal(m1, m2)
        np.testing.assert_allclose(H1, H2)

    def test_exact_four_points(self):
        src = np.array([[0, 0], [100, 0], [100, 80], [0, 80]], dtype=float)
        H, inliers = ransac_homography(src, warp(H_TRUE, src), rng=0)
        assert inliers.all()
        np.testing.assert_allclose(H, H_TRUE, rtol=1e-6, atol=1e-9)

    def test_too_few_points_raises(self):
        pts = np.zeros((3, 2))
        with pytest.raises(InsufficientCorrespondences):
            ransac_homography(pts, pts)
        assert compute_homography(pts, pts, method="ransac") is None

    def test_collinear_points_give_no_model(self):
        line = np.column_stack([np.arange(8.0), 2 * np.arange(8.0)])
        H, inliers = ransac_homography(line, line + 1.0, num_iterations=50, rng=0)
        assert H is None
        assert not inliers.any()

    def test_prints_summary(self, noisy_correspondences, capsys):
        src, dst = noisy_correspondences
        ransac_homography(src, dst, threshold=1.0, rng=0)
        out = capsys.readouterr().out
        assert "Running RANSAC" in out
        assert "22 inliers / 25 matches" in out


def test_count_inliers_threshold():
    src = np.array([[0, 0], [1, 0], [0, 1], [1, 1]], dtype=float)
    dst = src.copy()
    dst[2] += [0.0, 0.5]
    mask = count_inliers(np.eye(3), src, dst, threshold=0.4)
    np.testing.assert_array_equal(mask, [True, True, False, True])


def test_keeps_sample_hypothesis_when_refit_is_degenerate(noisy_correspondences, monkeypatch):
    from planar_homography.geometry import ransac
    from planar_homography.geometry.errors import DegenerateGeometry

    fit = ransac.estimate_homography
    refit_sizes = []

    def minimal_fits_only(src, dst):
        if len(src) > 4:
            refit_sizes.append(len(src))
            raise DegenerateGeometry("refit rejected")
        return fit(src, dst)

    monkeypatch.setattr(ransac, "estimate_homography", minimal_fits_only)

    src, dst = noisy_correspondences
    H, inliers = ransac.ransac_homography(src, dst, threshold=1.0, rng=0)

    assert refit_sizes == [22]
    np.testing.assert_allclose(H, H_TRUE, rtol=1e-6, atol=1e-9)
    assert inliers.sum() == 22

"""Tests for the run_projection command-line driver."""

from pathlib import Path

import pytest
import yaml

from run_projection import court_layout, load_config, main, run_scene
from planar_homography.utils.point_io import ensure_output_dirs

ROOT = Path(__file__).resolve().parents[1]

PHONE_SCENE = {
    "name": "phone",
    "image_points": [
        [295.4, 175.5], [548.6, 175.5], [42.2, 343.2],
        [801.8, 343.2], [422.0, 175.5], [422.0, 343.2],
    ],
    "court_points": [
        [0.0, 0.0], [8.23, 0.0], [0.0, 11.885],
        [8.23, 11.885], [4.115, 0.0], [4.115, 11.885],
    ],
    "query_points": [[422.0, 260.0], [100.0, 380.0], [422.0, 100.0]],
}


def make_config(method="ransac", results_dir="results", scenes=None):
    return {
        "results_dir": results_dir,
        "estimation": {
            "method": method,
            "ransac": {"num_iterations": 500, "inlier_threshold": 0.25, "seed": 0},
        },
        "court": {"clamp_margin": 1.0, "quad_tolerance": 20.0},
        "scenes": scenes if scenes is not None else [PHONE_SCENE],
    }


class TestRunScene:

    @pytest.mark.parametrize("method", ["dlt", "ransac"])
    def test_phone_scene(self, tmp_path, method):
        ensure_output_dirs(["phone"], base=str(tmp_path))
        metrics = run_scene(PHONE_SCENE, make_config(method), str(tmp_path), save_plots=False)

        assert metrics["inliers"] == 6
        assert metrics["mean_error"] < 1e-6
        assert metrics["queries"] == 3
        assert metrics["projected"] == 3
        # Only the near-horizon point lands beyond the clamp margin
        assert metrics["clamped"] == 1
        assert (tmp_path / "phone" / "homography.txt").exists()

    def test_writes_plots(self, tmp_path):
        ensure_output_dirs(["phone"], base=str(tmp_path))
        run_scene(PHONE_SCENE, make_config("dlt"), str(tmp_path), save_plots=True)
        assert (tmp_path / "phone" / "correspondences.jpg").exists()
        assert (tmp_path / "phone" / "court_projection.jpg").exists()

    def test_degenerate_scene_is_skipped(self, tmp_path, capsys):
        scene = dict(PHONE_SCENE, name="short",
                     image_points=PHONE_SCENE["image_points"][:3],
                     court_points=PHONE_SCENE["court_points"][:3])
        ensure_output_dirs(["short"], base=str(tmp_path))
        metrics = run_scene(scene, make_config("dlt"), str(tmp_path), save_plots=False)

        assert metrics["inliers"] is None
        assert metrics["projected"] == 0
        assert "scene skipped" in capsys.readouterr().out

    @pytest.mark.parametrize("scene", [
        {"name": "empty", "image_points": [], "court_points": []},
        {"name": "missing"},
        {"name": "wide", "image_points": [[1, 2, 3]] * 4, "court_points": [[1, 2]] * 4},
    ])
    def test_invalid_points_skip_scene(self, tmp_path, capsys, scene):
        ensure_output_dirs([scene["name"]], base=str(tmp_path))
        metrics = run_scene(scene, make_config("dlt"), str(tmp_path), save_plots=False)

        assert metrics["points"] == 0
        assert metrics["inliers"] is None
        assert "scene skipped" in capsys.readouterr().out

    def test_points_from_csv(self, tmp_path):
        img = tmp_path / "img.csv"
        court = tmp_path / "court.csv"
        img.write_text("\n".join(f"{x},{y}" for x, y in PHONE_SCENE["image_points"]))
        court.write_text("\n".join(f"{x},{y}" for x, y in PHONE_SCENE["court_points"]))
        scene = {"name": "csv", "image_points_file": str(img), "court_points_file": str(court)}
        ensure_output_dirs(["csv"], base=str(tmp_path))

        metrics = run_scene(scene, make_config("dlt"), str(tmp_path), save_plots=False)
        assert metrics["points"] == 6
        assert metrics["inliers"] == 6
        assert metrics["queries"] == 0


class TestMain:

    def test_missing_config_exits(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            main(["--config", str(tmp_path / "nope.yaml")])
        assert exc.value.code == 1

    def test_unknown_scene_exits(self, tmp_path):
        cfg_path = tmp_path / "cfg.yaml"
        cfg_path.write_text(yaml.safe_dump(make_config(results_dir=str(tmp_path / "out"))))
        with pytest.raises(SystemExit):
            main(["--config", str(cfg_path), "--scenes", "missing"])

    def test_runs_all_scenes(self, tmp_path, capsys):
        cfg_path = tmp_path / "cfg.yaml"
        cfg_path.write_text(yaml.safe_dump(make_config(results_dir=str(tmp_path / "out"))))

        metrics = main(["--config", str(cfg_path), "--method", "dlt", "--no-plots"])

        assert [m["scene"] for m in metrics] == ["phone"]
        assert metrics[0]["method"] == "dlt"
        assert (tmp_path / "out" / "phone" / "homography.txt").exists()
        assert "Results Summary" in capsys.readouterr().out


def test_default_config_loads():
    cfg = load_config(str(ROOT / "configs" / "default.yaml"))
    assert cfg["estimation"]["method"] in ("dlt", "ransac")
    assert {s["name"] for s in cfg["scenes"]} == {"phone", "phone_noisy"}
    assert court_layout(cfg).length == pytest.approx(11.885)

"""
Integration tests for the host-facing API and CLI.

Tests verify:
- CoralSimulation drives growth from a frame clock
- grow_coral returns a mesh and a JSON-serializable report
- Invalid configurations fail at reset
- The CLI grows corals and prints or writes reports
"""

import json

import numpy as np
import pytest

from coralgen import CoralConfig, CoralSimulation, grow_coral, reset
from coralgen.cli import main


@pytest.fixture
def config():
    config = CoralConfig()
    config.attractors.count = 80
    config.sampling.radius = 0.5
    config.mesh.radial_segments = 5
    return config


class TestCoralSimulation:
    """Tests for the per-frame facade."""

    def test_update_respects_interval(self, config):
        config.growth.time_between_iterations = 0.1
        simulation = CoralSimulation(config, seed=0)
        ran = [simulation.update(1.0 / 60.0) for _ in range(60)]
        assert 5 <= sum(ran) <= 10
        assert simulation.skeleton.iteration == sum(ran)

    def test_descriptors(self, config):
        config.obstacle.enabled = True
        simulation = CoralSimulation(config, seed=0)
        assert simulation.sampling_volume.to_dict()["type"] == "sphere"
        assert simulation.obstacle_volume.to_dict()["center"] == [0.0, 3.0, 0.0]

    def test_no_obstacle_volume(self, config):
        assert CoralSimulation(config, seed=0).obstacle_volume is None

    def test_reset_with_new_config(self, config):
        simulation = CoralSimulation(config, seed=0)
        new_config = CoralConfig()
        new_config.attractors.count = 10
        simulation.reset(new_config)
        assert simulation.field.remaining_count == 10
        assert simulation.config is new_config

    def test_attractors_feed_debug_cloud(self, config):
        simulation = CoralSimulation(config, seed=0)
        assert simulation.attractors.shape == (80, 3)

    def test_build_mesh_before_growth(self, config):
        simulation = CoralSimulation(config, seed=0)
        mesh = simulation.build_mesh()
        roots = len(simulation.forest)
        assert mesh.vertex_count == 2 * roots * 5


class TestReset:
    """Tests for reset()."""

    def test_invalid_config_raises(self, config):
        config.attractors.kill_radius = -1.0
        with pytest.raises(ValueError, match="kill_radius"):
            reset(config, seed=0)

    def test_explicit_rng(self, config):
        field_a, _ = reset(config, rng=np.random.default_rng(12))
        field_b, _ = reset(config, seed=12)
        np.testing.assert_allclose(field_a.points, field_b.points)


class TestGrowCoral:
    """Tests for the batch entry point."""

    def test_report(self, config):
        simulation, mesh, report = grow_coral(config, iterations=20, seed=2, disable_progress=True)
        assert report.success
        assert report.operation == "grow_coral"
        metadata = report.metadata
        assert metadata["iterations_run"] <= 20
        assert metadata["forest"]["branch_count"] == len(simulation.forest)
        assert metadata["mesh"]["vertex_count"] == mesh.vertex_count
        assert metadata["remaining_attractors"] <= metadata["initial_attractors"]
        json.loads(report.to_json())

    def test_stops_when_attractors_run_out(self, config):
        config.attractors.count = 0
        simulation, mesh, report = grow_coral(config, iterations=50, seed=0, disable_progress=True)
        assert report.metadata["iterations_run"] == 1
        assert report.warnings == ["No root branches were seeded"]
        assert mesh.is_empty


class TestCli:
    """Tests for the coral-gen command line."""

    def test_grow_prints_report(self, tmp_path, capsys):
        config_path = tmp_path / "coral.json"
        config_path.write_text(json.dumps({
            "attractors": {"count": 60},
            "sampling": {"radius": 0.5},
            "mesh": {"radial_segments": 6},
        }))
        code = main([
            "grow",
            "--config", str(config_path),
            "--iterations", "10",
            "--seed", "3",
            "--no-progress",
        ])
        assert code == 0
        report = json.loads(capsys.readouterr().out)
        assert report["metadata"]["iterations_run"] <= 10
        assert report["metadata"]["mesh"]["face_count"] > 0

    def test_grow_writes_report(self, tmp_path):
        report_path = tmp_path / "report.json"
        code = main(["grow", "--iterations", "2", "--seed", "1", "--report", str(report_path), "--no-progress"])
        assert code == 0
        assert json.loads(report_path.read_text())["operation"] == "grow_coral"

    def test_invalid_config_fails(self, tmp_path):
        config_path = tmp_path / "bad.json"
        config_path.write_text(json.dumps({"mesh": {"radial_segments": 1}}))
        assert main(["grow", "--config", str(config_path), "--no-progress"]) == 1

    def test_config_command(self, capsys):
        assert main(["config"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["growth"]["max_initial_branches"] == 5

    def test_no_command(self):
        assert main([]) == 1

import json
import os
import tempfile
import unittest

import numpy as np

from ring_traffic.backends import get_backend
from ring_traffic.backends.backend_openmp import OpenMPBackend
from ring_traffic.backends.backend_sequential import SequentialBackend
from ring_traffic.config import SimulationConfig
from ring_traffic.experiments.runner import run_scaling_experiment, run_single
from ring_traffic.io.results_writer import save_result_as_json
from ring_traffic.metrics.lane_stats import SimulationMetricsRaw, density, jam_count, snapshot
from ring_traffic.model.rules import OvertakeRule
from ring_traffic.model.simulation import Simulation


class LaneStatsTests(unittest.TestCase):
    def test_jam_count_on_ring(self) -> None:
        self.assertEqual(jam_count(np.array([1, 0, 0, 1, 1], dtype=bool)), 1)
        self.assertEqual(jam_count(np.array([1, 1, 0, 1, 1, 0], dtype=bool)), 2)
        self.assertEqual(jam_count(np.array([1, 0, 1, 0], dtype=bool)), 0)
        self.assertEqual(jam_count(np.ones(3, dtype=bool)), 1)
        self.assertEqual(jam_count(np.ones(1, dtype=bool)), 0)
        self.assertEqual(jam_count(np.zeros(0, dtype=bool)), 0)

    def test_density(self) -> None:
        self.assertAlmostEqual(density(np.array([1, 0, 0, 1], dtype=bool)), 0.5)
        self.assertEqual(density(np.zeros(0, dtype=bool)), 0.0)

    def test_step_metrics(self) -> None:
        sim = Simulation()
        sim.add_lane("■■□□")
        metrics = SimulationMetricsRaw()

        before = snapshot(sim)
        sim.step()
        metrics.record_step(sim, before)

        self.assertEqual(metrics.compute_summary(), (0.5, 0.25, 0.5, 0.0))
        self.assertEqual(metrics.lane_changes, 0)

    def test_step_metrics_count_lane_changes(self) -> None:
        sim = Simulation(global_rule=OvertakeRule())
        sim.add_lane("■■□□")
        sim.add_lane("□□□□")
        metrics = SimulationMetricsRaw()

        before = snapshot(sim)
        sim.step()
        metrics.record_step(sim, before)

        self.assertEqual(metrics.lane_changes, 1)
        self.assertEqual(metrics.jam_counts, [0, 0])


class BackendTests(unittest.TestCase):
    def test_sequential_run(self) -> None:
        cfg = SimulationConfig(lanes=["■□□□"], steps=2, record_history=True)
        result = SequentialBackend(cfg).run()

        self.assertEqual(result.backend, "sequential")
        self.assertEqual(result.steps, 2)
        self.assertEqual(result.final_lanes, ["□□■□"])
        self.assertEqual(result.history, [["■□□□"], ["□■□□"], ["□□■□"]])
        self.assertAlmostEqual(result.avg_density, 0.25)
        self.assertAlmostEqual(result.avg_flow, 0.25)
        self.assertAlmostEqual(result.avg_speed, 1.0)
        self.assertEqual(result.avg_jam_count, 0.0)

    def test_openmp_matches_sequential(self) -> None:
        cfg = SimulationConfig(
            lanes=["■■□■□□■□□□", "□■■■□□□□■□"], steps=8, speed_cap=2
        )
        sequential = SequentialBackend(cfg).run()
        parallel = OpenMPBackend(cfg).run()

        self.assertEqual(parallel.final_lanes, sequential.final_lanes)
        self.assertAlmostEqual(parallel.avg_flow, sequential.avg_flow)

    def test_openmp_falls_back_with_rules(self) -> None:
        cfg = SimulationConfig(lanes=["■■□□"], steps=1, rule="jam_avoidance")
        with self.assertLogs("ring_traffic", level="WARNING"):
            result = OpenMPBackend(cfg).run()
        self.assertEqual(result.extra_stats["fallback"], "sequential")

    def test_unknown_backend(self) -> None:
        with self.assertRaises(ValueError):
            get_backend("cuda")

    def test_scaling_experiment(self) -> None:
        base = SimulationConfig(lanes=["■□□□□□"], steps=1)
        results = run_scaling_experiment(base, "sequential", "speed_cap", [1, 2])
        self.assertEqual(
            [r.final_lanes for r in results],
            [["□■□□□□"], ["□□■□□□"]],
        )

    def test_result_saved_as_json(self) -> None:
        result = run_single(SimulationConfig(lanes=["■□"], steps=1, label="tiny"))
        with tempfile.TemporaryDirectory() as tmp:
            path = save_result_as_json(result, tmp)
            self.assertTrue(os.path.basename(path).startswith("sequential_tiny_"))
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        self.assertEqual(data["final_lanes"], ["□■"])
        self.assertEqual(data["config"]["steps"], 1)


if __name__ == '__main__':
    unittest.main()

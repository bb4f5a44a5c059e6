from abc import ABC, abstractmethod
from dataclasses import asdict
from typing import Callable, List

from ring_traffic.config import SimulationConfig
from ring_traffic.metrics.lane_stats import SimulationMetricsRaw, snapshot
from ring_traffic.metrics.timers import Timer
from ring_traffic.metrics.types import SimulationResult
from ring_traffic.model.rules import get_rule
from ring_traffic.model.simulation import Simulation


def build_simulation(config: SimulationConfig) -> Simulation:
    """Create the lanes and the global rule described by `config`."""
    rule = get_rule(config.rule)() if config.rule else None
    sim = Simulation(global_rule=rule, default_speed_cap=config.speed_cap)
    for descriptor in config.lanes:
        sim.add_lane(descriptor)
    return sim


class SimulationBackend(ABC):
    """
    Abstract base for all backends (Sequential, OpenMP).
    """

    name: str = "base"

    def __init__(self, config: SimulationConfig):
        self.config = config
        self.simulation = build_simulation(config)


    @abstractmethod
    def run(self) -> SimulationResult:
        """
        Runs the configured number of steps and returns results.
        """
        raise NotImplementedError

    def _run_steps(self, step: Callable[[], None]) -> SimulationResult:
        """Drive `step` for config.steps ticks, timing and measuring each."""
        cfg = self.config
        sim = self.simulation
        metrics = SimulationMetricsRaw()
        history: List[List[str]] = []

        if cfg.record_history:
            history.append([str(lane) for lane in sim.lanes])

        with Timer() as t:
            for _ in range(cfg.steps):
                before = snapshot(sim)
                step()
                metrics.record_step(sim, before)
                if cfg.record_history:
                    history.append([str(lane) for lane in sim.lanes])

        avg_density, avg_flow, avg_speed, avg_jams = metrics.compute_summary()

        return SimulationResult(
            backend=self.name,
            config=asdict(cfg),
            wall_time_seconds=t.elapsed,
            steps=sim.step_count,
            final_lanes=[str(lane) for lane in sim.lanes],
            avg_density=avg_density,
            avg_flow=avg_flow,
            avg_speed=avg_speed,
            avg_jam_count=avg_jams,
            history=history,
            extra_stats={
                "num_lanes": len(sim.lanes),
                "num_vehicles": len(sim.vehicles),
                "lane_changes": metrics.lane_changes,
            },
        )

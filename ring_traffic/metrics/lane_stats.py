from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import numpy as np

from ring_traffic.model.simulation import Simulation
from ring_traffic.model.vehicles import Vehicle


def density(cells: np.ndarray) -> float:
    """Occupied share of the cells."""
    if cells.size == 0:
        return 0.0
    return float(cells.mean())


def jam_count(cells: np.ndarray) -> int:
    """Number of runs of 2+ contiguous occupied cells, the ring included."""
    n = cells.size
    if n == 0:
        return 0
    if cells.all():
        return 1 if n >= 2 else 0

    # rotate a free cell to the front so that no run wraps around
    start = int(np.argmin(cells))
    ring = np.roll(cells, -start).astype(np.int8)
    edges = np.diff(np.concatenate(([0], ring, [0])))
    run_starts = np.flatnonzero(edges == 1)
    run_ends = np.flatnonzero(edges == -1)
    return int(np.count_nonzero(run_ends - run_starts >= 2))


Snapshot = Dict[Vehicle, Tuple[int, int]]


def snapshot(sim: Simulation) -> Snapshot:
    """Vehicle -> (lane index, committed position)."""
    return {
        v: (lane_idx, lane.committed_position_of(v))
        for lane_idx, lane in enumerate(sim.lanes)
        for v in lane.vehicles
    }


@dataclass
class SimulationMetricsRaw:
    densities: List[float] = field(default_factory=list)
    flows: List[float] = field(default_factory=list)
    speeds: List[float] = field(default_factory=list)
    jam_counts: List[int] = field(default_factory=list)

    lane_changes: int = 0

    def record_step(self, sim: Simulation, before: Snapshot) -> None:
        """
        Store per-lane statistics of the step that turned `before` into the
        current committed state. Vehicles that changed lanes count as not
        having moved forward.
        """
        for lane_idx, lane in enumerate(sim.lanes):
            cells = lane.occupancy()
            vehicles = lane.vehicles

            moved = 0
            for v in vehicles:
                prev_lane, prev_pos = before.get(v, (lane_idx, lane.committed_position_of(v)))
                if prev_lane != lane_idx:
                    self.lane_changes += 1
                    continue
                moved += (lane.committed_position_of(v) - prev_pos) % lane.length

            self.densities.append(density(cells))
            self.jam_counts.append(jam_count(cells))
            if lane.length > 0:
                self.flows.append(moved / lane.length)
            if vehicles:
                self.speeds.append(moved / len(vehicles))

    def compute_summary(self) -> Tuple[float, float, float, float]:
        """
        Compute derived statistics:
        - average density
        - average flow
        - average speed
        - average number of jams per lane
        """
        def _mean(values) -> float:
            return float(np.mean(values)) if values else 0.0

        return (
            _mean(self.densities),
            _mean(self.flows),
            _mean(self.speeds),
            _mean(self.jam_counts),
        )

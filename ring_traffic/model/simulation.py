from __future__ import annotations

from typing import Dict, List, Optional

import numpy as np

from ring_traffic.io.descriptor import parse_occupancy
from ring_traffic.io.logging_utils import logger
from .errors import LaneNotManagedError, NegativeDistanceError, VehicleNotManagedError
from .kernels import advance_lanes_kernel
from .lane import Lane
from .rules import Rule
from .vehicles import Vehicle


class Simulation:
    """
    Owns the ordered lanes, the global rule and every vehicle.

    Lane order defines adjacency: lanes[i - 1] is the left neighbour of
    lanes[i], lanes[i + 1] the right one.
    """

    def __init__(self, global_rule: Rule | None = None, default_speed_cap: int = 1) -> None:
        self.lanes: List[Lane] = []
        self.global_rule = global_rule
        self.default_speed_cap = default_speed_cap

        self.step_count: int = 0
        self._next_vehicle_id: int = 0

    # ------------------------ LANES ------------------------

    def add_lane(self, descriptor: Optional[str]) -> Lane:
        """
        Build a lane from an occupancy descriptor ("■□□■", "1001", ...).

        The first lane takes the descriptor's length. Later lanes are forced
        to the first lane's length: extra cells are dropped, missing ones
        are left free.
        """
        cells = parse_occupancy(descriptor)

        if not self.lanes:
            length = len(cells)
        else:
            length = self.lanes[0].length
            if len(cells) > length:
                logger.debug(
                    f"Lane descriptor truncated from {len(cells)} to {length} cells"
                )
                cells = cells[:length]

        lane = Lane(length, simulation=self)
        for position, occupied in enumerate(cells):
            if occupied:
                lane.add_vehicle(self._create_vehicle(), position)
        lane.reflesh()

        self.lanes.append(lane)
        return lane

    def remove_lane(self, lane: Lane) -> None:
        self._index_of(lane)
        self.lanes.remove(lane)

    def clear(self) -> None:
        """Drop every lane (and with them every vehicle)."""
        self.lanes.clear()
        self.step_count = 0

    def left_of(self, lane: Lane) -> Optional[Lane]:
        index = self._index_of(lane)
        if index == 0:
            return None
        return self.lanes[index - 1]

    def right_of(self, lane: Lane) -> Optional[Lane]:
        index = self._index_of(lane)
        if index + 1 == len(self.lanes):
            return None
        return self.lanes[index + 1]

    def _index_of(self, lane: Lane) -> int:
        for i, managed in enumerate(self.lanes):
            if managed is lane:
                return i
        raise LaneNotManagedError("Lane not managed by this simulation.")

    # ------------------------ VEHICLES ------------------------

    @property
    def vehicles(self) -> List[Vehicle]:
        return [v for lane in self.lanes for v in lane.vehicles]

    def _create_vehicle(self) -> Vehicle:
        vid = self._next_vehicle_id
        self._next_vehicle_id += 1
        return Vehicle(id=vid, simulation=self, speed_cap=self.default_speed_cap)

    def lane_of(self, vehicle: Vehicle) -> Optional[Lane]:
        for lane in self.lanes:
            if lane.contains(vehicle):
                return lane
        return None

    def move_vehicle(self, vehicle: Vehicle, distance: int) -> int:
        """
        Advance `vehicle` by `distance` cells in its lane's pending buffer.

        The distance is clamped to the free length ahead in the committed
        state. Returns the distance actually travelled.

        A vehicle found on its lane only in pending is not moved and 0 is
        returned. That is the case right after a lane change in the current
        step, and also for a vehicle placed with `Lane.add_vehicle` whose
        lane has not been refleshed yet: it counts as managed, so no
        VehicleNotManagedError is raised.
        """
        lane = self.lane_of(vehicle)
        if lane is None:
            raise VehicleNotManagedError(
                f"Vehicle {vehicle.id} not managed by this simulation."
            )
        if distance < 0:
            raise NegativeDistanceError(f"distance must be >= 0, got {distance}")

        if not lane.is_committed(vehicle):
            # changed onto this lane during the current step
            logger.debug(f"Vehicle {vehicle.id} changed lane this step, not moving")
            return 0

        free_length = lane.forward_free_length(vehicle)
        if distance > free_length:
            logger.debug(
                f"Vehicle {vehicle.id}: move of {distance} clamped to {free_length}"
            )
            distance = free_length

        current = lane.position_of(vehicle)
        # a vehicle that changed lanes this step may already sit in the way
        for d in range(1, distance + 1):
            if lane.is_pending_occupied(current + d):
                distance = d - 1
                break

        lane.remove_vehicle(vehicle)
        lane.add_vehicle(vehicle, current + distance)
        return distance

    def change_lane(self, vehicle: Vehicle, target: Lane) -> bool:
        """
        Move `vehicle` sideways onto `target`, keeping its cell.
        Returns False when the vehicle is unmanaged or the cell is taken.
        """
        self._index_of(target)

        source = self.lane_of(vehicle)
        if source is None or source is target:
            return False

        position = source.position_of(vehicle)
        if target.is_pending_occupied(position):
            return False

        target.add_vehicle(vehicle, position)
        source.remove_vehicle(vehicle)
        return True

    def set_speed_cap(self, speed_cap: int) -> None:
        for lane in self.lanes:
            lane.set_speed_cap(speed_cap)

    def has_rules(self) -> bool:
        if self.global_rule is not None:
            return True
        for lane in self.lanes:
            if lane.rule is not None:
                return True
            if any(v.rule is not None for v in lane.vehicles):
                return True
        return False

    # ------------------------ STEP ------------------------

    def step(self) -> None:
        """
        One discrete tick: every lane moves its vehicles against the
        committed state, then all lanes commit together.

        If a rule raises, the tick is undone (pending buffers, adopted rules
        and jam memory go back to their pre-step values) and the error
        propagates.
        """
        saved = [
            (v, v.rule, v.saw_jam_ahead, v.saw_jam_ahead_prev) for v in self.vehicles
        ]
        try:
            for lane in self.lanes:
                lane.update(self.global_rule, reflesh=False)
        except Exception:
            self.rollback()
            for v, rule, saw_jam_ahead, saw_jam_ahead_prev in saved:
                v.rule = rule
                v.saw_jam_ahead = saw_jam_ahead
                v.saw_jam_ahead_prev = saw_jam_ahead_prev
            logger.debug(f"Step {self.step_count} failed, pending moves discarded")
            raise
        self.reflesh()
        self.step_count += 1

    def reflesh(self) -> None:
        for lane in self.lanes:
            lane.reflesh()

    def rollback(self) -> None:
        for lane in self.lanes:
            lane.rollback()

    def step_parallel(self) -> None:
        """
        Rule-free tick computed by a Numba kernel over all lanes at once.
        Equivalent to `step()` when no rule is set anywhere.
        """
        if self.has_rules():
            raise ValueError("step_parallel() only supports rule-free simulations")

        num_lanes = len(self.lanes)
        # Group vehicles by lane and sort by position ascending
        vehicles_per_lane: List[List[Vehicle]] = []
        max_n = 0
        for lane in self.lanes:
            lane_vehicles = lane.vehicles
            lane_vehicles.sort(key=lane.committed_position_of)
            vehicles_per_lane.append(lane_vehicles)
            max_n = max(max_n, len(lane_vehicles))

        if max_n == 0:
            self.step_count += 1
            return

        positions = np.zeros((num_lanes, max_n), dtype=np.int64)
        speed_caps = np.zeros((num_lanes, max_n), dtype=np.int64)
        counts = np.zeros(num_lanes, dtype=np.int64)
        lane_lengths = np.zeros(num_lanes, dtype=np.int64)
        new_positions = np.zeros((num_lanes, max_n), dtype=np.int64)
        ahead_occupied = np.zeros((num_lanes, max_n), dtype=np.bool_)

        for lane_idx, lane in enumerate(self.lanes):
            lane_vehicles = vehicles_per_lane[lane_idx]
            counts[lane_idx] = len(lane_vehicles)
            lane_lengths[lane_idx] = lane.length
            for i, v in enumerate(lane_vehicles):
                positions[lane_idx, i] = lane.committed_position_of(v)
                speed_caps[lane_idx, i] = v.speed_cap

        advance_lanes_kernel(
            positions,
            speed_caps,
            counts,
            lane_lengths,
            new_positions,
            ahead_occupied,
        )

        # Write back into the pending buffers, then commit every lane
        for lane_idx, lane in enumerate(self.lanes):
            moved: Dict[Vehicle, int] = {}
            for i, v in enumerate(vehicles_per_lane[lane_idx]):
                moved[v] = int(new_positions[lane_idx, i])
                v.observe_cell_ahead(bool(ahead_occupied[lane_idx, i]))
            lane.load_pending(moved)

        self.reflesh()
        self.step_count += 1

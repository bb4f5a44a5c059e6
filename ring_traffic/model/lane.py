from __future__ import annotations

import sys
from bisect import bisect_left
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Set

import numpy as np

from ring_traffic.io.descriptor import render_occupancy
from .errors import (
    DuplicateVehicleError,
    InvalidLaneLengthError,
    OccupiedCellError,
    VehicleNotOnLaneError,
)
from .rules import MoveContext, Rule
from .vehicles import Vehicle

if TYPE_CHECKING:
    from .simulation import Simulation


# position_of() result for a vehicle that is not on the lane
NOT_FOUND = -1
# next_jam_length() result when there is no jam ahead
NO_JAM = sys.maxsize


class Lane:
    """
    Circular lane of `length` cells, at most one vehicle per cell.

    Positions are kept in two buffers:
    - committed: the state every query reads during a step
    - pending: where the moves of the step in progress are written
    `reflesh()` copies pending over committed, which makes a step atomic.
    """

    def __init__(
        self,
        length: int,
        simulation: Simulation | None = None,
        rule: Rule | None = None,
    ) -> None:
        if length < 0:
            raise InvalidLaneLengthError(f"length must be >= 0, got {length}")

        self._length = length
        self._simulation = simulation
        self.rule = rule

        self._committed: Dict[Vehicle, int] = {}
        self._pending: Dict[Vehicle, int] = {}
        # cell indexes, kept in sync with the buffers above
        self._committed_cells: Set[int] = set()
        self._sorted_cells: List[int] = []
        self._pending_cells: Set[int] = set()

    @property
    def length(self) -> int:
        return self._length

    @property
    def vehicles(self) -> List[Vehicle]:
        """Vehicles of the committed state, in insertion order."""
        return list(self._committed)

    # ------------------------ BUFFER MANAGEMENT ------------------------

    def add_vehicle(self, vehicle: Vehicle, position: int) -> None:
        """Place `vehicle` at `position` (wrapped onto the ring) in pending."""
        if vehicle in self._pending:
            raise DuplicateVehicleError(
                f"Vehicle {vehicle.id} is already running on this lane."
            )
        if self._length == 0:
            raise OccupiedCellError("Lane has no cells.")

        position = self.normalize(position)
        if self.is_pending_occupied(position):
            raise OccupiedCellError(f"Cell {position} is already occupied.")

        self._pending[vehicle] = position
        self._pending_cells.add(position)

    def remove_vehicle(self, vehicle: Vehicle) -> None:
        position = self._pending.pop(vehicle, None)
        if position is not None:
            self._pending_cells.discard(position)

    def load_pending(self, positions: Mapping[Vehicle, int]) -> None:
        """Overwrite the pending positions of several vehicles at once."""
        pending = dict(self._pending)
        pending.update((v, self.normalize(p)) for v, p in positions.items())
        cells = set(pending.values())
        if len(cells) != len(pending):
            raise OccupiedCellError("Two vehicles were assigned the same cell.")
        self._pending = pending
        self._pending_cells = cells

    def reflesh(self) -> None:
        """Commit the pending buffer."""
        self._committed = dict(self._pending)
        self._committed_cells = set(self._pending_cells)
        self._sorted_cells = sorted(self._committed_cells)

    def rollback(self) -> None:
        """Throw away the moves written since the last commit."""
        self._pending = dict(self._committed)
        self._pending_cells = set(self._committed_cells)

    # ------------------------ QUERIES ------------------------

    def contains(self, vehicle: Vehicle) -> bool:
        return vehicle in self._pending

    __contains__ = contains

    def is_committed(self, vehicle: Vehicle) -> bool:
        return vehicle in self._committed

    def committed_position_of(self, vehicle: Vehicle) -> int:
        return self._committed.get(vehicle, NOT_FOUND)

    def position_of(self, vehicle: Vehicle) -> int:
        return self._pending.get(vehicle, NOT_FOUND)

    def normalize(self, position: int) -> int:
        """Apply the periodic boundary condition."""
        return position % self._length

    def is_occupied(self, position: int) -> bool:
        if self._length == 0:
            return False
        return self.normalize(position) in self._committed_cells

    def is_pending_occupied(self, position: int) -> bool:
        if self._length == 0:
            return False
        return self.normalize(position) in self._pending_cells

    def occupancy(self) -> np.ndarray:
        """Boolean array over the cells of the committed state."""
        cells = np.zeros(self._length, dtype=np.bool_)
        if self._sorted_cells:
            cells[self._sorted_cells] = True
        return cells

    # ------------------------ GEOMETRY ------------------------

    def forward_free_length(self, vehicle: Vehicle) -> int:
        """Number of free cells between `vehicle` and the next vehicle ahead."""
        position, positions, index = self._locate(vehicle)
        if len(positions) == 1:
            return self._length - 1

        next_position = positions[(index + 1) % len(positions)]
        return (next_position - position - 1) % self._length

    def back_free_length(self, vehicle: Vehicle) -> int:
        """Number of free cells between `vehicle` and the vehicle behind."""
        position, positions, index = self._locate(vehicle)
        if len(positions) == 1:
            return self._length - 1

        previous_position = positions[index - 1]
        return (position - previous_position - 1) % self._length

    def next_jam_length(self, vehicle: Vehicle) -> int:
        """
        Free cells between `vehicle` and the first cell of the next jam
        (two or more vehicles bumper to bumper) ahead of it.

        ■□□■■ gives 2 for the vehicle at 0. Returns 0 when the cell right
        ahead is occupied, NO_JAM when a whole revolution finds no jam.
        """
        if not self._committed:
            return NO_JAM

        position, positions, index = self._locate(vehicle)
        n = len(positions)
        if n == 1:
            return NO_JAM

        for i in range(n):
            current = positions[(index + i) % n]
            following = positions[(index + i + 1) % n]
            if following == self.normalize(current + 1):
                if i == 0:
                    return 0
                return (current - position - 1) % self._length

        return NO_JAM

    def _locate(self, vehicle: Vehicle):
        """Committed position, sorted committed positions, index in them."""
        try:
            position = self._committed[vehicle]
        except KeyError:
            raise VehicleNotOnLaneError(
                f"Vehicle {vehicle.id} is not running on this lane."
            ) from None

        positions = self._sorted_cells
        return position, positions, bisect_left(positions, position)

    # ------------------------ NEIGHBOURS ------------------------

    def left(self) -> Optional[Lane]:
        if self._simulation is None:
            return None
        return self._simulation.left_of(self)

    def right(self) -> Optional[Lane]:
        if self._simulation is None:
            return None
        return self._simulation.right_of(self)

    # ------------------------ STEP ------------------------

    def update(self, global_rule: Rule | None = None, reflesh: bool = True) -> None:
        """
        Let every committed vehicle take its move for this step.

        All queries read the committed state, all moves land in pending.
        With `reflesh=False` the caller commits (used when several lanes
        have to switch state together) and also owns the cleanup when a
        rule raises; otherwise this lane's pending moves are discarded.
        """
        fallback_rule = self.rule if self.rule is not None else global_rule
        left, right = self.left(), self.right()

        try:
            for vehicle in self.vehicles:
                position = self._committed[vehicle]
                context = MoveContext(
                    left=left,
                    right=right,
                    forward_free_length=self.forward_free_length(vehicle),
                    back_free_length=self.back_free_length(vehicle),
                    next_jam_length=self.next_jam_length(vehicle),
                    was_second_of_jam=vehicle.observe_cell_ahead(self.is_occupied(position + 1)),
                )
                vehicle.apply_rule(fallback_rule, context)
        except Exception:
            if reflesh:
                self.rollback()
            raise

        if reflesh:
            self.reflesh()

    def set_speed_cap(self, speed_cap: int) -> None:
        for vehicle in self.vehicles:
            vehicle.speed_cap = speed_cap

    def __str__(self) -> str:
        return render_occupancy(self.occupancy())

    def __repr__(self) -> str:
        return f"Lane(length={self._length}, vehicles={len(self._committed)})"

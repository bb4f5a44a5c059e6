from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from ring_traffic.io.logging_utils import logger

if TYPE_CHECKING:
    from .lane import Lane
    from .rules import MoveContext, Rule
    from .simulation import Simulation


class Vehicle:
    """
    A single-cell vehicle on a ring lane.

    Vehicles never touch lane state directly: every movement request goes
    through the owning Simulation, which writes into the lane's pending
    buffer. Equality and hashing use `id` only.
    """

    def __init__(
        self,
        id: int,
        simulation: Simulation,
        speed_cap: int = 1,
        rule: Optional[Rule] = None,
        rule_sticky: bool = False,
    ) -> None:
        self.id = id
        self._simulation = simulation
        self._speed_cap = max(speed_cap, 0)
        self.rule = rule
        # keep own rule after a step instead of adopting the lane's rule
        self.rule_sticky = rule_sticky

        # one-step memory: was the cell ahead occupied (now / one step ago)
        self.saw_jam_ahead: bool = False
        self.saw_jam_ahead_prev: bool = False

    # ------------------------ PROPERTIES ------------------------

    @property
    def speed_cap(self) -> int:
        """Maximum number of cells advanced per step without a rule."""
        return self._speed_cap

    @speed_cap.setter
    def speed_cap(self, value: int) -> None:
        if value < 0:
            logger.warning(
                f"Vehicle {self.id}: ignoring negative speed cap {value}, "
                f"keeping {self._speed_cap}"
            )
            return
        self._speed_cap = value

    @property
    def lane(self) -> Optional[Lane]:
        """Lane the vehicle runs on, or None if it is not managed."""
        return self._simulation.lane_of(self)

    @property
    def was_second_of_jam(self) -> bool:
        """True iff the cell ahead was occupied last step and is free now."""
        return self.saw_jam_ahead_prev and not self.saw_jam_ahead

    # ------------------------ MOVEMENT ------------------------

    def move(self, distance: int) -> int:
        """
        Advance by `distance` cells. Distances above the free length ahead
        are clamped. Returns the distance actually travelled.
        """
        return self._simulation.move_vehicle(self, distance)

    def change_lane(self, target: Lane) -> bool:
        """Move sideways onto `target` at the same cell."""
        return self._simulation.change_lane(self, target)

    def observe_cell_ahead(self, occupied: bool) -> bool:
        """
        Record whether the cell ahead is occupied this step and return
        `was_second_of_jam`. Must be called once per step.
        """
        self.saw_jam_ahead_prev = self.saw_jam_ahead
        self.saw_jam_ahead = occupied
        return self.was_second_of_jam

    def apply_rule(self, fallback_rule: Optional[Rule], context: MoveContext) -> None:
        """
        Run one step of this vehicle's movement.

        Precedence: own rule, then `fallback_rule` (the lane's rule or the
        global one), then a plain advance by `speed_cap`. Afterwards a
        non-sticky vehicle adopts the rule of the lane it ends up on.
        """
        rule = self.rule if self.rule is not None else fallback_rule

        if rule is None:
            self.move(self._speed_cap)
        else:
            rule.on_move(self, context)

        if not self.rule_sticky:
            lane = self.lane
            self.rule = lane.rule if lane is not None else None

    # ------------------------ IDENTITY ------------------------

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Vehicle):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"Vehicle(id={self.id}, speed_cap={self._speed_cap})"

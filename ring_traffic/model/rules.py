from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional, Type

if TYPE_CHECKING:
    from .lane import Lane
    from .vehicles import Vehicle


@dataclass(frozen=True)
class MoveContext:
    """What a vehicle sees of its surroundings at the start of a step."""

    left: Optional[Lane]
    right: Optional[Lane]
    forward_free_length: int
    back_free_length: int
    next_jam_length: int
    was_second_of_jam: bool


class Rule(ABC):
    """
    Pluggable movement policy.

    A rule may be attached to a vehicle, a lane or the whole simulation.
    `on_move` decides the movement and calls `vehicle.move(...)` (or
    `vehicle.change_lane(...)`); lane-rule adoption afterwards is handled
    by the vehicle itself.
    """

    name: str = "base"

    @abstractmethod
    def on_move(self, vehicle: Vehicle, context: MoveContext) -> None:
        raise NotImplementedError


class SpeedCapRule(Rule):
    """Advance by the vehicle's speed cap."""

    name = "speed_cap"

    def on_move(self, vehicle: Vehicle, context: MoveContext) -> None:
        vehicle.move(vehicle.speed_cap)


class JamAvoidanceRule(Rule):
    """
    Hold position when a jam is close ahead and there is room behind,
    otherwise creep forward by `step` cells.
    """

    name = "jam_avoidance"

    def __init__(self, min_jam_distance: int = 2, step: int = 1) -> None:
        self.min_jam_distance = min_jam_distance
        self.step = step

    def on_move(self, vehicle: Vehicle, context: MoveContext) -> None:
        if context.next_jam_length < self.min_jam_distance and context.back_free_length > 1:
            return
        vehicle.move(self.step)


class SlowToStartRule(Rule):
    """A vehicle whose leader has just pulled away waits one step."""

    name = "slow_to_start"

    def on_move(self, vehicle: Vehicle, context: MoveContext) -> None:
        if context.was_second_of_jam:
            return
        vehicle.move(vehicle.speed_cap)


class OvertakeRule(Rule):
    """
    When blocked, switch to the left lane, or else the right one, if the
    cell alongside is free. Otherwise advance by the speed cap.
    """

    name = "overtake"

    def on_move(self, vehicle: Vehicle, context: MoveContext) -> None:
        if context.forward_free_length == 0:
            lane = vehicle.lane
            position = lane.position_of(vehicle)
            for target in (context.left, context.right):
                if target is None or target.is_occupied(position):
                    continue
                if vehicle.change_lane(target):
                    return
        vehicle.move(vehicle.speed_cap)


RULES: Dict[str, Type[Rule]] = {
    SpeedCapRule.name: SpeedCapRule,
    JamAvoidanceRule.name: JamAvoidanceRule,
    SlowToStartRule.name: SlowToStartRule,
    OvertakeRule.name: OvertakeRule,
}


def get_rule(name: str) -> Type[Rule]:
    try:
        return RULES[name]
    except KeyError:
        raise ValueError(
            f"Unknown rule '{name}'. Available: {', '.join(RULES.keys())}"
        )

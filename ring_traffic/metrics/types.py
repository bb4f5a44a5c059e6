from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class SimulationResult:
    backend: str
    config: Dict[str, Any]

    # total time
    wall_time_seconds: float
    steps: int

    # rendered lanes after the last step, left to right
    final_lanes: List[str]

    # traffic statistics, averaged over steps and lanes
    # [vehicles/cell]
    avg_density: float
    # [cells moved/cell/step]
    avg_flow: float
    # [cells/step/vehicle]
    avg_speed: float
    # jams (2+ vehicles bumper to bumper) per lane
    avg_jam_count: float

    # rendered lanes per step (initial state first), only when recorded
    history: List[List[str]] = field(default_factory=list)

    extra_stats: Dict[str, Any] = field(default_factory=dict)

from dataclasses import dataclass, asdict, field
from typing import List, Literal, Optional


BackendName = Literal["sequential", "openmp"]

# lane descriptor alphabet
OCCUPIED_CELL = "■"
EMPTY_CELL = "□"
OCCUPIED_CELL_BIN = "1"
EMPTY_CELL_BIN = "0"

# steps run by the console loop when the count can't be read
DEFAULT_ITERATIONS = 10


@dataclass
class SimulationConfig:
    # one descriptor per lane, left to right
    lanes: List[str] = field(default_factory=lambda: ["■□□■■□□□□□"])
    # number of discrete steps
    steps: int = DEFAULT_ITERATIONS
    # cells per step for every vehicle
    speed_cap: int = 1
    # global rule name (see model.rules.RULES), None = plain speed-cap advance
    rule: Optional[str] = None

    backend: BackendName = "sequential"

    # openMP
    num_threads: int = 1

    # keep the rendered lanes of every step in the result
    record_history: bool = False

    output_dir: str = "results"
    # scenario desc
    label: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

from ring_traffic.backends.base_backend import SimulationBackend
from ring_traffic.metrics.types import SimulationResult


class SequentialBackend(SimulationBackend):
    """
    Reference implementation: object model, full rule hierarchy.
    """

    name = "sequential"

    def run(self) -> SimulationResult:
        return self._run_steps(self.simulation.step)

import numpy as np
from numba import set_num_threads

from ring_traffic.backends.base_backend import SimulationBackend
from ring_traffic.config import SimulationConfig
from ring_traffic.io.logging_utils import logger
from ring_traffic.metrics.types import SimulationResult
from ring_traffic.model.kernels import advance_lanes_kernel


def _warm_up_kernel() -> None:
    """Trigger Numba JIT compilation on a one-cell lane (not measured)."""
    one = np.ones((1, 1), dtype=np.int64)
    advance_lanes_kernel(
        np.zeros((1, 1), dtype=np.int64),
        one,
        np.ones(1, dtype=np.int64),
        np.ones(1, dtype=np.int64),
        np.zeros((1, 1), dtype=np.int64),
        np.zeros((1, 1), dtype=np.bool_),
    )


class OpenMPBackend(SimulationBackend):
    """
    OpenMP-like backend using Numba's parallel CPU execution.
    It uses the same Simulation model, but calls step_parallel()
    which advances every lane via a Numba @njit(parallel=True) kernel.

    Rules are arbitrary Python objects and can't run inside the kernel:
    a configuration with any rule falls back to the sequential step.
    """

    name = "openmp"

    def __init__(self, config: SimulationConfig):
        super().__init__(config)

        # Configure the number of threads used by Numba
        if self.config.num_threads > 0:
            set_num_threads(self.config.num_threads)

    def run(self) -> SimulationResult:
        sim = self.simulation
        if sim.has_rules():
            logger.warning(
                "Rules configured, openmp backend falls back to sequential stepping"
            )
            result = self._run_steps(sim.step)
            result.extra_stats["fallback"] = "sequential"
            return result

        _warm_up_kernel()
        return self._run_steps(sim.step_parallel)

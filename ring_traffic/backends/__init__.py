from typing import Dict, Type

from ring_traffic.backends.base_backend import SimulationBackend
from ring_traffic.backends.backend_sequential import SequentialBackend
from ring_traffic.backends.backend_openmp import OpenMPBackend


BACKENDS: Dict[str, Type[SimulationBackend]] = {
    SequentialBackend.name: SequentialBackend,
    OpenMPBackend.name: OpenMPBackend,
}


def get_backend(name: str) -> Type[SimulationBackend]:
    try:
        return BACKENDS[name]
    except KeyError:
        raise ValueError(
            f"Unknown backend '{name}'. Available: {', '.join(BACKENDS.keys())}"
        )

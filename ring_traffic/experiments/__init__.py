from ring_traffic.config import SimulationConfig
from ring_traffic.backends import get_backend, BACKENDS


__all__ = ["SimulationConfig", "get_backend", "BACKENDS"]

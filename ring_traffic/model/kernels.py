import numpy as np
from numba import njit, prange


@njit(parallel=True)
def advance_lanes_kernel(
    positions: np.ndarray,
    speed_caps: np.ndarray,
    counts: np.ndarray,
    lane_lengths: np.ndarray,
    new_positions: np.ndarray,
    ahead_occupied: np.ndarray,
) -> None:
    """
    Numba-parallel kernel for one rule-free step over all lanes.

    positions, speed_caps, new_positions, ahead_occupied have shape
    (num_lanes, max_n_per_lane); positions are sorted ascending per lane and
    counts[lane_idx] says how many entries are valid in that lane.

    Only `positions` is read, so every vehicle sees the pre-step state.
    """
    num_lanes = counts.shape[0]

    for lane_idx in prange(num_lanes):
        n = counts[lane_idx]
        if n == 0:
            continue

        length = lane_lengths[lane_idx]

        for i in range(n):
            pos = positions[lane_idx, i]

            # free cells up to the next vehicle on the ring
            if n == 1:
                gap = length - 1
            else:
                next_pos = positions[lane_idx, (i + 1) % n]
                gap = (next_pos - pos - 1) % length

            distance = speed_caps[lane_idx, i]
            if distance > gap:
                distance = gap

            new_positions[lane_idx, i] = (pos + distance) % length
            ahead_occupied[lane_idx, i] = gap == 0

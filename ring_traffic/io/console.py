from typing import Callable, Optional

from ring_traffic.config import DEFAULT_ITERATIONS
from ring_traffic.model.simulation import Simulation


Reader = Callable[[], str]
Writer = Callable[[str], None]


def _read_line(read: Reader) -> Optional[str]:
    try:
        return read()
    except EOFError:
        return None


def read_iterations(read: Reader, write: Writer) -> int:
    """Ask for a step count, falling back to DEFAULT_ITERATIONS."""
    write("Number of steps")
    write(f"e.g. {DEFAULT_ITERATIONS}")
    line = _read_line(read)
    try:
        return int(line.strip())
    except (AttributeError, ValueError):
        return DEFAULT_ITERATIONS


def run_interactive(sim: Simulation, read: Reader = input, write: Writer = print) -> int:
    """
    Read-simulate-print loop over a single lane.

    Each round resets `sim`, reads a lane descriptor and a step count, and
    prints the lane before the first step and after every step. Stops when
    the answer to "run again?" doesn't start with "y" or input runs out.
    Returns the number of rounds played.
    """
    rounds = 0
    while True:
        sim.clear()

        write("Lane layout")
        write("e.g. 1: □■■□□■□")
        write("e.g. 2: 0110010")
        write("vehicle: ■ or 1")
        write("free:    □ or 0")
        lane = sim.add_lane(_read_line(read))

        times = read_iterations(read, write)

        write(str(lane))
        for _ in range(times):
            sim.step()
            write(str(lane))
        rounds += 1

        write("Run again? (y/n)")
        answer = _read_line(read)
        if not answer or answer[0] != "y":
            break

    return rounds

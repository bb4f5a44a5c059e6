from typing import Iterable, List, Optional

from ring_traffic.config import EMPTY_CELL, EMPTY_CELL_BIN, OCCUPIED_CELL, OCCUPIED_CELL_BIN


_OCCUPIED = (OCCUPIED_CELL, OCCUPIED_CELL_BIN)
_EMPTY = (EMPTY_CELL, EMPTY_CELL_BIN)


def parse_occupancy(text: Optional[str]) -> List[bool]:
    """
    Parse a lane descriptor into one flag per cell (True = occupied).

    Occupied: "■" or "1", free: "□" or "0". Any other character is dropped
    before the lane length is counted.
    """
    if text is None:
        return []
    return [ch in _OCCUPIED for ch in text if ch in _OCCUPIED or ch in _EMPTY]


def render_occupancy(cells: Iterable[bool]) -> str:
    return "".join(OCCUPIED_CELL if c else EMPTY_CELL for c in cells)

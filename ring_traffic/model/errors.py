class RingTrafficError(Exception):
    """Base class for all simulation errors."""


class DuplicateVehicleError(RingTrafficError, ValueError):
    """The vehicle is already running on the lane."""


class OccupiedCellError(RingTrafficError, ValueError):
    """The target cell already holds a vehicle."""


class VehicleNotOnLaneError(RingTrafficError, LookupError):
    """The vehicle is not part of the lane's committed state."""


class VehicleNotManagedError(RingTrafficError, LookupError):
    """No lane of the simulation holds the vehicle."""


class LaneNotManagedError(RingTrafficError, LookupError):
    """The lane is not managed by the simulation."""


class NegativeDistanceError(RingTrafficError, ValueError):
    pass


class InvalidLaneLengthError(RingTrafficError, ValueError):
    pass

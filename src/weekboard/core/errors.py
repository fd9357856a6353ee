"""Engine exceptions."""


class WeekboardError(Exception):
    """Base class for board engine errors."""

    pass


class ReorderError(WeekboardError):
    """Raised when a reorder does not name exactly the partition's tasks."""

    pass


class ForwardError(WeekboardError):
    """Raised when a forward request has no usable destination."""

    pass

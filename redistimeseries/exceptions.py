
class TimeSeriesError(Exception):
    """Base exception for the redistimeseries library."""
    pass

class TransportError(TimeSeriesError):
    """Raised for failures reported by the connection or the server."""
    pass

class ConnectionError(TransportError):
    """Raised for connection-related errors."""
    pass

class APIError(TransportError):
    """Raised for error replies returned by the server."""
    def __init__(self, message, command=None):
        super().__init__(message)
        self.command = command

    def __str__(self):
        if self.command:
            return f"API Error ({self.command}): {self.args[0]}"
        return f"API Error: {self.args[0]}"

class MalformedReplyError(TimeSeriesError, ValueError):
    """Raised when a reply does not have the shape its parser expects."""
    pass

class UnknownEnumValueError(MalformedReplyError):
    """Raised when a reply carries a tag this client does not know."""
    def __init__(self, message, value=None):
        super().__init__(message)
        self.value = value

class UnknownAggregationTypeError(UnknownEnumValueError):
    """Raised for an aggregation tag outside the known set."""
    pass

class DurationTooSmallWarning(UserWarning):
    """Issued when a duration is below the one millisecond resolution."""
    pass

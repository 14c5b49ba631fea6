"""
RedisTimeSeries Python Client
"""
__version__ = "0.1.0"

from .client import Client
from .exceptions import (
    TimeSeriesError,
    TransportError,
    ConnectionError,
    APIError,
    MalformedReplyError,
    UnknownEnumValueError,
    UnknownAggregationTypeError,
    DurationTooSmallWarning,
)
from .models import KeyInfo, Rule, Sample, SeriesRange
from .options import (
    Aggregation,
    AggregationType,
    DuplicatePolicy,
    GroupBy,
    MultiGetOptions,
    MultiRangeOptions,
    RangeOptions,
    Reducer,
    SeriesOptions,
    ValueFilter,
)
from .protocol import TIME_RANGE_MINIMUM, TIME_RANGE_MAXIMUM

__all__ = [
    'Client',
    'TimeSeriesError', 'TransportError', 'ConnectionError', 'APIError',
    'MalformedReplyError', 'UnknownEnumValueError', 'UnknownAggregationTypeError',
    'DurationTooSmallWarning',
    'KeyInfo', 'Rule', 'Sample', 'SeriesRange',
    'Aggregation', 'AggregationType', 'DuplicatePolicy', 'GroupBy',
    'MultiGetOptions', 'MultiRangeOptions', 'RangeOptions', 'Reducer',
    'SeriesOptions', 'ValueFilter',
    'TIME_RANGE_MINIMUM', 'TIME_RANGE_MAXIMUM',
]

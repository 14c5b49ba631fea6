"""
Request modifiers for the time-series commands.

Every option model is a frozen dataclass whose default instance means
"no modifiers". Fields that accept zero as a legal value (count, align,
bucket duration) use ``None`` for "not set".
"""
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Dict, Optional, Tuple, Union


class AggregationType(str, Enum):
    """Aggregation tags, exactly as the store spells them."""
    AVG = "AVG"
    SUM = "SUM"
    MIN = "MIN"
    MAX = "MAX"
    COUNT = "COUNT"
    FIRST = "FIRST"
    LAST = "LAST"
    STD_P = "STD.P"
    STD_S = "STD.S"
    VAR_P = "VAR.P"
    VAR_S = "VAR.S"

    def __str__(self):
        return self.value


class Reducer(str, Enum):
    """Reducers accepted by GROUPBY ... REDUCE."""
    SUM = "SUM"
    MIN = "MIN"
    MAX = "MAX"

    def __str__(self):
        return self.value


class DuplicatePolicy(str, Enum):
    """
    Conflict resolution for a sample whose timestamp already exists.

    An unset policy is ``None`` wherever a policy is accepted or returned.
    """
    BLOCK = "block"  # reject the new sample
    FIRST = "first"  # keep the stored value
    LAST = "last"    # overwrite with the new value
    MIN = "min"      # keep the lower value
    MAX = "max"      # keep the higher value

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class Aggregation:
    type: AggregationType
    bucket_duration: int


@dataclass(frozen=True)
class ValueFilter:
    """Inclusive value bounds for FILTER_BY_VALUE."""
    min: float
    max: float


@dataclass(frozen=True)
class GroupBy:
    label: str
    reducer: Reducer


@dataclass(frozen=True)
class SeriesOptions:
    """
    Options for creating or altering a series, also accepted by the
    commands that may create a series implicitly (add, increment, decrement).

    Args:
        uncompressed (bool): Store samples without compression.
        retention (timedelta or int, optional): Maximum sample age. An int
            is taken as milliseconds.
        labels (dict): Label names mapped to label values.
        chunk_size (int, optional): Chunk allocation size in bytes.
        duplicate_policy (DuplicatePolicy, optional): Policy for samples
            with an existing timestamp.
    """
    uncompressed: bool = False
    retention: Optional[Union[timedelta, int]] = None
    labels: Dict[str, str] = field(default_factory=dict)
    chunk_size: Optional[int] = None
    duplicate_policy: Optional[DuplicatePolicy] = None


@dataclass(frozen=True)
class RangeOptions:
    """Modifiers for TS.RANGE and TS.REVRANGE."""
    aggregation: Optional[Aggregation] = None
    count: Optional[int] = None
    align: Optional[int] = None
    filter_by_ts: Tuple[int, ...] = ()
    filter_by_value: Optional[ValueFilter] = None


@dataclass(frozen=True)
class MultiRangeOptions(RangeOptions):
    """
    Modifiers for TS.MRANGE and TS.MREVRANGE.

    ``with_labels`` and ``selected_labels`` are alternatives; when both are
    given only WITHLABELS is sent.
    """
    with_labels: bool = False
    selected_labels: Tuple[str, ...] = ()
    group_by: Optional[GroupBy] = None


@dataclass(frozen=True)
class MultiGetOptions:
    with_labels: bool = False


def default_series_options():
    return SeriesOptions()


def default_range_options():
    return RangeOptions()


def default_multi_range_options():
    return MultiRangeOptions()


def default_multi_get_options():
    return MultiGetOptions()

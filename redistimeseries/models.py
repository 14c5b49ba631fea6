from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional

from .options import AggregationType, DuplicatePolicy


class Sample(NamedTuple):
    """A single (timestamp, value) point. Timestamps are epoch milliseconds."""
    timestamp: int
    value: float


@dataclass(frozen=True)
class Rule:
    """A compaction rule as reported by TS.INFO."""
    dest_key: str
    bucket_duration: int
    aggregation: AggregationType


@dataclass
class KeyInfo:
    """
    Series metadata returned by TS.INFO.

    ``max_samples_per_chunk`` is only reported by older stores; when it is
    the reply's only chunk field, ``chunk_size`` is derived from it.
    """
    total_samples: int = 0
    chunk_count: int = 0
    chunk_size: int = 0
    max_samples_per_chunk: int = 0
    last_timestamp: int = 0
    retention_time: int = 0
    rules: List[Rule] = field(default_factory=list)
    labels: Dict[str, str] = field(default_factory=dict)
    duplicate_policy: Optional[DuplicatePolicy] = None


@dataclass
class SeriesRange:
    """Samples of one series from a multi-series reply, with its labels."""
    name: str
    labels: Dict[str, str] = field(default_factory=dict)
    samples: List[Sample] = field(default_factory=list)

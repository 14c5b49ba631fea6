"""
Decoders for time-series command replies.

A reply is whatever the connection hands back for one command: an int,
a bulk string (bytes), a list of replies, None, or an error reply object.
Each parser accepts only the shape it expects and raises
MalformedReplyError for anything else. Parsers never return partial results.
"""
from redis.exceptions import ResponseError

from .exceptions import (
    APIError,
    MalformedReplyError,
    UnknownAggregationTypeError,
    UnknownEnumValueError,
)
from .models import KeyInfo, Rule, Sample, SeriesRange
from .options import AggregationType, DuplicatePolicy
from .protocol import MADD_CMD, parse_float, to_str

# Older stores report chunk capacity in samples; 16 bytes per sample.
BYTES_PER_SAMPLE = 16


def _as_list(reply, what):
    if isinstance(reply, (list, tuple)):
        return reply
    raise MalformedReplyError(f"{what}: expected an array reply, got {reply!r}")

def _as_int(reply, what):
    if isinstance(reply, bool):
        raise MalformedReplyError(f"{what}: expected an integer reply, got {reply!r}")
    if isinstance(reply, int):
        return reply
    if isinstance(reply, (bytes, str)):
        try:
            return int(to_str(reply))
        except ValueError as e:
            raise MalformedReplyError(f"{what}: invalid integer {reply!r}") from e
    raise MalformedReplyError(f"{what}: expected an integer reply, got {reply!r}")

def _as_str(reply, what):
    if isinstance(reply, (bytes, str)):
        return to_str(reply)
    raise MalformedReplyError(f"{what}: expected a bulk string reply, got {reply!r}")

def parse_ok(reply):
    """Checks a simple status reply such as OK."""
    if reply is True or (isinstance(reply, (bytes, str)) and to_str(reply) == "OK"):
        return True
    raise MalformedReplyError(f"Expected OK status reply, got {reply!r}")

def parse_int(reply):
    """Parses an integer reply (deleted sample or key counts)."""
    return _as_int(reply, "integer reply")

def parse_timestamp(reply):
    """Parses the timestamp echoed back by TS.ADD, TS.INCRBY and TS.DECRBY."""
    return _as_int(reply, "timestamp reply")

def parse_sample(reply):
    """
    Parses a ``[timestamp, value]`` reply.

    An empty reply means the series exists but holds no sample, and gives
    None. A missing key is reported by the server as an error reply, which
    never reaches this parser.
    """
    if reply is None:
        return None
    values = _as_list(reply, "sample")
    if len(values) == 0:
        return None
    if len(values) != 2:
        raise MalformedReplyError(
            f"sample: expected 2 elements (timestamp and value), got {len(values)}")
    timestamp = _as_int(values[0], "sample timestamp")
    value = parse_float(values[1])
    return Sample(timestamp, value)

def parse_samples(reply):
    """Parses an array of ``[timestamp, value]`` pairs."""
    samples = []
    for raw_sample in _as_list(reply, "samples"):
        sample = parse_sample(raw_sample)
        if sample is None:
            raise MalformedReplyError("samples: empty element in sample array")
        samples.append(sample)
    return samples

def parse_labels(reply):
    """
    Parses an array of ``[name, value]`` label pairs into a dict.

    A nil value maps to None: with SELECTED_LABELS the store reports a
    selected label that a series does not carry that way.
    """
    labels = {}
    for pair in _as_list(reply, "labels"):
        pair = _as_list(pair, "label pair")
        if len(pair) != 2:
            raise MalformedReplyError(
                f"labels: expected 2 elements per label pair, got {len(pair)}")
        key, value = pair
        if not isinstance(key, (bytes, str)):
            raise MalformedReplyError("labels: label name must be a bulk string")
        if value is None:
            labels[to_str(key)] = None
        elif isinstance(value, (bytes, str)):
            labels[to_str(key)] = to_str(value)
        else:
            raise MalformedReplyError("labels: label value must be a bulk string or nil")
    return labels

def _parse_named(reply, parse_tail):
    ranges = []
    for entry in _as_list(reply, "ranges"):
        entry = _as_list(entry, "range")
        if len(entry) != 3:
            raise MalformedReplyError(
                f"ranges: expected 3 elements per series (name, labels, samples), got {len(entry)}")
        name = _as_str(entry[0], "series name")
        labels = parse_labels(entry[1])
        ranges.append(SeriesRange(name, labels, parse_tail(entry[2])))
    return ranges

def parse_ranges(reply):
    """Parses a TS.MRANGE / TS.MREVRANGE reply."""
    return _parse_named(reply, parse_samples)

def _single_sample_list(reply):
    sample = parse_sample(reply)
    if sample is None:
        return []
    return [sample]

def parse_ranges_single_sample(reply):
    """
    Parses a TS.MGET reply: like a range reply, except the third element of
    each series is one optional sample instead of a sample array.
    """
    return _parse_named(reply, _single_sample_list)

def parse_aggregation_type(reply):
    text = _as_str(reply, "aggregation type")
    try:
        return AggregationType(text)
    except ValueError as e:
        raise UnknownAggregationTypeError(f"Unknown aggregation type {text!r}", value=text) from e

def parse_duplicate_policy(reply):
    """Parses a duplicate policy; a nil reply means no policy is set."""
    if reply is None:
        return None
    text = _as_str(reply, "duplicate policy")
    try:
        return DuplicatePolicy(text.lower())
    except ValueError as e:
        raise UnknownEnumValueError(f"Unknown duplicate policy {text!r}", value=text) from e

def parse_rules(reply):
    """Parses the ``rules`` section of TS.INFO."""
    rules = []
    for raw_rule in _as_list(reply, "rules"):
        values = _as_list(raw_rule, "rule")
        # Newer stores append the alignment timestamp; it is not kept.
        if len(values) < 3:
            raise MalformedReplyError(
                f"rule: expected destination, bucket and aggregation, got {len(values)} elements")
        rules.append(Rule(
            _as_str(values[0], "rule destination"),
            _as_int(values[1], "rule bucket duration"),
            parse_aggregation_type(values[2]),
        ))
    return rules

def _set_max_samples_per_chunk(info, reply):
    info.max_samples_per_chunk = _as_int(reply, "maxSamplesPerChunk")
    info.chunk_size = BYTES_PER_SAMPLE * info.max_samples_per_chunk

def _set_int(attribute):
    def setter(info, reply):
        setattr(info, attribute, _as_int(reply, attribute))
    return setter

def _set_parsed(attribute, parse):
    def setter(info, reply):
        setattr(info, attribute, parse(reply))
    return setter

_INFO_FIELDS = {
    "totalSamples": _set_int("total_samples"),
    "chunkCount": _set_int("chunk_count"),
    "chunkSize": _set_int("chunk_size"),
    "maxSamplesPerChunk": _set_max_samples_per_chunk,
    "lastTimestamp": _set_int("last_timestamp"),
    "retentionTime": _set_int("retention_time"),
    "rules": _set_parsed("rules", parse_rules),
    "labels": _set_parsed("labels", parse_labels),
    "duplicatePolicy": _set_parsed("duplicate_policy", parse_duplicate_policy),
}

def parse_info(reply):
    """
    Parses a TS.INFO reply, a flat ``[name, value, name, value, ...]`` array.

    Fields this client does not know are skipped.
    """
    values = _as_list(reply, "info")
    if len(values) % 2 != 0:
        raise MalformedReplyError("info: expected an even number of elements")
    info = KeyInfo()
    for i in range(0, len(values), 2):
        setter = _INFO_FIELDS.get(_as_str(values[i], "info field name"))
        if setter is not None:
            setter(info, values[i + 1])
    return info

def parse_keys(reply):
    """Parses a TS.QUERYINDEX reply into a list of key names."""
    return [_as_str(key, "key name") for key in _as_list(reply, "keys")]

def parse_multi_add(reply):
    """
    Parses a TS.MADD reply.

    Each sample succeeds or fails on its own, so the result holds the stored
    timestamp for accepted samples and an APIError for rejected ones, in
    request order.
    """
    results = []
    for item in _as_list(reply, "multi add"):
        if isinstance(item, ResponseError):
            results.append(APIError(str(item), command=MADD_CMD))
        else:
            results.append(_as_int(item, "multi add timestamp"))
    return results

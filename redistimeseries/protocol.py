import warnings
from datetime import timedelta

from .exceptions import DurationTooSmallWarning, MalformedReplyError

# Command names (must match the module's command table)
CREATE_CMD = "TS.CREATE"
ALTER_CMD = "TS.ALTER"
ADD_CMD = "TS.ADD"
MADD_CMD = "TS.MADD"
INCRBY_CMD = "TS.INCRBY"
DECRBY_CMD = "TS.DECRBY"
CREATERULE_CMD = "TS.CREATERULE"
DELETERULE_CMD = "TS.DELETERULE"
RANGE_CMD = "TS.RANGE"
REVRANGE_CMD = "TS.REVRANGE"
MRANGE_CMD = "TS.MRANGE"
MREVRANGE_CMD = "TS.MREVRANGE"
GET_CMD = "TS.GET"
MGET_CMD = "TS.MGET"
INFO_CMD = "TS.INFO"
QUERYINDEX_CMD = "TS.QUERYINDEX"
TS_DEL_CMD = "TS.DEL"
DEL_CMD = "DEL"

# Keywords
UNCOMPRESSED = "UNCOMPRESSED"
RETENTION = "RETENTION"
CHUNK_SIZE = "CHUNK_SIZE"
LABELS = "LABELS"
DUPLICATE_POLICY = "DUPLICATE_POLICY"
ON_DUPLICATE = "ON_DUPLICATE"
TIMESTAMP = "TIMESTAMP"
AGGREGATION = "AGGREGATION"
COUNT = "COUNT"
ALIGN = "ALIGN"
FILTER_BY_TS = "FILTER_BY_TS"
FILTER_BY_VALUE = "FILTER_BY_VALUE"
WITHLABELS = "WITHLABELS"
SELECTED_LABELS = "SELECTED_LABELS"
FILTER = "FILTER"
GROUPBY = "GROUPBY"
REDUCE = "REDUCE"

# Timestamp marker asking the server to use its own clock
AUTO_TIMESTAMP = "*"

TIME_RANGE_MINIMUM = 0
TIME_RANGE_MAXIMUM = 2**63 - 1

_ONE_MILLISECOND = timedelta(milliseconds=1)


def to_str(value):
    """Decodes a bulk string reply (bytes) to str."""
    if isinstance(value, bytes):
        try:
            return value.decode('utf-8')
        except UnicodeDecodeError as e:
            raise MalformedReplyError(f"Reply is not valid UTF-8: {value!r}") from e
    if isinstance(value, str):
        return value
    raise MalformedReplyError(f"Expected a string reply, got {value!r}")

def format_float(value):
    """
    Formats a float in general notation with 16 significant digits.

    The wire protocol carries every value as text, so the result must parse
    back to the same double. The few doubles that need a 17th digit get one.
    """
    value = float(value)
    text = '%.16g' % value
    if value == value and float(text) != value:
        text = '%.17g' % value
    return text

def parse_float(text):
    """Parses a decimal value from a reply."""
    if isinstance(text, float):
        return text
    try:
        return float(to_str(text))
    except ValueError as e:
        raise MalformedReplyError(f"Invalid float value in reply: {text!r}") from e

def format_millis(duration, stacklevel=2):
    """
    Converts a duration to whole milliseconds.

    Durations shorter than one millisecond are not representable; they are
    truncated to 0 and a DurationTooSmallWarning is issued against the
    frame ``stacklevel`` levels up.
    """
    if isinstance(duration, int):
        return duration
    if timedelta(0) < duration < _ONE_MILLISECOND:
        warnings.warn(
            f"specified duration is {duration}, but minimal supported value is {_ONE_MILLISECOND}",
            DurationTooSmallWarning,
            stacklevel=stacklevel,
        )
    return duration // _ONE_MILLISECOND

def _is_positive(value):
    if value is None:
        return False
    if isinstance(value, timedelta):
        return value > timedelta(0)
    return value > 0

def _format_timestamp(timestamp):
    if timestamp is None:
        return AUTO_TIMESTAMP
    return timestamp

def _write_labels(args, labels):
    args.append(LABELS)
    for key, value in labels.items():
        args.append(key)
        args.append(value)

def encode_series_options(command, options):
    """
    Encodes SeriesOptions as modifier arguments for ``command``.

    TS.ADD names the duplicate policy ON_DUPLICATE while every other command
    calls it DUPLICATE_POLICY, so the issuing command has to be given.
    """
    args = []
    if options.duplicate_policy is not None:
        keyword = ON_DUPLICATE if command == ADD_CMD else DUPLICATE_POLICY
        args.extend([keyword, str(options.duplicate_policy)])
    if options.uncompressed:
        args.append(UNCOMPRESSED)
    if _is_positive(options.retention):
        # Warn at the line calling the Client method: Client -> encode_*_args -> here.
        args.extend([RETENTION, format_millis(options.retention, stacklevel=5)])
    if _is_positive(options.chunk_size):
        args.extend([CHUNK_SIZE, options.chunk_size])
    if options.labels:
        _write_labels(args, options.labels)
    return args

def encode_create_args(command, key, options):
    """Encodes TS.CREATE / TS.ALTER arguments."""
    return [key] + encode_series_options(command, options)

def encode_add_args(key, timestamp, value, options):
    """Encodes a TS.ADD request. A timestamp of None lets the server pick."""
    args = [key, _format_timestamp(timestamp), format_float(value)]
    args.extend(encode_series_options(ADD_CMD, options))
    return args

def encode_multi_add_args(samples):
    """Encodes TS.MADD from (key, timestamp, value) triples."""
    args = []
    for key, timestamp, value in samples:
        args.extend([key, _format_timestamp(timestamp), format_float(value)])
    return args

def encode_incr_args(command, key, value, timestamp, options):
    """Encodes TS.INCRBY / TS.DECRBY arguments."""
    args = [key, format_float(value)]
    if timestamp is not None:
        args.extend([TIMESTAMP, timestamp])
    args.extend(encode_series_options(command, options))
    return args

def encode_create_rule_args(source_key, aggregation_type, bucket_duration, dest_key):
    """Encodes TS.CREATERULE arguments."""
    return [source_key, dest_key, AGGREGATION, str(aggregation_type), bucket_duration]

def _write_range_filters(args, options):
    if options.filter_by_value is not None:
        args.extend([
            FILTER_BY_VALUE,
            format_float(options.filter_by_value.min),
            format_float(options.filter_by_value.max),
        ])
    if options.filter_by_ts:
        args.append(FILTER_BY_TS)
        for timestamp in options.filter_by_ts:
            args.append(str(int(timestamp)))

def _write_aggregation(args, options):
    if options.aggregation is not None:
        args.extend([
            AGGREGATION,
            str(options.aggregation.type),
            str(int(options.aggregation.bucket_duration)),
        ])
    if options.count is not None:
        args.extend([COUNT, str(int(options.count))])

def _write_align(args, options):
    if options.align is not None:
        args.extend([ALIGN, str(int(options.align))])

def encode_range_args(key, from_timestamp, to_timestamp, options):
    """Encodes TS.RANGE / TS.REVRANGE arguments."""
    args = [key, str(int(from_timestamp)), str(int(to_timestamp))]
    _write_range_filters(args, options)
    _write_aggregation(args, options)
    _write_align(args, options)
    return args

def _write_filters(args, filters):
    args.append(FILTER)
    args.extend(filters)

def encode_multi_range_args(from_timestamp, to_timestamp, options, filters):
    """
    Encodes TS.MRANGE / TS.MREVRANGE arguments.

    Everything up to FILTER is read positionally by the server, and the
    filter expressions run to the end of the command unless a GROUPBY
    clause follows them.
    """
    args = [str(int(from_timestamp)), str(int(to_timestamp))]
    _write_range_filters(args, options)
    _write_aggregation(args, options)
    if options.with_labels:
        args.append(WITHLABELS)
    elif options.selected_labels:
        args.append(SELECTED_LABELS)
        args.extend(options.selected_labels)
    _write_align(args, options)
    _write_filters(args, filters)
    if options.group_by is not None:
        args.extend([GROUPBY, options.group_by.label, REDUCE, str(options.group_by.reducer)])
    return args

def encode_multi_get_args(options, filters):
    """Encodes TS.MGET arguments."""
    args = []
    if options.with_labels:
        args.append(WITHLABELS)
    _write_filters(args, filters)
    return args

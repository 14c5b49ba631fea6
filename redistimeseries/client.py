import logging

import redis

from .exceptions import ConnectionError, APIError
from .options import (
    default_multi_get_options,
    default_multi_range_options,
    default_range_options,
    default_series_options,
)
from .pool import RedisPool, new_pool
from . import protocol
from . import reply

logger = logging.getLogger(__name__)


class Client:
    """
    A client for the RedisTimeSeries commands of a Redis server.
    """
    def __init__(self, addr='localhost:6379', name='', password=None, timeout=None, pool=None):
        """
        Initializes the client.

        Args:
            addr (str): ``host:port`` of the server, or a comma separated
                        list of them to spread requests over several hosts.
            name (str): A name for this client, used in log records.
            password (str, optional): Password for AUTH.
            timeout (float, optional): Socket timeout in seconds.
            pool (optional): An object with ``get()`` returning something
                             with ``execute_command``, or a ``redis.Redis``.
                             When given, ``addr``, ``password`` and
                             ``timeout`` are ignored.
        """
        self.name = name
        if pool is None:
            pool = new_pool(addr, password=password, timeout=timeout)
        elif isinstance(pool, redis.Redis):
            pool = RedisPool(pool)
        self.pool = pool

    def _execute(self, command, args):
        """
        Runs one command on a pooled connection and returns the raw reply.
        The connection goes back to the pool whether or not the command
        succeeded.
        """
        logger.debug("%s: executing %s with %d arguments", self.name or 'client', command, len(args))
        conn = self.pool.get()
        try:
            return conn.execute_command(command, *args)
        except redis.ResponseError as e:
            raise APIError(str(e), command=command) from e
        except (redis.ConnectionError, redis.TimeoutError) as e:
            raise ConnectionError(f"Connection error during {command}: {e}") from e

    def create_key(self, key, options=None):
        """
        Creates a new time series.

        Args:
            key (str): The series key.
            options (SeriesOptions, optional): Retention, labels, chunk size,
                                               encoding and duplicate policy.

        Raises:
            ConnectionError: If there's a network problem.
            APIError: If the server rejects the command, e.g. the key exists.
        """
        options = options or default_series_options()
        args = protocol.encode_create_args(protocol.CREATE_CMD, key, options)
        return reply.parse_ok(self._execute(protocol.CREATE_CMD, args))

    def alter_key(self, key, options):
        """Updates retention, chunk size, duplicate policy or labels of a series."""
        args = protocol.encode_create_args(protocol.ALTER_CMD, key, options)
        return reply.parse_ok(self._execute(protocol.ALTER_CMD, args))

    def add(self, key, timestamp, value, options=None):
        """
        Appends a sample to a series, creating the series if needed.

        Args:
            key (str): The series key.
            timestamp (int or None): Epoch milliseconds. None lets the server
                                     use its current time.
            value (float): The sample value.
            options (SeriesOptions, optional): Applied when the series is
                created by this call. A duplicate policy here overrides the
                series policy for this sample only.

        Returns:
            int: The timestamp of the stored sample.
        """
        options = options or default_series_options()
        args = protocol.encode_add_args(key, timestamp, value, options)
        return reply.parse_timestamp(self._execute(protocol.ADD_CMD, args))

    def multi_add(self, *samples):
        """
        Appends samples to one or more existing series in a single request.

        Args:
            *samples: ``(key, timestamp, value)`` tuples; a timestamp of None
                      means the server time.

        Returns:
            list: For each sample in order, the stored timestamp, or an
                  APIError if the server rejected that sample.
        """
        if not samples:
            return []
        args = protocol.encode_multi_add_args(samples)
        return reply.parse_multi_add(self._execute(protocol.MADD_CMD, args))

    def incr_by(self, key, value, timestamp=None, options=None):
        """Increases the latest sample of a series by ``value``. Returns the sample timestamp."""
        options = options or default_series_options()
        args = protocol.encode_incr_args(protocol.INCRBY_CMD, key, value, timestamp, options)
        return reply.parse_timestamp(self._execute(protocol.INCRBY_CMD, args))

    def decr_by(self, key, value, timestamp=None, options=None):
        """Decreases the latest sample of a series by ``value``. Returns the sample timestamp."""
        options = options or default_series_options()
        args = protocol.encode_incr_args(protocol.DECRBY_CMD, key, value, timestamp, options)
        return reply.parse_timestamp(self._execute(protocol.DECRBY_CMD, args))

    def create_rule(self, source_key, aggregation_type, bucket_duration, dest_key):
        """
        Creates a compaction rule aggregating ``source_key`` into ``dest_key``.

        Args:
            source_key (str): The series to read from.
            aggregation_type (AggregationType): How each bucket is reduced.
            bucket_duration (int): Bucket width in milliseconds.
            dest_key (str): The series receiving the aggregates. It must
                            exist already.
        """
        args = protocol.encode_create_rule_args(source_key, aggregation_type, bucket_duration, dest_key)
        return reply.parse_ok(self._execute(protocol.CREATERULE_CMD, args))

    def delete_rule(self, source_key, dest_key):
        """Deletes the compaction rule between two series."""
        return reply.parse_ok(self._execute(protocol.DELETERULE_CMD, [source_key, dest_key]))

    def range(self, key, from_timestamp, to_timestamp, options=None):
        """
        Queries samples of a series between two timestamps (inclusive).

        Returns:
            list[Sample]: Samples in ascending timestamp order. Empty if the
                          range holds no samples.
        """
        return self._range(protocol.RANGE_CMD, key, from_timestamp, to_timestamp, options)

    def reverse_range(self, key, from_timestamp, to_timestamp, options=None):
        """Like ``range`` but returns samples newest first."""
        return self._range(protocol.REVRANGE_CMD, key, from_timestamp, to_timestamp, options)

    def _range(self, command, key, from_timestamp, to_timestamp, options):
        options = options or default_range_options()
        args = protocol.encode_range_args(key, from_timestamp, to_timestamp, options)
        return reply.parse_samples(self._execute(command, args))

    def multi_range(self, from_timestamp, to_timestamp, *filters, options=None):
        """
        Queries a range over every series matching the filter expressions.

        Example:
            client.multi_range(0, 1000, "az=us-east-1", "machine!=m-2")

        Args:
            from_timestamp (int): Start of the range.
            to_timestamp (int): End of the range.
            *filters (str): Label filter expressions, passed through as is.
            options (MultiRangeOptions, optional): Query modifiers.

        Returns:
            list[SeriesRange]: One entry per matching series (or group).
        """
        return self._multi_range(protocol.MRANGE_CMD, from_timestamp, to_timestamp, filters, options)

    def multi_reverse_range(self, from_timestamp, to_timestamp, *filters, options=None):
        """Like ``multi_range`` but each series' samples are newest first."""
        return self._multi_range(protocol.MREVRANGE_CMD, from_timestamp, to_timestamp, filters, options)

    def _multi_range(self, command, from_timestamp, to_timestamp, filters, options):
        options = options or default_multi_range_options()
        args = protocol.encode_multi_range_args(from_timestamp, to_timestamp, options, filters)
        return reply.parse_ranges(self._execute(command, args))

    def get(self, key):
        """
        Returns the last sample of a series, or None if it holds no samples.

        Raises:
            APIError: If the key does not exist.
        """
        return reply.parse_sample(self._execute(protocol.GET_CMD, [key]))

    def multi_get(self, *filters, options=None):
        """
        Returns the last sample of every series matching the filters.

        Returns:
            list[SeriesRange]: Each entry has at most one sample.
        """
        options = options or default_multi_get_options()
        args = protocol.encode_multi_get_args(options, filters)
        return reply.parse_ranges_single_sample(self._execute(protocol.MGET_CMD, args))

    def info(self, key):
        """Returns the metadata of a series as a KeyInfo."""
        return reply.parse_info(self._execute(protocol.INFO_CMD, [key]))

    def query_index(self, *filters):
        """Returns the keys of all series matching the filters."""
        return reply.parse_keys(self._execute(protocol.QUERYINDEX_CMD, list(filters)))

    def delete_range(self, key, from_timestamp, to_timestamp):
        """Deletes the samples between two timestamps (inclusive). Returns the number deleted."""
        args = [key, str(int(from_timestamp)), str(int(to_timestamp))]
        return reply.parse_int(self._execute(protocol.TS_DEL_CMD, args))

    def delete_series(self, key):
        """Deletes a series with all its samples and rules. Returns the number of keys removed."""
        return reply.parse_int(self._execute(protocol.DEL_CMD, [key]))

    def close(self):
        """Closes the pooled connections."""
        self.pool.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

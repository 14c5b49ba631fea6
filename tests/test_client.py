import unittest
import warnings
from unittest.mock import patch, MagicMock
from datetime import timedelta

import redis

# Add project root to path to allow direct import of redistimeseries
import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from redistimeseries.client import Client
from redistimeseries.exceptions import (
    APIError,
    ConnectionError,
    DurationTooSmallWarning,
    MalformedReplyError,
)
from redistimeseries.models import KeyInfo, Sample, SeriesRange
from redistimeseries.options import (
    Aggregation,
    AggregationType,
    DuplicatePolicy,
    GroupBy,
    MultiGetOptions,
    MultiRangeOptions,
    RangeOptions,
    Reducer,
    SeriesOptions,
)
from redistimeseries.pool import MultiHostPool, RedisPool, SingleHostPool

class TestTimeSeriesClient(unittest.TestCase):

    def setUp(self):
        self.conn = MagicMock()
        self.pool = MagicMock()
        self.pool.get.return_value = self.conn
        self.client = Client(pool=self.pool)

    def _sent(self):
        """Returns the (command, args) of the last executed command."""
        call_args = self.conn.execute_command.call_args[0]
        return call_args[0], list(call_args[1:])

    def test_create_key_default(self):
        self.conn.execute_command.return_value = b"OK"
        self.assertTrue(self.client.create_key("ts"))
        self.assertEqual(("TS.CREATE", ["ts"]), self._sent())

    def test_create_key_with_options(self):
        self.conn.execute_command.return_value = b"OK"
        options = SeriesOptions(retention=timedelta(hours=1), labels={"az": "us-east-1"},
                                duplicate_policy=DuplicatePolicy.LAST)
        self.client.create_key("ts", options)
        self.assertEqual(
            ("TS.CREATE", ["ts", "DUPLICATE_POLICY", "last", "RETENTION", 3600000,
                           "LABELS", "az", "us-east-1"]),
            self._sent())

    def test_alter_key(self):
        self.conn.execute_command.return_value = b"OK"
        self.client.alter_key("ts", SeriesOptions(chunk_size=128))
        self.assertEqual(("TS.ALTER", ["ts", "CHUNK_SIZE", 128]), self._sent())

    def test_add(self):
        self.conn.execute_command.return_value = 1
        stored = self.client.add("ts", 1, 5.0, SeriesOptions(duplicate_policy=DuplicatePolicy.MAX))
        self.assertEqual(1, stored)
        self.assertEqual(("TS.ADD", ["ts", 1, "5", "ON_DUPLICATE", "max"]), self._sent())

    def test_add_auto_timestamp(self):
        self.conn.execute_command.return_value = 1600000000000
        self.assertEqual(1600000000000, self.client.add("ts", None, 0.1))
        self.assertEqual(("TS.ADD", ["ts", "*", "0.1"]), self._sent())

    def test_multi_add(self):
        self.conn.execute_command.return_value = [1, redis.ResponseError("TSDB: the key does not exist")]
        results = self.client.multi_add(("a", 1, 10.5), ("missing", 2, 40.5))
        self.assertEqual(("TS.MADD", ["a", 1, "10.5", "missing", 2, "40.5"]), self._sent())
        self.assertEqual(1, results[0])
        self.assertIsInstance(results[1], APIError)

    def test_multi_add_nothing(self):
        self.assertEqual([], self.client.multi_add())
        self.pool.get.assert_not_called()

    def test_incr_decr(self):
        self.conn.execute_command.return_value = 7
        self.assertEqual(7, self.client.incr_by("counter", 1))
        self.assertEqual(("TS.INCRBY", ["counter", "1"]), self._sent())
        self.client.decr_by("counter", 2, timestamp=7, options=SeriesOptions(uncompressed=True))
        self.assertEqual(("TS.DECRBY", ["counter", "2", "TIMESTAMP", 7, "UNCOMPRESSED"]), self._sent())

    def test_rules(self):
        self.conn.execute_command.return_value = b"OK"
        self.client.create_rule("src", AggregationType.AVG, 100, "dst")
        self.assertEqual(("TS.CREATERULE", ["src", "dst", "AGGREGATION", "AVG", 100]), self._sent())
        self.client.delete_rule("src", "dst")
        self.assertEqual(("TS.DELETERULE", ["src", "dst"]), self._sent())

    def test_range(self):
        self.conn.execute_command.return_value = [[1, b"5"], [2, b"10"]]
        options = RangeOptions(aggregation=Aggregation(AggregationType.MAX, 10), count=2)
        samples = self.client.range("ts", 0, 1000, options)
        self.assertEqual([Sample(1, 5.0), Sample(2, 10.0)], samples)
        self.assertEqual(("TS.RANGE", ["ts", "0", "1000", "AGGREGATION", "MAX", "10", "COUNT", "2"]),
                         self._sent())

    def test_reverse_range_empty(self):
        self.conn.execute_command.return_value = []
        self.assertEqual([], self.client.reverse_range("ts", 0, 10))
        self.assertEqual(("TS.REVRANGE", ["ts", "0", "10"]), self._sent())

    def test_multi_range(self):
        self.conn.execute_command.return_value = [
            [b"team=team-2", [[b"team", b"team-2"], [b"__reducer__", b"sum"]], [[1, b"60"], [4, b"109"]]],
        ]
        options = MultiRangeOptions(with_labels=True, group_by=GroupBy("team", Reducer.SUM))
        ranges = self.client.multi_range(1, 10, "az=us-east-1", options=options)
        self.assertEqual(
            ("TS.MRANGE", ["1", "10", "WITHLABELS", "FILTER", "az=us-east-1",
                           "GROUPBY", "team", "REDUCE", "SUM"]),
            self._sent())
        self.assertEqual("team=team-2", ranges[0].name)
        self.assertEqual([Sample(1, 60.0), Sample(4, 109.0)], ranges[0].samples)

    def test_multi_reverse_range(self):
        self.conn.execute_command.return_value = [[b"s1", [], [[2, b"1"]]]]
        ranges = self.client.multi_reverse_range(0, 10, "a=b", "c=d")
        self.assertEqual(("TS.MREVRANGE", ["0", "10", "FILTER", "a=b", "c=d"]), self._sent())
        self.assertEqual([SeriesRange("s1", {}, [Sample(2, 1.0)])], ranges)

    def test_get(self):
        self.conn.execute_command.return_value = [4, b"2"]
        self.assertEqual(Sample(4, 2.0), self.client.get("ts"))
        self.assertEqual(("TS.GET", ["ts"]), self._sent())

    def test_get_empty_series(self):
        self.conn.execute_command.return_value = []
        self.assertIsNone(self.client.get("ts"))

    def test_get_missing_key(self):
        self.conn.execute_command.side_effect = redis.ResponseError("ERR TSDB: the key does not exist")
        with self.assertRaises(APIError) as cm:
            self.client.get("nope")
        self.assertEqual("TS.GET", cm.exception.command)
        self.assertIn("does not exist", str(cm.exception))

    def test_multi_get(self):
        self.conn.execute_command.return_value = [
            [b"s1", [[b"az", b"us-east-1"]], [4, b"2"]],
            [b"s2", [[b"az", b"us-east-1"]], []],
        ]
        ranges = self.client.multi_get("az=us-east-1", options=MultiGetOptions(with_labels=True))
        self.assertEqual(("TS.MGET", ["WITHLABELS", "FILTER", "az=us-east-1"]), self._sent())
        self.assertEqual([Sample(4, 2.0)], ranges[0].samples)
        self.assertEqual([], ranges[1].samples)

    def test_info(self):
        self.conn.execute_command.return_value = [b"chunkCount", 1, b"retentionTime", 3600000, b"rules", []]
        self.assertEqual(KeyInfo(chunk_count=1, retention_time=3600000), self.client.info("ts"))
        self.assertEqual(("TS.INFO", ["ts"]), self._sent())

    def test_info_malformed(self):
        self.conn.execute_command.return_value = [b"chunkCount"]
        with self.assertRaises(MalformedReplyError):
            self.client.info("ts")

    def test_query_index(self):
        self.conn.execute_command.return_value = [b"ts1", b"ts2"]
        self.assertEqual(["ts1", "ts2"], self.client.query_index("az=us-east-1"))
        self.assertEqual(("TS.QUERYINDEX", ["az=us-east-1"]), self._sent())

    def test_query_index_undecodable_key(self):
        self.conn.execute_command.return_value = [b"ts1", b"\xff\xfe"]
        with self.assertRaises(MalformedReplyError):
            self.client.query_index("az=us-east-1")

    def test_short_retention_warns_at_caller(self):
        options = SeriesOptions(retention=timedelta(microseconds=5))
        calls = (
            (b"OK", lambda: self.client.create_key("ts", options)),
            (b"OK", lambda: self.client.alter_key("ts", options)),
            (1, lambda: self.client.add("ts", 1, 2.0, options)),
            (1, lambda: self.client.incr_by("ts", 1, options=options)),
            (1, lambda: self.client.decr_by("ts", 1, options=options)),
        )
        for result, call in calls:
            self.conn.execute_command.return_value = result
            with warnings.catch_warnings(record=True) as caught:
                warnings.simplefilter("always")
                call()
            self.assertEqual(1, len(caught))
            self.assertTrue(issubclass(caught[0].category, DurationTooSmallWarning))
            self.assertEqual(os.path.basename(__file__), os.path.basename(caught[0].filename))

    def test_delete_range_and_series(self):
        self.conn.execute_command.return_value = 3
        self.assertEqual(3, self.client.delete_range("ts", 0, 10))
        self.assertEqual(("TS.DEL", ["ts", "0", "10"]), self._sent())
        self.conn.execute_command.return_value = 1
        self.assertEqual(1, self.client.delete_series("ts"))
        self.assertEqual(("DEL", ["ts"]), self._sent())

    def test_connection_error(self):
        self.conn.execute_command.side_effect = redis.ConnectionError("Connection refused")
        with self.assertRaises(ConnectionError):
            self.client.range("ts", 0, 10)

    def test_timeout_error(self):
        self.conn.execute_command.side_effect = redis.TimeoutError("Timeout reading from socket")
        with self.assertRaises(ConnectionError):
            self.client.info("ts")

    def test_context_manager_closes_pool(self):
        with Client(pool=self.pool) as client:
            self.assertIs(self.pool, client.pool)
        self.pool.close.assert_called_once()

    def test_redis_client_is_wrapped(self):
        redis_client = MagicMock(spec=redis.Redis)
        redis_client.execute_command.return_value = []
        client = Client(pool=redis_client)
        self.assertIsInstance(client.pool, RedisPool)
        self.assertEqual([], client.range("ts", 0, 10))
        redis_client.execute_command.assert_called_once_with("TS.RANGE", "ts", "0", "10")

    @patch('redistimeseries.pool.redis.ConnectionPool')
    def test_address_selects_pool(self, mock_connection_pool):
        self.assertIsInstance(Client("localhost:6379").pool, SingleHostPool)
        self.assertIsInstance(Client("h1:6379,h2:6380").pool, MultiHostPool)

    def tearDown(self):
        self.client.close()

if __name__ == '__main__':
    unittest.main()

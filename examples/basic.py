import time
import sys
import os
from datetime import timedelta

# Add the parent directory to the Python path to allow importing the 'redistimeseries' module.
# This is necessary for running the example script directly from the command line.
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from redistimeseries import (
    Client, APIError, ConnectionError,
    SeriesOptions, RangeOptions, MultiRangeOptions, MultiGetOptions,
    Aggregation, AggregationType, DuplicatePolicy, GroupBy, Reducer,
)

def run_example(addr='localhost:6379'):
    """
    Demonstrates basic usage of the RedisTimeSeries Python client.
    """
    print(f"--- Connecting to Redis at {addr} ---")

    try:
        with Client(addr) as client:

            # 1. Create two series with labels
            # ---------------------------------
            print("\n1. Creating series...")
            for key, machine in (("cpu:1", "machine-1"), ("cpu:2", "machine-2")):
                client.delete_series(key)
                client.create_key(key, SeriesOptions(
                    retention=timedelta(hours=1),
                    labels={"metric": "cpu", "machine": machine, "az": "us-east-1"},
                    duplicate_policy=DuplicatePolicy.LAST,
                ))
            print("   Created cpu:1 and cpu:2")

            # 2. Add samples
            # --------------
            print("\n2. Adding samples...")
            now = int(time.time() * 1000)
            client.add("cpu:1", now - 2000, 55.6)
            client.add("cpu:1", now - 1000, 61.2)
            results = client.multi_add(("cpu:2", now - 2000, 12.5), ("cpu:2", now - 1000, 14.0))
            print(f"   Stored timestamps: {results}")

            # 3. Query a single series
            # ------------------------
            print("\n3. Range query with aggregation...")
            samples = client.range("cpu:1", now - 10000, now, RangeOptions(
                aggregation=Aggregation(AggregationType.AVG, 5000)))
            print(f"   {samples}")

            # 4. Query across series
            # ----------------------
            print("\n4. Multi-series range grouped by az...")
            ranges = client.multi_range(now - 10000, now, "metric=cpu", options=MultiRangeOptions(
                with_labels=True, group_by=GroupBy("az", Reducer.MAX)))
            for r in ranges:
                print(f"   {r.name}: {r.samples}")

            print("\n5. Latest values...")
            for r in client.multi_get("metric=cpu", options=MultiGetOptions(with_labels=True)):
                print(f"   {r.name} {r.labels.get('machine')}: {r.samples}")

            print("\n6. Series info...")
            print(f"   {client.info('cpu:1')}")

    except ConnectionError as e:
        print(f"\n[ERROR] Could not connect to the server: {e}", file=sys.stderr)
    except APIError as e:
        print(f"\n[ERROR] The server returned an error: {e}", file=sys.stderr)

if __name__ == "__main__":
    run_example(*sys.argv[1:2])

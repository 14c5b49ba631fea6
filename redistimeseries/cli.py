import argparse
import dataclasses
import json
import logging
import os
import sys

from redistimeseries import Client, APIError, ConnectionError, TimeSeriesError
from redistimeseries.options import (
    Aggregation,
    AggregationType,
    MultiGetOptions,
    MultiRangeOptions,
    RangeOptions,
)


def _to_json(result):
    if dataclasses.is_dataclass(result):
        return dataclasses.asdict(result)
    if isinstance(result, list):
        return [_to_json(item) for item in result]
    return result

def _aggregation(args):
    if args.aggregation is None:
        return None
    return Aggregation(AggregationType(args.aggregation), args.bucket)

def _range(client, args):
    options = RangeOptions(aggregation=_aggregation(args), count=args.count)
    if args.reverse:
        return client.reverse_range(args.key, args.from_ts, args.to_ts, options=options)
    return client.range(args.key, args.from_ts, args.to_ts, options=options)

def _mrange(client, args):
    options = MultiRangeOptions(aggregation=_aggregation(args), count=args.count,
                                with_labels=args.with_labels)
    if args.reverse:
        return client.multi_reverse_range(args.from_ts, args.to_ts, *args.filters, options=options)
    return client.multi_range(args.from_ts, args.to_ts, *args.filters, options=options)

def build_parser():
    parser = argparse.ArgumentParser(
        description="A command-line interface for RedisTimeSeries."
    )
    parser.add_argument(
        "--host",
        default=os.environ.get("REDIS_HOST", "localhost"),
        help="The Redis host (default: $REDIS_HOST or localhost)."
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("REDIS_PORT", "6379")),
        help="The Redis port (default: $REDIS_PORT or 6379)."
    )
    parser.add_argument(
        "--password",
        default=os.environ.get("REDIS_PASSWORD"),
        help="The Redis password (default: $REDIS_PASSWORD)."
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug output to stderr."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    info = sub.add_parser("info", help="Show the metadata of a series.")
    info.add_argument("key")
    info.set_defaults(run=lambda client, args: client.info(args.key))

    get = sub.add_parser("get", help="Show the last sample of a series.")
    get.add_argument("key")
    get.set_defaults(run=lambda client, args: client.get(args.key))

    for name, run in (("range", _range), ("mrange", _mrange)):
        p = sub.add_parser(name, help=f"Run {name.upper()} over a time interval.")
        if name == "range":
            p.add_argument("key")
        p.add_argument("from_ts", type=int, metavar="FROM")
        p.add_argument("to_ts", type=int, metavar="TO")
        if name == "mrange":
            p.add_argument("filters", nargs="+", metavar="FILTER")
            p.add_argument("--with-labels", action="store_true")
        p.add_argument("--count", type=int)
        p.add_argument("--aggregation", choices=[t.value for t in AggregationType])
        p.add_argument("--bucket", type=int, help="Aggregation bucket in milliseconds.")
        p.add_argument("--reverse", action="store_true")
        p.set_defaults(run=run)

    mget = sub.add_parser("mget", help="Show the last sample of every matching series.")
    mget.add_argument("filters", nargs="+", metavar="FILTER")
    mget.add_argument("--with-labels", action="store_true")
    mget.set_defaults(run=lambda client, args: client.multi_get(
        *args.filters, options=MultiGetOptions(with_labels=args.with_labels)))

    queryindex = sub.add_parser("queryindex", help="List the keys of matching series.")
    queryindex.add_argument("filters", nargs="+", metavar="FILTER")
    queryindex.set_defaults(run=lambda client, args: client.query_index(*args.filters))
    return parser

def main(argv=None):
    """
    Main function for the RedisTimeSeries CLI.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if getattr(args, "aggregation", None) is not None and args.bucket is None:
        parser.error("--bucket is required with --aggregation")
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    client = Client(addr=f"{args.host}:{args.port}", name="cli", password=args.password)
    try:
        result = args.run(client, args)
        print(json.dumps(_to_json(result), indent=2))
    except (APIError, ConnectionError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except TimeSeriesError as e:
        print(f"Unexpected reply: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        client.close()

if __name__ == "__main__":
    main()

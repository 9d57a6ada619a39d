#!/usr/bin/env python3
"""
Command Line Interface for the SWIS datasource toolkit
"""

import sys
import json
import logging
import argparse

from . import __version__
from .core.models import QueryFormat
from .core.sources.swis_sdk import SwisSDK
from .exceptions import SwisSDKError, TransportError


def build_parser():
    parser = argparse.ArgumentParser(
        description="SWIS datasource toolkit - query SolarWinds SWIS with SWQL and shape the results"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"swis-datasource-toolkit {__version__}"
    )
    parser.add_argument(
        "--credentials",
        help="Path to credentials file",
        default="credentials.yaml"
    )
    parser.add_argument(
        "--test-connection",
        action="store_true",
        help="Test connection to the configured SWIS endpoint"
    )
    parser.add_argument(
        "--query",
        help="SWQL query to execute",
        metavar="SWQL"
    )
    parser.add_argument(
        "--format",
        choices=[f.value for f in QueryFormat],
        default=QueryFormat.TIME_SERIES.value,
        help="Output shape of the query result"
    )
    parser.add_argument(
        "--duration-minutes",
        type=int,
        default=60,
        help="Query the last N minutes"
    )
    parser.add_argument(
        "--interval-ms",
        type=int,
        default=0,
        help="Bucket size used by downsample() and the granularity parameter"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def run_query(sdk, args):
    query_format = QueryFormat(args.format)
    if query_format == QueryFormat.ANNOTATION:
        return sdk.annotation_query(args.query, duration_minutes=args.duration_minutes)
    if query_format == QueryFormat.SEARCH:
        return sdk.metric_find_query(args.query)
    return sdk.query(args.query, query_format=query_format, duration_minutes=args.duration_minutes,
                     interval_ms=args.interval_ms)


def main(argv=None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if not args.test_connection and not args.query:
        parser.print_help()
        return 0

    try:
        sdk = SwisSDK(args.credentials)
        if args.test_connection:
            sdk.test_connection()
            print("✅ Connection to swis successful!")
        if args.query:
            print(json.dumps(run_query(sdk, args), indent=2, default=str))
    except TransportError as e:
        print(f"❌ SWIS request failed [{e.category.value}]: {e.message}", file=sys.stderr)
        return 1
    except SwisSDKError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

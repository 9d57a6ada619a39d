#!/usr/bin/env python3
"""
Example usage of the SWIS datasource toolkit

This file demonstrates the SWIS SDK against an Orion server configured in credentials.yaml.
"""

import json

from swis_datasource_toolkit import SwisSDK, ConfigurationError, ConnectionError
from swis_datasource_toolkit.core.models import QueryFormat, SwisQuery, TemplateVariable
from swis_datasource_toolkit.exceptions import SwisSDKError


def main():
    """Main example function"""

    # Initialize SDK
    try:
        sdk = SwisSDK("credentials.yaml")
        print("✅ SDK initialized successfully")
    except ConfigurationError as e:
        print(f"❌ Configuration error: {e}")
        return

    # Test connection
    print("\n🔍 Testing connection...")
    try:
        sdk.test_connection()
        print("✅ SWIS connection successful")
    except ConnectionError as e:
        print(f"❌ SWIS connection error: {e}")
        return

    # Example 1: Table of nodes
    print("\n1. Querying node table...")
    result = sdk.query("SELECT Caption, IPAddress, CPULoad FROM Orion.Nodes",
                       query_format=QueryFormat.TABLE)
    print(f"✅ Table result: {json.dumps(result, indent=2, default=str)}")

    # Example 2: Downsampled CPU load per node, restricted by a multi-value variable
    print("\n2. Querying CPU load time series...")
    cpu_query = SwisQuery(
        ref_id="cpu",
        text="SELECT downsample(C.ObservationTimeStamp) AS time, N.Caption, AVG(C.AvgLoad) AS CpuLoad "
             "FROM Orion.CPULoad C JOIN Orion.Nodes N ON N.NodeID = C.NodeID "
             "WHERE C.ObservationTimeStamp BETWEEN $from AND $to AND N.Caption IN ($nodes) "
             "GROUP BY downsample(C.ObservationTimeStamp), N.Caption",
        interval_ms=300000,
    )
    result = sdk.query(
        [cpu_query],
        duration_minutes=120,
        scoped_vars={"nodes": TemplateVariable(name="nodes", value=["core-sw-01", "edge-rtr-02"], multi=True)},
    )
    print(f"✅ Series result: {json.dumps(result, indent=2, default=str)}")
    for ref_id, error in result["errors"].items():
        print(f"❌ Query {ref_id} failed: {error}")

    # Example 3: Events as annotations
    print("\n3. Querying annotations...")
    try:
        annotations = sdk.annotation_query(
            "SELECT EventTime AS time, Message AS text, 'event' AS tags FROM Orion.Events "
            "WHERE EventTime BETWEEN $from AND $to",
            duration_minutes=60,
        )
        print(f"✅ Found {len(annotations)} annotations")
    except SwisSDKError as e:
        print(f"❌ Annotation query failed: {e}")

    # Example 4: Values for a template variable
    print("\n4. Querying variable values...")
    try:
        values = sdk.metric_find_query("SELECT Caption AS __text, NodeID AS __value FROM Orion.Nodes")
        print(f"✅ Variable values: {values[:10]}")
    except SwisSDKError as e:
        print(f"❌ Search query failed: {e}")


if __name__ == "__main__":
    main()

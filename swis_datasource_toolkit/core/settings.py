"""
Settings and configuration constants for the SWIS datasource toolkit.

This module contains global configuration constants used throughout the SDK.
"""

# External API call timeout in seconds
EXTERNAL_CALL_TIMEOUT = 90

# Upper bound on queries of one request executed at the same time
MAX_CONCURRENT_QUERIES = 10

# Interval used when neither the query nor the request carries one
DEFAULT_INTERVAL_MS = 1000

# Time window used by the SDK when no start time is given
DEFAULT_DURATION_MINUTES = 60

SWIS_QUERY_PATH = '/Query'
SWIS_CONNECTION_TEST_QUERY = 'SELECT Description FROM System.NullEntity'

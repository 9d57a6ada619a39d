"""
SWIS datasource toolkit

This SDK queries the SolarWinds Information Service (SWIS) with SWQL and shapes
the results into tables, time series, annotations or template variable values.
"""

from .exceptions import SwisSDKError, ConfigurationError, ConnectionError, TransportError
from .core.sources.swis_sdk import SwisSDK

__version__ = "1.0.0"
__all__ = ["SwisSDK", "SwisSDKError", "ConfigurationError", "ConnectionError", "TransportError"]

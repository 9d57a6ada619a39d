"""
Source-specific SDK implementations
"""

from .swis_sdk import SwisSDK

__all__ = ['SwisSDK']

"""
Custom exceptions for the SWIS datasource toolkit
"""
from enum import Enum


class SwisSDKError(Exception):
    """Base exception for all SDK errors"""
    pass


class ConfigurationError(SwisSDKError):
    """Raised when there's an issue with SDK configuration"""
    pass


class ConnectionError(SwisSDKError):
    """Raised when there's an issue connecting to the SWIS service"""
    pass


class ValidationError(SwisSDKError):
    """Raised when input validation fails"""
    pass


class TaskExecutionError(SwisSDKError):
    """Raised when query execution fails"""
    pass


class EmptyQueryError(ValidationError):
    """Raised when the query text is empty or whitespace only"""
    pass


class SchemaError(SwisSDKError):
    """Raised when the schema does not have the columns the requested format needs"""
    pass


class ShapingError(SwisSDKError):
    """Raised when a result set cannot be shaped into the requested format"""
    pass


class MissingTimeColumnError(ShapingError):
    pass


class InvalidSearchShapeError(ShapingError):
    pass


class TimestampParseError(SwisSDKError):
    """Raised by the strict timestamp parser, never surfaced by the normalizer"""
    pass


class TransportErrorCategory(str, Enum):
    AUTHENTICATION = 'authentication'
    SERVICE_NOT_FOUND = 'service_not_found'
    MALFORMED_REQUEST = 'malformed_request'
    REMOTE_FAULT = 'remote_fault'
    CONNECTIVITY = 'connectivity'


class TransportError(SwisSDKError):
    """Raised when a call to the SWIS endpoint fails. `status` is 0 when no response was received."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message

    @property
    def category(self) -> TransportErrorCategory:
        if self.status in (401, 403):
            return TransportErrorCategory.AUTHENTICATION
        if self.status == 404:
            return TransportErrorCategory.SERVICE_NOT_FOUND
        if self.status == 400:
            return TransportErrorCategory.MALFORMED_REQUEST
        if 500 <= self.status <= 599:
            return TransportErrorCategory.REMOTE_FAULT
        return TransportErrorCategory.CONNECTIVITY

    def __str__(self):
        return f"{self.message} (status: {self.status}, category: {self.category.value})"

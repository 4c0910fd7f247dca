"""
Error Taxonomy for connector_sdk

This module provides:
- ErrorCode: numeric error codes reported to the parent process
- QError: structured error descriptor attached to checkpoint messages
- ConnectorError and its subclasses: exceptions raised by the library

Codes in the 1000 range are definitive (DEF): the run must not be retried
as-is. Codes in the 2000 range are temporary (TMP): the parent may retry.

Usage:
    from connector_sdk.errors import ErrorCode, QError, InvalidDate

    try:
        dates = get_date_range("2024-01-01", "2024-13-01")
    except InvalidDate as e:
        messages.checkpoint(state, e.to_qerror())
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Optional


# ============================================
# Error Codes
# ============================================


class ErrorCode(IntEnum):
    """Numeric error codes shared with the parent process."""

    # Definitive errors
    AUTH_NOT_VALID = 1000
    INVALID_REQUEST = 1010
    INVALID_DATA = 1020
    NOT_FOUND = 1040
    PERMISSION_DENIED = 1050
    INVALID_UPSERT = 1060
    INVALID_DATE = 1070
    INVALID_REQUESTS = 1080
    API_UNAVAILABLE = 1090
    UNABLED_START_PROCESS = 1100
    CANT_INSERT_IN_DATAWAREHOUSE = 1200
    PROCESSED_WITH_ERROR = 1210

    # Temporary errors
    RATE_LIMIT_EXCEEDED = 2000
    TIMEOUT = 2010
    SERVICE_UNAVAILABLE = 2020


ERROR_CODE_LABELS: Dict[int, str] = {
    ErrorCode.AUTH_NOT_VALID: "Auth not valid",
    ErrorCode.INVALID_REQUEST: "Invalid Request",
    ErrorCode.INVALID_DATA: "Invalid Data",
    ErrorCode.NOT_FOUND: "Not Found",
    ErrorCode.PERMISSION_DENIED: "Permission Denied",
    ErrorCode.INVALID_UPSERT: "Invalid Upsert",
    ErrorCode.INVALID_DATE: "Invalid Date",
    ErrorCode.INVALID_REQUESTS: "Invalid Requests",
    ErrorCode.API_UNAVAILABLE: "API Unavailable",
    ErrorCode.UNABLED_START_PROCESS: "Process start is disabled",
    ErrorCode.CANT_INSERT_IN_DATAWAREHOUSE: "Can't insert in Datawarehouse",
    ErrorCode.PROCESSED_WITH_ERROR: "Processed with error",
    ErrorCode.RATE_LIMIT_EXCEEDED: "Rate Limit Exceeded",
    ErrorCode.TIMEOUT: "Timeout",
    ErrorCode.SERVICE_UNAVAILABLE: "Service Unavailable",
}

ERROR_CODE_TYPES: Dict[int, str] = {
    code: ("TMP" if code >= 2000 else "DEF") for code in ErrorCode
}


def parse_error_code(value: Any) -> Optional[int]:
    """
    Parse an error code from a loosely-typed value.

    Args:
        value: int, float or numeric string (as found in decoded JSON)

    Returns:
        Integer code, or None if the value cannot be interpreted

    Example:
        >>> parse_error_code("1070")
        1070
        >>> parse_error_code(1070.0)
        1070
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def get_error_code_type(code: int) -> str:
    """Return 'DEF' or 'TMP' for a known code, '' otherwise."""
    return ERROR_CODE_TYPES.get(code, "")


# ============================================
# Error Descriptor
# ============================================


@dataclass(frozen=True)
class QError:
    """
    Structured error descriptor reported in checkpoint and log messages.

    Attributes:
        code: Numeric error code (see ErrorCode)
        message: Free-text detail, serialized as 'details'
        err: Underlying cause, serialized as 'error'
    """
    code: int
    message: str = ""
    err: str = ""

    def error_message(self) -> str:
        """Human label looked up from the code."""
        if self.code == 0:
            return ""
        return ERROR_CODE_LABELS.get(self.code, "unknown error")

    def error_type(self) -> str:
        return get_error_code_type(self.code)

    @property
    def is_temporary(self) -> bool:
        return self.error_type() == "TMP"

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize for the message protocol.

        'message' carries the looked-up label and 'details' the free text,
        omitted when empty.
        """
        payload: Dict[str, Any] = {
            'code': int(self.code),
            'message': self.error_message(),
        }
        if self.message:
            payload['details'] = self.message
        payload['error'] = self.err
        return payload

    def __str__(self) -> str:
        if self.err:
            return f"code: {int(self.code)}, message: {self.error_message()}, cause: {self.err}"
        return f"code: {int(self.code)}, message: {self.error_message()}"


# ============================================
# Exceptions
# ============================================


class ConnectorError(Exception):
    """
    Base class for all errors raised by connector_sdk.

    Attributes:
        message: Human-readable description of the error
        fix: Optional actionable instructions to resolve the issue
        code: ErrorCode reported to the parent process
    """

    code: ErrorCode = ErrorCode.INVALID_REQUEST

    def __init__(self, message: str, fix: str = ""):
        self.message = message
        self.fix = fix
        super().__init__(self._format_error())

    def _format_error(self) -> str:
        if self.fix:
            return f"{self.message} (how to fix: {self.fix})"
        return self.message

    def to_qerror(self) -> QError:
        """Convert to the descriptor sent in checkpoint messages."""
        cause = self.__cause__
        return QError(
            code=self.code,
            message=self.message,
            err=str(cause) if cause is not None else "",
        )


class ConfigurationError(ConnectorError):
    """Raised when a configuration, state or credentials file cannot be loaded."""

    code = ErrorCode.INVALID_REQUEST


class MalformedConfig(ConnectorError):
    """Raised when a request or account section is present but has the wrong shape."""

    code = ErrorCode.INVALID_REQUESTS


class InvalidDate(ConnectorError):
    """Raised when a start or end date is not a valid YYYY-MM-DD calendar date."""

    code = ErrorCode.INVALID_DATE


class InvalidRange(ConnectorError):
    """Raised when the start date is after the end date."""

    code = ErrorCode.INVALID_DATE


class InvalidResumeDate(ConnectorError):
    """Raised when the resume state carries an unparsable date."""

    code = ErrorCode.INVALID_DATE


class InvalidUpsert(ConnectorError):
    """Raised when a processed row cannot be turned into a message."""

    code = ErrorCode.INVALID_UPSERT

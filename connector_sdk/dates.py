"""
Date Range Utilities for connector_sdk

Expands the start/end dates of a run into the inclusive, ascending sequence
of calendar days the scheduler iterates over.

Dates are plain calendar days (datetime.date): there is no timezone
arithmetic anywhere in the library.

Usage:
    from connector_sdk.dates import get_date_range

    for day in get_date_range("2024-01-01", "2024-01-31"):
        ...
"""

import logging
import re
from datetime import date, datetime
from typing import Type

from connector_sdk.errors import ConnectorError, InvalidDate, InvalidRange
from connector_sdk.models import DateRange

logger = logging.getLogger(__name__)

DATE_FORMAT = '%Y-%m-%d'

# strptime alone accepts '2024-1-2'; dates must be zero-padded
_DATE_PATTERN = re.compile(r'[0-9]{4}-[0-9]{2}-[0-9]{2}')


def parse_date(value: str, error_cls: Type[ConnectorError] = InvalidDate) -> date:
    """
    Parse a strict YYYY-MM-DD calendar date.

    Args:
        value: Date string
        error_cls: Exception class raised on failure

    Returns:
        Parsed date

    Raises:
        error_cls: If the value is not a zero-padded, real calendar date
    """
    if not isinstance(value, str) or not _DATE_PATTERN.fullmatch(value):
        raise error_cls(
            f"Invalid date: {value!r}",
            fix="Dates must use the YYYY-MM-DD format, e.g. 2024-01-31",
        )
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError as e:
        raise error_cls(
            f"Invalid date: {value!r}",
            fix="Dates must be real calendar days in the YYYY-MM-DD format",
        ) from e


def validate_date_format(value: str) -> bool:
    """True if value is a strict YYYY-MM-DD calendar date."""
    try:
        parse_date(value)
        return True
    except InvalidDate:
        return False


def get_date_range(start_date: str, end_date: str) -> DateRange:
    """
    Build the inclusive range of days between two dates.

    Args:
        start_date: First day (YYYY-MM-DD)
        end_date: Last day (YYYY-MM-DD)

    Returns:
        DateRange yielding every day from start_date to end_date

    Raises:
        InvalidDate: If either date does not parse
        InvalidRange: If start_date is after end_date

    Example:
        >>> [d.isoformat() for d in get_date_range("2024-01-30", "2024-02-01")]
        ['2024-01-30', '2024-01-31', '2024-02-01']
    """
    start = parse_date(start_date)
    end = parse_date(end_date)

    if start > end:
        raise InvalidRange(
            f"Start date {start_date} is after end date {end_date}",
            fix="Set requestParams.start_date on or before requestParams.end_date",
        )

    date_range = DateRange(start=start, end=end)
    logger.info(
        f"Date range: {len(date_range)} dates from {start.isoformat()} to {end.isoformat()}"
    )
    return date_range


def get_date_range_from_config(config) -> DateRange:
    """Date range of a loaded ConfigFile (requestParams.start_date/end_date)."""
    params = config.request_params
    return get_date_range(params.start_date, params.end_date)

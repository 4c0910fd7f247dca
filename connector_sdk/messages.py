"""
Message Protocol for connector_sdk

Connectors report to their parent process with line-delimited JSON records
on standard output. Four kinds of records exist:

- processed: one row of output; the row is JSON-encoded then base64-encoded
- log: level, message and structured fields
- checkpoint: resume state snapshot plus an optional error descriptor
- credentials: refreshed credentials to persist

In debug mode nothing is written in the protocol format: rows and
checkpoints are logged in human-readable form and credentials are written
to a local credentials.json.

Usage:
    from connector_sdk.messages import MessageWriter

    messages = MessageWriter(debug=options.debug)
    for item in work_items:
        for row in fetch(item):
            messages.upsert({"requestId": item.request.id, **row}, item.checkpoint_state())
        messages.checkpoint(item.checkpoint_state())
"""

import base64
import json
import logging
import sys
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, TextIO, Union

import pandas as pd

from connector_sdk.dates import validate_date_format
from connector_sdk.errors import InvalidUpsert, QError
from connector_sdk.models import DIMENSION_DATE

MSG_TYPE_PROCESSED = "processed"
MSG_TYPE_LOG = "log"
MSG_TYPE_CHECKPOINT = "checkpoint"
MSG_TYPE_CREDENTIALS = "credentials"

# Protocol level name -> logging level
LOG_LEVELS: Dict[str, int] = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warn': logging.WARNING,
    'error': logging.ERROR,
    'fatal': logging.CRITICAL,
}


def utc_timestamp() -> str:
    """Current time as RFC3339 UTC with second precision."""
    return datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return str(value)


def encode_row(data: Mapping[str, Any]) -> str:
    """Compact JSON with sorted keys, the form rows are sent in."""
    return json.dumps(data, sort_keys=True, separators=(',', ':'), default=_json_default)


class MessageWriter:
    """
    Writes protocol records for the parent process.

    Attributes:
        debug: Human-readable output instead of protocol records
        stream: Output stream (standard output by default)
        logger: Logger used in debug mode
    """

    def __init__(
        self,
        debug: bool = False,
        stream: Optional[TextIO] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.debug = debug
        self._stream = stream
        self.logger = logger or logging.getLogger("connector_sdk.messages")

    @property
    def stream(self) -> TextIO:
        # Resolved lazily so pytest's capsys sees the writes
        return self._stream or sys.stdout

    def _emit(self, record: Dict[str, Any]) -> None:
        self.stream.write(json.dumps(record, default=_json_default) + "\n")
        self.stream.flush()

    # ============================================
    # Processed Rows
    # ============================================

    def upsert(self, data: Mapping[str, Any], state: Mapping[str, str]) -> Dict[str, Any]:
        """
        Report one processed row.

        Args:
            data: Row to send; must carry a string 'requestId'. 'adAccount'
                  or 'accountId' (which wins) fill the record's ad_account.
            state: Current state; its 'date' (empty means a dimension) is
                   attached to the record

        Returns:
            The record that was written (or logged in debug mode)

        Raises:
            InvalidUpsert: If requestId is missing or the state date is invalid
        """
        try:
            payload = encode_row(data)
        except (TypeError, ValueError) as e:
            raise InvalidUpsert(f"Cannot serialize row: {e}") from e

        request_id = data.get('requestId')
        if not isinstance(request_id, str):
            raise InvalidUpsert(
                "requestId missing from processed row",
                fix="Add the request id of the work item to every row",
            )

        record: Dict[str, Any] = {
            'type': MSG_TYPE_PROCESSED,
            'id': "",
            'ad_account': "",
            'request_id': request_id,
            'parent_id': "",
            'child_id': "",
            'message': payload if self.debug else base64.b64encode(payload.encode('utf-8')).decode('ascii'),
            'date': "",
        }

        for key in ('adAccount', 'accountId'):
            value = data.get(key)
            if isinstance(value, str):
                record['ad_account'] = value

        if 'date' in state:
            state_date = state['date'] or DIMENSION_DATE
            if state_date != DIMENSION_DATE and not validate_date_format(state_date):
                raise InvalidUpsert(f"Invalid date in state: {state_date}")
            record['date'] = state_date

        if self.debug:
            self.logger.info(f"Processed row (DEBUG MODE) {record}")
        else:
            self._emit(record)
        return record

    def upsert_frame(
        self,
        df: pd.DataFrame,
        state: Mapping[str, str],
        request_id: str,
        ad_account: Optional[str] = None,
    ) -> int:
        """
        Report every row of a DataFrame.

        Missing values (NaN, NaT) are sent as null.

        Returns:
            Number of rows reported
        """
        if df.empty:
            return 0

        clean = df.astype(object).where(pd.notna(df), None)
        count = 0
        for row in clean.to_dict(orient='records'):
            row['requestId'] = request_id
            if ad_account:
                row['accountId'] = ad_account
            self.upsert(row, state)
            count += 1
        return count

    # ============================================
    # Logs, Checkpoints and Credentials
    # ============================================

    def log(self, level: str, msg: str, fields: Optional[Mapping[str, Any]] = None) -> None:
        """Report a log line at one of debug/info/warn/error/fatal."""
        if self.debug:
            text = f"{msg} {dict(fields)}" if fields else msg
            self.logger.log(LOG_LEVELS.get(level, logging.INFO), text)
            return

        self._emit({
            'type': MSG_TYPE_LOG,
            'level': level,
            'msg': msg,
            'fields': dict(fields) if fields is not None else None,
            'timestamp': utc_timestamp(),
        })

    def info(self, msg: str) -> None:
        self.log('info', msg)

    def warn(self, msg: str) -> None:
        self.log('warn', msg)

    def error(self, err: QError) -> None:
        self.log('error', str(err), {'code': int(err.code), 'message': err.message, 'err': err.err})

    def fatal(self, err: QError) -> None:
        self.log('fatal', str(err), {'code': int(err.code), 'message': err.message, 'err': err.err})

    def checkpoint(self, state: Mapping[str, str], error: Optional[QError] = None) -> None:
        """
        Report the resume state reached, optionally with the error that
        stopped the run.
        """
        if self.debug:
            if error is None:
                self.logger.info(f"Checkpoint OK state={dict(state)}")
            else:
                self.logger.error(
                    f"{error.message or error.error_message()} "
                    f"state={dict(state)} code={int(error.code)} err={error.err}"
                )
            return

        self._emit({
            'type': MSG_TYPE_CHECKPOINT,
            'state': dict(state),
            'error': error.to_dict() if error is not None else None,
            'timestamp': utc_timestamp(),
        })

    def update_credentials(
        self,
        credentials: Mapping[str, Any],
        path: Union[str, Path] = "credentials.json",
    ) -> None:
        """
        Hand refreshed credentials to the parent process.

        In debug mode they are written to a local file instead.
        """
        if self.debug:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(dict(credentials), f, indent=2, default=_json_default)
            self.logger.info(f"Credentials written to {path}")
            return

        self._emit({
            'type': MSG_TYPE_CREDENTIALS,
            'credentials': dict(credentials),
            'timestamp': utc_timestamp(),
        })

    def dump_to_file(self, path: Union[str, Path], data: Any) -> Optional[Path]:
        """
        Write data as indented JSON, in debug mode only.

        '.json' is appended to the file name when missing.

        Returns:
            Path written, or None outside debug mode
        """
        if not self.debug:
            return None

        target = Path(path)
        if target.suffix.lower() != '.json':
            target = target.with_name(target.name + '.json')
        with open(target, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, default=_json_default)
            f.write("\n")
        return target

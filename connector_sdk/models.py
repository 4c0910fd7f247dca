"""
Data Model for connector_sdk

This module defines the value objects shared by every component:
- LooseDocument: accessor wrapper around untyped JSON payloads
- Request and its typed descriptor (ConnectorsAccountRequest, Schema, ...)
- AdAccount, DateRange, ResumeState
- WorkItem: the atomic unit of scheduled work
- Plan: flat row describing a work item for reporting

All objects are produced once per scheduling pass and never mutated.

Usage:
    from connector_sdk.models import ResumeState, WorkItem

    resume = ResumeState.from_mapping({"date": "2024-01-02"})
"""

import datetime
from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
from enum import IntEnum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple


# Sentinel stored in the resume state's 'date' key for dimension requests
DIMENSION_DATE = "dimension"

# Field names recognized as an explicit ad account on a request.
# A bare "id" is never included: it would collide with the request's own id.
ACCOUNT_ID_KEYS: Tuple[str, ...] = (
    'adaccount', 'adAccount', 'ad_account',
    'adaccount_id', 'adAccountId', 'ad_account_id',
    'account_id', 'accountId',
)


# ============================================
# Loose Documents
# ============================================


class LooseDocument:
    """
    Read-only view over an arbitrary decoded JSON value.

    Connector configurations are weakly typed. Instead of probing raw
    dicts all over the code base, components go through these accessors,
    which never raise on unexpected shapes.
    """

    __slots__ = ('_value',)

    def __init__(self, value: Any):
        self._value = value

    @property
    def raw(self) -> Any:
        return self._value

    def get(self, key: str) -> "LooseDocument":
        """Child document under an exact key (missing if absent or not a mapping)."""
        if isinstance(self._value, Mapping):
            return LooseDocument(self._value.get(key))
        return LooseDocument(None)

    def has(self, key: str) -> bool:
        return isinstance(self._value, Mapping) and key in self._value

    def lookup_ci(self, key: str) -> "LooseDocument":
        """
        Child document under a key matched case-insensitively.

        The first matching key in document order wins.
        """
        if isinstance(self._value, Mapping):
            wanted = key.lower()
            for candidate, value in self._value.items():
                if isinstance(candidate, str) and candidate.lower() == wanted:
                    return LooseDocument(value)
        return LooseDocument(None)

    def get_str(self, key: str) -> Optional[str]:
        """Non-empty string under key, or None."""
        value = self.get(key).raw
        if isinstance(value, str) and value:
            return value
        return None

    def explicit_account_id(self) -> Optional[str]:
        """First non-empty string found under one of ACCOUNT_ID_KEYS."""
        for key in ACCOUNT_ID_KEYS:
            value = self.get_str(key)
            if value:
                return value
        return None


# ============================================
# Request Descriptor
# ============================================


class RequestStatus(IntEnum):
    DISABLED = 100
    ENABLED = 200
    ERROR = 300


def is_schedulable_status(status: int) -> bool:
    """Half-open range check so intermediate statuses stay eligible."""
    return RequestStatus.DISABLED < status < RequestStatus.ERROR


def _field(data: Mapping[str, Any], key: str, kind: type, default: Any) -> Any:
    # JSON null decodes to the zero value, like an absent key
    value = data.get(key)
    if value is None:
        return default
    if kind is int and isinstance(value, bool):
        raise ValueError(f"field '{key}' must be an integer, got a boolean")
    if not isinstance(value, kind):
        raise ValueError(
            f"field '{key}' must be {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _mapping(data: Any, what: str) -> Mapping[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError(f"{what} must be an object, got {type(data).__name__}")
    return data


@dataclass(frozen=True)
class DatabaseMetaData:
    """Warehouse metadata for one output column."""
    description: str = ""
    format: str = ""
    is_metric: bool = False
    is_quanti_date: bool = False
    managed: bool = False
    name: str = ""
    quanti_field: bool = False
    quanti_id: bool = False
    type: str = ""

    # Optional enrichment used by the analytics assistant
    purpose: str = ""
    business_name: str = ""
    semantic_type: str = ""
    format_hint: str = ""
    is_pii: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> "DatabaseMetaData":
        data = _mapping(data, "databaseMetaData")
        return cls(
            description=_field(data, 'description', str, ""),
            format=_field(data, 'format', str, ""),
            is_metric=_field(data, 'isMetric', bool, False),
            is_quanti_date=_field(data, 'isQuantiDate', bool, False),
            managed=_field(data, 'managed', bool, False),
            name=_field(data, 'name', str, ""),
            quanti_field=_field(data, 'quantiField', bool, False),
            quanti_id=_field(data, 'quantiId', bool, False),
            type=_field(data, 'type', str, ""),
            purpose=_field(data, 'purpose', str, ""),
            business_name=_field(data, 'business_name', str, ""),
            semantic_type=_field(data, 'semantic_type', str, ""),
            format_hint=_field(data, 'format_hint', str, ""),
            is_pii=_field(data, 'is_pii', bool, False),
        )


@dataclass(frozen=True)
class OrderedField:
    field_path: str = ""
    field_src: str = ""
    database_meta_data: DatabaseMetaData = field(default_factory=DatabaseMetaData)

    @classmethod
    def from_dict(cls, data: Any) -> "OrderedField":
        data = _mapping(data, "orderedFields item")
        return cls(
            field_path=_field(data, 'fieldPath', str, ""),
            field_src=_field(data, 'fieldSrc', str, ""),
            database_meta_data=DatabaseMetaData.from_dict(data.get('databaseMetaData')),
        )


@dataclass(frozen=True)
class Schema:
    """Output table layout of a request."""
    table_name: str = ""
    ordered_fields: Tuple[OrderedField, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> "Schema":
        data = _mapping(data, "schema")
        fields = _field(data, 'orderedFields', list, [])
        return cls(
            table_name=_field(data, 'tableName', str, ""),
            ordered_fields=tuple(OrderedField.from_dict(item) for item in fields),
        )


@dataclass(frozen=True)
class ConnectorsAccountRequest:
    """
    Typed request descriptor as configured for a connector account.

    Attributes:
        id: Request identifier, used by the resume state
        name: Display name
        description: Free-text description
        is_dimension: True for date-independent reference data
        is_prebuild: True when the request comes from the prebuilds catalog
        schema: Output table layout
        status: Raw status value (see RequestStatus)
        purpose, business_domain, grain, sample_questions: optional enrichment
    """
    id: str = ""
    name: str = ""
    description: str = ""
    is_dimension: bool = False
    is_prebuild: bool = False
    schema: Schema = field(default_factory=Schema)
    status: int = 0

    purpose: str = ""
    business_domain: str = ""
    grain: str = ""
    sample_questions: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> "ConnectorsAccountRequest":
        """
        Build a descriptor from decoded JSON.

        Raises:
            ValueError: If a known field has the wrong type
        """
        data = _mapping(data, "connectorsaccountrequest")
        questions = _field(data, 'sample_questions', list, [])
        if not all(isinstance(q, str) for q in questions):
            raise ValueError("field 'sample_questions' must be a list of strings")
        return cls(
            id=_field(data, 'id', str, ""),
            name=_field(data, 'name', str, ""),
            description=_field(data, 'description', str, ""),
            is_dimension=_field(data, 'isDimension', bool, False),
            is_prebuild=_field(data, 'isPrebuild', bool, False),
            schema=Schema.from_dict(data.get('schema')),
            status=_field(data, 'status', int, 0),
            purpose=_field(data, 'purpose', str, ""),
            business_domain=_field(data, 'business_domain', str, ""),
            grain=_field(data, 'grain', str, ""),
            sample_questions=tuple(questions),
        )


@dataclass(frozen=True)
class Request:
    """
    Normalized request, independent of the configuration shape it came from.

    Attributes:
        descriptor: Typed descriptor
        raw_payload: Free-form 'request' payload carried next to the
                     descriptor, kept unparsed for the connector
    """
    descriptor: ConnectorsAccountRequest
    raw_payload: Any = field(default=None, compare=False)

    @property
    def id(self) -> str:
        return self.descriptor.id

    @property
    def is_dimension(self) -> bool:
        return self.descriptor.is_dimension

    @property
    def status(self) -> int:
        return self.descriptor.status

    @property
    def schema(self) -> Schema:
        return self.descriptor.schema

    @property
    def is_enabled(self) -> bool:
        return is_schedulable_status(self.descriptor.status)

    def explicit_account_id(self) -> Optional[str]:
        """
        Account explicitly targeted by this request, if any.

        The free-form payload is inspected first, then the typed descriptor.
        Keys of the decoded descriptor outside the typed model are ignored.
        """
        account_id = LooseDocument(self.raw_payload).explicit_account_id()
        if account_id:
            return account_id
        return LooseDocument(asdict(self.descriptor)).explicit_account_id()


# ============================================
# Accounts, Dates and Resume State
# ============================================


@dataclass(frozen=True)
class AdAccount:
    account_id: str = ""
    id: str = ""
    name: str = ""

    @property
    def normalized_id(self) -> Optional[str]:
        """account_id if set, else id, else None."""
        return self.account_id or self.id or None


@dataclass(frozen=True)
class DateRange:
    """
    Inclusive range of calendar days.

    Iterating yields every day from start to end, ascending. Each call
    to iter() starts over.
    """
    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"start {self.start} is after end {self.end}")

    def __iter__(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def __len__(self) -> int:
        return (self.end - self.start).days + 1

    def __contains__(self, day: object) -> bool:
        return isinstance(day, date) and self.start <= day <= self.end


@dataclass(frozen=True)
class ResumeState:
    """
    Last processed position of an interrupted run.

    Attributes:
        date: 'YYYY-MM-DD', the 'dimension' sentinel, or None
        request_id: Id of the last processed request, or None
    """
    date: Optional[str] = None
    request_id: Optional[str] = None

    @classmethod
    def from_mapping(cls, state: Optional[Mapping[str, Any]]) -> "ResumeState":
        """Read the 'date' and 'requestId' keys; empty values mean absent."""
        state = state or {}
        resume_date = state.get('date')
        request_id = state.get('requestId')
        return cls(
            date=resume_date if isinstance(resume_date, str) and resume_date else None,
            request_id=request_id if isinstance(request_id, str) and request_id else None,
        )

    @property
    def has_date_filter(self) -> bool:
        return self.date is not None and self.date != DIMENSION_DATE

    @property
    def has_request_filter(self) -> bool:
        return self.request_id is not None

    @property
    def is_empty(self) -> bool:
        return not self.has_date_filter and not self.has_request_filter


# ============================================
# Work Items
# ============================================


@dataclass(frozen=True)
class Plan:
    """Flat description of a work item, as reported to the parent process."""
    request_id: str
    date: str
    account_id: str

    def to_dict(self) -> Dict[str, str]:
        return {
            'requestId': self.request_id,
            'date': self.date,
            'accountId': self.account_id,
        }


@dataclass(frozen=True)
class WorkItem:
    """
    One request, at most one date, at most one account.

    date is None exactly when the request is a dimension.
    """
    request: Request
    # The field name shadows datetime.date inside the class body
    date: Optional[datetime.date] = None
    ad_account_id: Optional[str] = None
    ad_account: Optional[AdAccount] = None

    @property
    def date_key(self) -> str:
        """Date as stored in the resume state."""
        return self.date.isoformat() if self.date is not None else DIMENSION_DATE

    def checkpoint_state(self) -> Dict[str, str]:
        """State to checkpoint once this item has been processed."""
        return {'date': self.date_key, 'requestId': self.request.id}

    def to_plan(self) -> Plan:
        return Plan(
            request_id=self.request.id,
            date=self.date_key,
            account_id=self.ad_account_id or "",
        )


def plan_rows(items: List[WorkItem]) -> List[Dict[str, str]]:
    """Plan dictionaries for a list of work items, in order."""
    return [item.to_plan().to_dict() for item in items]

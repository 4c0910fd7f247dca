"""
connector_sdk - support library for data-extraction connectors

This package contains:
- dates.py: Run date range expansion
- requests.py: Request extraction from the connector configuration
- accounts.py: Ad account extraction and normalization
- scheduler.py: Work item scheduling with resume support
- config.py, cli.py: Process bootstrap (flags, config/state/credentials files)
- messages.py, utils.py: Message protocol and logging for the parent process
- prebuilds.py: Prebuilds catalog loader
"""

from connector_sdk.accounts import get_ad_accounts, normalize_ad_accounts
from connector_sdk.cli import ConnectorRun, process
from connector_sdk.config import ConfigFile, RunOptions, load_config_file, load_state_file
from connector_sdk.dates import get_date_range
from connector_sdk.errors import (
    ConfigurationError,
    ConnectorError,
    ErrorCode,
    InvalidDate,
    InvalidRange,
    InvalidResumeDate,
    InvalidUpsert,
    MalformedConfig,
    QError,
)
from connector_sdk.messages import MessageWriter
from connector_sdk.models import (
    AdAccount,
    DateRange,
    Request,
    RequestStatus,
    ResumeState,
    WorkItem,
)
from connector_sdk.requests import extract_requests
from connector_sdk.scheduler import WorkItemScheduler, get_requests_by_date, get_work_items

__all__ = [
    # Core
    'get_date_range',
    'extract_requests',
    'get_ad_accounts',
    'normalize_ad_accounts',
    'WorkItemScheduler',
    'get_requests_by_date',
    'get_work_items',
    # Models
    'AdAccount',
    'DateRange',
    'Request',
    'RequestStatus',
    'ResumeState',
    'WorkItem',
    # Process
    'ConfigFile',
    'ConnectorRun',
    'MessageWriter',
    'RunOptions',
    'load_config_file',
    'load_state_file',
    'process',
    # Errors
    'ConfigurationError',
    'ConnectorError',
    'ErrorCode',
    'InvalidDate',
    'InvalidRange',
    'InvalidResumeDate',
    'InvalidUpsert',
    'MalformedConfig',
    'QError',
]

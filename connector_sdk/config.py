"""
Configuration Loader for connector_sdk

This module loads the three files a connector process is started with:
- config.json: what to fetch (connector section, request params, metadata)
- state.json: resume position of a previous run (optional)
- credentials.json: refreshed credentials (optional)

Relative file names are resolved against DATA_PATH, read from the
environment (a .env file is loaded through python-dotenv when present).

Usage:
    from connector_sdk.config import RunOptions, load_config_file, load_state_file

    options = RunOptions.from_env(debug=False)
    config = load_config_file("config.json", options)
    state = load_state_file("state.json", options)

Loading failures raise ConfigurationError with a clear explanation of
what's wrong and how to fix it.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from connector_sdk.errors import ConfigurationError

logger = logging.getLogger(__name__)


# ============================================
# Run Options
# ============================================


@dataclass(frozen=True)
class RunOptions:
    """
    Process-level options, passed explicitly to every collaborator.

    Attributes:
        debug: Human-readable output instead of the message protocol
        config_path: Configuration file name or path
        state_path: State file name or path
        credentials_path: Credentials file name or path
        data_path: Base directory for relative file names (DATA_PATH)
        log_level: Logging level string (DEBUG, INFO, etc.)
    """
    debug: bool = False
    config_path: str = "config.json"
    state_path: str = "state.json"
    credentials_path: str = "credentials.json"
    data_path: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None, **overrides: Any) -> "RunOptions":
        """
        Build options from the environment.

        Loads .env (from env_path, else the current directory) without
        overriding variables already set, then reads DATA_PATH and
        LOG_LEVEL. Keyword overrides take precedence.
        """
        dotenv_file = env_path or Path.cwd() / ".env"
        if dotenv_file.exists():
            load_dotenv(dotenv_file)

        values: Dict[str, Any] = {
            'data_path': os.getenv("DATA_PATH") or None,
            'log_level': os.getenv("LOG_LEVEL", "INFO"),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def resolve_path(filename: str, options: Optional[RunOptions] = None) -> Path:
    """
    Resolve a file name against DATA_PATH.

    Absolute paths, paths containing a directory separator and every path
    in debug mode are used as-is.
    """
    options = options or RunOptions()
    if options.debug or os.path.isabs(filename) or os.sep in filename:
        return Path(filename)
    if not options.data_path:
        return Path(filename)
    return Path(options.data_path) / filename


# ============================================
# Configuration Data Classes
# ============================================


@dataclass(frozen=True)
class RequestParams:
    """
    Run parameters.

    Attributes:
        start_date: First day to fetch (YYYY-MM-DD)
        end_date: Last day to fetch (YYYY-MM-DD)
        process_type: Kind of run requested by the parent process
        params: Optional free-form parameters string
    """
    start_date: str = ""
    end_date: str = ""
    process_type: str = ""
    params: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "RequestParams":
        data = data if isinstance(data, dict) else {}
        params = data.get('params')
        return cls(
            start_date=_as_str(data.get('start_date')),
            end_date=_as_str(data.get('end_date')),
            process_type=_as_str(data.get('process_type')),
            params=params if isinstance(params, str) else None,
        )


@dataclass(frozen=True)
class ConfigFile:
    """
    Parsed configuration document.

    connector_conf is kept as decoded JSON: its shape is connector-specific
    and only interpreted by the request and account extractors.
    """
    personnal_credentials: Dict[str, Any] = field(default_factory=dict)
    connector_credentials: Dict[str, Any] = field(default_factory=dict)
    connector_conf: Any = None
    ad_accounts: List[Any] = field(default_factory=list)
    request_params: RequestParams = field(default_factory=RequestParams)
    process_id: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConfigFile":
        ad_accounts = data.get('adAccounts')
        return cls(
            personnal_credentials=_as_dict(data.get('personnalCredentials')),
            connector_credentials=_as_dict(data.get('connectorCredentials')),
            connector_conf=data.get('connectorConf'),
            ad_accounts=ad_accounts if isinstance(ad_accounts, list) else [],
            request_params=RequestParams.from_dict(data.get('requestParams')),
            process_id=_as_str(data.get('processId')),
        )


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


# ============================================
# File Loaders
# ============================================


def _read_json(path: Path, what: str) -> Any:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Malformed JSON in {what} file {path}: {e}",
            fix=f"Check that {path} contains a valid JSON document",
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read {what} file {path}: {e}",
            fix=f"Pass the right path with --{what} or set DATA_PATH",
        ) from e


def load_config_file(filename: str, options: Optional[RunOptions] = None) -> ConfigFile:
    """
    Load and parse the configuration file.

    Raises:
        ConfigurationError: If the file is missing, unreadable, not JSON
                            or not a JSON object
    """
    path = resolve_path(filename, options)
    data = _read_json(path, "config")
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration file {path} must contain a JSON object",
            fix='Expected {"connectorConf": {...}, "requestParams": {...}, ...}',
        )
    logger.debug(f"Loaded configuration from {path}")
    return ConfigFile.from_dict(data)


def load_state_file(filename: str, options: Optional[RunOptions] = None) -> Dict[str, str]:
    """
    Load the resume state file.

    A missing file means a fresh run and yields an empty mapping.

    Raises:
        ConfigurationError: If the file is not a flat string-to-string object
    """
    path = resolve_path(filename, options)
    if not path.exists():
        logger.debug(f"No state file at {path}, starting a fresh run")
        return {}

    data = _read_json(path, "state")
    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in data.items()
    ):
        raise ConfigurationError(
            f"State file {path} must be a flat object of strings",
            fix='Expected e.g. {"date": "2024-01-02", "requestId": "campaigns"}',
        )
    return data


def load_credentials_file(
    filename: str,
    options: Optional[RunOptions] = None,
) -> Optional[Dict[str, Any]]:
    """
    Load the credentials file if there is one.

    Credentials are optional: a missing or unreadable file yields None.
    """
    path = resolve_path(filename, options)
    if not path.exists():
        return None
    try:
        data = _read_json(path, "credentials")
    except ConfigurationError as e:
        logger.warning(f"Ignoring credentials file: {e.message}")
        return None
    return data if isinstance(data, dict) else None

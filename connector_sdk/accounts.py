"""
Ad Account Normalization for connector_sdk

Reads the ad accounts configured for a connector and reduces them to the
accounts usable for fan-out.

The identifier of an account is its 'account_id', falling back to 'id'.
Accounts without either are unusable; accounts repeating an identifier
already seen are duplicates (first occurrence wins).

Usage:
    from connector_sdk.accounts import get_ad_accounts, normalize_ad_accounts

    accounts = normalize_ad_accounts(get_ad_accounts(config.connector_conf))
"""

import logging
from typing import Any, Iterable, List, Mapping

from connector_sdk.errors import MalformedConfig
from connector_sdk.models import AdAccount, LooseDocument

logger = logging.getLogger(__name__)

ACCOUNTS_KEY = 'adaccounts'


def _account_field(entry: Mapping[str, Any], key: str) -> str:
    value = entry.get(key)
    if isinstance(value, str):
        return value
    # Numeric ids are common in exported configurations
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return ""


def get_ad_accounts(connector_conf: Any) -> List[AdAccount]:
    """
    Read the configured ad accounts, in input order.

    The 'adaccounts' key is matched case-insensitively. Entries that are
    not objects are skipped; no other filtering happens here.

    Args:
        connector_conf: The 'connectorConf' section of the configuration

    Returns:
        List of AdAccount (empty when none are configured)

    Raises:
        MalformedConfig: If the section is not an object, or the accounts
                         entry is not a list
    """
    if connector_conf is None:
        return []

    if not isinstance(connector_conf, Mapping):
        raise MalformedConfig(
            f"connectorConf must be an object, got {type(connector_conf).__name__}"
        )

    raw_accounts = LooseDocument(connector_conf).lookup_ci(ACCOUNTS_KEY).raw
    if raw_accounts is None:
        return []

    if not isinstance(raw_accounts, list):
        raise MalformedConfig(
            "connectorConf.adaccounts is not a list",
            fix='Use "adaccounts": [ {"account_id": "...", "name": "..."}, ... ]',
        )

    accounts = []
    for entry in raw_accounts:
        if not isinstance(entry, Mapping):
            logger.debug(f"Skipping non-object ad account entry: {entry!r}")
            continue
        accounts.append(AdAccount(
            account_id=_account_field(entry, 'account_id'),
            id=_account_field(entry, 'id'),
            name=_account_field(entry, 'name'),
        ))
    return accounts


def normalize_ad_accounts(accounts: Iterable[AdAccount]) -> List[AdAccount]:
    """
    Keep accounts usable for fan-out.

    Drops accounts without an identifier and later duplicates of an
    identifier already seen. Input order is preserved.
    """
    seen = set()
    normalized = []
    for account in accounts:
        account_id = account.normalized_id
        if not account_id:
            logger.debug(f"Skipping ad account without identifier: {account.name!r}")
            continue
        if account_id in seen:
            logger.debug(f"Skipping duplicate ad account {account_id}")
            continue
        seen.add(account_id)
        normalized.append(account)
    return normalized


def get_normalized_ad_accounts(config) -> List[AdAccount]:
    """Usable ad accounts of a loaded ConfigFile."""
    accounts = normalize_ad_accounts(get_ad_accounts(config.connector_conf))
    logger.info(f"Number of ad accounts retrieved: {len(accounts)}")
    return accounts

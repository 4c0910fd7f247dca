"""
Prebuilds Catalog Loader

A connector ships a prebuilds.json file listing the requests it offers out
of the box. Two layouts exist:

- enriched: {"connector": {...connector info...}, "prebuilds": [...]}
- legacy:   [...] (the list of prebuilds only)

Every prebuild is parsed like a configured request (wrapper or bare
descriptor) but the catalog is not filtered on status.

Usage:
    from connector_sdk.prebuilds import load_prebuilds

    catalog = load_prebuilds("prebuilds.json")
    print(catalog.connector.name if catalog.connector else "legacy catalog")
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Optional, Union

from connector_sdk.errors import ConfigurationError, MalformedConfig
from connector_sdk.requests import parse_request_item
from connector_sdk.models import Request

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectorInfo:
    """
    Connector metadata.

    Attributes:
        sku: Technical identifier (google_ads, meta_ads)
        name: Display name (Google Ads)
        category: marketing, analytics, business or custom
        description: What the connector is
        purpose: What it is used for
    """
    sku: str = ""
    name: str = ""
    category: str = ""
    description: str = ""
    purpose: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ConnectorInfo":
        def text(key: str) -> str:
            value = data.get(key)
            return value if isinstance(value, str) else ""

        return cls(
            sku=text('sku'),
            name=text('name'),
            category=text('category'),
            description=text('description'),
            purpose=text('purpose'),
        )


@dataclass(frozen=True)
class PrebuildsFile:
    connector: Optional[ConnectorInfo] = None
    prebuilds: List[Request] = field(default_factory=list)

    @property
    def is_legacy(self) -> bool:
        return self.connector is None


def parse_prebuilds(data: Any) -> PrebuildsFile:
    """
    Parse a decoded prebuilds document.

    Raises:
        MalformedConfig: If the document is neither a list nor an object
                         with a 'prebuilds' list
    """
    if isinstance(data, list):
        connector = None
        items = data
    elif isinstance(data, Mapping):
        raw_connector = data.get('connector')
        connector = ConnectorInfo.from_dict(raw_connector) if isinstance(raw_connector, Mapping) else None
        items = data.get('prebuilds') or []
        if not isinstance(items, list):
            raise MalformedConfig("prebuilds is not a list")
    else:
        raise MalformedConfig(
            f"prebuilds document must be a list or an object, got {type(data).__name__}"
        )

    prebuilds = []
    for index, item in enumerate(items):
        try:
            request = parse_request_item(item)
        except ValueError as e:
            logger.warning(f"Skipping invalid prebuild at index {index}: {e}")
            continue
        if request is not None:
            prebuilds.append(request)

    return PrebuildsFile(connector=connector, prebuilds=prebuilds)


def load_prebuilds(path: Union[str, Path]) -> PrebuildsFile:
    """
    Load a prebuilds.json file.

    Raises:
        ConfigurationError: If the file cannot be read or is not JSON
        MalformedConfig: If its structure is not a prebuilds document
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Malformed JSON in prebuilds file {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read prebuilds file {path}: {e}") from e

    catalog = parse_prebuilds(data)
    logger.info(f"Loaded {len(catalog.prebuilds)} prebuilds from {path}")
    return catalog

"""
Request Extraction for connector_sdk

Turns the connector-specific section of a configuration into the ordered
list of enabled Request objects.

Two configuration shapes are supported and may be combined:
- collection: {"requests": [wrapper, wrapper, ...]}
- singular:   {"request": wrapper}

A wrapper is either {"connectorsaccountrequest": {...}, "request": {...}}
or, for legacy payloads, the descriptor itself. Both shapes are resolved
here; nothing downstream knows about them.

Usage:
    from connector_sdk.requests import extract_requests

    requests = extract_requests(config.connector_conf)
"""

import logging
from typing import Any, List, Mapping, Optional

from connector_sdk.errors import MalformedConfig
from connector_sdk.models import ConnectorsAccountRequest, LooseDocument, Request

logger = logging.getLogger(__name__)

DESCRIPTOR_KEY = 'connectorsaccountrequest'
PAYLOAD_KEY = 'request'
COLLECTION_KEY = 'requests'
SINGULAR_KEY = 'request'


def parse_request_item(item: Any) -> Optional[Request]:
    """
    Parse one wrapper (or legacy descriptor) into a Request.

    No status filtering happens here.

    Args:
        item: Decoded JSON value

    Returns:
        Request, or None if the item is not an object

    Raises:
        ValueError: If the descriptor has fields of the wrong type
    """
    if not isinstance(item, Mapping):
        return None

    wrapper = LooseDocument(item)
    if wrapper.has(DESCRIPTOR_KEY):
        raw_descriptor = wrapper.get(DESCRIPTOR_KEY).raw
    else:
        # Legacy shape: the item is the descriptor
        raw_descriptor = item

    return Request(
        descriptor=ConnectorsAccountRequest.from_dict(raw_descriptor),
        raw_payload=wrapper.get(PAYLOAD_KEY).raw,
    )


def _collect(item: Any, position: str, result: List[Request]) -> None:
    try:
        request = parse_request_item(item)
    except ValueError as e:
        logger.warning(f"Skipping invalid request at {position}: {e}")
        return

    if request is None:
        logger.debug(f"Skipping non-object request at {position}")
        return

    if not request.is_enabled:
        logger.debug(
            f"Skipping request '{request.id}' with status {request.status}"
        )
        return

    result.append(request)


def extract_requests(connector_conf: Any) -> List[Request]:
    """
    Extract the enabled requests of a connector configuration.

    Collection items come first, in input order, then the singular item.
    Items that are malformed or not enabled are dropped.

    Args:
        connector_conf: The 'connectorConf' section of the configuration

    Returns:
        List of enabled requests (empty if none are configured)

    Raises:
        MalformedConfig: If the section is not an object, or 'requests'
                         is present but not a list
    """
    if connector_conf is None:
        logger.info("Number of requests retrieved: 0")
        return []

    if not isinstance(connector_conf, Mapping):
        raise MalformedConfig(
            f"connectorConf must be an object, got {type(connector_conf).__name__}"
        )

    conf = LooseDocument(connector_conf)
    result: List[Request] = []

    collection = conf.get(COLLECTION_KEY).raw
    if collection is not None:
        if not isinstance(collection, list):
            raise MalformedConfig(
                "connectorConf.requests is not a list",
                fix='Use "requests": [ {...}, ... ] or a single "request": {...}',
            )
        for index, item in enumerate(collection):
            _collect(item, f"requests[{index}]", result)

    single = conf.get(SINGULAR_KEY).raw
    if single is not None:
        _collect(single, "request", result)

    logger.info(f"Number of requests retrieved: {len(result)}")
    return result


def get_requests(config) -> List[Request]:
    """Enabled requests of a loaded ConfigFile."""
    return extract_requests(config.connector_conf)

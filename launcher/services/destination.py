"""
launcher/services/destination.py

Builds the final destination URL by URL-encoding the device payload,
base64-encoding the query string and appending it to the decoded base.
"""

import base64
from typing import Mapping, Optional, Union
from urllib.parse import quote, urlencode, urlsplit

import structlog

from launcher.constants import (
    DATA_SEPARATOR_ENCODED,
    FALLBACK_DATA_SEPARATOR_ENCODED,
    FALLBACK_QUERY,
)
from launcher.schemas import DevicePayload
from launcher.services.codec import decode_percent_ascii

logger = structlog.get_logger(__name__)


def _encode_query(
    payload: Union[DevicePayload, Mapping[str, str], None],
) -> Optional[str]:
    """
    Standard query encoding of the two token keys; None if it cannot be built.

    Any mapping is normalised to the fixed key pair, with missing or empty
    values replaced by the sentinel.
    """
    try:
        if not isinstance(payload, DevicePayload):
            payload = DevicePayload.model_validate(dict(payload or {}))
        return urlencode(list(payload.as_query_items().items()), quote_via=quote)
    except (TypeError, ValueError) as exc:
        logger.warning("destination_query_encoding_failed", error=str(exc))
        return None


def _b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def build_destination(
    decoded_base: str,
    payload: Union[DevicePayload, Mapping[str, str], None] = None,
) -> str:
    """
    Build "<base>/?data=<base64(query)>" from the payload.

    An empty payload is replaced by the sentinel pair. If the query string
    cannot be built, the fixed sentinel query is used and the separator is
    "?data=" without the slash.
    """
    query = _encode_query(payload)
    if query is None:
        return (
            decoded_base
            + decode_percent_ascii(FALLBACK_DATA_SEPARATOR_ENCODED)
            + _b64(FALLBACK_QUERY)
        )

    return decoded_base + decode_percent_ascii(DATA_SEPARATOR_ENCODED) + _b64(query)


def is_valid_destination(value: Optional[str]) -> bool:
    """True when the string is usable as a destination URL."""
    if not value or any(c.isspace() or not c.isprintable() for c in value):
        return False
    try:
        urlsplit(value)
    except ValueError:
        return False
    return True

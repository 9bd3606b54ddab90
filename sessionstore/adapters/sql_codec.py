"""
SQL column codec - converts optional session fields to nullable text.

Metadata is flattened into a single column as ``key:value;`` parts.
Separators are not escaped, so keys and values must not contain them.
"""

from typing import Dict, Mapping, Optional
import ipaddress
import logging

from sessionstore.domain.session import IPAddress

logger = logging.getLogger(__name__)

PART_SEPARATOR = ";"
KEY_VALUE_SEPARATOR = ":"

# What str() gives for a missing value, plus the empty string
ABSENT_PLACEHOLDERS = frozenset({"", "None"})


def nullable_text(value: Optional[str]) -> Optional[str]:
    """Return None for absent values so they are stored as SQL NULL."""
    if value is None or value in ABSENT_PLACEHOLDERS:
        return None
    return value


def text_or_empty(value: Optional[str]) -> str:
    """Map a NULL column back to an empty string."""
    return value if value is not None else ""


def parse_ip(value: Optional[str]) -> Optional[IPAddress]:
    """Parse a stored IP address; NULL or garbage means no address."""
    if value is None:
        return None
    try:
        return ipaddress.ip_address(value)
    except ValueError:
        logger.debug(f"Ignoring unparseable IP address in session row: {value!r}")
        return None


def encode_metadata(meta: Optional[Mapping[str, str]]) -> Optional[str]:
    """
    Serialize metadata for the metadata column.

    Args:
        meta: String to string mapping, may be None

    Returns:
        Encoded text, or None when there is nothing to store
    """
    if not meta:
        return None

    encoded = "".join(
        f"{key}{KEY_VALUE_SEPARATOR}{value}{PART_SEPARATOR}"
        for key, value in meta.items()
    )
    return nullable_text(encoded)


def decode_metadata(source: Optional[str]) -> Dict[str, str]:
    """
    Parse the metadata column back into a mapping.

    Parts that do not split into exactly one key and one value are
    dropped. A repeated key keeps its last value.

    Args:
        source: Column value, None for NULL

    Returns:
        Decoded mapping, empty for NULL
    """
    meta: Dict[str, str] = {}
    if source is None:
        return meta

    for part in source.split(PART_SEPARATOR):
        key_value = part.split(KEY_VALUE_SEPARATOR)
        if len(key_value) != 2:
            continue
        meta[key_value[0]] = key_value[1]
    return meta

"""
Composite Key Codec.

Encodes a BudgetQuery into one ordered string used as the cache identity:

    period:<id>|estudio:<id>|groupers:<sorted ids>|payment:<method>

Missing dimensions encode to an explicit "all" token, and grouper ids are
sorted before joining, so equal queries always produce the same key.
Delimiter characters inside identifiers are percent-escaped, so every key
splits back into exactly one token per dimension.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional

from budget_cache.domain.entities import BudgetQuery

ALL_TOKEN = "all"
PART_DELIMITER = "|"
VALUE_DELIMITER = ":"

# Field name on BudgetQuery -> dimension label in the key, in key order
DIMENSIONS: Dict[str, str] = {
    "period_id": "period",
    "estudio_id": "estudio",
    "grouper_ids": "groupers",
    "payment_method": "payment",
}

CacheKey = str

# "%" first, so escapes introduced for the delimiters are not escaped again
_ESCAPES = (("%", "%25"), (PART_DELIMITER, "%7C"), (VALUE_DELIMITER, "%3A"))


def _escape(text: str) -> str:
    for char, replacement in _ESCAPES:
        text = text.replace(char, replacement)
    return text


def _encode_scalar(value: Any) -> str:
    if value is None or value == "":
        return ALL_TOKEN
    return _escape(str(value))


def _encode_groupers(grouper_ids: Optional[Iterable[int]]) -> str:
    ids = sorted(grouper_ids or ())
    if not ids:
        return ALL_TOKEN
    return ",".join(str(i) for i in ids)


def encode_token(field_name: str, value: Any) -> str:
    """
    Encode a single dimension value as it appears in a key.

    Raises:
        ValueError: If field_name is not a query dimension
    """
    if field_name not in DIMENSIONS:
        raise ValueError(f"Unknown query dimension: {field_name}")
    if field_name == "grouper_ids":
        token = _encode_groupers(value)
    else:
        token = _encode_scalar(value)
    return f"{DIMENSIONS[field_name]}{VALUE_DELIMITER}{token}"


def encode_key(query: BudgetQuery) -> CacheKey:
    """Encode a query into its cache key."""
    return PART_DELIMITER.join(
        encode_token(name, getattr(query, name)) for name in DIMENSIONS
    )


def decode_tokens(key: CacheKey) -> Dict[str, str]:
    """
    Split a key back into its per-dimension tokens.

    Returns:
        Mapping of query field name to encoded token (e.g. "estudio:5")
    """
    parts = key.split(PART_DELIMITER)
    return dict(zip(DIMENSIONS, parts))


def matches(key: CacheKey, pattern: Mapping[str, Any]) -> bool:
    """
    Check whether a key matches a partial query.

    Every dimension present in pattern must equal the key's token exactly.
    Dimensions absent from pattern are wildcards.
    """
    tokens = decode_tokens(key)
    for field_name, value in pattern.items():
        if tokens.get(field_name) != encode_token(field_name, value):
            return False
    return True

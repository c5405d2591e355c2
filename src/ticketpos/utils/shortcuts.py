"""
Keyboard shortcuts bound to products.

A user's shortcuts are a mapping of one lower-case key to a product id and
are stored as a JSON object in ``users.shortcuts``. Older data used a list of
``"key:id:name"`` strings; ``loads`` still accepts that form.
"""

from __future__ import annotations

import json
from typing import Dict, Iterable, Mapping, Optional

from ticketpos.sales.errors import ShortcutError
from ticketpos.utils.logger import get_logger

_logger = get_logger(__name__)

# keys the sales screen already uses: clear cart, toggle register
RESERVED_KEYS = frozenset({"x", "p"})


def normalize_key(key: str) -> str:
    key = (key or "").strip()
    if len(key) != 1 or not key.isprintable():
        raise ShortcutError(f"Shortcut key must be a single visible character, got {key!r}.")
    return key.lower()


def validate(
    shortcuts: Mapping[str, int], product_ids: Optional[Iterable[int]] = None
) -> Dict[str, int]:
    """
    Return a normalized copy of ``shortcuts`` or raise ShortcutError.

    When ``product_ids`` is given every bound product must be in it.
    """
    known = set(product_ids) if product_ids is not None else None
    result: Dict[str, int] = {}
    for raw_key, product_id in shortcuts.items():
        key = normalize_key(raw_key)
        if key in RESERVED_KEYS:
            raise ShortcutError(f"Key '{key}' is reserved by the sales screen.")
        if key in result:
            raise ShortcutError(f"Key '{key}' is bound twice.")
        if isinstance(product_id, bool) or not isinstance(product_id, int) or product_id < 1:
            raise ShortcutError(f"Key '{key}' must point at a product id.")
        if known is not None and product_id not in known:
            raise ShortcutError(f"Key '{key}' points at unknown product {product_id}.")
        result[key] = product_id
    return result


def parse_legacy(entries: Iterable[str]) -> Dict[str, int]:
    """Parse ``"key:id:name"`` strings, skipping malformed ones."""
    result: Dict[str, int] = {}
    for entry in entries:
        parts = str(entry).split(":")
        try:
            key = normalize_key(parts[0])
            product_id = int(parts[1])
        except (IndexError, ValueError, ShortcutError):
            _logger.warning(f"Skipping malformed shortcut entry {entry!r}")
            continue
        if product_id < 1 or key in RESERVED_KEYS:
            _logger.warning(f"Skipping malformed shortcut entry {entry!r}")
            continue
        result.setdefault(key, product_id)
    return result


def dumps(shortcuts: Mapping[str, int]) -> str:
    return json.dumps(dict(sorted(shortcuts.items())))


def loads(text: Optional[str]) -> Dict[str, int]:
    if not text:
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        _logger.warning("Stored shortcuts are not valid JSON, ignoring them")
        return {}
    if isinstance(data, list):
        return parse_legacy(data)
    if not isinstance(data, dict):
        return {}
    result: Dict[str, int] = {}
    for key, product_id in data.items():
        try:
            result.update(validate({key: int(product_id)}))
        except (TypeError, ValueError, ShortcutError):
            _logger.warning(f"Skipping invalid stored shortcut {key!r}")
    return result


def product_for_key(shortcuts: Mapping[str, int], key: str) -> Optional[int]:
    if not key or len(key) != 1:
        return None
    return shortcuts.get(key.lower())

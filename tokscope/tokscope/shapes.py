"""Named accessors for the loosely-typed page-state blob.

TikTok has embedded the same logical data under different keys across
revisions of its web client. Each accessor knows one shape and returns
``None`` when the data does not have it; ``first_of`` composes them so the
first shape that matches wins.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

Accessor = Callable[[Any], Any]

USER_DETAIL_KEY = "webapp.user-detail"


def first_of(*accessors: Accessor) -> Accessor:
    """Combine accessors; the first non-``None`` result wins."""

    def resolve(data: Any) -> Any:
        for accessor in accessors:
            value = accessor(data)
            if value is not None:
                return value
        return None

    return resolve


def dig(data: Any, *path: str) -> Any:
    """Walk nested dicts; ``None`` as soon as a step is missing."""
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _dict_or_none(value: Any) -> dict[str, Any] | None:
    return value if isinstance(value, dict) and value else None


# ---------------------------------------------------------------------------
# Top-level state shapes
# ---------------------------------------------------------------------------


def user_detail_scope(data: Any) -> dict[str, Any] | None:
    """``__DEFAULT_SCOPE__["webapp.user-detail"]`` (current web client)."""
    return _dict_or_none(dig(data, "__DEFAULT_SCOPE__", USER_DETAIL_KEY))


def user_detail(data: Any) -> dict[str, Any] | None:
    """An already-unwrapped user-detail object (has ``userInfo``)."""
    if isinstance(data, dict) and isinstance(data.get("userInfo"), dict):
        return data
    return None


def sigi_modules(data: Any) -> dict[str, Any] | None:
    """Legacy ``SIGI_STATE`` shape with ``UserModule`` / ``ItemModule``."""
    if isinstance(data, dict) and ("UserModule" in data or "ItemModule" in data):
        return data
    return None


resolve_state: Accessor = first_of(user_detail_scope, user_detail, sigi_modules)


# ---------------------------------------------------------------------------
# User records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UserRecord:
    """A profile record paired with its counters."""

    profile: dict[str, Any]
    stats: dict[str, Any] = field(default_factory=dict)

    def identifiers(self) -> set[str]:
        return {
            str(v).lower()
            for v in (self.profile.get("uniqueId"), self.profile.get("nickname"))
            if v
        }


def module_users(state: Any) -> dict[str, Any] | None:
    """``UserModule.users`` mapping of key to profile."""
    return _dict_or_none(dig(state, "UserModule", "users"))


def module_user_records(state: Any) -> list[tuple[str, UserRecord]] | None:
    users = module_users(state)
    if users is None:
        return None
    side_stats = dig(state, "UserModule", "stats")
    records: list[tuple[str, UserRecord]] = []
    for key, profile in users.items():
        if not isinstance(profile, dict):
            continue
        # Older pages keep counters in a sibling ``UserModule.stats`` mapping.
        stats = (
            _dict_or_none(profile.get("stats"))
            or _dict_or_none(dig(side_stats, key))
            or {}
        )
        records.append((str(key), UserRecord(profile=profile, stats=stats)))
    return records


def user_info_records(state: Any) -> list[tuple[str, UserRecord]] | None:
    """``userInfo`` record; either ``{user, stats}`` or a flat profile."""
    info = _dict_or_none(dig(state, "userInfo"))
    if info is None:
        return None
    profile = _dict_or_none(info.get("user")) or info
    stats = _dict_or_none(info.get("stats")) or _dict_or_none(profile.get("stats")) or {}
    key = str(profile.get("uniqueId") or "")
    return [(key, UserRecord(profile=profile, stats=stats))]


user_records: Accessor = first_of(module_user_records, user_info_records)


# ---------------------------------------------------------------------------
# Content items
# ---------------------------------------------------------------------------


def _dict_values(mapping: Any) -> list[dict[str, Any]] | None:
    if not isinstance(mapping, dict) or not mapping:
        return None
    values = [v for v in mapping.values() if isinstance(v, dict)]
    return values or None


def nested_items(state: Any) -> list[dict[str, Any]] | None:
    """``ItemModule.items`` mapping of id to item."""
    return _dict_values(dig(state, "ItemModule", "items"))


def flat_items(state: Any) -> list[dict[str, Any]] | None:
    """``ItemModule`` itself as a mapping of id to item."""
    module = dig(state, "ItemModule")
    if not isinstance(module, dict) or "items" in module:
        return None
    return _dict_values(module)


def item_list(state: Any) -> list[dict[str, Any]] | None:
    """``itemList`` array sometimes embedded next to ``userInfo``."""
    items = dig(state, "itemList")
    if not isinstance(items, list):
        return None
    return [i for i in items if isinstance(i, dict)] or None


content_items: Accessor = first_of(nested_items, flat_items, item_list)

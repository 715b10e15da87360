"""Map raw page state (or visible DOM text) into an AccountSnapshot."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from tokscope.models import AccountSnapshot, DomSnapshot, RawPageState
from tokscope.shapes import UserRecord, content_items, user_records

logger = logging.getLogger(__name__)

HASHTAG_LIMIT = 30
DOM_HASHTAG_LIMIT = 20

_HASHTAG_RE = re.compile(r"#\w+")
_COUNT_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([KMB])?\s*$", re.IGNORECASE)
_FOLLOWERS_RE = re.compile(r"(\d[\d,]*(?:\.\d+)?\s*[KMB]?)\s*followers?\b", re.IGNORECASE)
_LIKES_RE = re.compile(r"(\d[\d,]*(?:\.\d+)?\s*[KMB]?)\s*likes?\b", re.IGNORECASE)

_SUFFIXES = {"K": 1_000, "M": 1_000_000, "B": 1_000_000_000}


def parse_count(text: str | None) -> int:
    """Parse abbreviated counters such as ``12.3K`` or ``4M``; 0 if unparsable."""
    if not text:
        return 0
    m = _COUNT_RE.match(text.replace(",", ""))
    if not m:
        return 0
    try:
        value = Decimal(m.group(1))
    except InvalidOperation:
        return 0
    suffix = (m.group(2) or "").upper()
    return int(value * _SUFFIXES.get(suffix, 1))


def _as_count(value: Any) -> int:
    """Coerce a counter from the page state to a non-negative int."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return max(int(value), 0)
    if isinstance(value, str):
        return parse_count(value)
    return 0


def _dedupe(values: list[str], limit: int) -> list[str]:
    return list(dict.fromkeys(values))[:limit]


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Structured state
# ---------------------------------------------------------------------------


def select_user(
    records: list[tuple[str, UserRecord]], username: str,
) -> UserRecord | None:
    """Return the record whose key, uniqueId or nickname equals *username*."""
    wanted = username.lower()
    for key, record in records:
        if key.lower() == wanted or wanted in record.identifiers():
            return record
    return None


def _item_hashtags(item: dict[str, Any]) -> list[str]:
    tags: list[str] = []
    caption = item.get("desc") or item.get("text") or ""
    if isinstance(caption, str):
        tags.extend(_HASHTAG_RE.findall(caption))

    for tag in item.get("hashtags") or []:
        if isinstance(tag, dict) and tag.get("name"):
            tags.append(f"#{tag['name']}")
    for challenge in item.get("challenges") or []:
        if isinstance(challenge, dict) and challenge.get("title"):
            tags.append(f"#{challenge['title']}")
    for mention in item.get("mentions") or []:
        if isinstance(mention, str) and mention.startswith("#"):
            tags.append(mention)
    return tags


def _audio_label(item: dict[str, Any]) -> str | None:
    music = item.get("music")
    if not isinstance(music, dict) or not music.get("title"):
        return None
    author = music.get("authorName")
    return f"{author} - {music['title']}" if author else str(music["title"])


def normalize_state(
    state: RawPageState,
    username: str,
    *,
    scraped_at: datetime | None = None,
    limit: int = HASHTAG_LIMIT,
) -> AccountSnapshot:
    scraped_at = scraped_at or _now()

    records = user_records(state)
    user: UserRecord | None = None
    if records:
        user = select_user(records, username)
        if user is None:
            logger.warning(
                "No user record matches @%s (found: %s); returning empty snapshot",
                username,
                ", ".join(key for key, _ in records) or "?",
            )
            return AccountSnapshot.empty(username, scraped_at)

    hashtags: list[str] = []
    audio_tracks: list[str] = []
    views = item_likes = comments = shares = 0

    items = content_items(state) or []
    logger.debug("Found %d content items", len(items))
    for item in items:
        hashtags.extend(_item_hashtags(item))
        if label := _audio_label(item):
            audio_tracks.append(label)
        stats = item.get("stats") if isinstance(item.get("stats"), dict) else {}
        views += _as_count(stats.get("playCount"))
        item_likes += _as_count(stats.get("diggCount"))
        comments += _as_count(stats.get("commentCount"))
        shares += _as_count(stats.get("shareCount"))

    display_name = username
    followers = likes = video_count = 0
    if user is not None:
        display_name = user.profile.get("nickname") or user.profile.get("uniqueId") or username
        followers = _as_count(user.stats.get("followerCount"))
        likes = _as_count(user.stats.get("heartCount") or user.stats.get("heart"))
        video_count = _as_count(user.stats.get("videoCount"))

    logger.debug(
        "Normalised @%s: followers=%d likes=%d views=%d comments=%d shares=%d",
        username, followers, likes or item_likes, views, comments, shares,
    )

    return AccountSnapshot(
        username=username,
        display_name=display_name,
        followers=followers,
        # Profile heart count is authoritative; summed item likes are a floor.
        likes=likes or item_likes,
        views=views,
        video_count=video_count,
        hashtags=_dedupe(hashtags, limit),
        audio_tracks=_dedupe(audio_tracks, limit),
        scraped_at=scraped_at,
    )


# ---------------------------------------------------------------------------
# Visible DOM fallback
# ---------------------------------------------------------------------------


def normalize_dom(
    dom: DomSnapshot,
    username: str,
    *,
    scraped_at: datetime | None = None,
    limit: int = DOM_HASHTAG_LIMIT,
) -> AccountSnapshot:
    followers = likes = 0
    if m := _FOLLOWERS_RE.search(dom.text):
        followers = parse_count(m.group(1))
    if m := _LIKES_RE.search(dom.text):
        likes = parse_count(m.group(1))

    return AccountSnapshot(
        username=username,
        display_name=dom.display_name or username,
        followers=followers,
        likes=likes,
        video_count=dom.post_count,
        hashtags=_dedupe(_HASHTAG_RE.findall(dom.text), limit),
        scraped_at=scraped_at or _now(),
    )


def normalize(
    state: RawPageState | None,
    username: str,
    dom: DomSnapshot | None = None,
    *,
    scraped_at: datetime | None = None,
) -> AccountSnapshot:
    """Build a snapshot from whatever was recovered. Never raises."""
    try:
        if state is not None:
            return normalize_state(state, username, scraped_at=scraped_at)
        if dom is not None:
            return normalize_dom(dom, username, scraped_at=scraped_at)
    except Exception:  # noqa: BLE001
        logger.warning("Normalisation failed for @%s", username, exc_info=True)
    return AccountSnapshot.empty(username, scraped_at)

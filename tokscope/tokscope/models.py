"""Core data models for tokscope."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, NonNegativeInt

# Loosely-typed page-state blob recovered from a profile page.
RawPageState = dict[str, Any]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DomSnapshot(BaseModel, frozen=True):
    """What the visible-DOM fallback read from the live page."""

    display_name: str | None = None
    text: str = ""
    post_count: NonNegativeInt = 0


class AccountSnapshot(BaseModel, frozen=True):
    """Normalised result of one scrape for one account."""

    username: str
    display_name: str | None = None
    followers: NonNegativeInt = 0
    likes: NonNegativeInt = 0
    views: NonNegativeInt = 0
    video_count: NonNegativeInt = 0
    hashtags: list[str] = Field(default_factory=list)
    audio_tracks: list[str] = Field(default_factory=list)
    scraped_at: datetime = Field(default_factory=_utcnow)

    @classmethod
    def empty(cls, username: str, scraped_at: datetime | None = None) -> AccountSnapshot:
        """Snapshot carrying nothing but the username."""
        return cls(
            username=username,
            display_name=username,
            scraped_at=scraped_at or _utcnow(),
        )

    def has_metrics(self) -> bool:
        return bool(self.followers or self.likes or self.video_count)

    def is_blank(self) -> bool:
        return (
            not self.has_metrics()
            and not self.hashtags
            and (not self.display_name or self.display_name == self.username)
        )

"""Error taxonomy for profile scraping.

Every failure carries an ``ErrorKind`` tag and a ``retryable`` flag. The retry
controller only looks at the flag; outer layers (HTTP, CLI) map the tag to
status codes and guidance text.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    PROFILE_NOT_FOUND = "profile_not_found"
    PROFILE_PRIVATE = "profile_private"
    PROXY_CONNECTION_FAILED = "proxy_connection_failed"
    TUNNEL_CONNECTION_FAILED = "tunnel_connection_failed"
    CONNECTION_TIMED_OUT = "connection_timed_out"
    CONNECTION_REFUSED = "connection_refused"
    NETWORK_ERROR = "network_error"
    NAVIGATION_TIMEOUT = "navigation_timeout"
    BOT_DETECTION_SUSPECTED = "bot_detection_suspected"
    SCRAPE_EXHAUSTED = "scrape_exhausted"


SUGGESTIONS: dict[ErrorKind, str] = {
    ErrorKind.PROFILE_NOT_FOUND: "Check the username spelling; the account may have been deleted.",
    ErrorKind.PROFILE_PRIVATE: "The account is private; only public profiles can be analysed.",
    ErrorKind.PROXY_CONNECTION_FAILED: "Try a different proxy or disable the proxy.",
    ErrorKind.TUNNEL_CONNECTION_FAILED: "The proxy refused to tunnel HTTPS; try a different proxy.",
    ErrorKind.CONNECTION_TIMED_OUT: "TikTok may be throttling requests; retry later or use a proxy.",
    ErrorKind.CONNECTION_REFUSED: "Check your internet connection or proxy availability.",
    ErrorKind.NETWORK_ERROR: "Check your internet connection or try using a proxy.",
    ErrorKind.NAVIGATION_TIMEOUT: "TikTok took too long to respond; retry later or use a faster proxy.",
    ErrorKind.BOT_DETECTION_SUSPECTED: "TikTok served a verification page; wait a while or rotate proxies.",
    ErrorKind.SCRAPE_EXHAUSTED: "All attempts failed; retry later.",
}


class ScrapeError(Exception):
    """Base class for all scraping failures."""

    kind: ErrorKind = ErrorKind.NETWORK_ERROR
    retryable: bool = True

    def __init__(self, message: str, *, username: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.username = username

    @property
    def suggestion(self) -> str:
        return SUGGESTIONS[self.kind]


# ---------------------------------------------------------------------------
# Terminal: another attempt cannot change the outcome
# ---------------------------------------------------------------------------


class ProfileNotFound(ScrapeError):
    kind = ErrorKind.PROFILE_NOT_FOUND
    retryable = False


class ProfilePrivate(ScrapeError):
    kind = ErrorKind.PROFILE_PRIVATE
    retryable = False


# ---------------------------------------------------------------------------
# Transient: a new attempt (with a different proxy) may succeed
# ---------------------------------------------------------------------------


class ProxyConnectionFailed(ScrapeError):
    kind = ErrorKind.PROXY_CONNECTION_FAILED


class TunnelConnectionFailed(ProxyConnectionFailed):
    kind = ErrorKind.TUNNEL_CONNECTION_FAILED


class ConnectionTimedOut(ScrapeError):
    kind = ErrorKind.CONNECTION_TIMED_OUT


class ConnectionRefused(ScrapeError):
    kind = ErrorKind.CONNECTION_REFUSED


class GenericNetworkError(ScrapeError):
    """Transport failure without a dedicated category."""

    kind = ErrorKind.NETWORK_ERROR

    def __init__(self, message: str, *, code: str | None = None, username: str | None = None) -> None:
        super().__init__(message, username=username)
        self.code = code


class NavigationTimeout(ScrapeError):
    kind = ErrorKind.NAVIGATION_TIMEOUT


class BotDetectionSuspected(ScrapeError):
    kind = ErrorKind.BOT_DETECTION_SUSPECTED


class ScrapeExhausted(ScrapeError):
    """Raised once every attempt has failed; wraps the last failure."""

    kind = ErrorKind.SCRAPE_EXHAUSTED
    retryable = False

    def __init__(
        self,
        username: str,
        attempts: int,
        last_error: BaseException | None,
    ) -> None:
        reason = str(last_error) if last_error else "Unknown error"
        super().__init__(
            f"Failed to scrape TikTok account @{username} after {attempts} attempts: {reason}",
            username=username,
        )
        self.attempts = attempts
        self.last_error = last_error

    @property
    def cause_kind(self) -> ErrorKind | None:
        """Tag of the last underlying failure, if it was a classified one."""
        if isinstance(self.last_error, ScrapeError):
            return self.last_error.kind
        return None

    @property
    def suggestion(self) -> str:
        kind = self.cause_kind
        return SUGGESTIONS[kind] if kind else SUGGESTIONS[self.kind]

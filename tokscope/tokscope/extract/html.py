"""Extractors that work on the raw page HTML."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from tokscope.extract.base import StateExtractor
from tokscope.models import RawPageState
from tokscope.shapes import resolve_state

logger = logging.getLogger(__name__)

STATE_SCRIPT_IDS: tuple[str, ...] = ("__UNIVERSAL_DATA_FOR_REHYDRATION__", "SIGI_STATE")

MARKER_KEYS: tuple[str, ...] = (
    "__UNIVERSAL_DATA_FOR_REHYDRATION__",
    "SIGI_STATE",
    "UserModule",
    "ItemModule",
    "webapp.user-detail",
)

_SCRIPT_RE = re.compile(r"<script[^>]*>(.*?)</script>", re.DOTALL | re.IGNORECASE)
_ASSIGNMENT_RE = re.compile(
    r"window(?:\.|\[\s*['\"])(?:__UNIVERSAL_DATA_FOR_REHYDRATION__|SIGI_STATE)"
    r"(?:['\"]\s*\])?\s*=\s*",
)

_decoder = json.JSONDecoder()

# String literals are matched whole so ``undefined`` inside them is left alone.
_UNDEFINED_RE = re.compile(r'"(?:[^"\\]|\\.)*"|\bundefined\b')


def _null_outside_strings(m: re.Match[str]) -> str:
    return "null" if m.group(0) == "undefined" else m.group(0)


def _loads(raw: str) -> Any:
    """Parse JSON, tolerating the ``undefined`` literals TikTok sometimes emits."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return json.loads(_UNDEFINED_RE.sub(_null_outside_strings, raw))


def _decode_at(text: str, start: int) -> Any:
    """Decode the first JSON value at *start*, ignoring whatever follows it."""
    value, _end = _decoder.raw_decode(text, start)
    return value


class ScriptTagExtractor(StateExtractor):
    """``<script id="__UNIVERSAL_DATA_FOR_REHYDRATION__">`` and friends."""

    name = "script-tag"

    def __init__(self, script_ids: tuple[str, ...] = STATE_SCRIPT_IDS) -> None:
        self._patterns = [
            re.compile(
                rf"<script[^>]*\bid=[\"']{re.escape(sid)}[\"'][^>]*>(.*?)</script>",
                re.DOTALL,
            )
            for sid in script_ids
        ]

    async def extract(self, page: Any, content: str) -> RawPageState | None:
        for pattern in self._patterns:
            m = pattern.search(content)
            if not m or not m.group(1).strip():
                continue
            try:
                data = _loads(m.group(1).strip())
            except json.JSONDecodeError:
                logger.debug("Failed to parse state script %s", pattern.pattern[:60])
                continue
            if (state := resolve_state(data)) is not None:
                return state
        return None


class InlineAssignmentExtractor(StateExtractor):
    """``window.__UNIVERSAL_DATA_FOR_REHYDRATION__ = {...};`` in inline JS."""

    name = "inline-assignment"

    async def extract(self, page: Any, content: str) -> RawPageState | None:
        for m in _ASSIGNMENT_RE.finditer(content):
            try:
                data = _decode_at(content, m.end())
            except json.JSONDecodeError:
                # Fall back to the enclosing script, with ``undefined`` patched.
                tail = re.match(r"({.+?})\s*;?\s*</script>", content[m.end():], re.DOTALL)
                if not tail:
                    continue
                try:
                    data = _loads(tail.group(1))
                except json.JSONDecodeError:
                    logger.debug("Failed to parse inline state assignment")
                    continue
            if (state := resolve_state(data)) is not None:
                return state
        return None


class ScriptScanExtractor(StateExtractor):
    """Scan every inline script that mentions a marker key for a JSON object."""

    name = "script-scan"

    def __init__(self, markers: tuple[str, ...] = MARKER_KEYS) -> None:
        self._markers = markers

    @staticmethod
    def _candidates(script: str) -> list[Any]:
        found: list[Any] = []
        first, last = script.find("{"), script.rfind("}")
        if first == -1 or last <= first:
            return found
        try:
            found.append(_loads(script[first:last + 1]))
        except json.JSONDecodeError:
            pass
        try:
            found.append(_decode_at(script, first))
        except json.JSONDecodeError:
            pass
        return found

    async def extract(self, page: Any, content: str) -> RawPageState | None:
        for script in _SCRIPT_RE.findall(content):
            if not any(marker in script for marker in self._markers):
                continue
            for data in self._candidates(script):
                if (state := resolve_state(data)) is not None:
                    return state
        return None

"""Base state-extractor interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from tokscope.models import RawPageState


class StateExtractor(ABC):
    """One strategy for recovering the embedded page state."""

    name: str = "extractor"

    @abstractmethod
    async def extract(self, page: Any, content: str) -> RawPageState | None:
        """Return the recognised state, or ``None`` if this strategy found nothing."""
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"

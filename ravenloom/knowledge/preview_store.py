# -*- coding: utf-8 -*-
"""
Keyed store for pending Remember previews.

Previews are single-use and expire after a TTL (one hour by default). The
in-memory implementation is process-local and lost on restart; a shared
cache can implement the same interface when previews must survive restarts
or be visible to several instances.
"""
# Standard library
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

# Config imports (direct)
from config.retrieval_config import REMEMBER_CONFIG

# Local
from ravenloom.utils.dataclasses import RememberPreview

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PreviewStore(ABC):
    """Expired previews must never be returned by get() or take()."""

    @abstractmethod
    async def save(self, preview: RememberPreview) -> None:
        ...

    @abstractmethod
    async def get(self, preview_id: str) -> Optional[RememberPreview]:
        ...

    @abstractmethod
    async def take(self, preview_id: str) -> Optional[RememberPreview]:
        """Remove and return the preview (single-use consumption)."""

    @abstractmethod
    async def delete(self, preview_id: str) -> bool:
        ...

    @abstractmethod
    async def purge_expired(self) -> int:
        ...


class InMemoryPreviewStore(PreviewStore):
    """
    Dict-backed store with lazy expiry.

    Example:
        store = InMemoryPreviewStore(ttl_seconds=3600)
        await store.save(preview)
        preview = await store.take(preview.preview_id)
    """

    def __init__(
        self,
        ttl_seconds: float = REMEMBER_CONFIG['preview_ttl_seconds'],
        clock: Callable[[], datetime] = utc_now,
    ):
        self.ttl = timedelta(seconds=ttl_seconds)
        self.clock = clock
        self._previews: Dict[str, RememberPreview] = {}

    def __len__(self) -> int:
        return len(self._previews)

    def _is_expired(self, preview: RememberPreview) -> bool:
        return self.clock() - preview.created_at > self.ttl

    async def save(self, preview: RememberPreview) -> None:
        if preview.created_at is None:
            preview.created_at = self.clock()
        self._previews[preview.preview_id] = preview

    async def get(self, preview_id: str) -> Optional[RememberPreview]:
        preview = self._previews.get(preview_id)
        if preview is None:
            return None
        if self._is_expired(preview):
            del self._previews[preview_id]
            return None
        return preview

    async def take(self, preview_id: str) -> Optional[RememberPreview]:
        preview = self._previews.pop(preview_id, None)
        if preview is None or self._is_expired(preview):
            return None
        return preview

    async def delete(self, preview_id: str) -> bool:
        return self._previews.pop(preview_id, None) is not None

    async def purge_expired(self) -> int:
        expired = [pid for pid, p in self._previews.items() if self._is_expired(p)]
        for preview_id in expired:
            del self._previews[preview_id]
        if expired:
            logger.debug(f"Purged {len(expired)} expired previews")
        return len(expired)

# -*- coding: utf-8 -*-
"""
Module: test_preview_store.py
Package: tests.knowledge
Purpose: Unit tests for the in-memory Remember preview store (TTL, single use)
"""

# Standard library
from datetime import datetime, timedelta, timezone

# Third-party
import pytest

# Local
from ravenloom.knowledge.preview_store import InMemoryPreviewStore
from ravenloom.utils.dataclasses import RememberPreview


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemoryPreviewStore(ttl_seconds=3600, clock=clock)


def make_preview(preview_id='p1'):
    return RememberPreview(preview_id=preview_id, scope_id='s1', team_id='t1', user_id='u1',
                           source_text='Fugly is our mascot')


@pytest.mark.asyncio
async def test_save_stamps_creation_time(store, clock):
    preview = make_preview()
    await store.save(preview)

    assert preview.created_at == clock.now
    assert await store.get('p1') is preview


@pytest.mark.asyncio
async def test_get_within_ttl(store, clock):
    await store.save(make_preview())
    clock.advance(3599)

    assert await store.get('p1') is not None


@pytest.mark.asyncio
async def test_get_after_ttl_expires(store, clock):
    """Test an expired preview is never returned and is dropped."""
    await store.save(make_preview())
    clock.advance(3601)

    assert await store.get('p1') is None
    assert len(store) == 0


@pytest.mark.asyncio
async def test_take_is_single_use(store):
    """Test take() hands the preview out once."""
    await store.save(make_preview())

    assert (await store.take('p1')).preview_id == 'p1'
    assert await store.take('p1') is None


@pytest.mark.asyncio
async def test_take_expired_returns_none(store, clock):
    await store.save(make_preview())
    clock.advance(7200)

    assert await store.take('p1') is None
    assert len(store) == 0


@pytest.mark.asyncio
async def test_delete(store):
    await store.save(make_preview())

    assert await store.delete('p1') is True
    assert await store.delete('p1') is False


@pytest.mark.asyncio
async def test_purge_expired_only_removes_old(store, clock):
    """Test purge drops expired previews and keeps fresh ones."""
    await store.save(make_preview('old'))
    clock.advance(3000)
    await store.save(make_preview('fresh'))
    clock.advance(1000)

    assert await store.purge_expired() == 1
    assert await store.get('fresh') is not None
    assert await store.get('old') is None

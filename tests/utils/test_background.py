# -*- coding: utf-8 -*-
"""
Module: test_background.py
Package: tests.utils
Purpose: Unit tests for fire-and-forget background jobs
"""

# Standard library
import asyncio
import logging

# Third-party
import pytest

# Local
from ravenloom.utils.background import BackgroundJobs


@pytest.mark.asyncio
async def test_job_runs_and_is_untracked_after_completion():
    """Test a scheduled job runs and leaves the tracked set."""
    jobs = BackgroundJobs()
    done = []

    async def work():
        await asyncio.sleep(0)
        done.append(True)

    jobs.schedule(work(), name="work")
    assert len(jobs) == 1

    await jobs.drain()

    assert done == [True]
    assert len(jobs) == 0


@pytest.mark.asyncio
async def test_job_failure_is_logged_not_raised(caplog):
    """Test an exception inside a job never reaches the scheduler."""
    jobs = BackgroundJobs()

    async def boom():
        raise RuntimeError("model unavailable")

    with caplog.at_level(logging.ERROR, logger='ravenloom.utils.background'):
        task = jobs.schedule(boom(), name="learn")
        await jobs.drain()

    assert task.done()
    assert task.exception() is None
    assert "learn failed: model unavailable" in caplog.text


@pytest.mark.asyncio
async def test_drain_waits_for_jobs_scheduled_by_jobs():
    """Test drain() also waits for jobs started while draining."""
    jobs = BackgroundJobs()
    order = []

    async def child():
        order.append('child')

    async def parent():
        order.append('parent')
        jobs.schedule(child())

    jobs.schedule(parent())
    await jobs.drain()

    assert order == ['parent', 'child']


@pytest.mark.asyncio
async def test_drain_with_no_jobs():
    await BackgroundJobs().drain()

"""
Tests for the background job registry.

The scheduler itself is not started; these cover registration and manual
execution only.
"""

import pytest
from apscheduler.triggers.interval import IntervalTrigger

from campus.core import scheduler


@pytest.fixture(autouse=True)
def empty_registry(monkeypatch):
    monkeypatch.setattr(scheduler, "_job_registry", {})
    monkeypatch.setattr(scheduler, "_scheduler", None)


class TestJobRegistry:
    def test_registered_job_listed_as_paused_without_scheduler(self):
        async def job():
            return None

        scheduler.register_job("nightly", job, IntervalTrigger(hours=1))

        assert scheduler.list_registered_jobs() == [
            {"job_id": "nightly", "next_run_time": None, "is_paused": True}
        ]

    def test_pause_and_resume_unknown(self):
        assert scheduler.pause_job("nightly") is False
        assert scheduler.resume_job("nightly") is False


class TestTriggerJobManually:
    @pytest.mark.asyncio
    async def test_unknown_job(self):
        with pytest.raises(KeyError):
            await scheduler.trigger_job_manually("missing")

    @pytest.mark.asyncio
    async def test_success(self):
        async def job():
            return {"deleted": 3}

        scheduler.register_job("purge", job, IntervalTrigger(hours=1))
        result = await scheduler.trigger_job_manually("purge")

        assert result["status"] == "success"
        assert result["result"] == {"deleted": 3}

    @pytest.mark.asyncio
    async def test_failure_reported(self):
        async def job():
            raise RuntimeError("database down")

        scheduler.register_job("purge", job, IntervalTrigger(hours=1))
        result = await scheduler.trigger_job_manually("purge")

        assert result["status"] == "error"
        assert result["error"] == "database down"

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from core.domain.import_export import ExportJob, ImportJob, JobStatus
from core.services.jobs import JobWatchTimeout, elapsed_time, is_active, watch_job

START = datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)


def test_active_statuses():
    assert is_active(JobStatus.PENDING)
    assert is_active(JobStatus.PROCESSING)
    assert not is_active(JobStatus.COMPLETED)
    assert not is_active(JobStatus.CANCELLED)


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(0, "0s"), (59, "59s"), (61, "1m 1s"), (3599, "59m 59s"), (3720, "1h 2m")],
)
def test_elapsed_time(seconds, expected):
    assert elapsed_time(START, START + timedelta(seconds=seconds)) == expected


def test_elapsed_time_not_started():
    assert elapsed_time(None) is None


def test_elapsed_time_uses_now_while_running():
    assert elapsed_time(START, None, now=START + timedelta(seconds=5)) == "5s"


def test_export_progress_from_rows():
    job = ExportJob(id="e1", module="products", status=JobStatus.PROCESSING, total_rows=200, exported_rows=50)
    assert job.progress == 25.0
    assert ExportJob(id="e2", module="products", status=JobStatus.COMPLETED).progress == 100.0
    assert ExportJob(id="e3", module="products").progress == 0.0


def test_watch_job_stops_at_terminal_status():
    snapshots = iter(
        [
            ImportJob(id="j1", module="products", file_name="a.csv", status=JobStatus.PENDING),
            ImportJob(id="j1", module="products", file_name="a.csv", status=JobStatus.PROCESSING, progress=50),
            ImportJob(id="j1", module="products", file_name="a.csv", status=JobStatus.COMPLETED, progress=100),
            ImportJob(id="j1", module="products", file_name="a.csv", status=JobStatus.FAILED),
        ]
    )

    async def fetch():
        return next(snapshots)

    async def scenario():
        return [job.status async for job in watch_job(fetch, interval=0)]

    assert asyncio.run(scenario()) == [JobStatus.PENDING, JobStatus.PROCESSING, JobStatus.COMPLETED]


def test_watch_job_times_out():
    async def fetch():
        await asyncio.sleep(0.02)
        return ImportJob(id="j1", module="products", file_name="a.csv", status=JobStatus.PROCESSING)

    async def scenario():
        async for _ in watch_job(fetch, interval=0, timeout=0.01):
            pass

    with pytest.raises(JobWatchTimeout):
        asyncio.run(scenario())

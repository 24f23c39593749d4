"""Export staging directory tests."""

import asyncio
import os
import re
import time

import pytest

from securevault.services.export_staging import ExportStaging


@pytest.fixture
def stage(tmp_path) -> ExportStaging:
    return ExportStaging(tmp_path / "exports", retention_seconds=60)


def test_new_filename_is_unique(stage: ExportStaging):
    names = {stage.new_filename("credentials_export") for _ in range(50)}
    assert len(names) == 50
    for name in names:
        assert re.fullmatch(r"credentials_export_\d{8}T\d{12}Z_[0-9a-f]{16}\.xlsx", name)
        assert stage.path_for(name) == stage.directory / name


@pytest.mark.parametrize("name", ["", ".env", "../x.xlsx", "a/b.xlsx", "a b.xlsx"])
def test_path_for_rejects_non_bare_names(stage: ExportStaging, name):
    assert stage.path_for(name) is None


def test_purge_missing_file_is_fine(stage: ExportStaging):
    assert stage.purge(stage.directory / "never-written.xlsx")


@pytest.mark.asyncio
async def test_sweep_removes_stale_files_and_adopts_fresh_ones(staging: ExportStaging):
    staging.ensure_directory()
    old = staging.directory / "old.xlsx"
    fresh = staging.directory / "fresh.xlsx"
    old.write_bytes(b"x")
    fresh.write_bytes(b"x")
    stale = time.time() - 3600
    os.utime(old, (stale, stale))

    assert await staging.sweep(max_age=60) == 1
    assert not old.exists()
    assert fresh.exists()
    assert fresh in staging._pending


@pytest.mark.asyncio
async def test_sweep_without_directory(tmp_path):
    assert await ExportStaging(tmp_path / "nowhere").sweep() == 0


@pytest.mark.asyncio
async def test_scheduled_purge_runs(staging: ExportStaging):
    staging.ensure_directory()
    path = staging.directory / "soon.xlsx"
    path.write_bytes(b"x")

    task = staging.schedule_purge(path, delay=0)
    await asyncio.wait_for(task, timeout=5)
    assert not path.exists()


@pytest.mark.asyncio
async def test_shutdown_purges_pending_files(tmp_path):
    staging = ExportStaging(tmp_path / "exports", retention_seconds=3600)
    staging.ensure_directory()
    path = staging.directory / "pending.xlsx"
    path.write_bytes(b"x")
    staging.schedule_purge(path)

    await staging.shutdown()
    assert not path.exists()


@pytest.mark.asyncio
async def test_orphan_from_earlier_process_is_purged_after_retention(tmp_path):
    staging = ExportStaging(tmp_path / "exports", retention_seconds=0.2)
    staging.ensure_directory()
    orphan = staging.directory / "orphan.xlsx"
    orphan.write_bytes(b"x")

    assert await staging.sweep() == 0
    assert orphan.exists()

    await asyncio.wait_for(staging._pending[orphan], timeout=5)
    assert not orphan.exists()
    assert not staging._pending


@pytest.mark.asyncio
async def test_release_cancels_purge_timer(staging: ExportStaging):
    staging.ensure_directory()
    path = staging.directory / "delivered.xlsx"
    path.write_bytes(b"x")
    timer = staging.schedule_purge(path, delay=3600)

    assert await staging.release(path)
    assert not path.exists()
    await asyncio.gather(timer, return_exceptions=True)
    assert timer.cancelled()
    assert path not in staging._pending

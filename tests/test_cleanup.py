"""Tests for the background cleanup scheduler."""

import asyncio
import json
from datetime import timedelta

import pytest

from common.constants import FILES_KEY, RATE_LIMIT_KEY_PREFIX
from lifecycle.cleanup import CleanupScheduler
from lifecycle.rate_limiter import RateLimiter


def stored_ids(storage):
    raw = storage.get_item(FILES_KEY)
    return [entry["id"] for entry in json.loads(raw)] if raw else []


class TestRunSweep:
    def test_sweep_removes_only_expired(self, store, storage, make_record, clock):
        store.save_file_metadata(make_record("old1"))
        clock.advance(minutes=4)
        store.save_file_metadata(make_record("new1"))
        clock.advance(minutes=2)

        removed = CleanupScheduler(store).run_sweep()

        assert [r.id for r in removed] == ["old1"]
        assert stored_ids(storage) == ["new1"]

    def test_expired_callback_receives_removed_records(self, store, make_record, clock):
        seen = []
        store.save_file_metadata(make_record("old1"))
        clock.advance(minutes=6)

        CleanupScheduler(store, on_expired=seen.append).run_sweep()

        assert [r.id for r in seen] == ["old1"]

    def test_callback_failure_does_not_abort_sweep(self, store, storage, make_record, clock):
        def explode(record):
            raise RuntimeError("storage offline")

        store.save_file_metadata(make_record("old1"))
        store.save_file_metadata(make_record("old2"))
        clock.advance(minutes=6)

        removed = CleanupScheduler(store, on_expired=explode).run_sweep()

        assert len(removed) == 2
        assert stored_ids(storage) == []

    def test_ttl_fills_missing_expiry(self, store, storage, make_record, clock):
        entry = make_record("nexp").to_dict()
        del entry["expiresAt"]
        storage.set_item(FILES_KEY, json.dumps([entry]))
        clock.advance(minutes=2)

        assert CleanupScheduler(store).run_sweep(ttl_minutes=10) == []
        assert [r.id for r in CleanupScheduler(store).run_sweep(ttl_minutes=1)] == ["nexp"]


class TestAutoCleanup:
    @pytest.mark.asyncio
    async def test_first_sweep_runs_immediately(self, store, storage, make_record, clock):
        store.save_file_metadata(make_record("old1"))
        clock.advance(minutes=6)
        scheduler = CleanupScheduler(store)

        await scheduler.start_auto_cleanup(interval_minutes=60)
        await asyncio.sleep(0.01)

        assert stored_ids(storage) == []
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_sweeps_repeat_on_interval(self, store, storage, make_record, clock):
        scheduler = CleanupScheduler(store)
        await scheduler.start_auto_cleanup(interval_minutes=0.0005)
        await asyncio.sleep(0.01)

        store.save_file_metadata(make_record("late"))
        clock.advance(minutes=6)
        await asyncio.sleep(0.1)

        assert stored_ids(storage) == []
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_restart_replaces_previous_schedule(self, store, monkeypatch):
        scheduler = CleanupScheduler(store)
        sweeps = []
        monkeypatch.setattr(scheduler, "run_sweep", lambda ttl_minutes: sweeps.append(ttl_minutes) or [])

        first = await scheduler.start_auto_cleanup(interval_minutes=60, ttl_minutes=5)
        await asyncio.sleep(0.01)
        second = await scheduler.start_auto_cleanup(interval_minutes=60, ttl_minutes=10)
        await asyncio.sleep(0.01)

        assert first.stopped
        assert not second.stopped
        assert sweeps == [5, 10]
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_stop_prevents_further_ticks(self, store, storage, make_record, clock):
        scheduler = CleanupScheduler(store)
        handle = await scheduler.start_auto_cleanup(interval_minutes=0.0005)
        await asyncio.sleep(0.01)

        await scheduler.stop()
        assert handle.stopped
        assert not scheduler.running

        store.save_file_metadata(make_record("kept"))
        clock.advance(minutes=6)
        await asyncio.sleep(0.1)

        assert stored_ids(storage) == ["kept"]

    @pytest.mark.asyncio
    async def test_handle_stop_is_idempotent(self, store):
        scheduler = CleanupScheduler(store)
        handle = await scheduler.start_auto_cleanup()

        await handle.stop()
        await handle.stop()
        await scheduler.stop()

        assert not scheduler.running

    @pytest.mark.asyncio
    async def test_rejects_non_positive_interval(self, store):
        with pytest.raises(ValueError):
            await CleanupScheduler(store).start_auto_cleanup(interval_minutes=0)


def test_sweep_prunes_idle_rate_limit_logs(store, storage, clock):
    limiter = RateLimiter(storage, clock=clock)
    limiter.check_rate_limit("one-shot")
    clock.advance(seconds=61)

    CleanupScheduler(store, rate_limiter=limiter).run_sweep()

    assert [k for k in storage.keys() if k.startswith(RATE_LIMIT_KEY_PREFIX)] == []

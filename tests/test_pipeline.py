"""tests/test_pipeline.py"""
import threading

import pytest

from src.models.draw import Draw
from src.pipeline.draw_archive import DrawArchive
from src.pipeline.retry_policy import RetryPolicy
from src.pipeline.sync_controller import SyncController, SyncStatus
from src.utils.exceptions import (
    OperationCancelled,
    PermanentRemoteError,
    StorageUnavailable,
    TransientRemoteError,
)
from src.utils.supabase_client import NullStore
from tests.fakes import FakeSource, FakeStore, RecordingSleeper, make_record


def _draw(concourse: int, numbers=None) -> Draw:
    return Draw.from_record(make_record(concourse, numbers))


class Flaky:
    """Raise the queued errors in order, then return `value`."""

    def __init__(self, errors, value="ok"):
        self.errors = list(errors)
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.value


class TestRetryPolicy:
    def setup_method(self):
        self.sleeper = RecordingSleeper()
        self.retry = RetryPolicy(max_attempts=3, initial_delay=2.0, backoff_multiplier=2, sleeper=self.sleeper)

    def test_success_first_try(self):
        op = Flaky([])
        assert self.retry.execute(op) == "ok"
        assert op.calls == 1
        assert self.sleeper.delays == []

    def test_permanent_error_is_not_retried(self):
        op = Flaky([PermanentRemoteError("bad request", status=400)])
        with pytest.raises(PermanentRemoteError):
            self.retry.execute(op)
        assert op.calls == 1
        assert self.sleeper.delays == []

    def test_unclassified_error_is_not_retried(self):
        op = Flaky([KeyError("boom")])
        with pytest.raises(KeyError):
            self.retry.execute(op)
        assert op.calls == 1

    def test_two_transient_then_success(self):
        op = Flaky([TransientRemoteError("429", status=429), TransientRemoteError("503", status=503)], value=42)
        assert self.retry.execute(op) == 42
        assert op.calls == 3
        assert self.sleeper.delays == [2.0, 4.0]

    def test_exhausted_raises_last_transient(self):
        last = TransientRemoteError("third", status=503)
        op = Flaky([TransientRemoteError("first"), TransientRemoteError("second"), last])
        with pytest.raises(TransientRemoteError) as exc_info:
            self.retry.execute(op)
        assert exc_info.value is last
        assert op.calls == 3
        assert self.sleeper.delays == [2.0, 4.0]

    def test_worst_case_delay(self):
        assert self.retry.worst_case_delay() == 2.0 * (2 ** 2 - 1)

    def test_cancelled_before_start(self):
        cancel = threading.Event()
        cancel.set()
        retry = RetryPolicy(cancel_event=cancel, sleeper=self.sleeper)
        op = Flaky([])
        with pytest.raises(OperationCancelled):
            retry.execute(op)
        assert op.calls == 0

    def test_cancelled_during_backoff_stops_retrying(self):
        cancel = threading.Event()
        retry = RetryPolicy(cancel_event=cancel, sleeper=RecordingSleeper(on_sleep=lambda _s: cancel.set()))
        op = Flaky([TransientRemoteError("429", status=429)])
        with pytest.raises(OperationCancelled):
            retry.execute(op)
        assert op.calls == 1

    def test_real_wait_wakes_on_cancel(self):
        cancel = threading.Event()
        retry = RetryPolicy(max_attempts=2, initial_delay=30.0, cancel_event=cancel)
        timer = threading.Timer(0.05, cancel.set)
        timer.start()
        try:
            with pytest.raises(OperationCancelled):
                retry.execute(Flaky([TransientRemoteError("503", status=503)]))
        finally:
            timer.cancel()

    def test_invalid_attempts(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)


class TestDrawArchive:
    def setup_method(self):
        self.store = FakeStore()
        self.archive = DrawArchive(self.store)

    def test_empty_archive(self):
        assert self.archive.latest_sequence_number() == 0
        assert self.archive.all() == ()

    def test_merge_keeps_descending_order(self):
        self.archive.merge_upsert([_draw(3), _draw(10), _draw(7)])
        assert [d.sequence_number for d in self.archive.snapshot()] == [10, 7, 3]
        assert self.archive.latest_sequence_number() == 10

    def test_merge_replaces_same_concourse(self):
        self.archive.merge_upsert([_draw(5)])
        replacement = _draw(5, list(range(11, 26)))
        self.archive.merge_upsert([replacement])
        assert len(self.archive) == 1
        assert self.archive.snapshot()[0] == replacement

    def test_duplicates_in_batch_last_wins(self):
        last = _draw(8, list(range(2, 17)))
        self.archive.merge_upsert([_draw(8), last])
        assert self.archive.snapshot() == (last,)
        assert self.store.rows[8]["numbers"] == list(range(2, 17))

    def test_uniqueness_across_batches(self):
        batches = [[_draw(1), _draw(2)], [_draw(2), _draw(3)], [_draw(1), _draw(3), _draw(4)]]
        for batch in batches:
            self.archive.merge_upsert(batch)
            seqs = [d.sequence_number for d in self.archive.snapshot()]
            assert len(seqs) == len(set(seqs))
        assert [d.sequence_number for d in self.archive.snapshot()] == [4, 3, 2, 1]

    def test_merge_is_idempotent(self):
        batch = [_draw(1), _draw(2), _draw(3)]
        self.archive.merge_upsert(batch)
        once = self.archive.snapshot()
        self.archive.merge_upsert(batch)
        assert self.archive.snapshot() == once

    def test_empty_merge_is_noop(self):
        self.archive.merge_upsert([])
        assert self.store.upsert_calls == 0
        assert self.archive.snapshot() == ()

    def test_snapshot_not_affected_by_later_merge(self):
        self.archive.merge_upsert([_draw(1)])
        snap = self.archive.all()
        self.archive.merge_upsert([_draw(2)])
        assert [d.sequence_number for d in snap] == [1]

    def test_failed_write_leaves_snapshot_untouched(self):
        self.archive.merge_upsert([_draw(1)])
        self.store.down = True
        with pytest.raises(StorageUnavailable):
            self.archive.merge_upsert([_draw(2)])
        assert self.archive.latest_sequence_number() == 1

    def test_stale_read_when_store_down(self):
        self.store.rows = {9: make_record(9)}
        self.archive.load()
        self.store.down = True
        snap = self.archive.all()
        assert [d.sequence_number for d in snap] == [9]

    def test_stale_read_of_merged_draws_before_any_load(self):
        self.archive.merge_upsert([_draw(7)])
        self.store.down = True
        snap = self.archive.all()
        assert [d.sequence_number for d in snap] == [7]

    def test_read_fails_when_never_loaded(self):
        self.store.down = True
        with pytest.raises(StorageUnavailable):
            self.archive.all()

    def test_invalid_stored_rows_are_skipped(self):
        self.store.rows = {1: make_record(1), 2: make_record(2, [1, 2, 3])}
        snap = self.archive.load()
        assert [d.sequence_number for d in snap] == [1]

    def test_offline_store_keeps_session_draws(self):
        archive = DrawArchive(NullStore())
        archive.merge_upsert([_draw(1), _draw(2)])
        assert [d.sequence_number for d in archive.all()] == [2, 1]

    def test_subscribers_see_new_snapshot(self):
        seen = []
        unsubscribe = self.archive.subscribe(lambda snap: seen.append(len(snap)))
        self.archive.merge_upsert([_draw(1)])
        self.archive.merge_upsert([_draw(1)])   # no change → no notification
        unsubscribe()
        self.archive.merge_upsert([_draw(2)])
        assert seen == [1]


class TestSyncController:
    def setup_method(self):
        self.store = FakeStore()
        self.archive = DrawArchive(self.store)
        self.sleeper = RecordingSleeper()
        self.retry = RetryPolicy(sleeper=self.sleeper)

    def _controller(self, source, window=50):
        return SyncController(self.archive, source, retry=self.retry, history_window=window)

    def test_empty_archive_requests_default_window(self):
        source = FakeSource([make_record(n) for n in range(1, 81)])
        report = self._controller(source, window=50).sync()
        assert source.calls == [(None, 50)]
        assert report.fetched_count == 50
        assert self.archive.latest_sequence_number() == 80
        assert len(self.archive) == 50

    def test_fetches_only_newer_draws(self):
        self.archive.merge_upsert([_draw(100)])
        source = FakeSource([make_record(n) for n in range(95, 104)])
        report = self._controller(source).sync()
        assert source.calls[0][0] == 100
        assert report.fetched_count == 3
        assert report.since == 100
        assert report.latest_sequence_number == 103

    def test_repeated_sync_without_new_data(self):
        source = FakeSource([make_record(n) for n in range(1, 6)])
        controller = self._controller(source)
        controller.sync()
        latest = self.archive.latest_sequence_number()
        upserts = self.store.upsert_calls

        first = controller.sync()
        second = controller.sync()

        assert first.fetched_count == 0
        assert second.fetched_count == 0
        assert self.archive.latest_sequence_number() == latest
        assert self.store.upsert_calls == upserts

    def test_invalid_records_are_rejected_not_fatal(self):
        remote = [make_record(1), make_record(2, [1, 2, 3]), make_record(3, list(range(10, 25)) + [26])]
        report = self._controller(FakeSource(remote)).sync()
        assert report.fetched_count == 1
        assert report.rejected_count == 2
        assert self.archive.latest_sequence_number() == 1

    def test_non_decimal_digit_is_rejected_not_fatal(self):
        remote = [make_record(1), make_record(2, ["²"] + [str(n) for n in range(2, 16)]), make_record(3)]
        report = self._controller(FakeSource(remote)).sync()
        assert report.rejected_count == 1
        assert report.fetched_count == 2
        assert self.archive.latest_sequence_number() == 3

    def test_duplicate_concourse_counted_once(self):
        remote = [make_record(4), make_record(4, list(range(2, 17))), make_record(5)]
        report = self._controller(FakeSource(remote)).sync()
        assert report.fetched_count == 2
        assert len(self.archive) == 2

    def test_sync_while_in_flight_is_noop(self):
        nested = []
        source = FakeSource([make_record(1)])
        controller = self._controller(source)
        source.on_call = lambda: nested.append(controller.sync())

        report = controller.sync()

        assert len(source.calls) == 1
        assert nested[0].fetched_count == 0
        assert report.fetched_count == 1

    def test_state_returns_to_idle_after_failure(self):
        def unauthorized():
            raise PermanentRemoteError("401", status=401)

        source = FakeSource(on_call=unauthorized)
        controller = self._controller(source)
        with pytest.raises(PermanentRemoteError):
            controller.sync()
        assert controller.state is SyncStatus.IDLE
        assert not controller.in_progress

    def test_storage_failure_surfaces_and_releases_lock(self):
        self.store.down = True
        controller = self._controller(FakeSource([make_record(1)]))
        with pytest.raises(StorageUnavailable):
            controller.sync()
        assert controller.state is SyncStatus.IDLE
        assert self.archive.latest_sequence_number() == 0

        self.store.down = False
        assert controller.sync().fetched_count == 1

    def test_transient_errors_are_retried(self):
        failures = [TransientRemoteError("429", status=429)]

        def flaky():
            if failures:
                raise failures.pop(0)

        source = FakeSource([make_record(1)], on_call=flaky)
        report = self._controller(source).sync()
        assert report.fetched_count == 1
        assert len(source.calls) == 2
        assert self.sleeper.delays == [2.0]

    def test_cancelled_sync_leaves_archive_unchanged(self):
        cancel = threading.Event()
        retry = RetryPolicy(cancel_event=cancel, sleeper=RecordingSleeper(on_sleep=lambda _s: cancel.set()))

        def always_busy():
            raise TransientRemoteError("503", status=503)

        source = FakeSource([make_record(1)], on_call=always_busy)
        controller = SyncController(self.archive, source, retry=retry)
        with pytest.raises(OperationCancelled):
            controller.sync()
        assert len(source.calls) == 1
        assert self.archive.latest_sequence_number() == 0
        assert controller.state is SyncStatus.IDLE

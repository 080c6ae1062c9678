from __future__ import annotations

from datetime import date, datetime, timedelta

from fakes import T0, change
from worktimer.core.enums import MergeOutcome, WorkDayType
from worktimer.records.model import Deleted
from worktimer.sync.merge import RecordMerger, to_change_record


def _local(store):
    return store.create(
        day=date(2026, 3, 2),
        start_time=datetime(2026, 3, 2, 9, 0),
        end_time=datetime(2026, 3, 2, 17, 0),
        break_seconds=3600,
        identity="rec-1",
    )


def test_unknown_identity_is_inserted_clean(store):
    outcome = RecordMerger(store).merge(change("rec-1", T0))

    merged = store.get("rec-1")
    assert outcome is MergeOutcome.INSERTED
    assert not merged.dirty
    assert merged.total_hours == 8.0
    assert merged.last_modified == T0


def test_newer_remote_replaces_local(store):
    local = _local(store)
    remote = change("rec-1", local.last_modified + timedelta(seconds=1), note="from phone")

    assert RecordMerger(store).merge(remote) is MergeOutcome.UPDATED
    assert store.get("rec-1").note == "from phone"


def test_older_remote_is_discarded(store):
    local = _local(store)
    remote = change("rec-1", local.last_modified - timedelta(seconds=1), note="stale")

    assert RecordMerger(store).merge(remote) is MergeOutcome.DISCARDED
    assert store.get("rec-1") == local


def test_equal_timestamps_keep_local(store):
    local = _local(store)
    remote = change("rec-1", local.last_modified, note="tie")

    assert RecordMerger(store).merge(remote) is MergeOutcome.DISCARDED
    assert store.get("rec-1").note is None


def test_merge_is_idempotent(store):
    merger = RecordMerger(store)
    remote = change("rec-1", T0)

    merger.merge(remote)
    first = store.get("rec-1")
    second_outcome = merger.merge(remote)

    assert second_outcome is MergeOutcome.DISCARDED
    assert store.get("rec-1") == first


def test_derived_fields_use_local_policy(store, policy_store):
    policy_store.update(standard_daily_hours=7.0)
    remote = change("rec-1", T0, total_hours=1.0, overtime_seconds=0)

    RecordMerger(store).merge(remote)

    merged = store.get("rec-1")
    assert merged.total_hours == 8.0
    assert merged.overtime_seconds == 3600


def test_remote_deletion_becomes_confirmed_tombstone(store):
    local = _local(store)
    remote = change("rec-1", local.last_modified + timedelta(minutes=1), is_deleted=True)

    RecordMerger(store).merge(remote)

    merged = store.get("rec-1")
    assert merged.state == Deleted(tombstone_confirmed=True)
    assert store.query_by_date_range(date(2026, 3, 2), date(2026, 3, 2)) == []


def test_remote_non_work_record_is_normalized(store):
    remote = change("rec-2", T0, type=WorkDayType.HOLIDAY, bonus_amount=10.0)

    RecordMerger(store).merge(remote)

    merged = store.get("rec-2")
    assert merged.start_time is None
    assert merged.bonus_amount == 0


def test_change_record_dict_round_trip_keeps_wire_keys():
    record = change("rec-3", T0, note="n")
    data = record.to_dict()

    assert data["id"] == "rec-3"
    assert data["breakDuration"] == 1800.0
    assert data["modifiedAt"] == T0.isoformat()
    assert type(record).from_dict(data) == record


def test_to_change_record_carries_deletion(store):
    local = _local(store)
    deleted = store.soft_delete(local.identity)

    wire = to_change_record(deleted, remote_version="v9")

    assert wire.is_deleted
    assert wire.remote_version == "v9"
    assert wire.modified_at == deleted.last_modified

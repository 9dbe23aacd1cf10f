"""Tests for counsel.core.conversation_log — ordering, counting and eviction."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine

from counsel.core.conversation_log import ConversationLog
from counsel.errors import StorageError
from tests.helpers import FrozenClock


def _fill(log: ConversationLog, n: int) -> list:
    return [log.append(f"q{i}", f"a{i}") for i in range(n)]


class TestAppend:

    def test_append_returns_increasing_ids(self, conversation_log):
        ids = _fill(conversation_log, 3)
        assert ids == sorted(ids)
        assert len(set(ids)) == 3

    def test_append_stores_fields(self, conversation_log):
        conversation_log.append("Why?", "Because.")
        [record] = conversation_log.list_recent()
        assert record.question == "Why?"
        assert record.answer == "Because."
        assert record.created_at is not None

    def test_count(self, conversation_log):
        assert conversation_log.count() == 0
        _fill(conversation_log, 4)
        assert conversation_log.count() == 4


class TestListRecent:

    def test_newest_first(self, conversation_log):
        _fill(conversation_log, 5)
        records = conversation_log.list_recent()
        assert [r.question for r in records] == ["q4", "q3", "q2", "q1", "q0"]
        stamps = [r.created_at for r in records]
        assert all(a >= b for a, b in zip(stamps, stamps[1:]))

    def test_equal_timestamps_fall_back_to_insertion_order(self, db_url):
        log = ConversationLog.from_url(db_url, clock=FrozenClock())
        try:
            _fill(log, 3)
            assert [r.question for r in log.list_recent()] == ["q2", "q1", "q0"]
        finally:
            log.close()

    def test_empty(self, conversation_log):
        assert conversation_log.list_recent() == []


class TestDeleteOldest:

    def test_keeps_newest(self, conversation_log):
        _fill(conversation_log, 12)
        assert conversation_log.delete_oldest(2) == 2
        assert conversation_log.count() == 10
        remaining = {r.question for r in conversation_log.list_recent()}
        assert remaining == {f"q{i}" for i in range(2, 12)}

    def test_more_than_count_deletes_all(self, conversation_log):
        _fill(conversation_log, 3)
        assert conversation_log.delete_oldest(10) == 3
        assert conversation_log.count() == 0

    @pytest.mark.parametrize("n", [0, -1])
    def test_non_positive_is_noop(self, conversation_log, n):
        _fill(conversation_log, 3)
        assert conversation_log.delete_oldest(n) == 0
        assert conversation_log.count() == 3

    def test_empty_log(self, conversation_log):
        assert conversation_log.delete_oldest(5) == 0

    def test_ties_evicted_by_insertion_order(self, db_url):
        log = ConversationLog.from_url(db_url, clock=FrozenClock())
        try:
            _fill(log, 4)
            assert log.delete_oldest(2) == 2
            assert [r.question for r in log.list_recent()] == ["q3", "q2"]
        finally:
            log.close()


class TestStorageErrors:

    def test_operations_raise_storage_error_when_schema_missing(self):
        log = ConversationLog(create_engine("sqlite://"), create_schema=False)
        with pytest.raises(StorageError):
            log.append("q", "a")
        with pytest.raises(StorageError):
            log.count()
        with pytest.raises(StorageError):
            log.list_recent()
        with pytest.raises(StorageError):
            log.delete_oldest(1)


class TestTimestamps:

    def test_created_at_comes_back_in_utc(self, conversation_log):
        conversation_log.append("q", "a")
        [record] = conversation_log.list_recent()
        assert record.created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert record.created_at.utcoffset() == timedelta(0)

    def test_non_utc_clock_is_normalized(self, db_url):
        paris = timezone(timedelta(hours=2))
        log = ConversationLog.from_url(db_url, clock=FrozenClock(datetime(2024, 6, 1, 14, 0, tzinfo=paris)))
        try:
            log.append("q", "a")
            [record] = log.list_recent()
            assert record.created_at == datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
            assert record.created_at.utcoffset() == timedelta(0)
        finally:
            log.close()

"""Unit tests for the audit log."""
from datetime import datetime, timedelta, timezone

import pytest

from rollcall.core.exceptions import ValidationError
from rollcall.db.models import AuditAction, AuditLog, AuditTargetType
from rollcall.services.audit import (
    clear_audit_log,
    diff_fields,
    read_audit_page,
    record_audit,
)

T0 = datetime(2026, 7, 1, 9, 0, tzinfo=timezone.utc)


def _seed(db_session, count, same_timestamp_every=1):
    """Insert ``count`` entries; consecutive groups share a timestamp."""
    for i in range(count):
        record_audit(
            db_session,
            "Gate A",
            AuditAction.UPDATE,
            AuditTargetType.PARTICIPANT,
            f"p{i}",
            f"Participant {i}",
            now=T0 + timedelta(seconds=i // same_timestamp_every),
        )


@pytest.mark.unit
class TestRecordAudit:
    def test_record_entry(self, db_session):
        entry = record_audit(
            db_session,
            "Gate A",
            AuditAction.ASSIGN,
            AuditTargetType.PARTICIPANT,
            "p1",
            "John Smith",
            changes={"room_number": {"from": None, "to": "101"}},
            now=T0,
        )

        assert entry is not None
        assert entry.id is not None
        assert entry.action == "assign"
        assert entry.changes == {"room_number": {"from": None, "to": "101"}}

    def test_missing_actor_defaults(self, db_session):
        entry = record_audit(db_session, None, "create", "participant", "p1", "John")
        assert entry.actor_name == "Unknown"

    def test_unknown_action_is_swallowed(self, db_session):
        """Bad input is logged and reported as None, never raised."""
        assert record_audit(db_session, "Gate A", "explode", "participant", "p1", "John") is None
        assert db_session.query(AuditLog).count() == 0

    def test_correction_points_at_original(self, db_session):
        original = record_audit(db_session, "Gate A", "update", "participant", "p1", "John", now=T0)
        correction = record_audit(
            db_session, "Gate B", "update", "participant", "p1", "John",
            amends_id=original.id, now=T0 + timedelta(minutes=1),
        )
        assert correction.amends_id == original.id
        db_session.refresh(original)
        assert original.actor_name == "Gate A"


@pytest.mark.unit
class TestDiffFields:
    def test_only_changed_fields(self):
        before = {"name": "John", "room_number": None, "is_paid": False}
        after = {"name": "John", "room_number": "101", "is_paid": True}
        assert diff_fields(before, after) == {
            "room_number": {"from": None, "to": "101"},
            "is_paid": {"from": False, "to": True},
        }

    def test_no_changes(self):
        assert diff_fields({"a": 1}, {"a": 1}) == {}


@pytest.mark.unit
class TestReadAuditPage:
    """Test keyset pagination."""

    def test_empty_log(self, db_session):
        page = read_audit_page(db_session)
        assert page.entries == []
        assert page.has_more is False
        assert page.next_cursor is None

    def test_newest_first(self, db_session):
        _seed(db_session, 5)
        page = read_audit_page(db_session, page_size=10)
        assert [e.target_id for e in page.entries] == ["p4", "p3", "p2", "p1", "p0"]
        assert page.has_more is False
        assert page.next_cursor is None

    def test_exact_page_boundary(self, db_session):
        _seed(db_session, 4)
        page = read_audit_page(db_session, page_size=4)
        assert len(page.entries) == 4
        assert page.has_more is False

    def test_paged_read_matches_unpaged(self, db_session):
        """Walking cursors reproduces one full descending read, ties included."""
        _seed(db_session, 23, same_timestamp_every=3)
        full = [e.id for e in read_audit_page(db_session, page_size=200).entries]

        walked = []
        cursor = None
        while True:
            page = read_audit_page(db_session, page_size=4, cursor=cursor)
            walked.extend(e.id for e in page.entries)
            if not page.has_more:
                break
            cursor = page.next_cursor

        assert walked == full
        assert len(walked) == 23

    @pytest.mark.parametrize("size", [0, 201, -1])
    def test_page_size_bounds(self, db_session, size):
        with pytest.raises(ValidationError):
            read_audit_page(db_session, page_size=size)

    def test_bad_cursor(self, db_session):
        with pytest.raises(ValidationError, match="cursor"):
            read_audit_page(db_session, cursor="not-a-cursor!")


@pytest.mark.unit
class TestClearAuditLog:
    def test_clear_in_batches(self, db_session):
        _seed(db_session, 12)
        assert clear_audit_log(db_session, batch_size=5) == 12
        assert db_session.query(AuditLog).count() == 0

    def test_clear_empty(self, db_session):
        assert clear_audit_log(db_session) == 0

    def test_clear_is_not_logged(self, db_session):
        _seed(db_session, 2)
        clear_audit_log(db_session)
        assert read_audit_page(db_session).entries == []

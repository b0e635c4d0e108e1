"""
Unit tests for the attendance service.
"""

from datetime import date
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from pydantic import ValidationError

from campus.modules.attendance.models import Attendance, AttendanceStatus
from campus.modules.attendance.schemas import AttendanceBulkRequest, AttendanceEntry
from campus.modules.attendance.service import mark_class_attendance, summarize
from campus.modules.shared.errors import InvalidRequestError
from factories import make_class

DAY = date(2026, 3, 2)
S1 = str(uuid4())
S2 = str(uuid4())


def _scalars(values):
    result = MagicMock()
    result.scalars.return_value.all.return_value = values
    return result


@pytest.fixture
def added(mock_db):
    """Objects passed to ``db.add``; ids are assigned on flush."""
    objects = []
    mock_db.add.side_effect = objects.append

    async def flush():
        for obj in objects:
            obj.id = obj.id or str(uuid4())

    mock_db.flush.side_effect = flush
    return objects


class TestSummarize:
    """Tests for summarize."""

    def test_empty_is_zero_rate(self):
        summary = summarize([])
        assert summary.total == 0
        assert summary.attendance_rate == 0.0

    def test_late_counts_as_attended(self):
        summary = summarize(
            [
                AttendanceStatus.PRESENT,
                AttendanceStatus.LATE,
                AttendanceStatus.ABSENT,
                AttendanceStatus.EXCUSED,
            ]
        )
        assert summary.total == 4
        assert summary.present == 1
        assert summary.late == 1
        assert summary.absent == 1
        assert summary.excused == 1
        assert summary.attendance_rate == 50.0

    def test_rate_rounded_to_two_decimals(self):
        summary = summarize([AttendanceStatus.PRESENT, AttendanceStatus.ABSENT, AttendanceStatus.ABSENT])
        assert summary.attendance_rate == 33.33


class TestMarkClassAttendance:
    """Tests for mark_class_attendance."""

    @pytest.mark.asyncio
    async def test_unknown_student_rejected(self, mock_db, school):
        """A student outside the class's school fails the whole batch."""
        school_class = make_class(school)
        mock_db.execute.side_effect = [_scalars([S1])]
        data = AttendanceBulkRequest(
            date=DAY,
            records=[
                AttendanceEntry(student_id=S1, status=AttendanceStatus.PRESENT),
                AttendanceEntry(student_id=S2, status=AttendanceStatus.ABSENT),
            ],
        )

        with pytest.raises(InvalidRequestError) as exc_info:
            await mark_class_attendance(mock_db, school_class, data, marked_by="teacher-1")

        assert exc_info.value.error_code == "INVALID_STUDENTS"
        assert S2 in exc_info.value.message
        mock_db.flush.assert_not_called()

    @pytest.mark.asyncio
    async def test_creates_and_updates(self, mock_db, school, added):
        """Existing records for the day are updated instead of duplicated."""
        school_class = make_class(school)
        existing = Attendance(
            id=str(uuid4()),
            student_id=S1,
            class_id="old-class",
            date=DAY,
            status=AttendanceStatus.ABSENT,
        )
        mock_db.execute.side_effect = [_scalars([S1, S2]), _scalars([existing])]
        data = AttendanceBulkRequest(
            date=DAY,
            records=[
                AttendanceEntry(student_id=S1, status=AttendanceStatus.LATE, remarks="Bus delay"),
                AttendanceEntry(student_id=S2, status=AttendanceStatus.PRESENT),
            ],
        )

        response = await mark_class_attendance(mock_db, school_class, data, marked_by="teacher-1")

        assert response.created == 1
        assert response.updated == 1
        assert existing.status == AttendanceStatus.LATE
        assert existing.class_id == school_class.id
        assert existing.remarks == "Bus delay"
        assert len(added) == 1
        assert added[0].student_id == S2
        assert [r.student_id for r in response.records] == [S1, S2]

    @pytest.mark.asyncio
    async def test_duplicate_entry_in_batch_updates_once_created(self, mock_db, school, added):
        """The same student twice in one batch yields a single record."""
        school_class = make_class(school)
        mock_db.execute.side_effect = [_scalars([S1]), _scalars([])]
        data = AttendanceBulkRequest(
            date=DAY,
            records=[
                AttendanceEntry(student_id=S1, status=AttendanceStatus.ABSENT),
                AttendanceEntry(student_id=S1, status=AttendanceStatus.PRESENT),
            ],
        )

        response = await mark_class_attendance(mock_db, school_class, data, marked_by="teacher-1")

        assert response.created == 1
        assert response.updated == 1
        assert len(added) == 1
        assert added[0].status == AttendanceStatus.PRESENT

    @pytest.mark.asyncio
    async def test_uppercase_student_id_matches(self, mock_db, school, added):
        school_class = make_class(school)
        mock_db.execute.side_effect = [_scalars([S1]), _scalars([])]
        data = AttendanceBulkRequest(
            date=DAY,
            records=[AttendanceEntry(student_id=S1.upper(), status=AttendanceStatus.PRESENT)],
        )

        response = await mark_class_attendance(mock_db, school_class, data, marked_by="teacher-1")

        assert response.created == 1
        assert added[0].student_id == S1


class TestAttendanceEntry:
    def test_malformed_student_id_rejected(self):
        with pytest.raises(ValidationError):
            AttendanceEntry(student_id="s-1", status=AttendanceStatus.PRESENT)

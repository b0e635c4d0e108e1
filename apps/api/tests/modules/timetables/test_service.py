"""
Unit tests for timetable slots.
"""

from datetime import time
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from pydantic import ValidationError

from campus.modules.shared.errors import ConflictError, InvalidRequestError
from campus.modules.timetables import service
from campus.modules.timetables.models import TimetableEntry
from campus.modules.timetables.schemas import TimetableEntryCreate
from campus.modules.users.models import UserRole
from factories import add_membership, make_class, make_orm_user, make_subject

SERVICE = "campus.modules.timetables.service"


def _slot(school_class, subject, teacher_id, **fields) -> TimetableEntryCreate:
    return TimetableEntryCreate(
        **{
            "class_id": school_class.id,
            "subject_id": subject.id,
            "teacher_id": teacher_id,
            "day_of_week": 1,
            "start_time": time(8, 0),
            "end_time": time(8, 40),
            **fields,
        }
    )


def _clash(mock_db, entry):
    result = MagicMock()
    result.scalar_one_or_none.return_value = entry
    mock_db.execute.return_value = result


@pytest.fixture
def lookups():
    with (
        patch(f"{SERVICE}.get_subject_in_school", new=AsyncMock()) as subject,
        patch(f"{SERVICE}.MembershipRepository") as memberships,
    ):
        memberships.get_active = AsyncMock(return_value=None)
        yield subject, memberships


class TestTimetableEntryCreate:
    def test_end_before_start_rejected(self, school):
        with pytest.raises(ValidationError):
            _slot(make_class(school), make_subject(school), str(uuid4()), end_time=time(7, 30))

    def test_day_out_of_range(self, school):
        with pytest.raises(ValidationError):
            _slot(make_class(school), make_subject(school), str(uuid4()), day_of_week=8)


class TestCreateEntry:
    """Tests for create_entry."""

    @pytest.mark.asyncio
    async def test_teacher_must_teach_at_school(self, mock_db, school, lookups):
        school_class = make_class(school)
        student = make_orm_user(UserRole.STUDENT)
        _, memberships = lookups
        memberships.get_active.return_value = add_membership(student, school, UserRole.STUDENT)

        with pytest.raises(InvalidRequestError) as exc_info:
            await service.create_entry(mock_db, school_class, _slot(school_class, make_subject(school), student.id))

        assert exc_info.value.error_code == "INVALID_TEACHER"
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_overlapping_teacher_slot(self, mock_db, school, lookups):
        school_class = make_class(school)
        teacher = make_orm_user(UserRole.TEACHER)
        _, memberships = lookups
        memberships.get_active.return_value = add_membership(teacher, school, UserRole.TEACHER)
        _clash(
            mock_db,
            TimetableEntry(
                class_id=str(uuid4()),
                teacher_id=teacher.id,
                day_of_week=1,
                start_time=time(8, 20),
                end_time=time(9, 0),
            ),
        )

        with pytest.raises(ConflictError) as exc_info:
            await service.create_entry(mock_db, school_class, _slot(school_class, make_subject(school), teacher.id))

        assert exc_info.value.error_code == "TIMETABLE_CLASH"
        assert "teacher" in exc_info.value.message
        assert "08:20" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_creates_slot(self, mock_db, school, lookups):
        school_class = make_class(school)
        subject = make_subject(school)
        teacher = make_orm_user(UserRole.TEACHER)
        subject_check, memberships = lookups
        memberships.get_active.return_value = add_membership(teacher, school, UserRole.TEACHER)
        _clash(mock_db, None)

        entry = await service.create_entry(
            mock_db, school_class, _slot(school_class, subject, teacher.id, room="Lab 2")
        )

        subject_check.assert_awaited_once_with(mock_db, school.id, subject.id)
        assert entry is mock_db.add.call_args.args[0]
        assert (entry.class_id, entry.teacher_id, entry.room) == (school_class.id, teacher.id, "Lab 2")
        mock_db.flush.assert_awaited_once()

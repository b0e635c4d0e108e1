"""
Attendance Schemas
"""

import datetime

from pydantic import BaseModel, ConfigDict, Field

from campus.modules.attendance.models import AttendanceStatus
from campus.modules.shared import UUIDStr


class AttendanceEntry(BaseModel):
    student_id: UUIDStr
    status: AttendanceStatus
    remarks: str | None = Field(None, max_length=500)


class AttendanceBulkRequest(BaseModel):
    date: datetime.date
    records: list[AttendanceEntry] = Field(..., min_length=1, max_length=500)


class AttendanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    class_id: str
    date: datetime.date
    status: AttendanceStatus
    remarks: str | None = None
    marked_by: str | None = None


class AttendanceBulkResponse(BaseModel):
    class_id: str
    date: datetime.date
    created: int
    updated: int
    records: list[AttendanceResponse]


class AttendanceSummary(BaseModel):
    total: int = 0
    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0
    attendance_rate: float = 0.0


class StudentAttendanceSummary(AttendanceSummary):
    student_id: str
    start_date: datetime.date | None = None
    end_date: datetime.date | None = None

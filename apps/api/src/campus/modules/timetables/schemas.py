"""
Timetable Schemas
"""

from datetime import datetime, time

from pydantic import BaseModel, ConfigDict, Field, model_validator

from campus.modules.shared import UUIDStr


class TimetableEntryCreate(BaseModel):
    class_id: UUIDStr
    subject_id: UUIDStr
    teacher_id: UUIDStr
    day_of_week: int = Field(..., ge=1, le=7)
    start_time: time
    end_time: time
    room: str | None = Field(None, max_length=50)

    @model_validator(mode="after")
    def check_times(self) -> "TimetableEntryCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class TimetableEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    class_id: str
    subject_id: str
    teacher_id: str
    day_of_week: int
    start_time: time
    end_time: time
    room: str | None = None
    created_at: datetime


class TimetableSlot(TimetableEntryResponse):
    subject_name: str
    subject_code: str
    teacher_name: str


class ClassTimetableResponse(BaseModel):
    class_id: str
    class_name: str
    entries: list[TimetableSlot]

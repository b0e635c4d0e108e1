"""
Timetables Router

Endpoints:
- POST /timetables - Add a lesson slot (school managers)
- GET /timetables/class/{class_id} - Weekly timetable of a class (school members)
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.auth import CurrentUser, get_current_user
from campus.core.database import get_db
from campus.core.tenancy import ensure_manager, ensure_permission
from campus.modules.academics.service import get_class_or_404
from campus.modules.timetables import service
from campus.modules.timetables.schemas import (
    ClassTimetableResponse,
    TimetableEntryCreate,
    TimetableEntryResponse,
)

router = APIRouter()


@router.post("", response_model=TimetableEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_timetable_entry(
    data: TimetableEntryCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TimetableEntryResponse:
    """
    Add a lesson to a class timetable.

    Raises:
        HTTPException 400: Teacher does not teach at the class's school
        HTTPException 404: Unknown class or subject
        HTTPException 409: Overlaps another lesson of the class or teacher
    """
    school_class = await get_class_or_404(db, data.class_id)
    context = ensure_permission(user, school_class.school_id, "classes:create")
    ensure_manager(context)
    entry = await service.create_entry(db, school_class, data)
    return TimetableEntryResponse.model_validate(entry)


@router.get("/class/{class_id}", response_model=ClassTimetableResponse)
async def class_timetable(
    class_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ClassTimetableResponse:
    school_class = await get_class_or_404(db, str(class_id))
    ensure_permission(user, school_class.school_id, "classes:view")
    return await service.class_timetable(db, school_class)

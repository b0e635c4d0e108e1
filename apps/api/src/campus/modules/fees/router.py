"""
Fees Router

Endpoints:
- POST /fees/structure/school/{school_id} - Create a fee structure
- GET /fees/structure/school/{school_id} - List fee structures
- POST /fees/payment - Record a payment
- GET /fees/student/{student_id}/status - A student's balance per fee
- GET /fees/student/{student_id}/payments - A student's payment history (staff, self, or linked parent)
- GET /fees/payments/school/{school_id} - Payment history
- GET /fees/school/{school_id}/summary - Collection summary
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.auth import CurrentUser, get_current_user
from campus.core.database import get_db
from campus.core.tenancy import SchoolContext, ensure_permission, ensure_staff, require_permission
from campus.modules.fees import service
from campus.modules.fees.schemas import (
    FeeStructureCreate,
    FeeStructureResponse,
    FeeSummaryResponse,
    PaymentCreate,
    PaymentListResponse,
    PaymentResponse,
    StudentFeeStatus,
)
from campus.modules.shared import PaginationMeta
from campus.modules.students.service import get_student_or_404, get_visible_student

router = APIRouter()


@router.post(
    "/structure/school/{school_id}",
    response_model=FeeStructureResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_fee_structure(
    data: FeeStructureCreate,
    context: SchoolContext = Depends(require_permission("fees:create")),
    db: AsyncSession = Depends(get_db),
) -> FeeStructureResponse:
    structure = await service.create_structure(db, context.school_id, data)
    return FeeStructureResponse.model_validate(structure)


@router.get("/structure/school/{school_id}", response_model=list[FeeStructureResponse])
async def list_fee_structures(
    term_id: UUID | None = None,
    class_id: UUID | None = None,
    context: SchoolContext = Depends(require_permission("fees:view")),
    db: AsyncSession = Depends(get_db),
) -> list[FeeStructureResponse]:
    structures = await service.list_structures(
        db,
        context.school_id,
        term_id=str(term_id) if term_id else None,
        class_id=str(class_id) if class_id else None,
    )
    return [FeeStructureResponse.model_validate(s) for s in structures]


@router.post("/payment", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def record_payment(
    data: PaymentCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PaymentResponse:
    """
    Record a fee payment.

    Raises:
        HTTPException 400: Structure from another school or not applicable
        HTTPException 404: Unknown student or fee structure
    """
    structure = await service.get_structure_or_404(db, data.fee_structure_id)
    ensure_permission(user, structure.school_id, "fees:create")
    student = await get_student_or_404(db, data.student_id)
    payment = await service.record_payment(db, student, structure, data, recorded_by=user.id)
    return PaymentResponse.model_validate(payment)


@router.get("/student/{student_id}/status", response_model=StudentFeeStatus)
async def student_fee_status(
    student_id: UUID,
    term_id: UUID | None = None,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> StudentFeeStatus:
    student = await get_visible_student(db, user, str(student_id))
    return await service.student_fee_status(db, student, str(term_id) if term_id else None)


@router.get("/student/{student_id}/payments", response_model=PaymentListResponse)
async def student_payments(
    student_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PaymentListResponse:
    student = await get_visible_student(db, user, str(student_id))
    payments, total = await service.list_payments(
        db,
        student.school_id,
        student_id=student.id,
        offset=(page - 1) * limit,
        limit=limit,
    )
    return PaymentListResponse(
        payments=[PaymentResponse.model_validate(p) for p in payments],
        pagination=PaginationMeta.build(page, limit, total),
    )


@router.get("/payments/school/{school_id}", response_model=PaymentListResponse)
async def list_payments(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    student_id: UUID | None = None,
    context: SchoolContext = Depends(require_permission("fees:view")),
    db: AsyncSession = Depends(get_db),
) -> PaymentListResponse:
    ensure_staff(context)
    payments, total = await service.list_payments(
        db,
        context.school_id,
        student_id=str(student_id) if student_id else None,
        offset=(page - 1) * limit,
        limit=limit,
    )
    return PaymentListResponse(
        payments=[PaymentResponse.model_validate(p) for p in payments],
        pagination=PaginationMeta.build(page, limit, total),
    )


@router.get("/school/{school_id}/summary", response_model=FeeSummaryResponse)
async def fee_summary(
    term_id: UUID | None = None,
    context: SchoolContext = Depends(require_permission("fees:view")),
    db: AsyncSession = Depends(get_db),
) -> FeeSummaryResponse:
    ensure_staff(context)
    return await service.school_summary(db, context.school_id, str(term_id) if term_id else None)

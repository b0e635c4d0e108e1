"""
Fee Service

Fee structures belong to a school and term, and either to one class or (with
no class) to every class. Only completed payments count towards what a
student has paid.
"""

import logging
from collections import defaultdict
from decimal import Decimal

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from campus.modules.academics import repository as academics_repository
from campus.modules.academics.service import get_term_in_school
from campus.modules.fees.models import FeePayment, FeeStructure, PaymentStatus
from campus.modules.fees.schemas import (
    FeeLine,
    FeeStructureCreate,
    FeeSummaryResponse,
    PaymentCreate,
    StudentFeeStatus,
)
from campus.modules.shared import utcnow
from campus.modules.shared.errors import InvalidRequestError, NotFoundError
from campus.modules.students.models import Student, StudentStatus

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

STATUS_PAID = "paid"
STATUS_PARTIAL = "partial"
STATUS_UNPAID = "unpaid"


def fee_status(amount: Decimal, paid: Decimal) -> str:
    if paid >= amount:
        return STATUS_PAID
    if paid > ZERO:
        return STATUS_PARTIAL
    return STATUS_UNPAID


def collection_rate(collected: Decimal, expected: Decimal) -> float:
    if not expected:
        return 0.0
    return round(float(collected) / float(expected) * 100, 2)


def applies_to(structure: FeeStructure, student: Student) -> bool:
    return structure.school_id == student.school_id and (
        structure.class_id is None or structure.class_id == student.class_id
    )


async def get_structure_or_404(db: AsyncSession, structure_id: str) -> FeeStructure:
    structure = await db.get(FeeStructure, structure_id)
    if structure is None:
        raise NotFoundError("Fee structure", structure_id)
    return structure


async def create_structure(db: AsyncSession, school_id: str, data: FeeStructureCreate) -> FeeStructure:
    await get_term_in_school(db, school_id, data.academic_term_id)
    if data.class_id:
        school_class = await academics_repository.get_class(db, data.class_id)
        if school_class is None or school_class.school_id != school_id:
            raise InvalidRequestError("Class does not belong to this school.", "INVALID_CLASS")

    structure = FeeStructure(school_id=school_id, **data.model_dump())
    db.add(structure)
    await db.flush()
    await db.refresh(structure)
    logger.info(f"Created fee structure {structure.fee_type} ({structure.amount}) for school {school_id}")
    return structure


async def list_structures(
    db: AsyncSession,
    school_id: str,
    *,
    term_id: str | None = None,
    class_id: str | None = None,
) -> list[FeeStructure]:
    query = select(FeeStructure).where(FeeStructure.school_id == school_id)
    if term_id:
        query = query.where(FeeStructure.academic_term_id == term_id)
    if class_id:
        query = query.where(or_(FeeStructure.class_id == class_id, FeeStructure.class_id.is_(None)))
    result = await db.execute(query.order_by(FeeStructure.due_date, FeeStructure.fee_type))
    return list(result.scalars().all())


async def record_payment(
    db: AsyncSession,
    student: Student,
    structure: FeeStructure,
    data: PaymentCreate,
    *,
    recorded_by: str,
) -> FeePayment:
    """
    Record a payment against a fee structure.

    Raises:
        InvalidRequestError: Structure from another school, or not applicable
            to the student's class
    """
    if structure.school_id != student.school_id:
        raise InvalidRequestError("Fee structure belongs to another school.", "SCHOOL_MISMATCH")
    if not applies_to(structure, student):
        raise InvalidRequestError("This fee does not apply to the student's class.", "FEE_NOT_APPLICABLE")

    payment = FeePayment(
        student_id=student.id,
        fee_structure_id=structure.id,
        amount_paid=data.amount_paid,
        payment_method=data.payment_method,
        payment_reference=data.payment_reference,
        payment_date=data.payment_date or utcnow(),
        status=data.status,
        recorded_by=recorded_by,
    )
    db.add(payment)
    await db.flush()
    await db.refresh(payment)
    logger.info(f"Recorded payment {payment.id} of {payment.amount_paid} for student {student.id}")
    return payment


async def _completed_totals(db: AsyncSession, student_ids: list[str]) -> dict[tuple[str, str], Decimal]:
    """Sum of completed payments keyed by ``(student_id, fee_structure_id)``."""
    if not student_ids:
        return {}
    result = await db.execute(
        select(FeePayment.student_id, FeePayment.fee_structure_id, func.sum(FeePayment.amount_paid))
        .where(
            FeePayment.student_id.in_(student_ids),
            FeePayment.status == PaymentStatus.COMPLETED,
        )
        .group_by(FeePayment.student_id, FeePayment.fee_structure_id)
    )
    return {(row[0], row[1]): Decimal(row[2] or 0) for row in result.all()}


def build_fee_status(
    student: Student,
    structures: list[FeeStructure],
    totals: dict[tuple[str, str], Decimal],
) -> StudentFeeStatus:
    lines = []
    for structure in structures:
        if not applies_to(structure, student):
            continue
        paid = totals.get((student.id, structure.id), ZERO)
        lines.append(
            FeeLine(
                fee_structure_id=structure.id,
                fee_type=structure.fee_type,
                amount=structure.amount,
                total_paid=paid,
                balance=max(structure.amount - paid, ZERO),
                due_date=structure.due_date,
                status=fee_status(structure.amount, paid),
            )
        )

    total_due = sum((line.amount for line in lines), ZERO)
    total_paid = sum((line.total_paid for line in lines), ZERO)
    return StudentFeeStatus(
        student_id=student.id,
        total_due=total_due,
        total_paid=total_paid,
        balance=sum((line.balance for line in lines), ZERO),
        fees=lines,
    )


async def student_fee_status(
    db: AsyncSession,
    student: Student,
    term_id: str | None = None,
) -> StudentFeeStatus:
    structures = await list_structures(db, student.school_id, term_id=term_id)
    totals = await _completed_totals(db, [student.id])
    return build_fee_status(student, structures, totals)


async def list_payments(
    db: AsyncSession,
    school_id: str,
    *,
    student_id: str | None = None,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[FeePayment], int]:
    query = (
        select(FeePayment)
        .join(FeeStructure, FeeStructure.id == FeePayment.fee_structure_id)
        .where(FeeStructure.school_id == school_id)
    )
    if student_id:
        query = query.where(FeePayment.student_id == student_id)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    result = await db.execute(query.order_by(FeePayment.payment_date.desc()).offset(offset).limit(limit))
    return list(result.scalars().all()), total


async def school_summary(db: AsyncSession, school_id: str, term_id: str | None = None) -> FeeSummaryResponse:
    """Expected versus collected fees over the school's active students."""
    structures = await list_structures(db, school_id, term_id=term_id)
    result = await db.execute(
        select(Student).where(Student.school_id == school_id, Student.status == StudentStatus.ACTIVE)
    )
    students = list(result.scalars().all())

    totals = await _completed_totals(db, [s.id for s in students])
    structure_ids = {s.id for s in structures}
    collected_by_student: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for (student_id, structure_id), amount in totals.items():
        if structure_id in structure_ids:
            collected_by_student[student_id] += amount

    expected = collected = ZERO
    fully_paid = 0
    for student in students:
        status = build_fee_status(student, structures, totals)
        expected += status.total_due
        collected += collected_by_student[student.id]
        if status.fees and all(line.status == STATUS_PAID for line in status.fees):
            fully_paid += 1

    return FeeSummaryResponse(
        school_id=school_id,
        term_id=term_id,
        expected=expected,
        collected=collected,
        outstanding=max(expected - collected, ZERO),
        students_fully_paid=fully_paid,
        total_students=len(students),
        collection_rate=collection_rate(collected, expected),
    )

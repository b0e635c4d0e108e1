"""
Fee Schemas
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from campus.modules.fees.models import PaymentMethod, PaymentStatus
from campus.modules.shared import PaginationMeta, UUIDStr


class FeeStructureCreate(BaseModel):
    class_id: UUIDStr | None = None
    academic_term_id: UUIDStr
    fee_type: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., gt=0)
    due_date: date | None = None
    is_mandatory: bool = True
    description: str | None = Field(None, max_length=1000)


class FeeStructureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    class_id: str | None = None
    academic_term_id: str
    fee_type: str
    amount: Decimal
    due_date: date | None = None
    is_mandatory: bool
    description: str | None = None


class PaymentCreate(BaseModel):
    student_id: UUIDStr
    fee_structure_id: UUIDStr
    amount_paid: Decimal = Field(..., gt=0)
    payment_method: PaymentMethod
    payment_reference: str | None = Field(None, max_length=100)
    payment_date: datetime | None = None
    status: PaymentStatus = PaymentStatus.COMPLETED


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    fee_structure_id: str
    amount_paid: Decimal
    payment_method: PaymentMethod
    payment_reference: str | None = None
    payment_date: datetime
    status: PaymentStatus
    recorded_by: str | None = None


class PaymentListResponse(BaseModel):
    payments: list[PaymentResponse]
    pagination: PaginationMeta


class FeeLine(BaseModel):
    fee_structure_id: str
    fee_type: str
    amount: Decimal
    total_paid: Decimal
    balance: Decimal
    due_date: date | None = None
    status: str


class StudentFeeStatus(BaseModel):
    student_id: str
    total_due: Decimal
    total_paid: Decimal
    balance: Decimal
    fees: list[FeeLine]


class FeeSummaryResponse(BaseModel):
    school_id: str
    term_id: str | None = None
    expected: Decimal
    collected: Decimal
    outstanding: Decimal
    students_fully_paid: int
    total_students: int
    collection_rate: float

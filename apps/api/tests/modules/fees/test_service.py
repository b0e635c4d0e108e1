"""
Unit tests for the fee service.
"""

from decimal import Decimal

import pytest

from campus.modules.fees.models import PaymentMethod
from campus.modules.fees.schemas import PaymentCreate
from campus.modules.fees.service import (
    build_fee_status,
    collection_rate,
    fee_status,
    record_payment,
)
from campus.modules.shared.errors import InvalidRequestError
from factories import make_class, make_fee, make_school, make_student


class TestFeeStatus:
    """Tests for fee_status and collection_rate."""

    def test_status(self):
        assert fee_status(Decimal("100"), Decimal("0")) == "unpaid"
        assert fee_status(Decimal("100"), Decimal("40")) == "partial"
        assert fee_status(Decimal("100"), Decimal("100")) == "paid"
        assert fee_status(Decimal("100"), Decimal("120")) == "paid"

    def test_collection_rate(self):
        assert collection_rate(Decimal("250"), Decimal("1000")) == 25.0
        assert collection_rate(Decimal("1"), Decimal("3")) == 33.33
        assert collection_rate(Decimal("0"), Decimal("0")) == 0.0


class TestBuildFeeStatus:
    """Tests for build_fee_status."""

    def test_only_applicable_structures(self, school, term):
        grade_four = make_class(school)
        grade_five = make_class(school, name="Grade 5")
        student = make_student(school, class_id=grade_four.id)
        school_wide = make_fee(school, term, amount="1000")
        own_class = make_fee(school, term, amount="300", fee_type="Lab", class_id=grade_four.id)
        other_class = make_fee(school, term, amount="500", fee_type="Trip", class_id=grade_five.id)

        status = build_fee_status(
            student,
            [school_wide, own_class, other_class],
            {(student.id, school_wide.id): Decimal("400"), (student.id, own_class.id): Decimal("300")},
        )

        assert [line.fee_type for line in status.fees] == ["Tuition", "Lab"]
        assert status.total_due == Decimal("1300")
        assert status.total_paid == Decimal("700")
        assert status.balance == Decimal("600")
        assert [line.status for line in status.fees] == ["partial", "paid"]

    def test_overpayment_does_not_make_balance_negative(self, school, term):
        student = make_student(school)
        fee = make_fee(school, term, amount="100")

        status = build_fee_status(student, [fee], {(student.id, fee.id): Decimal("150")})

        assert status.fees[0].balance == Decimal("0")
        assert status.balance == Decimal("0")


class TestRecordPayment:
    """Tests for record_payment."""

    @staticmethod
    def _payment(student, fee) -> PaymentCreate:
        return PaymentCreate(
            student_id=student.id,
            fee_structure_id=fee.id,
            amount_paid=Decimal("200"),
            payment_method=PaymentMethod.CASH,
        )

    @pytest.mark.asyncio
    async def test_rejects_other_school(self, mock_db, school, term):
        student = make_student(make_school(code="OTHER0001"))
        fee = make_fee(school, term)

        with pytest.raises(InvalidRequestError) as exc_info:
            await record_payment(mock_db, student, fee, self._payment(student, fee), recorded_by="admin-1")

        assert exc_info.value.error_code == "SCHOOL_MISMATCH"
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejects_fee_for_other_class(self, mock_db, school, term):
        student = make_student(school, class_id=make_class(school).id)
        fee = make_fee(school, term, class_id=make_class(school, name="Grade 5").id)

        with pytest.raises(InvalidRequestError) as exc_info:
            await record_payment(mock_db, student, fee, self._payment(student, fee), recorded_by="admin-1")

        assert exc_info.value.error_code == "FEE_NOT_APPLICABLE"

    @pytest.mark.asyncio
    async def test_records_payment(self, mock_db, school, term):
        student = make_student(school)
        fee = make_fee(school, term)

        payment = await record_payment(mock_db, student, fee, self._payment(student, fee), recorded_by="admin-1")

        mock_db.add.assert_called_once_with(payment)
        assert payment.amount_paid == Decimal("200")
        assert payment.recorded_by == "admin-1"
        assert payment.payment_date is not None

"""
Route tests for fee payment history and the school summary path.
"""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from campus.core.auth import get_current_user
from campus.core.database import get_db
from campus.modules.fees.models import FeePayment, PaymentMethod, PaymentStatus
from campus.modules.fees.router import router
from campus.modules.shared.errors import ForbiddenError, register_exception_handlers
from factories import make_student

ROUTER = "campus.modules.fees.router"


@pytest.fixture
def client_for(mock_db):
    def build(user) -> TestClient:
        app = FastAPI()
        register_exception_handlers(app)
        app.include_router(router, prefix="/fees")
        app.dependency_overrides[get_current_user] = lambda: user
        app.dependency_overrides[get_db] = lambda: mock_db
        return TestClient(app, raise_server_exceptions=False)

    return build


def _payment(student) -> FeePayment:
    return FeePayment(
        id=str(uuid4()),
        student_id=student.id,
        fee_structure_id=str(uuid4()),
        amount_paid=Decimal("250"),
        payment_method=PaymentMethod.MOBILE_MONEY,
        payment_date=datetime(2026, 2, 1, tzinfo=UTC),
        status=PaymentStatus.COMPLETED,
    )


class TestStudentPayments:
    def test_linked_parent_sees_history(self, client_for, user_factory, school):
        student = make_student(school)
        parent = user_factory("parent", memberships={school.id: "parent"})

        with (
            patch(f"{ROUTER}.get_visible_student", new=AsyncMock(return_value=student)) as visible,
            patch(f"{ROUTER}.service.list_payments", new=AsyncMock(return_value=([_payment(student)], 1))) as listed,
        ):
            response = client_for(parent).get(f"/fees/student/{student.id}/payments?limit=5")

        assert response.status_code == 200
        body = response.json()
        assert body["pagination"]["total"] == 1
        assert body["payments"][0]["student_id"] == student.id
        assert visible.await_args.args[1] is parent
        assert listed.await_args.args[1] == school.id
        assert listed.await_args.kwargs == {"student_id": student.id, "offset": 0, "limit": 5}

    def test_unrelated_user_denied(self, client_for, user_factory, school):
        denied = AsyncMock(side_effect=ForbiddenError("No.", "STUDENT_ACCESS_DENIED"))

        with patch(f"{ROUTER}.get_visible_student", new=denied):
            response = client_for(user_factory("parent")).get(f"/fees/student/{uuid4()}/payments")

        assert response.status_code == 403
        assert response.json()["detail"]["error"] == "STUDENT_ACCESS_DENIED"


class TestSummaryPath:
    def test_summary_lives_under_school(self, client_for, user_factory, school):
        client = client_for(user_factory("teacher"))

        assert client.get(f"/fees/school/{school.id}/summary").status_code == 403
        assert client.get(f"/fees/summary/school/{school.id}").status_code == 404

"""
Tests for tenant isolation and permission dependencies.

A throwaway app mounts endpoints guarded by the real dependencies;
``get_current_user`` is overridden to inject the caller.
"""

from uuid import uuid4

import pytest
from fastapi import Depends, FastAPI, HTTPException
from fastapi.testclient import TestClient

from campus.core.auth import get_current_user, require_admin_access, require_roles
from campus.core.tenancy import (
    SchoolContext,
    check_school_access,
    ensure_manager,
    ensure_staff,
    require_permission,
    require_school_access,
)
from campus.modules.users.models import UserRole


def build_app() -> FastAPI:
    app = FastAPI()

    @app.get("/schools/{school_id}/ping")
    async def ping(ctx: SchoolContext = Depends(require_school_access)):
        return {"school_id": ctx.school_id, "role": ctx.role}

    @app.post("/schools/{school_id}/fees")
    async def create_fee(ctx: SchoolContext = Depends(require_permission("fees:create"))):
        return {"ok": True}

    @app.get("/query")
    async def by_query(ctx: SchoolContext = Depends(require_school_access)):
        return {"school_id": ctx.school_id}

    @app.get("/teachers-only")
    async def teachers_only(user=Depends(require_roles(UserRole.TEACHER))):
        return {"id": user.id}

    @app.get("/billing")
    async def billing(user=Depends(require_admin_access(UserRole.FINANCE_ADMIN))):
        return {"id": user.id}

    return app


@pytest.fixture
def client_for():
    def factory(user):
        app = build_app()
        app.dependency_overrides[get_current_user] = lambda: user
        return TestClient(app)

    return factory


class TestRequireSchoolAccess:
    def test_member_passes(self, client_for, user_factory, school_id):
        client = client_for(user_factory("teacher", {school_id: "teacher"}))
        response = client.get(f"/schools/{school_id}/ping")
        assert response.status_code == 200
        assert response.json() == {"school_id": school_id, "role": "teacher"}

    def test_other_school_denied(self, client_for, user_factory, school_id):
        client = client_for(user_factory("teacher", {school_id: "teacher"}))
        response = client.get(f"/schools/{uuid4()}/ping")
        assert response.status_code == 403
        assert response.json()["detail"]["error"] == "NO_SCHOOL_ACCESS"

    def test_super_admin_reaches_any_school(self, client_for, user_factory, school_id):
        client = client_for(user_factory("super_admin"))
        response = client.get(f"/schools/{school_id}/ping")
        assert response.status_code == 200
        assert response.json()["role"] == "super_admin"

    def test_school_id_from_query(self, client_for, user_factory, school_id):
        client = client_for(user_factory("parent", {school_id: "parent"}))
        assert client.get("/query", params={"school_id": school_id}).status_code == 200

    def test_missing_or_invalid_school_id(self, client_for, user_factory, school_id):
        client = client_for(user_factory("parent", {school_id: "parent"}))
        assert client.get("/query").status_code == 400
        assert client.get("/query", params={"school_id": "abc"}).status_code == 400


class TestRequirePermission:
    def test_staff_can_create_fees(self, client_for, user_factory, school_id):
        client = client_for(user_factory("staff", {school_id: "staff"}))
        assert client.post(f"/schools/{school_id}/fees").status_code == 200

    def test_teacher_cannot_create_fees(self, client_for, user_factory, school_id):
        client = client_for(user_factory("teacher", {school_id: "teacher"}))
        response = client.post(f"/schools/{school_id}/fees")
        assert response.status_code == 403
        detail = response.json()["detail"]
        assert detail["error"] == "PERMISSION_DENIED"
        assert detail["required"] == "fees:create"

    def test_membership_override_grants(self, client_for, user_factory, school_id):
        user = user_factory("teacher", {school_id: "teacher"}, permissions={"fees:create": True})
        assert client_for(user).post(f"/schools/{school_id}/fees").status_code == 200


class TestRoleDependencies:
    def test_school_membership_role_counts(self, client_for, user_factory, school_id):
        client = client_for(user_factory("parent", {school_id: "teacher"}))
        assert client.get("/teachers-only").status_code == 200

    def test_role_mismatch(self, client_for, user_factory):
        response = client_for(user_factory("student")).get("/teachers-only")
        assert response.status_code == 403
        assert response.json()["detail"]["error"] == "INSUFFICIENT_ROLE"

    def test_admin_sub_role(self, client_for, user_factory):
        assert client_for(user_factory("finance_admin")).get("/billing").status_code == 200
        assert client_for(user_factory("super_admin")).get("/billing").status_code == 200
        response = client_for(user_factory("content_admin")).get("/billing")
        assert response.status_code == 403
        assert response.json()["detail"]["error"] == "ADMIN_ACCESS_REQUIRED"


class TestContextHelpers:
    def test_staff_and_manager_flags(self, user_factory, school_id):
        ctx = check_school_access(user_factory("teacher", {school_id: "teacher"}), school_id)
        assert ctx.is_staff
        assert not ctx.is_manager
        ensure_staff(ctx)
        with pytest.raises(HTTPException) as exc_info:
            ensure_manager(ctx)
        assert exc_info.value.detail["error"] == "SCHOOL_ADMIN_REQUIRED"

    def test_parent_is_not_staff(self, user_factory, school_id):
        ctx = check_school_access(user_factory("parent", {school_id: "parent"}), school_id)
        with pytest.raises(HTTPException) as exc_info:
            ensure_staff(ctx)
        assert exc_info.value.status_code == 403

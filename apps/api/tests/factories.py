"""
ORM object factories for service tests.

Objects are transient (never attached to a session); ids and timestamps
are filled in by hand.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from uuid import uuid4

from campus.core.security import hash_password
from campus.modules.academics.models import AcademicTerm, SchoolClass, Subject
from campus.modules.fees.models import FeeStructure
from campus.modules.schools.models import School, SchoolStatus, SchoolType, SchoolUser, SubscriptionPlan
from campus.modules.students.models import Student, StudentStatus
from campus.modules.users.models import User, UserRole

PASSWORD = "correct-horse"
PASSWORD_HASH = hash_password(PASSWORD)


def _stamp(obj):
    now = datetime.now(UTC)
    obj.id = obj.id or str(uuid4())
    obj.created_at = now
    obj.updated_at = now
    return obj


def make_school(**fields) -> School:
    defaults = {
        "id": None,
        "code": "HILLSC123",
        "name": "Hill School",
        "email": "office@hillschool.com",
        "country": "Kenya",
        "school_type": SchoolType.MIXED,
        "subscription_plan": SubscriptionPlan.FREE,
        "settings": {},
        "status": SchoolStatus.ACTIVE,
        "is_active": True,
    }
    return _stamp(School(**{**defaults, **fields}))


def make_orm_user(role: UserRole = UserRole.STUDENT, **fields) -> User:
    defaults = {
        "id": None,
        "email": f"{role.value}-{uuid4().hex[:6]}@test.com",
        "password_hash": PASSWORD_HASH,
        "first_name": "Test",
        "last_name": "User",
        "role": role,
        "is_active": True,
        "is_verified": False,
    }
    return _stamp(User(**{**defaults, **fields}))


def add_membership(user: User, school: School, role: UserRole, *, is_active: bool = True) -> SchoolUser:
    membership = _stamp(
        SchoolUser(
            id=None,
            school_id=school.id,
            user_id=user.id,
            role=role,
            permissions={},
            is_active=is_active,
            joined_at=datetime.now(UTC),
        )
    )
    membership.school = school
    user.memberships.append(membership)
    return membership


def make_student(school: School, user: User | None = None, **fields) -> Student:
    user = user or make_orm_user(UserRole.STUDENT)
    student = _stamp(
        Student(
            **{
                "id": None,
                "user_id": user.id,
                "school_id": school.id,
                "student_number": "ADM-001",
                "status": StudentStatus.ACTIVE,
                **fields,
            }
        )
    )
    student.user = user
    return student


def make_term(school: School, **fields) -> AcademicTerm:
    return _stamp(
        AcademicTerm(
            **{
                "id": None,
                "school_id": school.id,
                "name": "Term 1",
                "start_date": date(2026, 1, 5),
                "end_date": date(2026, 4, 3),
                "is_current": True,
                **fields,
            }
        )
    )


def make_class(school: School, **fields) -> SchoolClass:
    return _stamp(SchoolClass(**{"id": None, "school_id": school.id, "name": "Grade 4", "capacity": 30, **fields}))


def make_subject(school: School, **fields) -> Subject:
    return _stamp(
        Subject(**{"id": None, "school_id": school.id, "name": "Mathematics", "code": "MATH", "is_core": True, **fields})
    )


def make_fee(school: School, term: AcademicTerm, amount: str = "1000", **fields) -> FeeStructure:
    return _stamp(
        FeeStructure(
            **{
                "id": None,
                "school_id": school.id,
                "academic_term_id": term.id,
                "fee_type": "Tuition",
                "amount": Decimal(amount),
                "is_mandatory": True,
                **fields,
            }
        )
    )

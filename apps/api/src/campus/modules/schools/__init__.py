"""
Schools module - Tenants and memberships.
"""

from campus.modules.schools.models import School, SchoolStatus, SchoolUser, SubscriptionPlan
from campus.modules.schools.repository import MembershipRepository, SchoolRepository

__all__ = [
    "School",
    "SchoolStatus",
    "SchoolUser",
    "SubscriptionPlan",
    "SchoolRepository",
    "MembershipRepository",
]

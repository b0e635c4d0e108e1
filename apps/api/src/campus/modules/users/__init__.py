"""
Users module - Accounts and school memberships.
"""

from campus.modules.users.models import User, UserRole
from campus.modules.users.repository import UserRepository

__all__ = ["User", "UserRole", "UserRepository"]

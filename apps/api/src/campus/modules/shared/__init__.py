"""
Shared module - Base model and common schemas.
"""

from campus.modules.shared.models import BaseModel, utcnow
from campus.modules.shared.schemas import MessageResponse, PaginationMeta, PaginationParams, UUIDStr

__all__ = ["BaseModel", "utcnow", "MessageResponse", "PaginationMeta", "PaginationParams", "UUIDStr"]

"""Shared request/response schemas."""

from math import ceil
from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, BaseModel, Field


def _canonical_uuid(value: str) -> str:
    return str(UUID(value))


# Entity id taken from a request body: must parse as a UUID and is kept in
# canonical lowercase string form to match the stored ids.
UUIDStr = Annotated[str, AfterValidator(_canonical_uuid)]


class PaginationParams(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        return cls(page=page, limit=limit, total=total, pages=ceil(total / limit) if limit else 0)


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    success: bool = True
    message: str

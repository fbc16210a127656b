"""Response envelope shared by the admin API."""
from typing import Any, Literal

from pydantic import BaseModel


class PaginationMeta(BaseModel):
    total: int
    page: int
    per_page: int
    has_next: bool


class APIResponse(BaseModel):
    """``{"status": ..., "data": ...}`` body returned by every /api/v1 route."""

    status: Literal["success", "error"]
    data: Any = None
    message: str | None = None
    pagination: PaginationMeta | None = None

"""Response envelope pieces shared by every endpoint."""

from __future__ import annotations

from pydantic import BaseModel


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    totalPages: int
    hasMore: bool


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class HealthResponse(BaseModel):
    status: str
    message: str
    timestamp: str

"""Phrase Pydantic schemas"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class PhraseItem(BaseModel):
    id: str
    content: str
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class PhraseTenant(BaseModel):
    id: str
    name: str
    subdomain: str
    theme: Optional[str] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int
    hasNext: Optional[bool] = None
    hasPrev: Optional[bool] = None


class Sorting(BaseModel):
    sortBy: str
    sortOrder: str


class PhraseListResponse(BaseModel):
    """Response for tenant phrase listing"""
    success: bool = True
    data: List[PhraseItem] = Field(default_factory=list)
    count: int
    totalCount: Optional[int] = None
    tenant: PhraseTenant
    pagination: Optional[Pagination] = None
    sorting: Optional[Sorting] = None
    message: Optional[str] = None
    timestamp: Optional[datetime] = None

# FILE: wms/schemas/search.py
from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

SearchType = Literal["ITEM", "ITEM_ENTRY", "TRANSFER", "WITHDRAWAL",
                     "WAREHOUSE", "SUPPLIER", "USER"]


class SearchFilters(BaseModel):
    query: str
    type: Optional[str] = None  # None = every type the caller may see
    limit: int = Field(50, ge=1, le=200)


class SearchMetadata(BaseModel):
    occurred_at: Optional[datetime] = None
    status: Optional[str] = None
    value: Optional[str] = None
    location: Optional[str] = None


class SearchResult(BaseModel):
    id: str
    type: SearchType
    title: str
    description: str
    metadata: SearchMetadata = Field(default_factory=SearchMetadata)

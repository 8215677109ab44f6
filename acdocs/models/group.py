"""
Group Pydantic Models
Many-to-many join between users and categories
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class Group(BaseModel):
    """Stored group"""

    id: str
    name: str
    description: str = ""
    member_ids: List[str] = Field(default_factory=list)
    category_ids: List[str] = Field(default_factory=list)
    created_at: datetime

    class Config:
        frozen = True


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    member_ids: List[str] = Field(default_factory=list)
    category_ids: List[str] = Field(default_factory=list)


class GroupUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    member_ids: Optional[List[str]] = None
    category_ids: Optional[List[str]] = None

"""
Category Pydantic Models
Folders shared with groups, each with its own document types
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class DocumentType(BaseModel):
    """Kind of document a category accepts (contract, invoice, ...)"""

    id: str
    name: str
    category_id: str

    class Config:
        frozen = True


class Category(BaseModel):
    """Stored category"""

    id: str
    name: str
    icon: str = "folder"
    parent_id: Optional[str] = None
    document_types: List[DocumentType] = Field(default_factory=list)
    shared_with_group_ids: List[str] = Field(default_factory=list)
    created_at: datetime

    class Config:
        frozen = True


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1)
    icon: str = "folder"
    parent_id: Optional[str] = None
    shared_with_group_ids: List[str] = Field(default_factory=list)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    icon: Optional[str] = None
    parent_id: Optional[str] = None
    shared_with_group_ids: Optional[List[str]] = None

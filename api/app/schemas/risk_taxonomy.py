"""Risk taxonomy schemas."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class RiskSubcategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=200)


class RiskSubcategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=200)


class RiskSubcategoryResponse(BaseModel):
    subcategory_id: int
    category_id: int
    name: str
    description: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RiskCategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=200)


class RiskCategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=200)


class RiskCategoryResponse(BaseModel):
    category_id: int
    organization_id: int
    name: str
    description: Optional[str] = None
    created_at: datetime
    subcategories: List[RiskSubcategoryResponse] = []

    model_config = ConfigDict(from_attributes=True)


class TaxonomyImportRow(BaseModel):
    category: str = Field(min_length=1, max_length=255)
    subcategory: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = Field(default=None, max_length=200)


class TaxonomyImportRequest(BaseModel):
    rows: List[TaxonomyImportRow]


class TaxonomyImportResult(BaseModel):
    categories_created: int
    subcategories_created: int
    skipped: int

"""Library generation schemas."""
from datetime import datetime
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class SeedItemCreate(BaseModel):
    item_type: Literal["root_cause", "impact", "control", "kri", "kci"]
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    category_hints: List[str] = []
    industry_tags: List[str] = []
    attributes: Optional[dict] = None
    is_active: bool = True


class SeedItemResponse(SeedItemCreate):
    seed_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LibraryGenerateRequest(BaseModel):
    categories: List[str] = Field(description="Selected taxonomy category names")
    industry_type: Optional[str] = Field(
        default=None, description="Defaults to the organization's industry")


class LibraryGenerateResponse(BaseModel):
    log_id: int
    categories_used: List[str]
    industry_type: Optional[str] = None
    counts: Dict[str, int]


class GenerationLogResponse(BaseModel):
    log_id: int
    organization_id: int
    generated_by_id: Optional[int] = None
    industry_type: Optional[str] = None
    categories_used: List[str]
    root_causes_count: int
    impacts_count: int
    controls_count: int
    kris_count: int
    kcis_count: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LibraryEntryResponse(BaseModel):
    id: int
    code: str
    name: str
    description: Optional[str] = None
    category: str
    subcategory: Optional[str] = None
    control_type: Optional[str] = None
    indicator_type: Optional[str] = None
    unit: Optional[str] = None
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

"""KRI schemas."""
from datetime import date, datetime
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class KriCreate(BaseModel):
    kri_code: str = Field(min_length=1, max_length=50)
    kri_name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    indicator_type: Literal["KRI", "KCI"] = "KRI"
    unit: Optional[str] = None


class KriResponse(BaseModel):
    kri_id: int
    organization_id: int
    kri_code: str
    kri_name: str
    description: Optional[str] = None
    indicator_type: str
    unit: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class KriValueCreate(BaseModel):
    measurement_date: date
    value: float
    notes: Optional[str] = None


class KriValueResponse(BaseModel):
    value_id: int
    kri_id: int
    measurement_date: date
    value: float
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

"""Risk appetite and tolerance metric schemas."""
from datetime import date, datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.core.appetite_chain import GapSeverity
from app.core.appetite_governance import validate_thresholds
from app.core.exceptions import ValidationFailed
from app.core.tolerance_evaluation import RagStatus
from app.models.appetite import (
    AppetiteLevel,
    MaterialityType,
    MetricLifecycle,
    MetricType,
    StatementStatus,
)


# ==================== STATEMENTS ====================

class StatementCreate(BaseModel):
    statement_text: str
    effective_from: Optional[date] = None
    next_review_date: Optional[date] = None


class StatementUpdate(BaseModel):
    statement_text: Optional[str] = None
    effective_from: Optional[date] = None
    next_review_date: Optional[date] = None


class SupersedeRequest(BaseModel):
    new_effective_from: Optional[date] = Field(
        default=None, description="Defaults to tomorrow")


class AppetiteCategoryResponse(BaseModel):
    appetite_category_id: int
    statement_id: int
    risk_category: str
    appetite_level: AppetiteLevel
    rationale: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StatementResponse(BaseModel):
    statement_id: int
    organization_id: int
    version_number: int
    statement_text: str
    status: StatementStatus
    effective_from: date
    effective_to: Optional[date] = None
    next_review_date: Optional[date] = None
    approved_by_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    supersedes_statement_id: Optional[int] = None
    superseded_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StatementDetailResponse(StatementResponse):
    categories: List[AppetiteCategoryResponse] = []


class CanDeleteResponse(BaseModel):
    can_delete: bool
    reason: Optional[str] = None


# ==================== APPETITE CATEGORIES ====================

class AppetiteCategoryCreate(BaseModel):
    risk_category: str = Field(min_length=1, max_length=255)
    appetite_level: AppetiteLevel
    rationale: Optional[str] = None


class AppetiteCategoryUpdate(BaseModel):
    appetite_level: Optional[AppetiteLevel] = None
    rationale: Optional[str] = None


# ==================== TOLERANCE METRICS ====================

class DirectionalConfig(BaseModel):
    lookback_days: int = Field(gt=0)
    allowed_change_pct: float = Field(gt=0)
    trend: Literal["INCREASING_IS_BAD", "DECREASING_IS_BAD"]


class ThresholdFields(BaseModel):
    green_min: Optional[float] = None
    green_max: Optional[float] = None
    amber_min: Optional[float] = None
    amber_max: Optional[float] = None
    red_min: Optional[float] = None
    red_max: Optional[float] = None


class MetricCreate(ThresholdFields):
    appetite_category_id: int
    metric_name: str = Field(min_length=1, max_length=255)
    metric_description: Optional[str] = None
    metric_type: MetricType
    unit: Optional[str] = None
    materiality_type: MaterialityType = MaterialityType.INTERNAL
    directional_config: Optional[DirectionalConfig] = None
    kri_id: Optional[int] = None
    effective_from: Optional[date] = None
    # Accepted for compatibility with older clients; new metrics always start inactive
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def check_thresholds(self):
        values = self.model_dump(mode="json")
        try:
            validate_thresholds(values["metric_type"], values)
        except ValidationFailed as exc:
            raise ValueError(exc.message)
        return self

    def to_service_dict(self) -> dict:
        data = self.model_dump(mode="json", exclude={"is_active"})
        data["effective_from"] = self.effective_from
        return data


class MetricUpdate(ThresholdFields):
    metric_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    metric_description: Optional[str] = None
    metric_type: Optional[MetricType] = None
    unit: Optional[str] = None
    materiality_type: Optional[MaterialityType] = None
    directional_config: Optional[DirectionalConfig] = None
    kri_id: Optional[int] = None


class MetricActivateRequest(BaseModel):
    kri_id: Optional[int] = Field(
        default=None, description="Link this KRI before activating, if not already linked")


class MetricResponse(ThresholdFields):
    metric_id: int
    organization_id: int
    appetite_category_id: int
    metric_key: str
    version: int
    metric_name: str
    metric_description: Optional[str] = None
    metric_type: MetricType
    unit: Optional[str] = None
    materiality_type: MaterialityType
    directional_config: Optional[dict] = None
    kri_id: Optional[int] = None
    is_active: bool
    never_activated: bool
    lifecycle: MetricLifecycle
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    activated_at: Optional[datetime] = None
    supersedes_metric_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==================== CHAIN & EVALUATION ====================

class ChainGapResponse(BaseModel):
    category: str
    severity: GapSeverity
    issue: str
    detail: str

    model_config = ConfigDict(from_attributes=True)


class ChainAdvisoryResponse(BaseModel):
    category: str
    issue: str
    detail: str

    model_config = ConfigDict(from_attributes=True)


class ChainValidationResponse(BaseModel):
    is_valid: bool
    statement_id: Optional[int] = None
    statement_version: Optional[int] = None
    categories_checked: int
    gaps: List[ChainGapResponse]
    advisories: List[ChainAdvisoryResponse]

    model_config = ConfigDict(from_attributes=True)


class MetricEvaluationResponse(BaseModel):
    metric_id: int
    metric_name: str
    kri_id: Optional[int] = None
    value: Optional[float] = None
    measurement_date: Optional[date] = None
    status: RagStatus
    threshold: str
    explanation: str

    model_config = ConfigDict(from_attributes=True)


class CategoryEvaluationResponse(BaseModel):
    appetite_category_id: int
    risk_category: str
    appetite_level: str
    status: RagStatus
    metrics: List[MetricEvaluationResponse]

    model_config = ConfigDict(from_attributes=True)


class EnterpriseEvaluationResponse(BaseModel):
    statement_id: Optional[int] = None
    status: RagStatus
    categories: List[CategoryEvaluationResponse]
    red_count: int
    amber_count: int
    green_count: int
    unknown_count: int

    model_config = ConfigDict(from_attributes=True)

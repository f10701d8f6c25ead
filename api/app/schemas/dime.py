"""DIME scoring schemas."""
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

DimeScore = Optional[int]


class DimeScores(BaseModel):
    design: DimeScore = Field(default=None, ge=0, le=3)
    implementation: DimeScore = Field(default=None, ge=0, le=3)
    monitoring: DimeScore = Field(default=None, ge=0, le=3)
    evaluation: DimeScore = Field(default=None, ge=0, le=3)


class EffectivenessResponse(BaseModel):
    effectiveness: float


class ControlInput(DimeScores):
    target: Literal["Likelihood", "Impact"]


class ResidualRiskRequest(BaseModel):
    inherent_likelihood: int = Field(ge=1, le=5)
    inherent_impact: int = Field(ge=1, le=5)
    controls: List[ControlInput] = []


class ResidualRiskResponse(BaseModel):
    residual_likelihood: int
    residual_impact: int
    residual_score: int
    likelihood_effectiveness: float
    impact_effectiveness: float

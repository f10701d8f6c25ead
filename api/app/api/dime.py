"""DIME control scoring routes."""
from fastapi import APIRouter, Depends

from app.core.deps import get_current_user
from app.core.dime import ControlScore, control_effectiveness, residual_risk
from app.models.user import User
from app.schemas.dime import (
    DimeScores,
    EffectivenessResponse,
    ResidualRiskRequest,
    ResidualRiskResponse,
)

router = APIRouter()


@router.post("/effectiveness", response_model=EffectivenessResponse)
def score_control(
    data: DimeScores,
    current_user: User = Depends(get_current_user)
):
    return {"effectiveness": control_effectiveness(
        data.design, data.implementation, data.monitoring, data.evaluation)}


@router.post("/residual", response_model=ResidualRiskResponse)
def score_residual_risk(
    data: ResidualRiskRequest,
    current_user: User = Depends(get_current_user)
):
    """Residual likelihood and impact after the strongest control on each dimension."""
    controls = [
        ControlScore(
            target=control.target,
            design=control.design,
            implementation=control.implementation,
            monitoring=control.monitoring,
            evaluation=control.evaluation,
        )
        for control in data.controls
    ]
    return residual_risk(data.inherent_likelihood, data.inherent_impact, controls)

"""DIME control effectiveness and residual risk scoring.

Each control is scored 0-3 on Design, Implementation, Monitoring and
Evaluation. A control that is not designed or not implemented has no effect,
whatever its other scores. Residual likelihood and impact are reduced by the
most effective control targeting each dimension.
"""
import math
from dataclasses import dataclass
from typing import Iterable, Optional

LIKELIHOOD = "Likelihood"
IMPACT = "Impact"
MAX_DIME_TOTAL = 12.0


@dataclass
class ControlScore:
    target: Optional[str]
    design: Optional[int]
    implementation: Optional[int]
    monitoring: Optional[int] = None
    evaluation: Optional[int] = None


@dataclass
class ResidualRisk:
    residual_likelihood: int
    residual_impact: int
    residual_score: int
    likelihood_effectiveness: float
    impact_effectiveness: float


def control_effectiveness(design: Optional[int], implementation: Optional[int],
                          monitoring: Optional[int], evaluation: Optional[int]) -> float:
    """(D + I + M + E) / 12; zero when D or I is zero or unscored, missing M/E count as zero."""
    if not design or not implementation:
        return 0.0
    return (design + implementation + (monitoring or 0) + (evaluation or 0)) / MAX_DIME_TOTAL


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def reduce_score(inherent: int, effectiveness: float) -> int:
    return max(1, inherent - _round_half_up((inherent - 1) * effectiveness))


def residual_risk(inherent_likelihood: int, inherent_impact: int,
                  controls: Iterable[ControlScore]) -> ResidualRisk:
    best = {LIKELIHOOD: 0.0, IMPACT: 0.0}
    for control in controls:
        if control.target not in best:
            continue
        effectiveness = control_effectiveness(
            control.design, control.implementation, control.monitoring, control.evaluation)
        best[control.target] = max(best[control.target], effectiveness)

    likelihood = reduce_score(inherent_likelihood, best[LIKELIHOOD])
    impact = reduce_score(inherent_impact, best[IMPACT])
    return ResidualRisk(
        residual_likelihood=likelihood,
        residual_impact=impact,
        residual_score=likelihood * impact,
        likelihood_effectiveness=best[LIKELIHOOD],
        impact_effectiveness=best[IMPACT],
    )

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Verdict(str, Enum):
    SAFE_FOR_NOW = "SAFE_FOR_NOW"
    RISKY = "RISKY"
    CRITICAL = "CRITICAL"
    OPTIMAL = "OPTIMAL"


class ConfidenceLevel(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class _Frozen(BaseModel):
    # snake_case in Python, camelCase on the wire
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )


class PrimaryRisk(_Frozen):
    issue: str
    why_it_matters: str
    estimated_risk_at: str


class RecommendedFix(_Frozen):
    action: str
    impact: str


class Confidence(_Frozen):
    level: ConfidenceLevel
    reason: str


class Analysis(_Frozen):
    verdict: Verdict
    headline: str
    primary_risk: PrimaryRisk
    recommended_fix: RecommendedFix
    confidence: Confidence
    next_step: str


class ExecutionPlan(_Frozen):
    total_cost: float
    execution_time: Optional[float] = None
    rows: Optional[float] = None
    actual_rows: Optional[float] = None
    analyzed: bool = False
    plan: Dict[str, Any]

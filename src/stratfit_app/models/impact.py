from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import Field

from .common import ValueObject


class Effort(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class LeverCategory(str, Enum):
    GROWTH = "growth"
    OPERATIONAL = "operational"
    RISK = "risk"


class LeverDirection(str, Enum):
    GROWTH = "growth"
    RISK = "risk"


class Severity(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"


class Quadrant(str, Enum):
    QUICK_WINS = "quick-wins"
    STRATEGIC_BETS = "strategic-bets"
    FILL_INS = "fill-ins"
    MONEY_PITS = "money-pits"


class LeverImpact(ValueObject):
    id: str
    name: str
    current_value: float = Field(..., description="0-100 slider position")
    impact_score: float = Field(..., description="0-100, orders the ranking")
    dollar_impact: int = Field(..., description="ARR dollars per one-point change")
    direction: LeverDirection
    effort: Effort
    category: LeverCategory
    insight: str


class DangerZone(ValueObject):
    lever_id: str
    lever_name: str
    current_value: float
    threshold: float
    severity: Severity
    consequence: str
    time_to_impact: str


class Achievement(ValueObject):
    name: str
    requirement_expression: str
    progress: int = Field(..., description="0-100; reaches 100 exactly when unlocked")
    unlocked: bool
    reward: str
    reward_value: str


class ImpactReport(ValueObject):
    levers: List[LeverImpact]
    top_priority: Optional[LeverImpact] = None
    focus_score: int
    quadrants: Dict[Quadrant, List[str]]
    danger_zones: List[DangerZone]
    achievements: List[Achievement]

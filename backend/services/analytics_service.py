from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional


RiskLevel = Literal["low", "medium", "high"]


@dataclass(frozen=True)
class CaseAnalytics:
    case_strength: int
    success_probability: int
    risk_level: RiskLevel
    key_factors: tuple[str, ...] = field(default_factory=tuple)
    precedents: int = 0

    def to_payload(self) -> dict[str, Any]:
        return {
            "caseStrength": self.case_strength,
            "successProbability": self.success_probability,
            "riskLevel": self.risk_level,
            "keyFactors": list(self.key_factors),
            "precedents": self.precedents,
        }


class AnalyticsService:
    """
    Produces case analytics for a user message and its reply.

    The default service produces nothing; responses then carry
    "analytics": null.
    """

    async def analyze(self, user_text: str, reply_text: str) -> Optional[CaseAnalytics]:
        return None

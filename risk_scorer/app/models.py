"""위험 점수 데이터 모델(Risk scoring data models)."""
from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field

from osv_lookup.app.models import Ecosystem, VulnerabilityRecord

RiskLevel = Literal["Low", "Medium", "High"]


class PackageRiskScore(BaseModel):
    """패키지 위험 점수(Risk score for one declared package)."""

    package: str
    score: int = Field(..., ge=0, le=10)
    level: RiskLevel
    osv: List[VulnerabilityRecord] = Field(default_factory=list)
    ecosystem: Ecosystem


class RiskScoreResult(BaseModel):
    """위험 점수 집계(Scored packages plus overall severity)."""

    scores: List[PackageRiskScore] = Field(default_factory=list)
    overall: RiskLevel = "Low"

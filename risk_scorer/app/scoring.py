"""위험 점수 계산 규칙(Risk scoring rules)."""
from __future__ import annotations

import math
from typing import Dict, List, Sequence

from osv_lookup.app.models import OSVResult

from .models import PackageRiskScore, RiskLevel

MAX_SCORE = 10
MAX_COUNT_BUMP = 3
MAX_SEVERITY_BUMP = 3

LEVEL_ORDER: Dict[str, int] = {"High": 0, "Medium": 1, "Low": 2}


def classify_level(score: int) -> RiskLevel:
    """점수로 등급 결정(>=7 High, >=4 Medium, else Low)."""

    if score >= 7:
        return "High"
    if score >= 4:
        return "Medium"
    return "Low"


def vulnerability_bump(result: OSVResult) -> int:
    """취약점 가산점(Bump from vulnerability count and highest severity)."""

    if not result.vulnerable:
        return 0
    count_bump = min(MAX_COUNT_BUMP, len(result.vulns))
    max_severity = result.max_severity
    severity_bump = min(MAX_SEVERITY_BUMP, math.floor(max_severity / 3)) if max_severity is not None else 0
    return count_bump + max(0, severity_bump)


def final_score(baseline: int, result: OSVResult) -> int:
    """최종 점수(Baseline plus vulnerability bump, capped at 10)."""

    return min(MAX_SCORE, baseline + vulnerability_bump(result))


def sort_scores(scores: Sequence[PackageRiskScore]) -> List[PackageRiskScore]:
    """결과 정렬(Level High→Low, then score descending, then name ascending)."""

    return sorted(scores, key=lambda item: (LEVEL_ORDER[item.level], -item.score, item.package))


def overall_level(sorted_scores: Sequence[PackageRiskScore]) -> RiskLevel:
    """전체 등급(Level of the top entry of an already sorted list)."""

    return sorted_scores[0].level if sorted_scores else "Low"

"""거버넌스 조치 추천 모듈(Governance action recommender).

Pure mapping from overall severity and filename findings to actions. The
ALERT action is additive; exactly one severity-tier action is always
emitted after it.
"""
from __future__ import annotations

from typing import List

from repo_scanner.app.models import ScanFindings
from risk_scorer.app.models import RiskLevel

from .models import RecommendedAction


def recommend_actions(overall: RiskLevel, findings: ScanFindings) -> List[RecommendedAction]:
    """조치 추천(Recommend actions for a repository)."""

    actions: List[RecommendedAction] = []
    if findings.secrets:
        actions.append(
            RecommendedAction(type="ALERT", message=f"Secrets found: {', '.join(findings.secrets)}")
        )

    if overall == "High":
        actions.append(RecommendedAction(type="BLOCK_PR", message="High risk detected. PR must be reviewed."))
    elif overall == "Medium":
        actions.append(RecommendedAction(type="COMMENT", message="Medium risk: review recommended."))
    else:
        actions.append(RecommendedAction(type="PASS", message="Low risk, safe to proceed."))
    return actions

"""워크플로 보안 점검 모델(Workflow security finding models)."""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

FindingSeverity = Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]

SEVERITY_RANK: Dict[str, int] = {"CRITICAL": 4, "HIGH": 3, "MEDIUM": 2, "LOW": 1}


class Finding(BaseModel):
    """규칙 위반 1건(One rule violation in one workflow file)."""

    severity: FindingSeverity
    rule_id: str
    workflow: str
    message: str
    evidence: Optional[Dict[str, Any]] = None
    recommendation: str


class WorkflowScanResult(BaseModel):
    """워크플로 점검 결과(Workflow scan output)."""

    workflows_scanned: int = 0
    findings: List[Finding] = Field(default_factory=list)

"""OSV 조회 데이터 모델(OSV lookup data models)."""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Ecosystem = Literal["npm", "PyPI"]


class PackageIdentity(BaseModel):
    """패키지 식별자(Package name plus ecosystem)."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="패키지 이름(Package name)")
    ecosystem: Ecosystem = Field(..., description="패키지 생태계(Ecosystem)")


class VulnerabilityRecord(BaseModel):
    """취약점 요약 모델(Vulnerability summary returned by OSV)."""

    model_config = ConfigDict(frozen=True)

    id: str
    summary: Optional[str] = None
    severity: Optional[float] = Field(default=None, ge=0, le=10)
    url: Optional[str] = None


class OSVResult(BaseModel):
    """패키지 조회 결과(Lookup result for one package)."""

    model_config = ConfigDict(frozen=True)

    vulnerable: bool = False
    vulns: List[VulnerabilityRecord] = Field(default_factory=list)

    @property
    def max_severity(self) -> Optional[float]:
        """가장 높은 심각도(Highest severity among the records, if any)."""
        scores = [vuln.severity for vuln in self.vulns if vuln.severity is not None]
        return max(scores) if scores else None

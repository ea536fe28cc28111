"""저장소 스캔 데이터 모델(Repository scan data models)."""
from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class RepoRef(BaseModel):
    """저장소 참조(Owner/repository pair)."""

    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


class DependencyDeclaration(BaseModel):
    """매니페스트 파일 원문(Raw manifest file)."""

    path: str = Field(..., description="저장소 내 경로(Path inside the repository)")
    content: str = Field(..., description="파일 원문(Raw file contents)")


class ScanFindings(BaseModel):
    """파일명 기반 발견 사항(Filename-based findings)."""

    secrets: List[str] = Field(default_factory=list, description="민감 파일 경로(Sensitive file paths)")
    anomalies: List[str] = Field(default_factory=list, description="CI 워크플로 경로(CI workflow paths)")


class RepositoryScan(BaseModel):
    """저장소 스캔 결과(Repository scan output)."""

    files: List[str] = Field(default_factory=list)
    deps: List[DependencyDeclaration] = Field(default_factory=list)
    findings: ScanFindings = Field(default_factory=ScanFindings)

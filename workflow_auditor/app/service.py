"""CI 워크플로 보안 점검 서비스(CI workflow security audit service)."""
from __future__ import annotations

from typing import List, Optional, Protocol

import yaml

from common_lib.logger import get_logger
from repo_scanner.app.service import parse_repo_url

from .document import WorkflowDocumentError, load_workflow
from .models import Finding, WorkflowScanResult
from .rules import analyze_document, parse_error_finding, sort_findings

logger = get_logger(__name__)


class WorkflowSource(Protocol):
    """워크플로 원본 제공자(Where workflow files are read from)."""

    async def default_branch(self, owner: str, repo: str) -> str: ...

    async def list_workflows(self, owner: str, repo: str, ref: str) -> List[str]: ...

    async def fetch_text(self, owner: str, repo: str, path: str, ref: str) -> str: ...


def analyze_workflow_text(path: str, text: str) -> List[Finding]:
    """단일 워크플로 분석(Analyze one workflow file's text).

    Invalid, cyclic or over-deep YAML never raises; it becomes a single LOW
    parse-error finding.
    """

    try:
        document = load_workflow(text)
    except (yaml.YAMLError, WorkflowDocumentError, RecursionError) as exc:
        logger.info("워크플로 파싱 실패(Workflow %s could not be parsed): %s", path, exc)
        return [parse_error_finding(path, exc)]
    return analyze_document(path, document)


class WorkflowSecurityService:
    """워크플로 점검 서비스(Audits every workflow file of a repository)."""

    def __init__(self, source: WorkflowSource) -> None:
        self._source = source

    async def scan(self, repo_url: str, ref: Optional[str] = None) -> WorkflowScanResult:
        """워크플로 점검 실행(Scan all workflows at ``ref`` or the default branch).

        Listing failures propagate to the caller; per-file failures become
        parse-error findings so one broken file never hides the others.
        """

        repo = parse_repo_url(repo_url)
        resolved_ref = ref or await self._source.default_branch(repo.owner, repo.repo)
        paths = await self._source.list_workflows(repo.owner, repo.repo, resolved_ref)

        findings: List[Finding] = []
        for path in paths:
            try:
                text = await self._source.fetch_text(repo.owner, repo.repo, path, resolved_ref)
                findings.extend(analyze_workflow_text(path, text))
            except Exception as exc:
                logger.warning("워크플로 점검 실패(Failed to audit workflow %s): %s", path, exc)
                findings.append(parse_error_finding(path, exc))

        logger.info(
            "워크플로 점검 완료(Audited %d workflows in %s: %d findings)",
            len(paths),
            repo.full_name,
            len(findings),
        )
        return WorkflowScanResult(workflows_scanned=len(paths), findings=sort_findings(findings))

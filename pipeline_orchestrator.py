"""저장소 위험 분석 파이프라인 오케스트레이터(Repository risk analysis orchestrator)."""
from __future__ import annotations

import asyncio
from typing import Callable, List, Optional

from pydantic import BaseModel, Field

from action_recommender.app.models import RecommendedAction
from action_recommender.app.service import recommend_actions
from common_lib.ai_clients import ClaudeClient
from common_lib.config import Settings, get_settings
from common_lib.logger import get_logger
from explainer.app.service import ExplanationService
from osv_lookup.app.cache import VulnerabilityCache
from osv_lookup.app.service import OSVLookupService
from repo_scanner.app.models import DependencyDeclaration
from repo_scanner.app.service import GitHubService
from risk_scorer.app.models import PackageRiskScore, RiskLevel
from risk_scorer.app.service import RiskScoringService
from workflow_auditor.app.models import WorkflowScanResult
from workflow_auditor.app.service import WorkflowSecurityService

from src.core.agent_helpers import safe_call
from src.core.context import AnalysisMode, PipelineContext
from src.core.fallback import FallbackProvider
from src.core.utils.timestamps import utc_now_iso

ProgressCallback = Callable[[str, str], None]

logger = get_logger(__name__)

_fallback_provider = FallbackProvider()


class AnalysisResult(BaseModel):
    """저장소 분석 결과(Aggregate result of one pipeline run; never mutated)."""

    success: bool = True
    repo_url: str
    dependencies: List[DependencyDeclaration] = Field(default_factory=list)
    risk_analysis: List[PackageRiskScore] = Field(default_factory=list)
    overall_risk: RiskLevel = "Low"
    recommended_actions: List[RecommendedAction] = Field(default_factory=list)
    cicd_findings: WorkflowScanResult = Field(default_factory=WorkflowScanResult)
    llm_explanation: Optional[str] = None
    updated_at: str = Field(default_factory=utc_now_iso)
    mode: AnalysisMode = "manual"


def _default_progress(step: str, message: str) -> None:
    logger.info("[%s] %s", step, message)


class AnalysisOrchestrator:
    """파이프라인 단계 조율(Coordinates scan, scoring, workflow audit and recommendations)."""

    def __init__(
        self,
        scanner: GitHubService,
        scorer: RiskScoringService,
        workflow_service: WorkflowSecurityService,
        explainer: Optional[ExplanationService] = None,
    ) -> None:
        self._scanner = scanner
        self._scorer = scorer
        self._workflow_service = workflow_service
        self._explainer = explainer or ExplanationService()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "AnalysisOrchestrator":
        """설정 기반 조립(Wire the default collaborators from settings)."""

        settings = settings or get_settings()
        scanner = GitHubService(settings=settings)
        lookup = OSVLookupService(cache=VulnerabilityCache(), settings=settings)
        client = ClaudeClient(settings=settings) if settings.claude_api_key.strip() else None
        return cls(
            scanner=scanner,
            scorer=RiskScoringService(lookup, settings=settings),
            workflow_service=WorkflowSecurityService(scanner),
            explainer=ExplanationService(client),
        )

    @property
    def explainer(self) -> ExplanationService:
        return self._explainer

    async def analyze(
        self,
        repo_url: str,
        mode: AnalysisMode = "manual",
        ref: Optional[str] = None,
        progress_cb: ProgressCallback = _default_progress,
    ) -> AnalysisResult:
        """분석 1회 실행(Run one analysis).

        Scan failures propagate: without dependency data there is nothing to
        score. Workflow audit failures are absorbed into the scan-unavailable
        fallback.
        """

        context = PipelineContext(repo_url=repo_url, mode=mode, ref=ref)
        progress_cb("SCAN", f"저장소 스캔 중(Scanning {repo_url})")
        scan = await self._scanner.scan(repo_url, ref)

        def workflow_fallback() -> WorkflowScanResult:
            context.add_error("WORKFLOW", "workflow audit unavailable")
            return _fallback_provider.fallback_workflow_scan()

        progress_cb("SCORE", f"{len(scan.deps)}개 매니페스트 점수 산정 및 워크플로 점검(Scoring manifests and auditing workflows)")
        risk, cicd = await asyncio.gather(
            self._scorer.score(scan.deps),
            safe_call(
                self._workflow_service.scan(repo_url, ref),
                fallback=workflow_fallback,
                step="WORKFLOW",
                progress_cb=progress_cb,
            ),
        )
        context.package_count = len(risk.scores)
        context.workflows_scanned = cicd.workflows_scanned

        actions = recommend_actions(risk.overall, scan.findings)
        progress_cb("RECOMMEND", f"전체 위험도 {risk.overall}, 조치 {len(actions)}건(Overall {risk.overall})")

        result = AnalysisResult(
            repo_url=repo_url,
            dependencies=scan.deps,
            risk_analysis=risk.scores,
            overall_risk=risk.overall,
            recommended_actions=actions,
            cicd_findings=cicd,
            mode=mode,
        )
        logger.info("분석 완료(Analysis finished): %s", context.summary())
        return result

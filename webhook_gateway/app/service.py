"""웹훅 처리 및 비동기 분석 서비스(Webhook handling and asynchronous analysis service)."""
from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Dict, Optional, Set

from common_lib.config import Settings, get_settings
from common_lib.errors import AuthenticationError, ConfigurationError, InvalidInputError, ResourceNotFound
from common_lib.logger import get_logger
from common_lib.observability import bind_request_id, request_id_ctx
from pipeline_orchestrator import AnalysisOrchestrator, AnalysisResult
from src.core.context import AnalysisMode

from .models import DetailLevel, WebhookEvent
from .normalizer import normalize_event, should_trigger
from .signature import verify_signature
from .state import AnalysisStateStore
from .store import ANALYSES_FILENAME, EVENTS_FILENAME, JsonlLog

logger = get_logger(__name__)


class WebhookService:
    """웹훅 파이프라인(Verifies, normalizes, logs and dispatches deliveries).

    Analyses triggered here run as independent tasks; the caller gets its
    acknowledgement before any of them finishes.
    """

    def __init__(
        self,
        orchestrator: AnalysisOrchestrator,
        settings: Optional[Settings] = None,
        state: Optional[AnalysisStateStore] = None,
        events_log: Optional[JsonlLog] = None,
        analyses_log: Optional[JsonlLog] = None,
    ) -> None:
        settings = settings or get_settings()
        data_dir = Path(settings.data_dir)
        self._settings = settings
        self._orchestrator = orchestrator
        self._state = state or AnalysisStateStore(settings.max_events, settings.max_history_per_repo)
        self._events_log = events_log or JsonlLog(data_dir / EVENTS_FILENAME)
        self._analyses_log = analyses_log or JsonlLog(data_dir / ANALYSES_FILENAME)
        self._results: Dict[str, AnalysisResult] = {}
        self._explanations: Dict[str, str] = {}
        self._pending: Set[asyncio.Task] = set()

    @property
    def state(self) -> AnalysisStateStore:
        return self._state

    @property
    def pending(self) -> int:
        return len(self._pending)

    def rehydrate(self) -> None:
        """로그 재생으로 상태 복원(Restore in-memory state from the logs)."""

        events = self._events_log.load_last_n(self._settings.max_events)
        analyses = self._analyses_log.load_last_n(self._settings.max_analyses_replay)
        self._state.rehydrate(events, analyses)
        logger.info("상태 복원 완료(Rehydrated %d events, %d analyses)", len(events), len(analyses))

    async def handle_delivery(
        self,
        body: bytes,
        signature: Optional[str],
        event_name: Optional[str],
        delivery: Optional[str] = None,
    ) -> WebhookEvent:
        """웹훅 수신 처리(Verify, parse, normalize, log and maybe dispatch).

        A delivery id already in the event feed is acknowledged without being
        logged or analyzed again.

        Raises:
            ConfigurationError: no webhook secret configured
            AuthenticationError: signature missing or wrong
            InvalidInputError: body is not JSON
        """

        secret = self._settings.webhook_secret
        if not secret:
            raise ConfigurationError("DRM_WEBHOOK_SECRET")
        if not verify_signature(secret, body, signature):
            logger.warning("웹훅 서명 불일치(Rejected delivery %s: invalid signature)", delivery)
            raise AuthenticationError("Invalid signature")

        try:
            payload = json.loads(body)
        except ValueError as exc:
            raise InvalidInputError("body", "malformed JSON payload") from exc

        event = normalize_event(event_name, payload, delivery)
        if delivery and self._state.has_delivery(delivery):
            logger.info("중복 전달 무시(Delivery %s already recorded; skipping)", delivery)
            return event
        await self._record_event(event)

        if should_trigger(event) and event.repo_url:
            token = bind_request_id(delivery) if delivery else None
            try:
                self.trigger_analysis(event.repo_url, mode="webhook")
            finally:
                if token is not None:
                    request_id_ctx.reset(token)
        return event

    def trigger_analysis(self, repo_url: str, mode: AnalysisMode = "reanalyze") -> asyncio.Task:
        """비동기 분석 시작(Start an analysis task; failures only reach the logs)."""

        task = asyncio.create_task(self._run_and_record(repo_url, mode))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        logger.info("분석 예약(Scheduled %s analysis for %s)", mode, repo_url)
        return task

    async def _run_and_record(self, repo_url: str, mode: AnalysisMode) -> Optional[AnalysisResult]:
        try:
            result = await self._orchestrator.analyze(repo_url, mode=mode)
        except Exception as exc:
            logger.error("분석 실패(%s pipeline failed for %s): %s", mode, repo_url, exc, exc_info=exc)
            return None
        await self._record_analysis(result)
        logger.info("분석 결과 갱신(Updated %s result for %s)", mode, repo_url)
        return result

    async def analyze_now(self, repo_url: str) -> AnalysisResult:
        """즉시 분석(Synchronous analyze; explanation follows in the background)."""

        result = await self._orchestrator.analyze(repo_url, mode="manual")
        await self._record_analysis(result)
        task = asyncio.create_task(self._cache_explanation(result))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return result

    async def _cache_explanation(self, result: AnalysisResult) -> None:
        text = await self._orchestrator.explainer.explain(result.risk_analysis, result.overall_risk, "short")
        self._explanations[result.repo_url] = text
        logger.info("설명 캐시 저장(Cached short explanation for %s)", result.repo_url)

    async def explain(self, repo_url: str, detail: DetailLevel = "short") -> str:
        """위험 설명 조회(Explanation for the last scan of a repository).

        Raises:
            ResourceNotFound: the repository has never been scanned
        """

        if detail == "short" and repo_url in self._explanations:
            return self._explanations[repo_url]

        result = self._results.get(repo_url)
        if result is None:
            stored = self._state.latest_for(repo_url)
            if stored is None:
                raise ResourceNotFound("scan", repo_url)
            result = AnalysisResult.model_validate(stored)

        text = await self._orchestrator.explainer.explain(result.risk_analysis, result.overall_risk, detail)
        if detail == "short":
            self._explanations[repo_url] = text
        return text

    async def drain(self) -> None:
        """대기 중 작업 완료 대기(Wait for every in-flight task)."""

        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _record_event(self, event: WebhookEvent) -> None:
        record = event.model_dump(mode="json", exclude_none=True)
        self._state.record_event(record)
        await self._events_log.append(record)

    async def _record_analysis(self, result: AnalysisResult) -> None:
        record = result.model_dump(mode="json")
        self._results[result.repo_url] = result
        self._explanations.pop(result.repo_url, None)
        self._state.record_analysis(record)
        await self._analyses_log.append(record)

"""웹훅 게이트웨이 FastAPI 애플리케이션(Webhook gateway FastAPI application)."""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import uvicorn
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from common_lib.config import Settings, get_settings, load_environment
from common_lib.errors import AppException, InvalidInputError, ResourceNotFound
from common_lib.logger import get_logger
from common_lib.observability import RequestIDMiddleware
from pipeline_orchestrator import AnalysisOrchestrator
from repo_scanner.app.service import parse_repo_url
from src.core.errors import DataValidationError, ExternalAPIError

from .models import DetailLevel, RepoRequest
from .service import WebhookService

logger = get_logger(__name__)

MAX_HISTORY_LIMIT = 50


def _require_repo_url(payload: Optional[RepoRequest]) -> str:
    repo_url = payload.repo_url.strip() if payload and payload.repo_url else ""
    if not repo_url:
        raise InvalidInputError("repoUrl", "Missing repoUrl")
    parse_repo_url(repo_url)
    return repo_url


def create_app(
    settings: Optional[Settings] = None,
    orchestrator: Optional[AnalysisOrchestrator] = None,
    service: Optional[WebhookService] = None,
) -> FastAPI:
    """애플리케이션 생성(Build the gateway app with injected collaborators)."""

    settings = settings or get_settings()
    if service is None:
        service = WebhookService(orchestrator or AnalysisOrchestrator.from_settings(settings), settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        service.rehydrate()
        yield
        await service.drain()

    limiter = Limiter(key_func=get_remote_address)

    app = FastAPI(title="Dependency Risk Monitor", lifespan=lifespan)
    app.state.limiter = limiter
    app.state.webhook_service = service
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        logger.warning("AppException: %s (code=%s)", exc.message, exc.error_code, extra={"details": exc.details})
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(DataValidationError)
    async def validation_error_handler(request: Request, exc: DataValidationError) -> JSONResponse:
        error = InvalidInputError(exc.field, exc.reason)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(ExternalAPIError)
    async def upstream_error_handler(request: Request, exc: ExternalAPIError) -> JSONResponse:
        logger.warning("Upstream failure: %s", exc)
        return JSONResponse(
            status_code=502,
            content={"error": {"code": "UPSTREAM_ERROR", "message": str(exc)}},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unexpected error: %s",
            str(exc),
            exc_info=exc,
            extra={"path": request.url.path, "method": request.method},
        )
        return JSONResponse(
            status_code=500,
            content={"error": {"code": "INTERNAL_ERROR", "message": "Unexpected server error"}},
        )

    @app.post("/api/webhooks/github", tags=["webhooks"])
    async def github_webhook(request: Request) -> Dict[str, Any]:
        """GitHub 웹훅 수신(Receive a GitHub delivery; acknowledges before analysis)."""

        body = await request.body()
        await service.handle_delivery(
            body,
            signature=request.headers.get("X-Hub-Signature-256"),
            event_name=request.headers.get("X-GitHub-Event"),
            delivery=request.headers.get("X-GitHub-Delivery"),
        )
        return {"ok": True}

    @app.get("/api/webhooks/events", tags=["webhooks"])
    async def list_events() -> Dict[str, Any]:
        return {"events": service.state.events()}

    @app.get("/api/webhooks/latest", tags=["webhooks"])
    async def latest_analysis(repo_url: Optional[str] = Query(default=None, alias="repoUrl")) -> Dict[str, Any]:
        """최신 분석 조회(Latest analysis for a repository, or for the newest event)."""

        analysis = service.state.latest_for(repo_url) if repo_url else service.state.latest_any()
        if analysis is None:
            raise ResourceNotFound("analysis", repo_url or "any repository")
        return {"analysis": analysis}

    @app.get("/api/webhooks/history", tags=["webhooks"])
    async def analysis_history(
        repo_url: Optional[str] = Query(default=None, alias="repoUrl"),
        limit: int = Query(default=20),
    ) -> Dict[str, Any]:
        if not repo_url:
            raise InvalidInputError("repoUrl", "Missing repoUrl")
        limit = max(1, min(MAX_HISTORY_LIMIT, limit))
        return {"history": service.state.history_for(repo_url, limit)}

    @app.post("/api/webhooks/reanalyze", tags=["webhooks"])
    async def reanalyze(payload: Optional[RepoRequest] = None) -> Dict[str, Any]:
        """수동 재분석(Force the webhook pipeline for a repository)."""

        repo_url = _require_repo_url(payload)
        service.trigger_analysis(repo_url, mode="reanalyze")
        return {"ok": True, "repoUrl": repo_url}

    @app.post("/api/analyze", tags=["analysis"])
    @limiter.limit(settings.analyze_rate_limit)
    async def analyze(request: Request, payload: Optional[RepoRequest] = None) -> Dict[str, Any]:
        """즉시 분석(Analyze a repository and return the result)."""

        repo_url = _require_repo_url(payload)
        result = await service.analyze_now(repo_url)
        return result.model_dump(mode="json")

    @app.get("/api/ai-explain", tags=["analysis"])
    async def ai_explain(
        repo_url: Optional[str] = Query(default=None, alias="repoUrl"),
        detail: DetailLevel = Query(default="short"),
    ) -> Dict[str, str]:
        if not repo_url:
            raise InvalidInputError("repoUrl", "Missing repoUrl")
        return {"explanation": await service.explain(repo_url, detail)}

    @app.get("/health", tags=["health"])
    async def health_check() -> Dict[str, str]:
        """헬스체크 엔드포인트(Health check endpoint)."""

        return {"status": "ok"}

    return app


def build_default_app() -> FastAPI:
    load_environment()
    return create_app()


def run() -> None:
    """게이트웨이 서버 실행(Serve the gateway with uvicorn)."""

    settings = get_settings()
    uvicorn.run(
        "webhook_gateway.app.main:build_default_app",
        factory=True,
        host=settings.gateway_host,
        port=settings.gateway_port,
    )


if __name__ == "__main__":
    run()

"""공통 설정 모듈(Common configuration module)."""
from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """시스템 환경설정(System environment settings)."""

    model_config = SettingsConfigDict(
        env_prefix="DRM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = Field(default="dependency-risk-monitor", description="서비스 이름(Service name)")
    environment: str = Field(default="development", description="실행 환경(Runtime environment)")
    allow_external_calls: bool = Field(
        default=True,
        description="외부 API 호출 허용 여부(Allow outbound API calls in this environment)",
    )

    github_token: str = Field(default="", description="GitHub API 토큰(GitHub API token)")
    github_api_url: str = Field(default="https://api.github.com", description="GitHub REST API URL")
    github_timeout_seconds: float = Field(default=10.0, description="GitHub 요청 타임아웃(GitHub request timeout)")
    github_max_concurrency: int = Field(
        default=5,
        ge=1,
        description="동시 매니페스트 조회 수(Concurrent manifest fetches)",
    )

    osv_api_url: str = Field(default="https://api.osv.dev/v1/query", description="OSV 조회 URL(OSV query URL)")
    osv_timeout_seconds: float = Field(default=5.0, description="OSV 요청 타임아웃(OSV request timeout)")
    osv_cache_ttl_seconds: int = Field(
        default=24 * 60 * 60,
        description="OSV 성공 결과 캐시 TTL(TTL for successful OSV lookups)",
    )
    osv_negative_ttl_seconds: int = Field(
        default=5 * 60,
        description="OSV 실패 결과 캐시 TTL(TTL for failed OSV lookups)",
    )
    osv_max_concurrency: int = Field(default=5, ge=1, description="동시 OSV 조회 수(Concurrent OSV lookups)")

    heuristics_path: Optional[str] = Field(
        default=None,
        description="휴리스틱 목록 파일 경로(Path to heuristic list file, JSON or YAML)",
    )

    webhook_secret: str = Field(default="", description="웹훅 서명 비밀키(Webhook signing secret)")
    data_dir: str = Field(default="data", description="영속 로그 디렉터리(Directory for append-only logs)")
    max_events: int = Field(default=50, ge=1, description="이벤트 피드 최대 길이(Event feed capacity)")
    max_history_per_repo: int = Field(default=20, ge=1, description="저장소별 이력 수(History per repository)")
    max_analyses_replay: int = Field(default=200, ge=1, description="재생할 분석 결과 수(Analyses replayed at start)")

    claude_api_key: str = Field(default="", description="Claude API 키(Claude API key)")
    claude_model: str = Field(default="claude-sonnet-4-5", description="Claude 모델명(Claude model name)")
    explanation_timeout_seconds: float = Field(default=30.0, description="설명 생성 타임아웃(Explanation timeout)")

    analyze_rate_limit: str = Field(default="5/minute", description="즉시 분석 요청 제한(Analyze-now rate limit)")
    gateway_host: str = Field(default="0.0.0.0", description="게이트웨이 바인드 주소(Gateway bind host)")
    gateway_port: int = Field(default=8000, description="게이트웨이 포트(Gateway port)")
    cors_origins: str | list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="허용 CORS 출처(Allowed CORS origins, comma-separated)",
    )

    log_level: str = Field(default="INFO", description="로그 레벨(Log level)")
    log_format: str = Field(default="text", description="로그 형식(Log format: text or json)")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> list[str]:
        """Parse comma-separated origins string into list."""
        if v is None:
            return []
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("[") and v.endswith("]"):
                import json
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        if isinstance(v, list):
            return v
        return []


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """설정 인스턴스 반환(Return a cached settings instance)."""

    return Settings()


def load_environment() -> None:
    """기본 환경변수를 로드(Load base environment variables)."""

    os.environ.setdefault("TZ", "UTC")

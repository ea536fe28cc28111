"""Claude API 클라이언트 구현(Claude API client implementation)."""
from __future__ import annotations

import asyncio
from typing import Any, List, Optional

from anthropic import Anthropic

from ..config import Settings, get_settings
from ..logger import get_logger
from .base import IAIClient

logger = get_logger(__name__)


class ClaudeClient(IAIClient):
    """Claude API 래퍼(Wrapper for Claude API using Anthropic SDK)."""

    def __init__(self, settings: Optional[Settings] = None, max_tokens: int = 1024) -> None:
        settings = settings or get_settings()
        self._api_key = settings.claude_api_key
        self._timeout = settings.explanation_timeout_seconds
        self._allow_external = settings.allow_external_calls
        self._default_model = settings.claude_model
        self._default_max_tokens = max_tokens
        self._client: Optional[Anthropic] = None
        if not self._api_key.strip():
            logger.warning("DRM_CLAUDE_API_KEY is not set; explanations will fall back to defaults.")

    def _get_client(self) -> Anthropic:
        if self._client is None:
            self._client = Anthropic(api_key=self._api_key, timeout=self._timeout)
        return self._client

    async def chat(self, prompt: str, **kwargs: Any) -> str:
        """Claude 채팅 호출(Invoke Claude chat using Anthropic SDK)."""

        if not self._allow_external:
            raise RuntimeError("Claude API disabled by configuration: DRM_ALLOW_EXTERNAL_CALLS=false")
        if not self._api_key.strip():
            raise RuntimeError("DRM_CLAUDE_API_KEY is not configured")

        model = kwargs.pop("model", self._default_model)
        max_tokens = kwargs.pop("max_tokens", self._default_max_tokens)
        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(
                    self._get_client().messages.create,
                    model=model,
                    max_tokens=max_tokens,
                    messages=[{"role": "user", "content": prompt}],
                    **kwargs,
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.info("Claude API 요청 시간 초과(Request timed out after %.1fs)", self._timeout)
            raise RuntimeError("Claude API timeout") from exc
        except Exception as exc:
            logger.warning("Claude API 오류(Error): %s", exc)
            logger.debug("Claude failure details", exc_info=exc)
            raise RuntimeError(f"Claude API error: {exc}") from exc

        texts: List[str] = []
        for block in response.content or []:
            if hasattr(block, "text"):
                texts.append(block.text)
        return "\n".join(texts).strip()

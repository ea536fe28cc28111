"""위험 분석 설명 생성 서비스(Risk explanation generation service)."""
from __future__ import annotations

import json
from typing import Literal, Optional, Sequence

from common_lib.ai_clients import IAIClient
from common_lib.logger import get_logger
from risk_scorer.app.models import PackageRiskScore, RiskLevel
from src.core.agent_helpers import safe_call
from src.core.fallback import FallbackProvider

from .prompts import DETAIL_STYLES, EXPLANATION_PROMPT

logger = get_logger(__name__)

DetailLevel = Literal["short", "detailed"]


def build_prompt(scores: Sequence[PackageRiskScore], overall: RiskLevel, detail: DetailLevel = "short") -> str:
    risk_data = json.dumps([score.model_dump(mode="json") for score in scores], indent=2, ensure_ascii=False)
    return EXPLANATION_PROMPT.format(
        style=DETAIL_STYLES.get(detail, DETAIL_STYLES["short"]),
        risk_data=risk_data,
        overall=overall,
    )


class ExplanationService:
    """설명 생성기(Produces markdown prose for a risk result; never raises)."""

    def __init__(self, client: Optional[IAIClient] = None) -> None:
        self._client = client

    async def explain(
        self,
        scores: Sequence[PackageRiskScore],
        overall: RiskLevel,
        detail: DetailLevel = "short",
    ) -> str:
        if self._client is None:
            logger.info("텍스트 생성 클라이언트 없음(No text-generation client configured)")
            return FallbackProvider.fallback_explanation()

        prompt = build_prompt(scores, overall, detail)
        text = await safe_call(
            self._client.chat(prompt),
            fallback=FallbackProvider.fallback_explanation,
            step="explanation",
        )
        return text or FallbackProvider.fallback_explanation()

"""위험 점수 서비스(Risk scoring service)."""
from __future__ import annotations

import asyncio
from typing import Iterable, List, Optional

from common_lib.config import Settings, get_settings
from common_lib.logger import get_logger
from osv_lookup.app.models import PackageIdentity
from osv_lookup.app.service import OSVLookupService
from repo_scanner.app.models import DependencyDeclaration

from .heuristics import HeuristicRules, load_heuristic_rules
from .manifests import extract_packages
from .models import PackageRiskScore, RiskScoreResult
from .scoring import classify_level, final_score, overall_level, sort_scores

logger = get_logger(__name__)


class RiskScoringService:
    """의존성 위험 점수 산정(Scores declared dependencies of a repository)."""

    def __init__(
        self,
        lookup: OSVLookupService,
        rules: Optional[HeuristicRules] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self._lookup = lookup
        self._rules = rules or load_heuristic_rules(settings.heuristics_path)
        self._max_concurrency = settings.osv_max_concurrency

    async def score(self, declarations: Iterable[DependencyDeclaration]) -> RiskScoreResult:
        """매니페스트 점수 산정(Score every package declared in the manifests)."""

        packages = extract_packages(declarations)
        identities: List[PackageIdentity] = [
            PackageIdentity(name=name, ecosystem=ecosystem)
            for ecosystem in ("npm", "PyPI")
            for name in packages[ecosystem]
        ]

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def score_one(identity: PackageIdentity) -> PackageRiskScore:
            baseline = self._rules.baseline_score(identity.name)
            async with semaphore:
                result = await self._lookup.lookup(identity)
            score = final_score(baseline, result)
            return PackageRiskScore(
                package=identity.name,
                score=score,
                level=classify_level(score),
                osv=list(result.vulns),
                ecosystem=identity.ecosystem,
            )

        outcomes = await asyncio.gather(*(score_one(identity) for identity in identities), return_exceptions=True)

        scores: List[PackageRiskScore] = []
        for identity, outcome in zip(identities, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning(
                    "패키지 점수 산정 실패, 제외(Scoring failed for %s:%s)",
                    identity.ecosystem,
                    identity.name,
                    exc_info=outcome,
                )
                continue
            scores.append(outcome)

        ordered = sort_scores(scores)
        overall = overall_level(ordered)
        logger.info("위험 점수 산정 완료(Scored %d packages, overall=%s)", len(ordered), overall)
        return RiskScoreResult(scores=ordered, overall=overall)

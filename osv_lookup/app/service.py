"""OSV 취약점 조회 서비스 모듈(OSV vulnerability lookup service module)."""
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

import httpx

from common_lib.config import Settings, get_settings
from common_lib.logger import get_logger

from src.core.fallback import FallbackProvider

from .cache import VulnerabilityCache
from .models import Ecosystem, OSVResult, PackageIdentity, VulnerabilityRecord

logger = get_logger(__name__)

# OSV database_specific severity labels (GHSA style) mapped onto the 0-10 scale
SEVERITY_LABEL_SCORES: Dict[str, float] = {
    "CRITICAL": 9.0,
    "HIGH": 7.5,
    "MODERATE": 5.0,
    "MEDIUM": 5.0,
    "LOW": 2.0,
}

_PYPI_HINT = re.compile(r"[A-Z_.]")


def infer_ecosystem(name: str) -> Ecosystem:
    """패키지 이름으로 생태계 추정(Infer ecosystem from a package name).

    Uppercase letters, underscores or dots mean PyPI; everything else is
    treated as npm. Callers that know the manifest type should pass the
    ecosystem explicitly instead.
    """

    return "PyPI" if _PYPI_HINT.search(name) else "npm"


def _parse_severity(vuln: Dict[str, Any]) -> Optional[float]:
    severities = vuln.get("severity")
    if isinstance(severities, list) and severities:
        first = severities[0]
        score = first.get("score") if isinstance(first, dict) else None
        if isinstance(score, (int, float)) and not isinstance(score, bool):
            return min(10.0, max(0.0, float(score)))
        if isinstance(score, str):
            try:
                return min(10.0, max(0.0, float(score)))
            except ValueError:
                pass  # CVSS vector string, try the label below

    specific = vuln.get("database_specific")
    if isinstance(specific, dict):
        label = specific.get("severity")
        if isinstance(label, str):
            return SEVERITY_LABEL_SCORES.get(label.upper())
    return None


def _parse_url(vuln: Dict[str, Any]) -> Optional[str]:
    references = vuln.get("references")
    if not isinstance(references, list):
        return None
    for reference in references:
        if isinstance(reference, dict) and isinstance(reference.get("url"), str):
            return reference["url"]
    return None


def parse_osv_response(data: Any) -> OSVResult:
    """OSV 응답 파싱(Parse an OSV /v1/query response body)."""

    if not isinstance(data, dict):
        return OSVResult()

    records: List[VulnerabilityRecord] = []
    for vuln in data.get("vulns") or []:
        if not isinstance(vuln, dict) or not isinstance(vuln.get("id"), str):
            continue
        summary = vuln.get("summary")
        records.append(
            VulnerabilityRecord(
                id=vuln["id"],
                summary=summary if isinstance(summary, str) else None,
                severity=_parse_severity(vuln),
                url=_parse_url(vuln),
            )
        )
    return OSVResult(vulnerable=bool(records), vulns=records)


class OSVLookupService:
    """OSV 조회 서비스(Cache-first lookup against OSV.dev)."""

    def __init__(
        self,
        cache: Optional[VulnerabilityCache] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = settings or get_settings()
        self._cache = cache if cache is not None else VulnerabilityCache()
        self._api_url = settings.osv_api_url
        self._timeout = settings.osv_timeout_seconds
        self._ttl_seconds = settings.osv_cache_ttl_seconds
        self._negative_ttl_seconds = settings.osv_negative_ttl_seconds
        self._allow_external = settings.allow_external_calls
        self._transport = transport

    @property
    def cache(self) -> VulnerabilityCache:
        return self._cache

    async def lookup(self, package: PackageIdentity) -> OSVResult:
        """패키지 취약점 조회(Look up known vulnerabilities; never raises)."""

        return await self.query(package.name, package.ecosystem)

    async def query(self, name: str, ecosystem: Optional[Ecosystem] = None) -> OSVResult:
        """이름과 생태계로 조회(Query by name, inferring the ecosystem if omitted)."""

        resolved = ecosystem or infer_ecosystem(name)
        cached = self._cache.get(name, resolved)
        if cached is not None:
            logger.debug("OSV cache hit for %s:%s", resolved, name)
            return cached

        if not self._allow_external:
            logger.info("외부 OSV 조회 비활성화됨(External OSV lookups disabled); returning clean result.")
            return FallbackProvider.fallback_osv_result(name)

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    self._api_url,
                    json={"package": {"name": name, "ecosystem": resolved}},
                )
                response.raise_for_status()
                result = parse_osv_response(response.json())
        except httpx.TimeoutException:
            logger.info("OSV 요청 시간 초과(OSV timeout for %s:%s); caching clean result briefly.", resolved, name)
            return self._remember_failure(name, resolved)
        except httpx.HTTPError as exc:
            logger.info("OSV HTTP 오류(OSV HTTP error for %s:%s); caching clean result briefly.", resolved, name)
            logger.debug("OSV failure details", exc_info=exc)
            return self._remember_failure(name, resolved)
        except ValueError as exc:
            logger.warning("OSV 응답 파싱 실패(Failed to parse OSV response for %s:%s): %s", resolved, name, exc)
            return self._remember_failure(name, resolved)
        except Exception as exc:
            logger.error("예상치 못한 OSV 오류(Unexpected OSV error for %s:%s): %s", resolved, name, exc, exc_info=True)
            return self._remember_failure(name, resolved)

        self._cache.set(name, resolved, result, self._ttl_seconds)
        if result.vulnerable:
            logger.info("OSV 조회 성공(%s:%s has %d known vulnerabilities)", resolved, name, len(result.vulns))
        return result

    def _remember_failure(self, name: str, ecosystem: Ecosystem) -> OSVResult:
        fallback = FallbackProvider.fallback_osv_result(name)
        self._cache.set(name, ecosystem, fallback, self._negative_ttl_seconds)
        return fallback

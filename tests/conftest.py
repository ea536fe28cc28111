"""Pytest configuration and shared fixtures."""
import base64
import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from common_lib.config import Settings
from osv_lookup.app.cache import VulnerabilityCache
from osv_lookup.app.models import OSVResult, VulnerabilityRecord
from risk_scorer.app.models import PackageRiskScore
from repo_scanner.app.models import DependencyDeclaration, RepositoryScan, ScanFindings


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Isolated settings: no real secrets, logs under tmp_path."""
    return Settings(
        _env_file=None,
        github_token="",
        webhook_secret="test-secret",
        data_dir=str(tmp_path / "data"),
        claude_api_key="",
        analyze_rate_limit="100/minute",
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(fake_clock) -> VulnerabilityCache:
    return VulnerabilityCache(clock=fake_clock)


@pytest.fixture
def left_pad_scan() -> RepositoryScan:
    """Repository with a single package.json declaring left-pad."""
    return RepositoryScan(
        files=["package.json", "README.md"],
        deps=[
            DependencyDeclaration(
                path="package.json",
                content=json.dumps({"dependencies": {"left-pad": "1.0.0"}}),
            )
        ],
        findings=ScanFindings(),
    )


def make_score(package: str, score: int, level: str, ecosystem: str = "npm") -> PackageRiskScore:
    return PackageRiskScore(package=package, score=score, level=level, osv=[], ecosystem=ecosystem)


def make_vulnerable(*severities: Optional[float]) -> OSVResult:
    return OSVResult(
        vulnerable=bool(severities),
        vulns=[VulnerabilityRecord(id=f"GHSA-{idx}", severity=sev) for idx, sev in enumerate(severities)],
    )


def github_contents(text: str) -> Dict[str, Any]:
    """GitHub contents API body for a file."""
    return {"type": "file", "content": base64.b64encode(text.encode("utf-8")).decode("ascii")}


def json_transport(routes: Dict[str, Any], calls: Optional[List[httpx.Request]] = None) -> httpx.MockTransport:
    """MockTransport answering by URL path; values may be a status int, a body, or a callable."""

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        route = routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if isinstance(route, int):
            return httpx.Response(route, json={"message": "error"})
        if callable(route):
            return route(request)
        return httpx.Response(200, json=route)

    return httpx.MockTransport(handler)


Handler = Callable[[httpx.Request], httpx.Response]

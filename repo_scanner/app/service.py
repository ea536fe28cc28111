"""GitHub 저장소 스캔 서비스(GitHub repository scan service)."""
from __future__ import annotations

import asyncio
import base64
import re
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import httpx

from common_lib.config import Settings, get_settings
from common_lib.logger import get_logger
from common_lib.retry_config import get_retry_decorator
from src.core.errors import DataValidationError, ExternalAPIError

from .models import DependencyDeclaration, RepoRef, RepositoryScan, ScanFindings

logger = get_logger(__name__)

MANIFEST_FILENAMES = (
    "package.json",
    "requirements.txt",
    "pyproject.toml",
    "pipfile",
    "poetry.lock",
    "pom.xml",
    "build.gradle",
)
SECRET_PATTERN = re.compile(r"(\.env|id_rsa|\.pem|secret|key)", re.IGNORECASE)
WORKFLOW_PATTERN = re.compile(r"(^|/)(\.(github|gitlab)/workflows/.*\.yml$)", re.IGNORECASE)
WORKFLOW_DIR = ".github/workflows"
DEFAULT_REF = "main"

_SEGMENT = re.compile(r"^[A-Za-z0-9_.-]+$")


def parse_repo_url(repo_url: str) -> RepoRef:
    """저장소 URL 파싱(Parse ``https://github.com/owner/repo`` or ``owner/repo``)."""

    if not isinstance(repo_url, str) or not repo_url.strip():
        raise DataValidationError("repoUrl", str(repo_url), "repository reference is required")

    cleaned = repo_url.strip()
    if "://" in cleaned:
        parsed = urlparse(cleaned)
        if parsed.netloc.lower() not in {"github.com", "www.github.com"}:
            raise DataValidationError("repoUrl", repo_url, "only github.com repositories are supported")
        cleaned = parsed.path

    parts = [part for part in cleaned.strip("/").split("/") if part]
    if len(parts) < 2:
        raise DataValidationError("repoUrl", repo_url, "expected owner/repo")

    owner, repo = parts[0], parts[1]
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not (_SEGMENT.match(owner) and _SEGMENT.match(repo)):
        raise DataValidationError("repoUrl", repo_url, "owner or repository contains invalid characters")
    return RepoRef(owner=owner, repo=repo)


def is_manifest(path: str) -> bool:
    """관심 매니페스트 여부(Whether the path is a manifest worth fetching)."""

    lowered = path.lower()
    return any(lowered.endswith(name) for name in MANIFEST_FILENAMES)


def classify_findings(files: List[str]) -> ScanFindings:
    """파일명 기반 분류(Classify sensitive files and CI workflow files)."""

    return ScanFindings(
        secrets=[path for path in files if SECRET_PATTERN.search(path)],
        anomalies=[path for path in files if WORKFLOW_PATTERN.search(path)],
    )


class GitHubService:
    """GitHub REST 클라이언트(GitHub REST client for scans and workflow fetches)."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_concurrency: Optional[int] = None,
    ) -> None:
        settings = settings or get_settings()
        self._api_url = settings.github_api_url.rstrip("/")
        self._token = settings.github_token
        self._timeout = settings.github_timeout_seconds
        self._allow_external = settings.allow_external_calls
        self._max_concurrency = max_concurrency or settings.github_max_concurrency
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return httpx.AsyncClient(
            base_url=self._api_url,
            headers=headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    def _ensure_external(self) -> None:
        if not self._allow_external:
            raise ExternalAPIError("GitHub", message="external calls disabled by configuration")

    @get_retry_decorator()
    async def _get_json(
        self, client: httpx.AsyncClient, path: str, params: Optional[Dict[str, str]] = None
    ) -> Any:
        response = await client.get(path, params=params)
        response.raise_for_status()
        return response.json()

    async def default_branch(self, owner: str, repo: str) -> str:
        """기본 브랜치 조회(Resolve the default branch, ``main`` on failure)."""

        self._ensure_external()
        async with self._client() as client:
            try:
                data = await self._get_json(client, f"/repos/{owner}/{repo}")
            except (httpx.HTTPError, ValueError) as exc:
                logger.info("기본 브랜치 조회 실패(Default branch lookup failed for %s/%s): %s", owner, repo, exc)
                return DEFAULT_REF
        branch = data.get("default_branch") if isinstance(data, dict) else None
        return branch if isinstance(branch, str) and branch else DEFAULT_REF

    async def scan(self, repo_url: str, branch: Optional[str] = None) -> RepositoryScan:
        """저장소 스캔(Scan the repository tree and fetch manifests)."""

        ref = parse_repo_url(repo_url)
        self._ensure_external()
        resolved_branch = branch or await self.default_branch(ref.owner, ref.repo)

        async with self._client() as client:
            try:
                tree = await self._get_json(
                    client,
                    f"/repos/{ref.owner}/{ref.repo}/git/trees/{resolved_branch}",
                    params={"recursive": "1"},
                )
            except httpx.HTTPStatusError as exc:
                raise ExternalAPIError("GitHub", exc.response.status_code, "failed to read repository tree") from exc
            except (httpx.HTTPError, ValueError) as exc:
                raise ExternalAPIError("GitHub", message=f"failed to read repository tree: {exc}") from exc

            if not isinstance(tree, dict):
                raise ExternalAPIError("GitHub", message="unexpected tree payload")

            files = [
                entry["path"]
                for entry in (tree.get("tree") or [])
                if isinstance(entry, dict) and entry.get("type") == "blob" and isinstance(entry.get("path"), str)
            ]
            if tree.get("truncated"):
                logger.warning("GitHub 트리 잘림(Tree listing truncated for %s)", ref.full_name)

            semaphore = asyncio.Semaphore(self._max_concurrency)

            async def fetch(path: str) -> Optional[DependencyDeclaration]:
                async with semaphore:
                    try:
                        content = await self._fetch_contents(client, ref.owner, ref.repo, path, resolved_branch)
                    except (httpx.HTTPError, ValueError) as exc:
                        logger.warning("매니페스트 조회 실패(Failed to fetch manifest %s): %s", path, exc)
                        return None
                return DependencyDeclaration(path=path, content=content)

            fetched = await asyncio.gather(*(fetch(path) for path in files if is_manifest(path)))

        deps = [declaration for declaration in fetched if declaration is not None]
        logger.info(
            "저장소 스캔 완료(Scanned %s@%s: %d files, %d manifests)",
            ref.full_name,
            resolved_branch,
            len(files),
            len(deps),
        )
        return RepositoryScan(files=files, deps=deps, findings=classify_findings(files))

    async def list_workflows(self, owner: str, repo: str, ref: str) -> List[str]:
        """워크플로 파일 목록(List workflow files; missing directory yields [])."""

        self._ensure_external()
        async with self._client() as client:
            try:
                data = await self._get_json(client, f"/repos/{owner}/{repo}/contents/{WORKFLOW_DIR}", params={"ref": ref})
            except httpx.HTTPStatusError as exc:
                if exc.response.status_code == 404:
                    return []
                raise ExternalAPIError("GitHub", exc.response.status_code, "failed to list workflows") from exc
            except (httpx.HTTPError, ValueError) as exc:
                raise ExternalAPIError("GitHub", message=f"failed to list workflows: {exc}") from exc

        if not isinstance(data, list):
            return []
        return [
            entry["path"]
            for entry in data
            if isinstance(entry, dict)
            and entry.get("type") == "file"
            and isinstance(entry.get("name"), str)
            and entry["name"].endswith((".yml", ".yaml"))
        ]

    async def fetch_text(self, owner: str, repo: str, path: str, ref: str) -> str:
        """파일 원문 조회(Fetch and decode a file's text)."""

        self._ensure_external()
        async with self._client() as client:
            return await self._fetch_contents(client, owner, repo, path, ref)

    async def _fetch_contents(self, client: httpx.AsyncClient, owner: str, repo: str, path: str, ref: str) -> str:
        data = await self._get_json(client, f"/repos/{owner}/{repo}/contents/{path}", params={"ref": ref})
        if isinstance(data, list):
            raise ValueError(f"Expected file but got directory: {path}")
        content = data.get("content") if isinstance(data, dict) else None
        if not content:
            raise ValueError(f"No content for file: {path}")
        return base64.b64decode(content).decode("utf-8", errors="replace")

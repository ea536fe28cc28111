"""웹훅 게이트웨이 데이터 모델(Webhook gateway data models)."""
from __future__ import annotations

from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from src.core.utils.timestamps import utc_now_iso


class WebhookEvent(BaseModel):
    """정규화된 웹훅 이벤트(Normalized webhook event).

    ``type`` is one of ``ping``, ``push``, ``pull_request``, ``workflow_run``,
    ``unknown`` or the raw event name for other kinds that carry a repository.
    """

    model_config = ConfigDict(extra="allow")

    type: str
    repo_url: Optional[str] = None
    sender: Optional[str] = None
    delivery: Optional[str] = None
    received_at: str = Field(default_factory=utc_now_iso)

    event_name: Optional[str] = None
    branch: Optional[str] = None
    action: Optional[str] = None
    pr_number: Optional[int] = None
    pr_title: Optional[str] = None
    base: Optional[str] = None
    head: Optional[str] = None
    name: Optional[str] = None
    status: Optional[str] = None
    conclusion: Optional[str] = None


class RepoRequest(BaseModel):
    """저장소 지정 요청 본문(Request body naming a repository)."""

    model_config = ConfigDict(populate_by_name=True)

    repo_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("repoUrl", "repo_url"))


DetailLevel = Literal["short", "detailed"]

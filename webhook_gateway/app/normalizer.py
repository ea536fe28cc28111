"""웹훅 이벤트 정규화(Webhook event normalization)."""
from __future__ import annotations

from typing import Any, Dict, Optional

from .models import WebhookEvent

NON_TRIGGERING_TYPES = frozenset({"ping", "unknown"})


def _get(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _text(data: Any, *keys: str) -> Optional[str]:
    value = _get(data, *keys)
    return value if isinstance(value, str) else None


def _number(data: Any, *keys: str) -> Optional[int]:
    value = _get(data, *keys)
    return value if isinstance(value, int) and not isinstance(value, bool) else None


def normalize_event(
    event_name: Optional[str],
    payload: Any,
    delivery: Optional[str] = None,
) -> WebhookEvent:
    """이벤트 정규화(Map a host event payload onto :class:`WebhookEvent`)."""

    repo_url = _text(payload, "repository", "html_url") or None
    common: Dict[str, Any] = {
        "repo_url": repo_url,
        "sender": _text(payload, "sender", "login"),
        "delivery": delivery,
    }

    if event_name == "ping":
        return WebhookEvent(type="ping", **common)

    if repo_url is None or not event_name:
        return WebhookEvent(type="unknown", event_name=event_name, **{**common, "repo_url": None})

    if event_name == "push":
        ref = _text(payload, "ref") or ""
        return WebhookEvent(type="push", branch=ref.replace("refs/heads/", ""), **common)

    if event_name == "pull_request":
        return WebhookEvent(
            type="pull_request",
            action=_text(payload, "action"),
            pr_number=_number(payload, "pull_request", "number"),
            pr_title=_text(payload, "pull_request", "title"),
            base=_text(payload, "pull_request", "base", "ref"),
            head=_text(payload, "pull_request", "head", "ref"),
            **common,
        )

    if event_name == "workflow_run":
        return WebhookEvent(
            type="workflow_run",
            action=_text(payload, "action"),
            name=_text(payload, "workflow_run", "name"),
            status=_text(payload, "workflow_run", "status"),
            conclusion=_text(payload, "workflow_run", "conclusion"),
            branch=_text(payload, "workflow_run", "head_branch"),
            **common,
        )

    return WebhookEvent(type=event_name, **common)


def should_trigger(event: WebhookEvent) -> bool:
    """파이프라인 실행 여부(Whether the event starts a repository analysis)."""

    return bool(event.repo_url) and event.type not in NON_TRIGGERING_TYPES

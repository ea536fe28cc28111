"""저장소별 분석 상태(Process-scoped analysis state)."""
from __future__ import annotations

from collections import deque
from typing import Any, Deque, Dict, Iterable, List, Optional

from src.core.utils.timestamps import normalize_timestamp

Record = Dict[str, Any]


class AnalysisStateStore:
    """이벤트 피드와 저장소별 최신/이력(Event feed plus latest and history per repository).

    Created once at startup and passed to whoever needs it. Every mutation
    replaces a whole value or appends to a bounded deque, so overlapping runs
    never observe partial state.
    """

    def __init__(self, max_events: int = 50, max_history: int = 20) -> None:
        self._max_history = max_history
        self._events: Deque[Record] = deque(maxlen=max_events)
        self._latest: Dict[str, Record] = {}
        self._history: Dict[str, Deque[Record]] = {}

    def record_event(self, event: Record) -> None:
        """이벤트 추가(Newest first; the oldest event drops at capacity)."""
        self._events.appendleft(event)

    def record_analysis(self, analysis: Record) -> None:
        """분석 결과 기록(Last write wins for latest; history is FIFO-bounded)."""

        repo_url = analysis.get("repo_url")
        if not repo_url:
            return
        self._latest[repo_url] = analysis
        history = self._history.get(repo_url)
        if history is None:
            history = self._history.setdefault(repo_url, deque(maxlen=self._max_history))
        history.append(analysis)

    def events(self) -> List[Record]:
        return list(self._events)

    def has_delivery(self, delivery: str) -> bool:
        """수신 이력 확인(Whether a delivery id is still in the event feed)."""
        return any(event.get("delivery") == delivery for event in self._events)

    def latest_for(self, repo_url: str) -> Optional[Record]:
        return self._latest.get(repo_url)

    def latest_any(self) -> Optional[Record]:
        """피드 기준 최신 분석(Latest analysis of the most recent repository in the feed)."""

        for event in self._events:
            repo_url = event.get("repo_url")
            if repo_url and repo_url in self._latest:
                return self._latest[repo_url]
        return None

    def history_for(self, repo_url: str, limit: int) -> List[Record]:
        """이력 조회(Last ``limit`` results, oldest first)."""

        history = list(self._history.get(repo_url) or ())
        return history[-limit:] if limit > 0 else []

    def rehydrate(self, events: Iterable[Record], analyses: Iterable[Record]) -> None:
        """로그 재생(Rebuild state from replayed log records in file order).

        Existing in-memory state is discarded first.
        """

        self._events.clear()
        self._latest.clear()
        self._history.clear()
        for event in events:
            event["received_at"] = normalize_timestamp(event.get("received_at"))
            self.record_event(event)
        for analysis in analyses:
            self.record_analysis(analysis)

"""JSONL 추가 전용 로그(Append-only JSON-lines log)."""
from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List

from common_lib.logger import get_logger

logger = get_logger(__name__)

EVENTS_FILENAME = "webhook-events.jsonl"
ANALYSES_FILENAME = "webhook-analyses.jsonl"


class JsonlLog:
    """JSONL 로그 파일(One JSON object per line, appended whole)."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _write_line(self, line: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")

    async def append(self, record: Dict[str, Any]) -> bool:
        """레코드 추가(Append one record; failures are logged, not raised)."""

        line = json.dumps(record, ensure_ascii=False, default=str)
        async with self._lock:
            try:
                await asyncio.to_thread(self._write_line, line)
            except OSError as exc:
                logger.error("로그 추가 실패(Failed to append to %s): %s", self._path, exc)
                return False
        return True

    def load_last_n(self, n: int) -> List[Dict[str, Any]]:
        """마지막 N줄 로드(Load the last ``n`` records, oldest first).

        Malformed lines are skipped.
        """

        if n <= 0 or not self._path.exists():
            return []
        try:
            lines = [line for line in self._path.read_text(encoding="utf-8").splitlines() if line.strip()]
        except OSError as exc:
            logger.error("로그 읽기 실패(Failed to read %s): %s", self._path, exc)
            return []

        records: List[Dict[str, Any]] = []
        skipped = 0
        for line in lines[-n:]:
            try:
                record = json.loads(line)
            except ValueError:
                skipped += 1
                continue
            if isinstance(record, dict):
                records.append(record)
            else:
                skipped += 1
        if skipped:
            logger.warning("손상된 로그 줄 건너뜀(Skipped %d malformed lines in %s)", skipped, self._path)
        return records

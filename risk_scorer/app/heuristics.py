"""휴리스틱 패키지 목록(Heuristic package lists).

The keyword and package lists are plain configuration data. A deployment
can replace them with a JSON or YAML file via ``DRM_HEURISTICS_PATH``
and tests can build their own :class:`HeuristicRules` fixtures.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field

from common_lib.logger import get_logger

logger = get_logger(__name__)

HIGH_RISK_SCORE = 9
DEPRECATED_SCORE = 8
COMMONLY_TARGETED_SCORE = 5
DEFAULT_SCORE = 2


class HeuristicRules(BaseModel):
    """휴리스틱 규칙 집합(Versioned heuristic rule set)."""

    version: str = "1"
    high_risk_keywords: List[str] = Field(default_factory=list)
    deprecated_packages: List[str] = Field(default_factory=list)
    commonly_targeted_packages: List[str] = Field(default_factory=list)

    def baseline_score(self, package: str) -> int:
        """기본 점수 산정(Heuristic baseline before vulnerability data)."""

        name = package.lower()
        if any(keyword.lower() in name for keyword in self.high_risk_keywords):
            return HIGH_RISK_SCORE
        if name in {entry.lower() for entry in self.deprecated_packages}:
            return DEPRECATED_SCORE
        if name in {entry.lower() for entry in self.commonly_targeted_packages}:
            return COMMONLY_TARGETED_SCORE
        return DEFAULT_SCORE


DEFAULT_RULES = HeuristicRules(
    version="2024.1",
    high_risk_keywords=[
        "eval",
        "exec",
        "unsafe",
        "shell",
        "spawn",
        "child_process",
        "system",
        "subprocess",
        "pickle",
        "crypto-miner",
        "bitcoin",
        "wallet",
        "hashcat",
        "shelljs",
    ],
    deprecated_packages=["request", "event-stream", "left-pad", "hoek", "xmlhttprequest"],
    commonly_targeted_packages=["lodash", "moment", "express", "flask", "axios", "django", "requests", "urllib3"],
)


def load_heuristic_rules(path: Optional[str] = None) -> HeuristicRules:
    """규칙 파일 로드(Load rules from a JSON/YAML file, or the built-in defaults)."""

    if not path:
        return DEFAULT_RULES

    rules_path = Path(path)
    text = rules_path.read_text(encoding="utf-8")
    if rules_path.suffix.lower() in {".yaml", ".yml"}:
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)
    rules = HeuristicRules.model_validate(data or {})
    logger.info("휴리스틱 규칙 로드(Loaded heuristic rules version %s from %s)", rules.version, rules_path)
    return rules

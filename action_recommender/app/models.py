"""거버넌스 조치 모델(Governance action models)."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

ActionType = Literal["ALERT", "BLOCK_PR", "COMMENT", "PASS"]


class RecommendedAction(BaseModel):
    """권장 조치(One recommended governance action)."""

    type: ActionType
    message: str

"""AI 클라이언트 패키지 초기화(AI clients package init)."""
from .base import IAIClient
from .claude import ClaudeClient

__all__ = [
    "IAIClient",
    "ClaudeClient",
]

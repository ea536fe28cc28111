"""설명 프롬프트 템플릿(Explanation prompt templates)."""
from __future__ import annotations

DETAIL_STYLES = {
    "short": "concise",
    "detailed": "detailed, technical",
}

EXPLANATION_PROMPT = """You are a cybersecurity assistant.

Explain the dependency risk analysis in {style} markdown format.

Include:
- Key risky dependencies (and why)
- Safer alternatives
- Project security summary
- Developer recommendations

JSON data:
{risk_data}
Overall risk: {overall}

Return only markdown text (no code blocks).
"""

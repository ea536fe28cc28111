"""저장소 위험 분석 CLI(Repository risk analysis command line)."""
from __future__ import annotations

import argparse
import asyncio
import json
from typing import Any, Dict, Iterable, Optional

from dotenv import load_dotenv

from common_lib.logger import get_logger
from pipeline_orchestrator import AnalysisOrchestrator, ProgressCallback

# Load .env file at startup
load_dotenv()

logger = get_logger(__name__)


def _default_progress(step: str, message: str) -> None:
    """기본 진행 상황 콜백(Default progress callback)."""

    logger.info("[%s] %s", step, message)


async def run_pipeline(
    repo_url: str,
    ref: Optional[str] = None,
    explain: bool = False,
    detail: str = "short",
    progress_cb: ProgressCallback = _default_progress,
    orchestrator: Optional[AnalysisOrchestrator] = None,
) -> Dict[str, Any]:
    """전체 파이프라인을 실행하고 결과 반환(Run the full pipeline and return results)."""

    orchestrator = orchestrator or AnalysisOrchestrator.from_settings()
    result = await orchestrator.analyze(repo_url, mode="manual", ref=ref, progress_cb=progress_cb)
    if explain:
        progress_cb("EXPLAIN", "위험 설명 생성 중(Generating explanation)")
        explanation = await orchestrator.explainer.explain(result.risk_analysis, result.overall_risk, detail)
        result = result.model_copy(update={"llm_explanation": explanation})
    return result.model_dump(mode="json")


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    """커맨드라인 인자 파싱(Parse CLI arguments)."""

    parser = argparse.ArgumentParser(description="저장소 의존성/CI 위험 분석기")
    parser.add_argument("--repo-url", required=True, help="대상 저장소(https://github.com/owner/repo)")
    parser.add_argument("--ref", default=None, help="분석할 브랜치/커밋(Branch or commit, default branch if omitted)")
    parser.add_argument(
        "--explain",
        action="store_true",
        help="AI 설명 포함(Include a generated explanation)",
    )
    parser.add_argument(
        "--detail",
        default="short",
        choices=["short", "detailed"],
        help="설명 상세도(Explanation detail level)",
    )
    return parser.parse_args(list(argv) if argv is not None else None)


async def main_async(args: argparse.Namespace) -> None:
    """비동기 메인 루틴(Async main routine)."""

    result = await run_pipeline(
        repo_url=args.repo_url,
        ref=args.ref,
        explain=args.explain,
        detail=args.detail,
        progress_cb=_default_progress,
    )
    logger.info("Pipeline run completed; emitting JSON result.")
    print(json.dumps(result, indent=2, ensure_ascii=False))


def main() -> None:
    """동기 진입점(Synchronous entrypoint)."""

    asyncio.run(main_async(parse_args()))


if __name__ == "__main__":
    main()

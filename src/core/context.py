"""Pipeline execution context for sharing state across stages.

This module provides a context object to track one analysis run, including
the repository reference, trigger mode and errors absorbed along the way.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from src.core.utils.timestamps import utc_now

AnalysisMode = Literal["manual", "webhook", "reanalyze"]


@dataclass
class PipelineContext:
    """
    Shared execution context for one repository analysis.

    Tracks the trigger, configuration and the errors that optional stages
    absorbed, to provide consistent metadata in logs and diagnostics.
    """

    repo_url: str
    mode: AnalysisMode = "manual"
    ref: Optional[str] = None

    # Execution metadata
    started_at: datetime = field(default_factory=utc_now)

    # Counters populated during pipeline execution
    package_count: int = 0
    workflows_scanned: int = 0

    # Errors encountered during execution (for diagnostics)
    errors: List[str] = field(default_factory=list)

    @property
    def elapsed_seconds(self) -> float:
        """Get elapsed time since pipeline started."""
        return (utc_now() - self.started_at).total_seconds()

    def add_error(self, step: str, message: str) -> None:
        """Record an error encountered during pipeline execution."""
        self.errors.append(f"[{step}] {message}")

    def summary(self) -> Dict[str, Any]:
        """Get a summary of pipeline execution context."""
        return {
            "repo_url": self.repo_url,
            "mode": self.mode,
            "ref": self.ref,
            "package_count": self.package_count,
            "workflows_scanned": self.workflows_scanned,
            "elapsed_seconds": self.elapsed_seconds,
            "error_count": len(self.errors),
        }

"""Fallback data provider for graceful degradation when external APIs fail.

The pipeline uses fallback data when an optional stage fails. This module
centralizes all fallback generation logic in one place for consistency
and ease of testing.
"""

from osv_lookup.app.models import OSVResult
from workflow_auditor.app.models import Finding, WorkflowScanResult

from common_lib.logger import get_logger

logger = get_logger(__name__)

EXPLANATION_UNAVAILABLE = "AI explanation unavailable."


class FallbackProvider:
    """Provides consistent fallback data when external APIs fail."""

    @staticmethod
    def fallback_osv_result(package: str) -> OSVResult:
        """
        Generate fallback vulnerability data.

        Args:
            package: Package name (e.g., 'lodash')

        Returns:
            Clean (non-vulnerable) OSVResult
        """
        logger.debug("Using fallback OSV result for package=%s", package)
        return OSVResult()

    @staticmethod
    def fallback_workflow_scan() -> WorkflowScanResult:
        """
        Generate fallback CI workflow scan result.

        Returns:
            WorkflowScanResult with a single LOW ACTIONS_SCAN_UNAVAILABLE finding
        """
        result = WorkflowScanResult(
            workflows_scanned=0,
            findings=[
                Finding(
                    severity="LOW",
                    rule_id="ACTIONS_SCAN_UNAVAILABLE",
                    workflow="(system)",
                    message="CI/CD workflow security scan unavailable.",
                    recommendation="Check that the source host is reachable and the token can read workflows.",
                )
            ],
        )
        logger.debug("Using fallback workflow scan result")
        return result

    @staticmethod
    def fallback_explanation() -> str:
        """Canned text used when the text-generation call fails."""
        return EXPLANATION_UNAVAILABLE

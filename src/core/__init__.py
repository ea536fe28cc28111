"""Core utilities and abstractions for the repository risk pipeline."""

# Error handling
from src.core.errors import (
    ExternalAPIError,
    PipelineError,
    DataValidationError,
)

# Core components
from src.core.fallback import FallbackProvider
from src.core.context import PipelineContext

# Utilities
from src.core.utils.timestamps import normalize_timestamp, utc_now, utc_now_iso
from src.core.agent_helpers import safe_call

__all__ = [
    # Error classes
    "PipelineError",
    "ExternalAPIError",
    "DataValidationError",
    # Core components
    "FallbackProvider",
    "PipelineContext",
    # Utilities
    "normalize_timestamp",
    "utc_now",
    "utc_now_iso",
    "safe_call",
]

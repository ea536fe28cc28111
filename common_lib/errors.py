"""공통 에러 클래스 정의(Common error classes)."""
from __future__ import annotations

from typing import Any, Dict, Optional


class AppException(Exception):
    """애플리케이션 기본 예외 클래스(Base application exception)."""

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize exception with structured error information.

        Args:
            status_code: HTTP status code (e.g., 400, 401, 404)
            error_code: Machine-readable error code (e.g., "INVALID_SIGNATURE")
            message: Human-readable error message
            details: Additional error context (optional)
        """
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        response: Dict[str, Any] = {
            "error": {
                "code": self.error_code,
                "message": self.message,
            }
        }
        if self.details:
            response["error"]["details"] = self.details
        return response


class InvalidInputError(AppException):
    """유효하지 않은 입력(Invalid input - 400)."""

    def __init__(self, field: str, reason: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            status_code=400,
            error_code="INVALID_INPUT",
            message=f"Invalid input for '{field}': {reason}",
            details=details or {"field": field, "reason": reason},
        )


class AuthenticationError(AppException):
    """인증 실패(Authentication failed - 401)."""

    def __init__(self, reason: str) -> None:
        super().__init__(status_code=401, error_code="INVALID_SIGNATURE", message=reason)


class ResourceNotFound(AppException):
    """자원을 찾을 수 없음(Resource not found - 404)."""

    def __init__(self, resource_type: str, identifier: str) -> None:
        super().__init__(
            status_code=404,
            error_code="RESOURCE_NOT_FOUND",
            message=f"{resource_type.capitalize()} '{identifier}' not found.",
            details={"resource_type": resource_type, "identifier": identifier},
        )


class ConfigurationError(AppException):
    """서버 설정 오류(Server configuration error - 500)."""

    def __init__(self, setting: str) -> None:
        super().__init__(
            status_code=500,
            error_code="CONFIGURATION_ERROR",
            message=f"Server configuration error: {setting} is not configured",
            details={"setting": setting},
        )

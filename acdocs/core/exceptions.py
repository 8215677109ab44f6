"""
Custom Exceptions
Application-specific exception classes
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class AppException(Exception):
    """
    Base application exception

    status_code is the nominal HTTP status for the error kind. Nothing in
    this package serves HTTP; it lets a caller that does map errors to
    responses without a lookup table.
    """

    def __init__(
        self,
        message: str,
        code: str = "app_error",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)


class ValidationException(AppException):
    """Validation error exception"""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="validation_error",
            status_code=400,
            details=details,
        )


class AuthenticationException(AppException):
    """Authentication error exception"""

    def __init__(
        self,
        message: str = "Authentication required",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="authentication_error",
            status_code=401,
            details=details,
        )


class AuthorizationException(AppException):
    """Authorization error exception"""

    def __init__(
        self,
        message: str = "Permission denied",
        permission: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        if permission:
            details["required_permission"] = permission
        super().__init__(
            message=message,
            code="authorization_error",
            status_code=403,
            details=details,
        )


class NotFoundException(AppException):
    """Resource not found exception"""

    def __init__(
        self,
        resource: str = "Resource",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=f"{resource} not found",
            code="not_found",
            status_code=404,
            details=details,
        )


class ConflictException(AppException):
    """Resource conflict exception"""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="conflict",
            status_code=409,
            details=details,
        )


class ConfigurationException(AppException):
    """Invalid static configuration, raised at startup"""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="configuration_error",
            status_code=500,
            details=details,
        )

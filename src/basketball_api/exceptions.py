"""
Exception hierarchy for the Basketball API service core.

Every exception carries an error code, a human-readable message and a
details mapping so it can be logged in structured form or rendered as a
JSON error response.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Optional


class ErrorCode(str, Enum):
    """Enumeration of error codes for consistent error identification."""

    # General errors (1000-1999)
    INTERNAL_SERVER_ERROR = "BA1000"
    VALIDATION_ERROR = "BA1001"

    # Configuration errors (2000-2999)
    CONFIGURATION_ERROR = "BA2000"
    MISSING_REQUIRED_CONFIG = "BA2001"
    INSECURE_SECRET_CONFIG = "BA2002"
    CONFIGURATION_FROZEN = "BA2003"

    # Dependency errors (3000-3999)
    DEPENDENCY_ERROR = "BA3000"
    DEPENDENCY_CONNECTION_FAILED = "BA3001"
    DEPENDENCY_CONNECTION_EXHAUSTED = "BA3002"

    # Monitoring errors (4000-4999)
    HEALTH_CHECK_ERROR = "BA4000"


class BasketballApiException(Exception):
    """
    Base exception class for all Basketball API exceptions.

    Provides structured error information including an error code,
    contextual details and the time the error was raised.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {
            "error_code": self.error_code.value,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp,
            "exception_type": self.__class__.__name__,
        }

    def __str__(self) -> str:
        return f"[{self.error_code.value}] {self.message}"


# Configuration Exceptions
class ConfigurationException(BasketballApiException):
    """Exception raised for configuration errors."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.CONFIGURATION_ERROR,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key

        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class MissingRequiredConfigException(ConfigurationException):
    """Raised at startup when required configuration keys are absent or empty."""

    def __init__(self, missing_keys: Iterable[str], environment: Optional[str] = None):
        self.missing_keys = sorted(missing_keys)
        super().__init__(
            message=f"Missing required environment variables: {', '.join(self.missing_keys)}",
            error_code=ErrorCode.MISSING_REQUIRED_CONFIG,
            details={"missing_keys": self.missing_keys, "environment": environment},
        )


class InsecureSecretConfigException(ConfigurationException):
    """Raised at startup when a secret holds a placeholder or weak value in production."""

    def __init__(self, insecure_keys: Iterable[str], environment: Optional[str] = None):
        self.insecure_keys = sorted(insecure_keys)
        super().__init__(
            message=(
                f"Insecure secrets detected in {environment or 'production'}: "
                f"{', '.join(self.insecure_keys)}"
            ),
            error_code=ErrorCode.INSECURE_SECRET_CONFIG,
            details={"insecure_keys": self.insecure_keys, "environment": environment},
        )


class ConfigurationFrozenException(ConfigurationException):
    """Raised when key registration is attempted after validation froze the configuration."""

    def __init__(self, operation: str):
        super().__init__(
            message=f"Configuration is frozen; cannot {operation} after validation",
            error_code=ErrorCode.CONFIGURATION_FROZEN,
            details={"operation": operation},
        )


# External Service Exceptions
class ExternalServiceException(BasketballApiException):
    """Base class for failures of services this process depends on."""

    def __init__(
        self,
        message: str,
        service_name: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.DEPENDENCY_ERROR,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if service_name:
            details["service_name"] = service_name

        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )
        self.service_name = service_name


class DependencyConnectionException(ExternalServiceException):
    """A single connection attempt to a dependency failed."""

    def __init__(
        self,
        service_name: str,
        attempt: int,
        max_attempts: int,
        cause: Optional[BaseException] = None,
    ):
        details = {"attempt": attempt, "max_attempts": max_attempts}
        if cause is not None:
            details["cause"] = str(cause)
            details["cause_type"] = type(cause).__name__

        super().__init__(
            message=(
                f"Connection attempt {attempt}/{max_attempts} to '{service_name}' failed"
                + (f": {cause}" if cause is not None else "")
            ),
            service_name=service_name,
            error_code=ErrorCode.DEPENDENCY_CONNECTION_FAILED,
            details=details,
        )
        self.attempt = attempt
        self.max_attempts = max_attempts
        self.cause = cause


class DependencyConnectionExhaustedException(ExternalServiceException):
    """All connection attempts to a required dependency failed."""

    def __init__(
        self,
        service_name: str,
        attempts: int,
        last_exception: Optional[BaseException] = None,
    ):
        details: Dict[str, Any] = {"attempts": attempts}
        if last_exception is not None:
            details["last_exception"] = str(last_exception)
            details["last_exception_type"] = type(last_exception).__name__

        super().__init__(
            message=f"Unable to connect to '{service_name}' after {attempts} attempts",
            service_name=service_name,
            error_code=ErrorCode.DEPENDENCY_CONNECTION_EXHAUSTED,
            details=details,
        )
        self.attempts = attempts
        self.last_exception = last_exception


# Monitoring Exceptions
class HealthCheckException(BasketballApiException):
    """Exception raised when a live health probe fails or times out."""

    def __init__(
        self,
        message: str = "Health check error",
        check_name: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if check_name:
            details["check_name"] = check_name

        super().__init__(
            message=message,
            error_code=ErrorCode.HEALTH_CHECK_ERROR,
            details=details,
        )

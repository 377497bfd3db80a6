"""
Standardized exception hierarchy for the wellness engine
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class WellnessEngineError(Exception):
    """
    Base exception for all wellness engine errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise WellnessEngineError(
            message="Failed to append record",
            user_id="alice@example.com",
            operation="append_record",
            context={"record_type": "meal"}
        )
    """

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "An error occurred. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for API responses"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (Caller Input)
# ==========================================

class ValidationError(WellnessEngineError):
    """
    Raised when caller input fails validation

    Examples:
    - Record without user_id, type or timestamp
    - Non-positive XP award

    Example:
        raise ValidationError(
            message="XP amount must be positive",
            field="amount",
            value=-5,
            user_id="alice"
        )
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context={"field": field, "value": value},
            **kwargs
        )


# ==========================================
# Storage Errors
# ==========================================

class StorageError(WellnessEngineError):
    """Key-value persistence layer failed"""

    def __init__(self, message: str, key: Optional[str] = None, **kwargs):
        self.key = key
        super().__init__(
            message=message,
            user_message="We encountered an issue reading or saving your data. Please try again.",
            context={"key": key},
            **kwargs
        )


class StateInconsistencyError(WellnessEngineError):
    """Persisted state violates an engine invariant (e.g. negative XP total)"""

    def __init__(self, message: str, key: Optional[str] = None, **kwargs):
        self.key = key
        super().__init__(
            message=message,
            user_message="Your progress data looks inconsistent. Please contact support.",
            context={"key": key},
            **kwargs
        )


class SerializationError(WellnessEngineError):
    """A payload cannot be safely serialized for caching or persistence"""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            user_message="We couldn't save this result, but it is still available.",
            **kwargs
        )


# ==========================================
# External Service Errors
# ==========================================

class UpstreamServiceError(WellnessEngineError):
    """
    The external text-completion service failed, timed out or returned
    an unusable response
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs
    ):
        self.service = service
        self.status_code = status_code
        super().__init__(
            message=message,
            user_message=f"We're having trouble connecting to {service or 'the insight service'}. Showing general tips instead.",
            context={"service": service, "status_code": status_code},
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(WellnessEngineError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The system is not properly configured. Please contact support.",
            context={"config_key": config_key},
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_external_exception(
    error: Exception,
    operation: str,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> WellnessEngineError:
    """
    Wrap external exceptions (redis, httpx, asyncio timeouts) into our hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context

    Returns:
        Appropriate WellnessEngineError subclass

    Example:
        try:
            await client.rpush(key, value)
        except redis.RedisError as e:
            raise wrap_external_exception(e, operation="append_record", user_id="alice")
    """
    import asyncio
    import httpx
    import redis

    if isinstance(error, WellnessEngineError):
        return error

    if isinstance(error, redis.RedisError):
        return StorageError(
            message=f"Storage operation failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            cause=error
        )

    if isinstance(error, (asyncio.TimeoutError, httpx.TimeoutException)):
        return UpstreamServiceError(
            message=f"Completion request timed out: {str(error) or type(error).__name__}",
            user_id=user_id,
            operation=operation,
            cause=error
        )

    if isinstance(error, httpx.HTTPStatusError):
        return UpstreamServiceError(
            message=f"Completion service returned error: {error.response.status_code}",
            status_code=error.response.status_code,
            user_id=user_id,
            operation=operation,
            cause=error
        )

    return WellnessEngineError(
        message=f"{operation} failed: {str(error)}",
        user_id=user_id,
        operation=operation,
        context=context,
        cause=error
    )

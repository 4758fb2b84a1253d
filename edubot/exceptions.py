"""
Exception hierarchy for the gamification core

Every error carries the user and operation it happened in, logs itself once
on creation, and serializes to the JSON body the API returns. user_message is
shown to students in the app, so it is written in Spanish.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


def _merge_context(extra: Dict[str, Any], kwargs: Dict[str, Any]) -> Dict[str, Any]:
    """Combine subclass context with caller context (pops 'context' from kwargs)"""
    return {**extra, **(kwargs.pop("context", None) or {})}


class EduBotError(Exception):
    """
    Base exception for all edubot errors

    Example:
        raise EduBotError(
            message="Failed to persist counters",
            user_id="student-42",
            operation="record_event",
            context={"event_id": "abc-123"}
        )
    """

    log_level = logging.ERROR
    default_user_message = "Ocurrió un error. Inténtalo de nuevo."

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
        self.user_message = user_message or self.default_user_message
        self.timestamp = datetime.now(timezone.utc)

        self._log()

    def log_fields(self) -> Dict[str, Any]:
        """Structured fields passed as logging `extra`"""
        fields = {
            "error_type": type(self).__name__,
            # 'message' is reserved by LogRecord
            "error_message": self.message,
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
        }
        if self.cause is not None:
            fields["cause"] = repr(self.cause)
        return fields

    def _log(self) -> None:
        logger.log(
            self.log_level,
            f"{type(self).__name__} in {self.operation or 'unknown operation'}: {self.message}",
            extra=self.log_fields(),
            exc_info=self.cause,
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON body for API error responses"""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat(),
        }


# ==========================================
# Input errors
# ==========================================

class ValidationError(EduBotError):
    """
    Input rejected before any counter changes

    Raised for malformed events (missing question_id, score outside 0-10),
    inactive activities, non-positive spend amounts and bad query windows.
    """

    log_level = logging.WARNING

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
            user_message=f"Dato inválido en '{field}': {message}" if field else message,
            context=_merge_context({"field": field, "value": value}, kwargs),
            **kwargs
        )


# ==========================================
# Gamification rule errors
# ==========================================

class GamificationError(EduBotError):
    """A request the gamification rules refuse"""

    log_level = logging.WARNING


class InsufficientCreditsError(GamificationError):
    """Spend amount exceeds the user's credit balance"""

    def __init__(
        self,
        message: str = "Insufficient credits",
        requested: Optional[int] = None,
        available: Optional[int] = None,
        **kwargs
    ):
        self.requested = requested
        self.available = available
        if requested is not None and available is not None:
            user_message = f"Necesitas {requested} créditos y solo tienes {available}."
        else:
            user_message = "No tienes créditos suficientes."
        super().__init__(
            message=message,
            user_message=user_message,
            context=_merge_context({"requested": requested, "available": available}, kwargs),
            **kwargs
        )


class UserAlreadyExistsError(GamificationError):
    """User id is already registered"""

    def __init__(self, message: str = "User already exists", **kwargs):
        super().__init__(message=message, user_message="Este usuario ya está registrado.", **kwargs)


# ==========================================
# Storage errors
# ==========================================

class DatabaseError(EduBotError):
    """Failure in the storage layer"""

    default_user_message = "No pudimos guardar tu progreso. Inténtalo de nuevo."


class ConnectionError(DatabaseError):
    """Database unreachable (answered with 503)"""

    default_user_message = "El servicio no está disponible en este momento. Inténtalo en unos minutos."

    def __init__(self, message: str = "Database connection failed", **kwargs):
        super().__init__(message=message, **kwargs)


class QueryError(DatabaseError):
    """Statement failed after a connection was obtained"""

    def __init__(self, message: str, query: Optional[str] = None, **kwargs):
        self.query = query
        super().__init__(
            message=message,
            context=_merge_context({"query": query}, kwargs),
            **kwargs
        )


class RecordNotFoundError(DatabaseError):
    """Referenced user, activity or question does not exist"""

    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Optional[str] = None,
        **kwargs
    ):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(
            message=message,
            user_message=f"No encontramos {record_type or 'el registro'} '{record_id}'.",
            context=_merge_context({"record_type": record_type, "record_id": record_id}, kwargs),
            **kwargs
        )


class UserNotFoundError(RecordNotFoundError):
    """No user record for the given id"""

    def __init__(self, user_id: str, **kwargs):
        super().__init__(
            message=f"User {user_id} not found",
            record_type="User",
            record_id=user_id,
            user_id=user_id,
            **kwargs
        )


# ==========================================
# Startup errors
# ==========================================

class ConfigurationError(EduBotError):
    """Environment settings rejected by validate_config()"""

    default_user_message = "El servicio no está configurado correctamente."

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        self.config_key = config_key
        super().__init__(
            message=message,
            context=_merge_context({"config_key": config_key}, kwargs),
            **kwargs
        )


def wrap_external_exception(
    error: Exception,
    operation: str,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> EduBotError:
    """
    Translate a driver exception into the hierarchy above

    psycopg.OperationalError becomes ConnectionError, any other psycopg.Error
    becomes QueryError, anything else a plain EduBotError. The original error
    is kept as `cause`.

    Example:
        try:
            row = await queries.get_user(user_id)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="get_user", user_id=user_id)
    """
    # psycopg is only needed once a driver error exists
    import psycopg

    common = dict(user_id=user_id, operation=operation, context=context, cause=error)

    if isinstance(error, psycopg.OperationalError):
        return ConnectionError(message=f"{operation}: database unreachable ({error})", **common)
    if isinstance(error, psycopg.Error):
        return QueryError(message=f"{operation}: query failed ({error})", **common)
    return EduBotError(message=f"{operation} failed: {error}", **common)

"""Error handling utilities for the dispute document generation pipeline."""

from dataclasses import dataclass
from typing import Optional, Dict, Any, List
from enum import Enum


class ErrorType(Enum):
    """Enumeration of error types in the document generation pipeline."""

    # Input Errors
    UNSUPPORTED_DOCUMENT_TYPE = "UNSUPPORTED_DOCUMENT_TYPE"

    # Text Generation Service Errors
    GENERATION_RATE_LIMIT = "GENERATION_RATE_LIMIT"
    GENERATION_TIMEOUT = "GENERATION_TIMEOUT"
    GENERATION_AUTH_ERROR = "GENERATION_AUTH_ERROR"
    GENERATION_INVALID_REQUEST = "GENERATION_INVALID_REQUEST"
    GENERATION_SERVER_ERROR = "GENERATION_SERVER_ERROR"
    GENERATION_PARSE_ERROR = "GENERATION_PARSE_ERROR"

    # Section / Orchestration Errors
    INVALID_GENERATION_OUTPUT = "INVALID_GENERATION_OUTPUT"
    RETRIES_EXHAUSTED = "RETRIES_EXHAUSTED"
    SECTION_FAILED = "SECTION_FAILED"
    ORCHESTRATION_FAILED = "ORCHESTRATION_FAILED"
    FALLBACK_FAILED = "FALLBACK_FAILED"

    # Template Errors
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    TEMPLATE_RENDER_FAILED = "TEMPLATE_RENDER_FAILED"

    # Storage Errors
    STORAGE_WRITE_FAILED = "STORAGE_WRITE_FAILED"
    STORAGE_READ_FAILED = "STORAGE_READ_FAILED"
    SNAPSHOT_NOT_FOUND = "SNAPSHOT_NOT_FOUND"
    SNAPSHOT_INVALID = "SNAPSHOT_INVALID"

    # Configuration Errors
    CONFIG_INVALID = "CONFIG_INVALID"

    # General Errors
    INITIALIZATION_FAILED = "INITIALIZATION_FAILED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


@dataclass
class ErrorContext:
    """
    Context information for errors in the document generation pipeline.

    Attributes:
        error_type: Type of error from ErrorType enum
        message: Human-readable error message
        retryable: Whether repeating the failed operation may succeed
        fallback_action: Optional description of fallback action taken
        details: Optional additional error details
        original_exception: Optional original exception that caused this error
    """

    error_type: ErrorType
    message: str
    retryable: bool
    fallback_action: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    original_exception: Optional[Exception] = None

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error context to dictionary for logging/serialization.

        Returns:
            Dictionary representation of error context
        """
        return {
            "error_type": self.error_type.value,
            "message": self.message,
            "retryable": self.retryable,
            "fallback_action": self.fallback_action,
            "details": self.details or {},
            "original_exception": str(self.original_exception) if self.original_exception else None
        }


def error_message(error: BaseException) -> str:
    """Message without the error-type prefix used by DocumentGenerationError.__str__."""
    context = getattr(error, "context", None)
    if isinstance(context, ErrorContext):
        return context.message
    return str(error)


class DocumentGenerationError(Exception):
    """
    Base exception for all document generation errors.

    This exception wraps errors with additional context so the facade can
    decide between a fallback attempt and a structured failure result.

    Attributes:
        context: ErrorContext with detailed error information
    """

    def __init__(self, context: ErrorContext):
        """
        Initialize document generation error.

        Args:
            context: ErrorContext with error details
        """
        self.context = context
        super().__init__(context.message)

    @property
    def error_type(self) -> ErrorType:
        return self.context.error_type

    @property
    def retryable(self) -> bool:
        return self.context.retryable

    def __str__(self) -> str:
        """String representation of the error."""
        base = f"{self.context.error_type.value}: {self.context.message}"
        if self.context.fallback_action:
            base += f" (Fallback: {self.context.fallback_action})"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of error
        """
        return self.context.to_dict()


class UnsupportedDocumentTypeError(DocumentGenerationError):
    """Raised when the requested document type is missing or unknown."""

    @classmethod
    def for_type(cls, document_type: Any, supported: List[str]) -> "UnsupportedDocumentTypeError":
        if document_type in (None, ""):
            message = "Document type is required"
        else:
            message = f"Unsupported document type: {document_type}"
        context = ErrorContext(
            error_type=ErrorType.UNSUPPORTED_DOCUMENT_TYPE,
            message=message,
            retryable=False,
            details={"document_type": document_type, "supported": supported}
        )
        return cls(context)

    @classmethod
    def for_input(cls, raw_input: Any, supported: List[str]) -> "UnsupportedDocumentTypeError":
        context = ErrorContext(
            error_type=ErrorType.UNSUPPORTED_DOCUMENT_TYPE,
            message=f"Input must be an object carrying document_type, got {type(raw_input).__name__}",
            retryable=False,
            details={"input_type": type(raw_input).__name__, "supported": supported}
        )
        return cls(context)


class GenerationServiceError(DocumentGenerationError):
    """Exception for text-generation service (AWS Bedrock) errors."""

    # Error codes returned by Bedrock mapped to our classification
    ERROR_CODE_MAP = {
        "ThrottlingException": ErrorType.GENERATION_RATE_LIMIT,
        "TooManyRequestsException": ErrorType.GENERATION_RATE_LIMIT,
        "ServiceQuotaExceededException": ErrorType.GENERATION_RATE_LIMIT,
        "RequestTimeout": ErrorType.GENERATION_TIMEOUT,
        "RequestTimeoutException": ErrorType.GENERATION_TIMEOUT,
        "ModelTimeoutException": ErrorType.GENERATION_TIMEOUT,
        "UnauthorizedException": ErrorType.GENERATION_AUTH_ERROR,
        "AccessDeniedException": ErrorType.GENERATION_AUTH_ERROR,
        "UnrecognizedClientException": ErrorType.GENERATION_AUTH_ERROR,
        "ExpiredTokenException": ErrorType.GENERATION_AUTH_ERROR,
        "ValidationException": ErrorType.GENERATION_INVALID_REQUEST,
        "ModelNotReadyException": ErrorType.GENERATION_SERVER_ERROR,
        "ServiceUnavailableException": ErrorType.GENERATION_SERVER_ERROR,
        "InternalServerException": ErrorType.GENERATION_SERVER_ERROR,
    }

    # Only authentication/authorization failures are never worth repeating
    NON_RETRYABLE = {ErrorType.GENERATION_AUTH_ERROR}

    @classmethod
    def classify(cls, error_code: str, status_code: Optional[int]) -> ErrorType:
        """
        Map an error code and HTTP status to an ErrorType.

        The error code wins when it is known; otherwise the HTTP status
        decides (429 rate limit, 401/403 auth, 5xx server).

        Args:
            error_code: Service error code (e.g. "ThrottlingException")
            status_code: HTTP status code if available

        Returns:
            ErrorType classification
        """
        if error_code in cls.ERROR_CODE_MAP:
            return cls.ERROR_CODE_MAP[error_code]
        if status_code == 429:
            return ErrorType.GENERATION_RATE_LIMIT
        if status_code in (401, 403):
            return ErrorType.GENERATION_AUTH_ERROR
        if status_code is not None and status_code >= 500:
            return ErrorType.GENERATION_SERVER_ERROR
        return ErrorType.UNKNOWN_ERROR

    @classmethod
    def from_client_error(
        cls,
        error: Exception,
        operation: str,
        fallback_action: Optional[str] = None
    ) -> "GenerationServiceError":
        """
        Create GenerationServiceError from a botocore ClientError.

        Args:
            error: Original botocore ClientError
            operation: Description of operation that failed
            fallback_action: Optional fallback action description

        Returns:
            GenerationServiceError instance
        """
        error_code = "Unknown"
        error_message = str(error)
        status_code = None

        if hasattr(error, 'response'):
            error_info = error.response.get("Error", {})
            error_code = error_info.get("Code", "Unknown")
            error_message = error_info.get("Message", str(error))
            status_code = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")

        error_type = cls.classify(error_code, status_code)

        context = ErrorContext(
            error_type=error_type,
            message=f"Text generation error during {operation}: {error_message}",
            retryable=error_type not in cls.NON_RETRYABLE,
            fallback_action=fallback_action,
            details={
                "error_code": error_code,
                "status_code": status_code,
                "operation": operation
            },
            original_exception=error
        )

        return cls(context)

    @classmethod
    def transport_failure(cls, error: Exception, operation: str) -> "GenerationServiceError":
        """Create a retryable error for connection/read failures that carry no status."""
        context = ErrorContext(
            error_type=ErrorType.GENERATION_SERVER_ERROR,
            message=f"Text generation transport failure during {operation}: {str(error)}",
            retryable=True,
            details={"operation": operation},
            original_exception=error
        )
        return cls(context)


class InvalidGenerationOutputError(DocumentGenerationError):
    """Raised when the model answered but the JSON is missing, malformed or empty."""

    @classmethod
    def for_section(
        cls,
        section_key: str,
        reason: str,
        raw_text: Optional[str] = None,
        error_type: ErrorType = ErrorType.INVALID_GENERATION_OUTPUT
    ) -> "InvalidGenerationOutputError":
        context = ErrorContext(
            error_type=error_type,
            message=f"Invalid generation output for '{section_key}': {reason}",
            retryable=True,
            details={
                "section_key": section_key,
                "raw_excerpt": (raw_text or "")[:200]
            }
        )
        return cls(context)


class RetryExhaustedError(DocumentGenerationError):
    """Raised when every permitted attempt of an operation has failed."""

    @classmethod
    def after_attempts(
        cls,
        operation: str,
        attempts: int,
        last_error: Exception
    ) -> "RetryExhaustedError":
        """
        Build the final error of a retry loop.

        Args:
            operation: Name of the retried operation
            attempts: Number of attempts made
            last_error: Exception from the final attempt

        Returns:
            RetryExhaustedError carrying the last classification and message
        """
        last_type = getattr(last_error, "error_type", ErrorType.UNKNOWN_ERROR)
        last_message = getattr(getattr(last_error, "context", None), "message", str(last_error))
        context = ErrorContext(
            error_type=ErrorType.RETRIES_EXHAUSTED,
            message=(
                f"{operation} failed after {attempts} attempts "
                f"({last_type.value}): {last_message}"
            ),
            retryable=False,
            details={
                "operation": operation,
                "attempts": attempts,
                "last_error_type": last_type.value,
                "last_error_message": last_message
            },
            original_exception=last_error
        )
        return cls(context)

    @property
    def last_error_type(self) -> ErrorType:
        return ErrorType((self.context.details or {}).get("last_error_type", ErrorType.UNKNOWN_ERROR.value))


class SectionGenerationError(DocumentGenerationError):
    """A single section did not produce usable content."""

    @classmethod
    def wrap(cls, section_key: str, error: Exception) -> "SectionGenerationError":
        cause_type = getattr(error, "error_type", ErrorType.UNKNOWN_ERROR)
        context = ErrorContext(
            error_type=ErrorType.SECTION_FAILED,
            message=f"Section '{section_key}' failed: {str(error)}",
            retryable=False,
            details={"section_key": section_key, "cause_type": cause_type.value},
            original_exception=error
        )
        return cls(context)

    @property
    def section_key(self) -> str:
        return (self.context.details or {}).get("section_key", "unknown_section")


class OrchestrationError(DocumentGenerationError):
    """
    One or more sections failed; fatal to the primary path.

    Attributes:
        failures: Mapping of section key to the error that section raised
        succeeded: Mapping of section key to the fragments that did generate
    """

    def __init__(
        self,
        context: ErrorContext,
        failures: Optional[Dict[str, Exception]] = None,
        succeeded: Optional[Dict[str, Any]] = None
    ):
        super().__init__(context)
        self.failures = failures or {}
        self.succeeded = succeeded or {}

    @classmethod
    def from_failures(
        cls,
        document_type: str,
        failures: Dict[str, Exception],
        succeeded: Dict[str, Any]
    ) -> "OrchestrationError":
        reasons = "; ".join(f"{key}: {err}" for key, err in failures.items())
        context = ErrorContext(
            error_type=ErrorType.ORCHESTRATION_FAILED,
            message=(
                f"{len(failures)} section(s) failed for {document_type} "
                f"[{', '.join(failures)}]: {reasons}"
            ),
            retryable=False,
            fallback_action="Compose fallback document without generated sections",
            details={
                "document_type": document_type,
                "failed_sections": list(failures),
                "succeeded_sections": list(succeeded)
            }
        )
        return cls(context, failures=failures, succeeded=succeeded)


class FallbackError(DocumentGenerationError):
    """The degraded path itself failed; the request cannot produce a document."""

    @classmethod
    def from_errors(cls, primary_error: Exception, fallback_error: Exception) -> "FallbackError":
        primary = error_message(primary_error)
        fallback = error_message(fallback_error)
        context = ErrorContext(
            error_type=ErrorType.FALLBACK_FAILED,
            message=f"Primary generation failed: {primary}; fallback generation failed: {fallback}",
            retryable=False,
            details={
                "primary_error": primary,
                "fallback_error": fallback
            },
            original_exception=fallback_error
        )
        return cls(context)


class TemplateNotFoundError(DocumentGenerationError):
    """No template is registered for a document type."""

    @classmethod
    def for_type(cls, document_type: str, template_name: str) -> "TemplateNotFoundError":
        context = ErrorContext(
            error_type=ErrorType.TEMPLATE_NOT_FOUND,
            message=f"Template '{template_name}' not found for '{document_type}'",
            retryable=False,
            details={"document_type": document_type, "template_name": template_name}
        )
        return cls(context)


class TemplateRenderError(DocumentGenerationError):
    """Compiling or rendering a template raised."""

    @classmethod
    def wrap(cls, document_type: str, error: Exception) -> "TemplateRenderError":
        context = ErrorContext(
            error_type=ErrorType.TEMPLATE_RENDER_FAILED,
            message=f"Failed to render template for '{document_type}': {str(error)}",
            retryable=False,
            details={"document_type": document_type},
            original_exception=error
        )
        return cls(context)


class StorageError(DocumentGenerationError):
    """Exception for object storage errors."""

    @classmethod
    def write_failed(cls, key: str, error: Exception) -> "StorageError":
        context = ErrorContext(
            error_type=ErrorType.STORAGE_WRITE_FAILED,
            message=f"Failed to store '{key}': {str(error)}",
            retryable=True,
            details={"key": key},
            original_exception=error
        )
        return cls(context)

    @classmethod
    def read_failed(cls, key: str, error: Exception) -> "StorageError":
        context = ErrorContext(
            error_type=ErrorType.STORAGE_READ_FAILED,
            message=f"Failed to retrieve '{key}': {str(error)}",
            retryable=True,
            details={"key": key},
            original_exception=error
        )
        return cls(context)

    @classmethod
    def snapshot_not_found(cls, filename: str, tried: List[str]) -> "StorageError":
        context = ErrorContext(
            error_type=ErrorType.SNAPSHOT_NOT_FOUND,
            message=f"Input data not found for {filename}. Tried: {', '.join(tried)}",
            retryable=False,
            details={"filename": filename, "tried": tried}
        )
        return cls(context)

    @classmethod
    def snapshot_invalid(cls, key: str, error: Exception) -> "StorageError":
        context = ErrorContext(
            error_type=ErrorType.SNAPSHOT_INVALID,
            message=f"Stored input data '{key}' could not be parsed: {str(error)}",
            retryable=False,
            details={"key": key},
            original_exception=error
        )
        return cls(context)


class ConfigurationError(DocumentGenerationError):
    """Exception for invalid configuration values."""

    @classmethod
    def invalid(cls, key: str, value: Any, reason: str) -> "ConfigurationError":
        context = ErrorContext(
            error_type=ErrorType.CONFIG_INVALID,
            message=f"Invalid configuration value for '{key}' ({value!r}): {reason}",
            retryable=False,
            details={"key": key}
        )
        return cls(context)


def handle_generation_error(
    error: Exception,
    operation: str,
    logger,
    fallback_action: Optional[str] = None
) -> None:
    """
    Handle text-generation service errors with logging.

    Logs the error at a level matching its retryability and raises a
    GenerationServiceError for upstream handling.

    Args:
        error: Original botocore ClientError
        operation: Description of operation that failed
        logger: Logger instance for error logging
        fallback_action: Optional fallback action description

    Raises:
        GenerationServiceError: Wrapped error with context
    """
    generation_error = GenerationServiceError.from_client_error(
        error=error,
        operation=operation,
        fallback_action=fallback_action
    )

    if generation_error.context.retryable:
        logger.warning(f"Retryable generation error: {generation_error}")
    else:
        logger.error(f"Non-retryable generation error: {generation_error}")

    raise generation_error from error

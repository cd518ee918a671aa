"""Specific error types for the memory assistant."""

from .base import ApplicationError, ErrorCode, ErrorDetails, ErrorLevel, ServiceErrorDetails


class ServiceError(ApplicationError):
    """Error from external service calls."""

    def __init__(
        self,
        message: str,
        details: ServiceErrorDetails | None = None,
        code: ErrorCode = ErrorCode.SERVICE_UNAVAILABLE,
    ):
        super().__init__(
            message=message,
            code=code,
            level=ErrorLevel.ERROR,
            details=details or ServiceErrorDetails(
                source="service",
                operation="external_call",
                service_name="unknown"
            )
        )


class AuthenticationError(ApplicationError):
    """Authentication-related errors."""

    def __init__(self, message: str, details: ErrorDetails | dict | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.AUTHENTICATION_FAILED,
            level=ErrorLevel.WARNING,
            details=details
        )


class NotFoundError(ApplicationError):
    """Requested resource does not exist for this owner."""

    def __init__(self, message: str, details: ErrorDetails | dict | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.NOT_FOUND,
            level=ErrorLevel.INFO,
            details=details
        )


class RateLimitError(ApplicationError):
    """Rate limiting errors."""

    retryable = True

    def __init__(self, message: str, details: ErrorDetails | dict | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.RATE_LIMITED,
            level=ErrorLevel.WARNING,
            details=details
        )


class TimeoutError(ApplicationError):
    """Timeout errors."""

    retryable = True

    def __init__(self, message: str, details: ErrorDetails | dict | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.TIMEOUT,
            level=ErrorLevel.ERROR,
            details=details
        )


class EmbeddingError(ApplicationError):
    """The embedding provider could not embed the query.

    Retrieval is impossible without the query vector, so this blocks the
    whole request.
    """

    def __init__(
        self,
        message: str,
        details: ErrorDetails | dict | None = None,
        retryable: bool = True,
    ):
        super().__init__(
            message=message,
            code=ErrorCode.EMBEDDING_FAILED,
            level=ErrorLevel.ERROR,
            details=details
        )
        self.retryable = retryable


class RetrievalPartialFailure(ApplicationError):
    """One similarity search failed while the request carries on."""

    def __init__(self, message: str, collection: str, details: ErrorDetails | dict | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.RETRIEVAL_PARTIAL,
            level=ErrorLevel.WARNING,
            details=details
        )
        self.collection = collection


class GenerationError(ApplicationError):
    """Generation provider failure.

    ``user_message`` is what the end user sees; ``message`` stays internal.
    """

    user_message = "Une erreur est survenue lors de la génération de la réponse. Veuillez réessayer."

    def __init__(
        self,
        message: str,
        details: ErrorDetails | dict | None = None,
        code: ErrorCode = ErrorCode.GENERATION_FAILED,
        level: ErrorLevel = ErrorLevel.ERROR,
    ):
        super().__init__(message=message, code=code, level=level, details=details)


class GenerationRateLimitError(GenerationError):
    """The provider throttled us."""

    retryable = True
    user_message = "Limite de taux dépassée. Veuillez réessayer dans quelques instants."

    def __init__(self, message: str, details: ErrorDetails | dict | None = None):
        super().__init__(message, details, code=ErrorCode.RATE_LIMITED, level=ErrorLevel.WARNING)


class ContextLengthExceededError(GenerationError):
    """Prompt plus history does not fit the model context window."""

    user_message = "Le contexte est trop long pour ce modèle. Essayez avec moins de contexte."

    def __init__(self, message: str, details: ErrorDetails | dict | None = None):
        super().__init__(message, details, code=ErrorCode.CONTEXT_LENGTH_EXCEEDED)


class GenerationAuthError(GenerationError):
    """Provider rejected our credentials. Internal misconfiguration."""

    user_message = "Le service de génération est temporairement indisponible."

    def __init__(self, message: str, details: ErrorDetails | dict | None = None):
        super().__init__(message, details, code=ErrorCode.AUTHENTICATION_FAILED, level=ErrorLevel.CRITICAL)


class GenerationModelError(GenerationError):
    """Unknown or unavailable model."""

    user_message = "Le modèle demandé n'est pas disponible."

    def __init__(self, message: str, details: ErrorDetails | dict | None = None):
        super().__init__(message, details, code=ErrorCode.MODEL_ERROR)


class GenerationTimeoutError(GenerationError):
    """No token arrived within the configured timeout."""

    retryable = True
    user_message = "La génération a pris trop de temps. Veuillez réessayer."

    def __init__(self, message: str, details: ErrorDetails | dict | None = None):
        super().__init__(message, details, code=ErrorCode.TIMEOUT)


class EmptyGenerationOutput(GenerationError):
    """The stream finished without any text."""

    retryable = True
    user_message = "Désolé, je n'ai pas pu générer de réponse. Veuillez réessayer."

    def __init__(self, message: str = "Generation produced no text", details: ErrorDetails | dict | None = None):
        super().__init__(message, details, code=ErrorCode.EMPTY_GENERATION, level=ErrorLevel.WARNING)


class PersistenceError(ApplicationError):
    """Saving a conversation turn or usage record failed."""

    def __init__(self, message: str, details: ErrorDetails | dict | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.STORAGE_OPERATION,
            level=ErrorLevel.ERROR,
            details=details
        )


class InvalidInputError(ApplicationError):
    """Request content the service cannot accept."""

    def __init__(self, message: str, details: ErrorDetails | dict | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.INVALID_INPUT,
            level=ErrorLevel.WARNING,
            details=details
        )

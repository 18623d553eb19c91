"""Error taxonomy for the generation pipeline and the catalog."""

from typing import Optional
from enum import Enum


NOT_FOUND_PREFIX = "No documents found"


class ErrorCategory(str, Enum):
    """Categories of errors, each mapped to one outward status."""
    NOT_FOUND = "not_found"  # No sample records / unknown object
    CONFLICT = "conflict"  # Tool name owned by another tool
    PARSE = "parse"  # Model output is not usable JSON
    UPSTREAM = "upstream"  # Provider, network, or credentials
    VALIDATION = "validation"  # Bad request fields or names


class ToolSpecError(Exception):
    """Base exception for all pipeline and catalog failures."""
    def __init__(self, message: str, category: ErrorCategory):
        self.message = message
        self.category = category
        super().__init__(message)


class NotFoundError(ToolSpecError):
    """The requested data source has no records or does not exist."""
    def __init__(self, message: str):
        super().__init__(message, ErrorCategory.NOT_FOUND)


class ConflictError(ToolSpecError):
    """A tool with the proposed name already exists."""
    def __init__(self, message: str, name: Optional[str] = None):
        self.name = name
        super().__init__(message, ErrorCategory.CONFLICT)


class ParseFailure(ToolSpecError):
    """Model output could not be parsed or validated as a tool specification."""
    def __init__(self, message: str):
        super().__init__(message, ErrorCategory.PARSE)


class UpstreamFailure(ToolSpecError):
    """A language-model provider could not be used."""
    def __init__(self, message: str, provider: Optional[str] = None):
        self.provider = provider
        super().__init__(message, ErrorCategory.UPSTREAM)


class ConfigurationError(UpstreamFailure):
    """Provider credentials or settings are missing."""


class GenerationFailure(UpstreamFailure):
    """Provider call failed or returned nothing."""
    def __init__(self, message: str, provider: Optional[str] = None, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message, provider=provider)


class ValidationFailure(ToolSpecError):
    """Request fields or tool names are invalid."""
    def __init__(self, message: str):
        super().__init__(message, ErrorCategory.VALIDATION)


_STATUS_BY_CATEGORY = {
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.PARSE: 500,
    ErrorCategory.UPSTREAM: 500,
}


def status_for_error(error: Exception) -> int:
    """
    Pick the HTTP status for a failure.

    Typed errors map by category. Anything else falls back to sniffing the
    message prefix so that failures raised below the pipeline (for example a
    plain exception carrying "No documents found ...") still map to 404.

    Args:
        error: The exception to classify

    Returns:
        HTTP status code
    """
    if isinstance(error, ToolSpecError):
        return _STATUS_BY_CATEGORY[error.category]

    message = str(error)
    if message.startswith(NOT_FOUND_PREFIX):
        return 404
    if "already exists" in message:
        return 409
    return 500


def wrap_llm_error(error: Exception, provider: str) -> GenerationFailure:
    """
    Wrap a provider SDK or HTTP error into a GenerationFailure.

    The upstream message is kept so the caller can show it verbatim.

    Args:
        error: Original exception
        provider: Provider name ('openai', 'anthropic', 'watsonx')

    Returns:
        GenerationFailure carrying the upstream message and status code
    """
    if isinstance(error, GenerationFailure):
        return error

    status_code = getattr(error, "status_code", None)
    if status_code is None:
        response = getattr(error, "response", None)
        status_code = getattr(response, "status_code", None)

    error_str = str(error) or type(error).__name__
    error_lower = error_str.lower()

    if status_code in (401, 403) or "unauthorized" in error_lower or "authentication" in error_lower:
        return GenerationFailure(f"{provider} authentication failed: {error_str}", provider, status_code)

    if status_code == 429 or "rate limit" in error_lower:
        return GenerationFailure(f"{provider} rate limit exceeded: {error_str}", provider, status_code)

    if any(keyword in error_lower for keyword in ["connection", "timeout", "timed out", "network"]):
        return GenerationFailure(f"{provider} network error: {error_str}", provider, status_code)

    if status_code is not None:
        return GenerationFailure(f"{provider} API error ({status_code}): {error_str}", provider, status_code)

    return GenerationFailure(f"{provider} error: {error_str}", provider)

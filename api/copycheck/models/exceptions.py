"""Custom exception classes for the copycheck API.

Only ``InvalidInput`` is meant to reach the caller. Model failures
(``UpstreamGenerationFailure``, ``MalformedResponse``) are absorbed by the
checker pipeline and turned into a degraded, still complete, result.
"""

from typing import Dict, Any, Optional, List
from fastapi import HTTPException


class CopyCheckBaseException(Exception):
    """Base exception for all copycheck errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class UpstreamGenerationFailure(CopyCheckBaseException):
    """Raised when the generative model call fails or returns no usable text."""

    def __init__(self,
                 message: str,
                 status_code: Optional[int] = None,
                 model: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        self.model = model
        upstream_details = details or {}
        if model:
            upstream_details["model"] = model
        if status_code:
            upstream_details["upstream_status"] = status_code
        super().__init__(message, upstream_details)


class MalformedResponse(CopyCheckBaseException):
    """Raised when no JSON object can be located in a model response."""

    def __init__(self, raw: str, reason: str = "No JSON object found in model response"):
        self.raw = raw
        super().__init__(reason, {"raw_length": len(raw or "")})


class InvalidInput(CopyCheckBaseException):
    """Raised when the caller supplied nothing that can be checked."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Invalid input for '{field}': {message}", {"field": field})


class GuardrailsValidationException(CopyCheckBaseException):
    """Raised when a rulebook fails its JSON schema contract."""

    def __init__(self, contract_name: str, errors: List[str]):
        self.contract_name = contract_name
        self.validation_errors = errors
        message = f"Guardrails validation failed for {contract_name}"
        details = {"contract": contract_name, "validation_errors": errors}
        super().__init__(message, details)


# HTTP Exception converters for FastAPI
def to_http_exception(exc: CopyCheckBaseException, status_code: int = 500) -> HTTPException:
    """Convert custom exception to HTTPException for FastAPI."""
    detail = {
        "error": exc.__class__.__name__,
        "message": exc.message,
        **exc.details
    }
    return HTTPException(status_code=status_code, detail=detail)


def invalid_input_to_http_exception(exc: InvalidInput) -> HTTPException:
    """Convert a rejected request to HTTP 400."""
    return to_http_exception(exc, status_code=400)


def upstream_to_http_exception(exc: UpstreamGenerationFailure) -> HTTPException:
    """Upstream failures that escape the pipeline become a bad gateway."""
    status_code = 429 if exc.status_code == 429 else 502
    return to_http_exception(exc, status_code=status_code)


def guardrails_to_http_exception(exc: GuardrailsValidationException) -> HTTPException:
    """A broken rulebook is a server-side configuration error."""
    detail = {
        "error": "RulebookConfigError",
        "message": exc.message,
        "guardrails": exc.validation_errors
    }
    return HTTPException(status_code=500, detail=detail)


# Exception handler registry
EXCEPTION_HANDLERS = {
    InvalidInput: invalid_input_to_http_exception,
    UpstreamGenerationFailure: upstream_to_http_exception,
    GuardrailsValidationException: guardrails_to_http_exception,
}

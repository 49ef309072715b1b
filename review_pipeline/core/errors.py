"""
Pipeline Errors
===============
Exception taxonomy for the review pipeline.

Recovered locally (logged, neutral fallback):
    ParseStructureError     — malformed or unrecognised report shape
    AuthConfigurationError  — LLM API key missing / blank
    ProviderError           — LLM provider returned non-2xx or transport failed
    MalformedResponseError  — 2xx response without the expected completion path

Fatal (propagate to the caller, non-zero exit):
    PublishError            — feedback publisher failed
    ConfigurationError      — settings missing or invalid before the run starts
"""
from typing import Optional


class ReviewPipelineError(Exception):
    """Base class for every error raised by the review pipeline."""


class ParseStructureError(ReviewPipelineError):
    """A report could not be mapped onto any known schema."""


class ConfigurationError(ReviewPipelineError):
    """Run configuration is missing or invalid."""


class PublishError(ReviewPipelineError):
    """The feedback publisher failed to deliver comments or the summary."""


# ---------------------------------------------------------------------------
# LLM stage errors
# ---------------------------------------------------------------------------
class LLMError(ReviewPipelineError):
    """Base class for failures of a single LLM call."""


class AuthConfigurationError(LLMError):
    """The API key environment variable is unset or blank."""


class ProviderError(LLMError):
    """
    The provider rejected the request or could not be reached.

    ``status_code`` is None when the failure happened below HTTP
    (connection refused, timeout).
    """

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class MalformedResponseError(LLMError):
    """A successful response did not contain a completion where expected."""

"""Error taxonomy shared by services and the HTTP layer."""

from __future__ import annotations


class ComplianceReviewError(Exception):
    """Base class for errors surfaced to the caller as ``{"error": message}``."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ComplianceReviewError):
    """Raised when required input is missing or malformed."""

    status_code = 400


class NotFoundError(ComplianceReviewError):
    """Raised when a referenced project or finding does not exist."""

    status_code = 404


class WorkflowStateError(ComplianceReviewError):
    """Raised when a transition is not allowed from the project's current state."""

    status_code = 409


class UpstreamFormatError(ComplianceReviewError):
    """Raised when the generation backend returns text that is not JSON."""

    status_code = 500


class LLMNotConfiguredError(ComplianceReviewError):
    """Raised when the external LLM endpoint has not been configured."""

    status_code = 500


class ReviewTimeoutError(ComplianceReviewError):
    """Raised when review generation does not finish within the configured timeout."""

    status_code = 504

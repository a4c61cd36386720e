"""Review request/response contract: prompt, generation backend, normalization."""

from .llm import OpenAICompatibleBackend, ReviewBackend, StubReviewBackend, build_backend
from .prompt import build_prompt
from .service import ReviewService, normalize_review_payload

__all__ = [
    "OpenAICompatibleBackend",
    "ReviewBackend",
    "ReviewService",
    "StubReviewBackend",
    "build_backend",
    "build_prompt",
    "normalize_review_payload",
]

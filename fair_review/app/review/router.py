"""REST endpoint for one-shot document review."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from fair_review.app.core import dependencies

from . import schemas
from .service import ReviewService

router = APIRouter(tags=["review"])


@router.post(
    "/review",
    response_model=schemas.ReviewResponse,
    responses={400: {"model": schemas.ErrorResponse}, 500: {"model": schemas.ErrorResponse}},
)
def review_document(
    payload: Any = Body(default=None),
    review_service: ReviewService = Depends(dependencies.get_review_service),
):
    return review_service.review(payload)

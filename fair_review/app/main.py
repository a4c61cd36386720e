"""Fair-competition compliance review FastAPI application."""

from __future__ import annotations

import logging
import sys

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fair_review.app.common.errors import ComplianceReviewError
from fair_review.app.core.config import settings
from fair_review.app.core.database import init_db
from fair_review.app.knowledge.router import router as knowledge_router
from fair_review.app.projects.router import router as projects_router
from fair_review.app.review.router import router as review_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    init_db()
    app = FastAPI(title=settings.app_name, version="0.1.0")

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    api_prefix = settings.api_prefix.rstrip("/")
    app.include_router(review_router, prefix=api_prefix)
    app.include_router(projects_router, prefix=api_prefix)
    app.include_router(knowledge_router, prefix=api_prefix)

    # Exception Handlers
    @app.exception_handler(ComplianceReviewError)
    async def compliance_error_handler(request: Request, exc: ComplianceReviewError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "请求参数不合法") if errors else "请求参数不合法"
        return JSONResponse(
            status_code=400,
            content={"error": message},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"处理请求失败: {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={"error": "服务器内部错误"},
        )

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()


def run() -> None:
    """Entry point for running the API server as a standalone process."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logger.info(f"Server listening at http://localhost:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()

"""AL PR Reviewer - FastAPI entry point."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.config import settings
from src.core.exceptions import ApiException
from src.core.logging import get_logger
from src.core.schemas.responses import ErrorResponse, HealthResponse
from src.services.github.routes import router as github_router

logger = get_logger("main")

app = FastAPI(
    title="AL PR Reviewer",
    description="LLM-powered review of Business Central AL pull requests",
    version="0.1.0",
)


@app.exception_handler(ApiException)
async def api_exception_handler(request: Request, exc: ApiException) -> JSONResponse:
    """Handle custom API exceptions and return structured error response."""
    logger.warning(f"API error: {exc.message} (status={exc.status_code})")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=exc.message,
            details=exc.details if exc.details else None,
        ).model_dump(),
    )


app.include_router(github_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint with the active review settings."""
    return {
        "service": "al-pr-reviewer",
        "version": "0.1.0",
        "status": "running",
        "review": {
            "model": settings.review_model,
            "max_comments": settings.max_comments,
            "context_radius": settings.context_radius,
            "include_context_lines": settings.whitelist_include_context,
        },
    }


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse()


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting AL PR Reviewer on {settings.host}:{settings.port}")
    uvicorn.run(
        "src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )

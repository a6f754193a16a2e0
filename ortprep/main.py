"""Main FastAPI application for the ORT Prep service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
import structlog
from prometheus_fastapi_instrumentator import Instrumentator

from ortprep.core.config import settings
from ortprep.core.logging import setup_logging
from ortprep.core.database import init_db, get_db
from ortprep.core.dependencies import close_http_client
from ortprep.routers import ai, full_tests, gamification, lessons, mini_tests

# Setup structured logging
setup_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle manager."""
    logger.info("Starting ORT Prep service", version=settings.APP_VERSION)

    await init_db()

    logger.info("ORT Prep service initialized successfully")

    yield

    await close_http_client()
    logger.info("Shutting down ORT Prep service")


app = FastAPI(
    title=settings.APP_NAME,
    description="Gamification, adaptive mini-tests and AI-generated content for ORT math preparation",
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production() else None,
    redoc_url="/redoc" if not settings.is_production() else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Middleware cannot be added once the app has started, so instrument here
if settings.ENABLE_METRICS:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics")

app.include_router(gamification.router, prefix="/api/gamification", tags=["gamification"])
app.include_router(mini_tests.router, prefix="/api/mini-tests", tags=["mini-tests"])
app.include_router(lessons.router, prefix="/api/lessons", tags=["lessons"])
app.include_router(full_tests.router, prefix="/api/tests", tags=["tests"])
app.include_router(ai.router, prefix="/api/ai", tags=["ai"])


@app.get("/", tags=["root"])
async def root():
    """Root endpoint."""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "status": "operational"
    }


@app.get("/health", tags=["health"])
async def health_check():
    """Health check endpoint."""
    health_status = {
        "status": "healthy",
        "service": settings.SERVICE_NAME,
        "version": settings.APP_VERSION,
        "checks": {}
    }

    try:
        async for db in get_db():
            await db.execute(text("SELECT 1"))
            health_status["checks"]["database"] = "healthy"
    except Exception as e:
        health_status["checks"]["database"] = f"unhealthy: {str(e)}"
        health_status["status"] = "degraded"

    health_status["checks"]["ai_gateway"] = "configured" if settings.AI_GATEWAY_API_KEY else "not configured"

    status_code = 200 if health_status["status"] == "healthy" else 503
    return JSONResponse(content=health_status, status_code=status_code)


@app.get("/config", tags=["debug"])
async def get_config():
    """Get gamification configuration (non-production only)."""
    if settings.is_production():
        return JSONResponse(
            content={"error": "Not available in production"},
            status_code=403
        )

    return {
        "environment": settings.ENVIRONMENT,
        "gamification": {
            "points_per_level": settings.POINTS_PER_LEVEL,
            "lesson_completed": settings.POINTS_LESSON_COMPLETED,
            "test_correct_answer": settings.POINTS_TEST_CORRECT_ANSWER,
            "mastery_thresholds": {
                "mastered": settings.MASTERY_MASTERED_SCORE,
                "in_progress": settings.MASTERY_IN_PROGRESS_SCORE
            }
        },
        "ai": {
            "model": settings.AI_MODEL,
            "configured": bool(settings.AI_GATEWAY_API_KEY)
        },
        "leaderboard_size": settings.LEADERBOARD_SIZE
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ortprep.main:app",
        host="0.0.0.0",
        port=settings.SERVICE_PORT,
        reload=settings.ENVIRONMENT == "development",
        log_config=None  # Use structlog instead
    )

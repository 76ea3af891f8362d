"""
Verdica API Service - FastAPI Application.

REST API for posts, accusations and the trials they lead to.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, UTC

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from verdica.config import get_settings
from verdica.database import init_db
from verdica.models import HealthResponse
from verdica.routes import posts_router, trials_router, users_router


settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("Starting Verdica API Service...")
    init_db()
    logger.info("Database initialized")

    yield

    # Shutdown
    logger.info("Shutting down Verdica API Service...")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="""
## Verdica API

Users post, like and accuse. Posts that draw as many accusations as
likes are put on trial.

### Key Concepts

- **Trial**: opened against a post once its accusations reach its likes;
  the post's author is the accused
- **Judges**: up to three users drawn at random, never the accused
- **Audience**: everyone else except the accused may vote too
- **Tally**: guilty / not guilty counts; judge and audience votes weigh the same

### API Flow

1. Register users (POST /api/users) and publish posts (POST /api/posts)
2. Like or accuse posts (POST /api/posts/{id}/like, /accuse)
3. Open trials for eligible posts (POST /api/trials/check)
4. Vote (POST /api/trials/{id}/vote) and read results (GET /api/trials/{id}/results)
    """,
    version=settings.app_version,
    lifespan=lifespan,
)

# Configure CORS
origins = [o.strip() for o in settings.allowed_origins.split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include routers
app.include_router(users_router, prefix="/api")
app.include_router(posts_router, prefix="/api")
app.include_router(trials_router, prefix="/api")


# Root endpoint
@app.get("/")
def root():
    """Root endpoint with API information."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs_url": "/docs",
        "openapi_url": "/openapi.json",
        "endpoints": {
            "users": "/api/users",
            "posts": "/api/posts",
            "trials": "/api/trials",
            "health": "/health",
        }
    }


@app.get("/health", response_model=HealthResponse)
def health():
    """Quick health check."""
    return HealthResponse(version=settings.app_version, time=datetime.now(UTC))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "verdica.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )

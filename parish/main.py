"""
Parish site API.

Mounts the public routes (navigation, slides, photos, posts, donations), the admin
console routes under /api/cms, and the carousel WebSocket at /ws/carousel.
"""
from fastapi import FastAPI, Request, status, Depends, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
import asyncio
import logging

from parish.config import settings
from parish.database import close_db, get_db, init_db
from parish.routes import auth, cms, donations, navigation, photos, posts, slides
from parish.services.storage import validate_cloudinary_config
from parish.utils.rate_limit import limiter

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Explicit origins: the admin session cookie needs allow_credentials
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
    max_age=3600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = asyncio.get_running_loop().time()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(
            f"{request.method} {request.url.path} failed with {type(e).__name__}: {str(e)}",
            exc_info=True
        )
        raise

    elapsed_ms = (asyncio.get_running_loop().time() - started) * 1000
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.0f} ms)")
    return response


app.include_router(navigation.router, prefix="/api", tags=["navigation"])
app.include_router(slides.router, prefix="/api", tags=["slides"])
app.include_router(slides.channel_router, tags=["carousel"])
app.include_router(photos.router, prefix="/api", tags=["photos"])
app.include_router(posts.router, prefix="/api", tags=["posts"])
app.include_router(donations.router, prefix="/api", tags=["donations"])
app.include_router(auth.router, prefix="/api", tags=["auth"])
app.include_router(cms.router, prefix="/api", tags=["CMS"])


def _error_body(error, detail) -> dict:
    return {"error": error, "detail": detail}


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Every HTTP error leaves as {"error": ..., "detail": ...}."""
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")

    content = exc.detail if isinstance(exc.detail, dict) else _error_body(exc.detail, str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    logger.warning(f"{request.method} {request.url.path} rejected: {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("Validation error", errors)
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}: {str(exc)}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Internal server error", "An unexpected error occurred")
    )


@app.get("/")
async def root():
    return {
        "message": settings.API_TITLE,
        "status": "healthy",
        "version": settings.API_VERSION
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


@app.get("/health/db")
async def health_check_db(db: AsyncSession = Depends(get_db)):
    """Run SELECT 1 against the content database."""
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}", exc_info=True)
        return {"database": "error", "status": "unhealthy"}
    return {"database": "connected", "status": "healthy"}


@app.get("/health/cloudinary")
async def health_check_cloudinary():
    """Slide and photo uploads need the three Cloudinary credentials."""
    if not validate_cloudinary_config():
        return {"cloudinary": "not_configured", "status": "warning"}
    return {"cloudinary": "configured", "status": "healthy", "cloud_name": settings.CLOUDINARY_CLOUD_NAME}


@app.on_event("startup")
async def startup_event():
    """
    Prepare the database. A failure is logged and the app keeps serving;
    routes that need the database will answer 500 until it is reachable.
    """
    logger.info(f"CORS origins: {', '.join(settings.CORS_ORIGINS)}")
    if not settings.DATABASE_URL:
        logger.warning("DATABASE_URL not set - using a throwaway in-memory SQLite database")

    try:
        await init_db()
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}", exc_info=True)


@app.on_event("shutdown")
async def shutdown_event():
    try:
        await close_db()
    except asyncio.CancelledError:
        pass
    except Exception as e:
        logger.warning(f"Error closing the database engine: {str(e)}")

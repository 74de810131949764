"""
AidAtlas - FastAPI Application Entry Point

Disaster-relief coordination: people in need post help requests with a
location and urgency, volunteers watch a live map and dashboard and
respond.

DESIGN PRINCIPLES:
- The managed backend (Firestore + Firebase Auth) is the system of record
- Live views re-fetch their whole query on every change, no merging
- AI classification is advisory metadata, never a gate
- Failures surface as short toasts; nothing retries automatically
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aidatlas.config.backend import initialize_backend
from aidatlas.core.errors import AidAtlasError
from aidatlas.core.settings import settings
from aidatlas.routes import auth, dashboard, functions, health, map, navigation, profiles, requests

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Disaster-relief coordination: help requests, live crisis map and volunteer dashboard",
    debug=settings.DEBUG,
)


@app.exception_handler(AidAtlasError)
async def aidatlas_exception_handler(request: Request, exc: AidAtlasError):
    """Application errors become a toast-friendly JSON body with their own status."""
    level = logging.WARNING if exc.status_code < 500 else logging.ERROR
    logger.log(level, f"{request.method} {request.url.path} -> {exc.status_code} {type(exc).__name__}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Pydantic validation error handler
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log request validation errors and return them with a toast message."""
    errors = exc.errors()
    logger.warning(f"Validation error on {request.method} {request.url.path}: {errors}")
    messages = [f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in errors]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Please fix the highlighted fields",
            "toast": messages[0] if messages else "Invalid request",
            "errors": messages,
        },
    )


# Global exception handler to catch ALL exceptions
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions and log them with full traceback."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "toast": "Something went wrong"},
    )


# CORS configuration - origins come from settings, never "*"
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Application lifecycle events
@app.on_event("startup")
async def startup_event():
    """
    Initialize services on application startup.
    Currently: Firebase Admin SDK, Firestore client and the backend handle
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    try:
        initialize_backend()
    except Exception as e:
        logger.warning(f"Backend initialization failed: {e}")
        logger.warning("The app will start but database operations may fail.")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Shutting down {settings.APP_NAME}")


# Include routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(profiles.router)
app.include_router(requests.router)
app.include_router(map.router)
app.include_router(map.ws_router)
app.include_router(dashboard.router)
app.include_router(dashboard.ws_router)
app.include_router(navigation.router)
app.include_router(functions.router)


@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
        "health": "/health",
        "live": ["/ws/map", "/ws/dashboard"],
    }

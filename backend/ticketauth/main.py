from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional
import logging
import time
from contextlib import asynccontextmanager

from .config import Settings, settings as default_settings
from .context import AppContext
from .core.logger import setup_logging
from .database import create_tables
from .exceptions import EXCEPTION_HANDLERS
from . import APP_INFO

# Import routers
from .auth.routes import router as auth_router
from .tickets.routes import router as tickets_router

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    logger.info("Starting TicketAuth service...")

    owned = app.state.context is None
    if owned:
        app.state.context = AppContext.from_settings(app.state.settings)

    context: AppContext = app.state.context

    # Create database tables
    try:
        await create_tables(context.engine)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        logger.error(f"Failed to create database tables: {e}")
        raise

    if not await context.ephemeral.ping():
        logger.warning("Redis is not reachable; logins will fail until it is")

    logger.info("TicketAuth service started successfully")

    yield

    # Shutdown
    logger.info("Shutting down TicketAuth service...")
    if owned:
        await context.close()
        app.state.context = None
    logger.info("TicketAuth service shutdown complete")

def create_app(settings: Optional[Settings] = None, context: Optional[AppContext] = None) -> FastAPI:
    """Build the application; tests pass a ready-made context"""

    settings = settings or (context.settings if context else default_settings)
    setup_logging(settings)

    app = FastAPI(
        title=APP_INFO["title"],
        description=APP_INFO["description"],
        version=APP_INFO["version"],
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.context = context

    # Add exception handlers
    for exception_type, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_type, handler)

    # Add middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all HTTP requests"""
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({process_time:.3f}s)"
        )

        response.headers["X-Process-Time"] = str(process_time)
        return response

    # Security headers middleware
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        """Add security headers to all responses"""
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"

        if settings.session_cookie_secure:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response

    # Include routers
    app.include_router(auth_router, tags=["Authentication"])
    app.include_router(tickets_router, tags=["Tickets"])

    # Root endpoint
    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint"""
        return {
            "success": True,
            "message": "TicketAuth API is running",
            "data": {
                "app_name": settings.app_name,
                "version": settings.app_version,
            }
        }

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Health check endpoint"""
        context: AppContext = request.app.state.context

        try:
            async with context.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            db_status = "healthy"
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            db_status = "unhealthy"

        redis_status = "healthy" if await context.ephemeral.ping() else "unhealthy"

        overall_status = "healthy" if db_status == "healthy" and redis_status == "healthy" else "unhealthy"

        return {
            "success": True,
            "message": "Health check completed",
            "data": {
                "status": overall_status,
                "database": db_status,
                "redis": redis_status,
                "timestamp": time.time()
            }
        }

    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "ticketauth.main:app",
        host="0.0.0.0",
        port=8000,
        reload=default_settings.debug,
        log_level="info"
    )

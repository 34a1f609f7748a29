from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import logging
import time

from .config import settings
from .core.database import create_pool, close_pool
from .core.exceptions import InfrastructureError, ServiceError
from .core.http_client import close_http_client
from .core.logger import setup_logging
from .services.push_service import get_push_service
from .services.email_service import get_email_service
from .services.side_effects import get_side_effects


class SecurityHeadersMiddleware:
    """Add security headers and log every request (pure ASGI, avoids BaseHTTPMiddleware CORS bug)"""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = time.time()
        status_code = 500

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                extra_headers = [
                    (b"x-content-type-options", b"nosniff"),
                    (b"x-frame-options", b"DENY"),
                    (b"referrer-policy", b"strict-origin-when-cross-origin"),
                ]
                if not settings.debug:
                    extra_headers.append(
                        (b"strict-transport-security", b"max-age=31536000; includeSubDomains")
                    )
                message["headers"] = list(message.get("headers", [])) + extra_headers
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            elapsed_ms = (time.time() - started) * 1000
            logger.info(f"{scope['method']} {scope['path']} -> {status_code} ({elapsed_ms:.0f}ms)")


# Setup logging first
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for FastAPI app"""
    logger.info(f"[STARTUP] Starting {settings.app_name} v{settings.app_version} (debug={settings.debug})")

    try:
        logger.info("[STARTUP] Connecting to database...")
        await create_pool()

        side_effects = get_side_effects()
        side_effects.start()

        if get_push_service().available:
            logger.info("[STARTUP] ✅ Firebase push provider configured")
        else:
            logger.warning("[STARTUP] ⚠️ Firebase not configured - notification features will be disabled")

        if not get_email_service().configured:
            logger.warning("[STARTUP] ⚠️ No email transport configured - email OTP delivery will fail")

        logger.info("[STARTUP] ✅ Application ready")
    except Exception as e:
        logger.error(f"[STARTUP] ❌ Failed to initialize: {e}")
        raise

    yield

    # Shutdown
    logger.info("[SHUTDOWN] Shutting down application...")
    await get_side_effects().stop()
    await close_http_client()
    await close_pool()
    logger.info("[SHUTDOWN] Application shutdown complete")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials="*" not in settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)


# Error rendering: every failure is {"success": false, "message": ...}

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    content = {"success": False, "message": exc.detail}
    if isinstance(exc, InfrastructureError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail} ({exc.error})")
        if settings.debug:
            content["error"] = exc.error
            if exc.code:
                content["code"] = exc.code
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())[1:]),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    logger.info(f"Validation error on {request.url.path}: {errors}")
    first = errors[0] if errors else None
    message = f"{first['field']}: {first['message']}" if first and first["field"] else "Invalid request"
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": message, "errors": errors},
    )


@app.exception_handler(ServiceError)
async def service_exception_handler(request: Request, exc: ServiceError):
    logger.error(f"{request.method} {request.url.path} unhandled service error: {exc.message} {exc.details}")
    content = {"success": False, "message": "Internal server error"}
    if settings.debug:
        content["error"] = exc.message
    return JSONResponse(status_code=500, content=content)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} unhandled error: {exc}")
    content = {"success": False, "message": "Internal server error"}
    if settings.debug:
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "message": "✅ SafeMeet backend is live",
    }


from .routers import auth, notifications, health

app.include_router(auth.router, prefix="/api", tags=["Authentication"])
app.include_router(notifications.router, prefix="/api", tags=["Notifications"])
app.include_router(health.router, prefix="/api", tags=["Health & Monitoring"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "safemeet.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )

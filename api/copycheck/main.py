import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.structured_logging import setup_logging
from .middleware.request_response import RequestResponseMiddleware
from .models.exceptions import (
    CopyCheckBaseException,
    EXCEPTION_HANDLERS,
    to_http_exception
)
from .routers import check, health, rules
from .services.rules import get_registry


setup_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the rule registry up front so a broken rulebook fails at startup."""
    registry = get_registry()
    logger.info(f"Startup complete, channels: {', '.join(registry.channels()) or 'none'}")
    yield
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.service_name,
    description="Spelling, rewrite, compliance and scoring for marketing copy",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(RequestResponseMiddleware)

origins = [o.strip() for o in (settings.cors_allow_origins or "").split(",") if o.strip()]
if not origins:
    # Wildcard outside production; explicit list required in prod
    origins = [] if settings.is_production else ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"]
)


@app.exception_handler(CopyCheckBaseException)
async def copycheck_exception_handler(request: Request, exc: CopyCheckBaseException):
    """Handle custom copycheck exceptions."""
    for exc_type, handler in EXCEPTION_HANDLERS.items():
        if isinstance(exc, exc_type):
            http_exc = handler(exc)
            break
    else:
        http_exc = to_http_exception(exc, status_code=500)

    level = logging.WARNING if http_exc.status_code < 500 else logging.ERROR
    logger.log(
        level,
        f"{exc.__class__.__name__}: {exc.message}",
        extra={"http_status": http_exc.status_code, "http_path": request.url.path},
    )
    return JSONResponse(status_code=http_exc.status_code, content=http_exc.detail)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Standardize HTTP errors (like 404) to the same error body."""
    body = {
        "error": "HTTPError",
        "message": exc.detail if isinstance(exc.detail, str) else "Request failed",
        "request_id": getattr(request.state, "request_id", "unknown"),
    }
    return JSONResponse(status_code=exc.status_code, content=body)


app.include_router(check.router)
app.include_router(rules.router)
app.include_router(health.router)

"""
FastAPI application for the ToonVocab notebook server
Stores word groups in a single JSON document and illustrations as files in an image vault.
"""
from dotenv import load_dotenv

# Load env vars immediately
load_dotenv()

import asyncio
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from api.app_context import AppContext, build_context
from api.routes import files, groups
from models.errors import StorageUnavailable, VocabError
from models.seed_data import seed_if_missing
from utils.config_loader import Settings, load_settings
from utils.logging_setup import configure_logging

API_TITLE = "ToonVocab API"
API_VERSION = "1.0.0"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "*",
    "Access-Control-Allow-Headers": "*",
}


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=CORS_HEADERS)


class RequestGuardMiddleware(BaseHTTPMiddleware):
    """Rejects oversized bodies, bounds request time and keeps CORS headers on errors"""

    def __init__(self, app, max_body_bytes: int, timeout: float):
        super().__init__(app)
        self.max_body_bytes = max_body_bytes
        self.timeout = timeout

    async def dispatch(self, request: Request, call_next):
        # Handle preflight OPTIONS request
        if request.method == "OPTIONS":
            return Response(
                status_code=200,
                headers={**CORS_HEADERS, "Access-Control-Max-Age": "86400"},
            )

        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_body_bytes:
            logger.warning(f"Rejected {request.method} {request.url.path}: body of {content_length} bytes")
            return error_response(413, "Request body too large")

        try:
            response = await asyncio.wait_for(call_next(request), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error(f"Request timed out after {self.timeout}s: {request.method} {request.url.path}")
            return error_response(504, "Request timed out")
        except Exception as e:
            logger.opt(exception=e).error(f"Middleware caught exception: {e}")
            return error_response(500, "Internal server error")

        for header, value in CORS_HEADERS.items():
            response.headers[header] = value
        return response


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(VocabError)
    async def vocab_error_handler(request: Request, exc: VocabError):
        if exc.status_code >= 500:
            logger.error(f"Server error on {request.method} {request.url.path}: {exc.message}")
            return error_response(exc.status_code, "Internal server error")
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        problems = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
            problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
        return error_response(400, "Invalid request body" + (f" ({'; '.join(problems)})" if problems else ""))

    # Global exception handler to ensure CORS headers are always sent
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.opt(exception=exc).error(f"Unhandled exception: {exc}")
        return error_response(500, "Internal server error")


def create_app(
    settings: Optional[Settings] = None,
    clock: Optional[Callable[[], int]] = None,
    id_factory: Optional[Callable[[], str]] = None,
) -> FastAPI:
    settings = settings or load_settings()
    context: AppContext = build_context(settings, clock=clock, id_factory=id_factory)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        settings.data_root.mkdir(parents=True, exist_ok=True)
        context.vault.ensure_dir()
        if settings.seed_on_start:
            seed_if_missing(context.store, clock=context.clock)
        logger.info(f"{API_TITLE} running at http://localhost:{settings.port}")
        logger.info(f"Document: {context.store.data_path}")
        logger.info(f"Images stored in: {context.vault.images_dir} (retention: {context.vault.retention})")
        yield

    app = FastAPI(
        title=API_TITLE,
        description="Personal vocabulary notebook: word groups, illustrations and self-test status",
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.context = context

    app.add_middleware(
        RequestGuardMiddleware,
        max_body_bytes=settings.max_body_bytes,
        timeout=settings.request_timeout,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )
    register_exception_handlers(app)

    @app.get("/")
    async def root():
        """Root endpoint with API information"""
        return {
            "message": API_TITLE,
            "version": API_VERSION,
            "docs": "/docs",
            "endpoints": {
                "groups": {
                    "list": "GET /api/groups",
                    "get": "GET /api/groups/{id}",
                    "create": "POST /api/groups",
                    "update": "PUT /api/groups/{id}",
                    "delete": "DELETE /api/groups/{id}",
                    "add_image": "POST /api/groups/{id}/images",
                    "delete_image": "DELETE /api/groups/{id}/images/{index}",
                    "import": "POST /api/groups/import",
                },
                "images": f"GET {settings.image_prefix}/{{filename}}",
            },
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        try:
            count = len(context.store.get_all())
        except StorageUnavailable as e:
            logger.warning(f"Health check failed: {e.message}")
            return JSONResponse(status_code=503, content={"status": "unhealthy", "error": "Document unavailable"})
        return {
            "status": "healthy",
            "groups": count,
            "dataFile": str(context.store.data_path),
            "imagesDir": str(context.vault.images_dir),
            "imageRetention": context.vault.retention,
        }

    app.include_router(groups.router)
    app.include_router(files.create_router(settings.image_prefix))

    return app


app = create_app()

#!/usr/bin/env python3
"""
tasklist - FastAPI Application
Single-user task list: HTML page, htmx list fragments and a SQLite task store
"""

import argparse
import logging
import os
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

from tasklist.api import tasks
from tasklist.config import Settings, settings as default_settings
from tasklist.core.database import StoreError, TaskStore
from tasklist.core.models import HealthCheck, ValidationError
from tasklist.utils.logger import setup_logging

logger = logging.getLogger(__name__)

REQUIRED_TEMPLATES = ("base.html", tasks.PAGE_TEMPLATE, tasks.LIST_TEMPLATE)

def load_templates(templates_dir: Path) -> Jinja2Templates:
    """Load the page templates, failing if any of them is missing"""
    templates = Jinja2Templates(directory=str(templates_dir))
    for name in REQUIRED_TEMPLATES:
        templates.get_template(name)
    return templates

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown. A failure here aborts the server."""
    settings: Settings = app.state.settings

    logger.info(f"🚀 Starting {settings.APP_NAME} v{settings.VERSION}...")
    app.state.templates = load_templates(settings.TEMPLATES_DIR)

    store = TaskStore(settings.DATABASE_URL, echo=settings.DEBUG)
    store.initialize()
    app.state.store = store
    app.state.started_at = time.time()

    logger.info(f"📝 Active tasks: {store.count(completed=False)}, completed: {store.count(completed=True)}")
    logger.info(f"🌐 Listening on {settings.get_full_url()}")

    try:
        yield
    finally:
        logger.info("🛑 Stopping...")
        store.close()

# ===== ERROR HANDLERS =====

async def validation_error_handler(request: Request, exc: ValidationError):
    logger.info(f"Rejected {request.method} {request.url.path}: {exc}")
    return PlainTextResponse(str(exc), status_code=400)

async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return PlainTextResponse("Error parsing form", status_code=400)

async def store_error_handler(request: Request, exc: StoreError):
    return PlainTextResponse(str(exc), status_code=500)

async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 405:
        message = "Invalid request method"
    elif exc.status_code == 404:
        message = "404 page not found"
    else:
        message = str(exc.detail)
    return PlainTextResponse(message, status_code=exc.status_code, headers=getattr(exc, "headers", None))

# ===== APPLICATION =====

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Application factory"""
    settings = settings or default_settings

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.VERSION,
        docs_url="/api/docs" if settings.DEBUG else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(GZipMiddleware, minimum_size=1000)

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Log every request with its status and duration"""
        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"❌ {request.method} {request.url.path} failed ({time.time() - start_time:.3f}s)")
            raise

        process_time = time.time() - start_time
        logger.info(f"{request.method} {request.url.path} - {response.status_code} - {process_time:.3f}s")
        response.headers["X-Process-Time"] = f"{process_time:.6f}"
        return response

    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.mount("/static", StaticFiles(directory=str(settings.STATIC_DIR)), name="static")
    app.include_router(tasks.router)

    @app.get("/health", response_model=HealthCheck)
    def health_check(request: Request):
        """Liveness plus task counts"""
        store: TaskStore = request.app.state.store
        try:
            active = store.count(completed=False)
            completed = store.count(completed=True)
        except StoreError as e:
            return JSONResponse(
                status_code=503,
                content={
                    "status": "unhealthy",
                    "service": "tasklist",
                    "error": str(e),
                    "timestamp": time.time(),
                },
            )

        return HealthCheck(
            status="healthy",
            service="tasklist",
            version=settings.VERSION,
            timestamp=time.time(),
            data={
                "active_tasks": active,
                "completed_tasks": completed,
                "uptime_seconds": time.time() - request.app.state.started_at,
            },
        )

    return app

app = create_app()

# ===== RUN =====

def run_server(
    host: Optional[str] = None,
    port: Optional[int] = None,
    dev: Optional[bool] = None,
    reload: Optional[bool] = None,
) -> None:
    """
    Serve the application with uvicorn.

    Overrides reach the served app through its settings: a fresh app is built
    in-process, and TASKLIST_* variables carry them into the reload worker,
    which imports the module again.
    """
    host = host or default_settings.HOST
    port = port or default_settings.PORT
    dev = dev if dev is not None else default_settings.DEBUG
    reload = reload if reload is not None else dev

    overrides = {"HOST": host, "PORT": port, "DEBUG": dev}
    for key, value in overrides.items():
        os.environ[f"TASKLIST_{key}"] = str(value)
    target = "tasklist.app:app" if reload else create_app(default_settings.model_copy(update=overrides))

    logger.info(f"🌐 Starting HTTP server on http://{host}:{port}")
    logger.info(f"🔧 Debug: {dev}, reload: {reload}")

    try:
        uvicorn.run(
            target,
            host=host,
            port=port,
            reload=reload,
            log_level="debug" if dev else "info",
            access_log=dev,
            server_header=False,
        )
    except KeyboardInterrupt:
        pass
    logger.info("HTTP server stopped")

def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Run the task list server")
    parser.add_argument("--host", default=default_settings.HOST, help="Interface to bind")
    parser.add_argument("--port", type=int, default=default_settings.PORT, help="Port to listen on")
    parser.add_argument("--dev", action="store_true", help="Development mode (debug logging)")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    args = parser.parse_args(argv)

    setup_logging(default_settings.model_copy(update={"DEBUG": default_settings.DEBUG or args.dev}))
    run_server(host=args.host, port=args.port, dev=args.dev or None, reload=args.reload or None)

if __name__ == "__main__":
    main()

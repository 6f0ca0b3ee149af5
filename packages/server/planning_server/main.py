"""
Planning Server

Entry point for the FastAPI application that persists an agent's planning
state (tasks, dependencies, blockers, decisions, file knowledge) for one
project directory.
"""

from __future__ import annotations

import argparse
from contextlib import asynccontextmanager
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from planning_server.api.v1 import router as api_v1_router
from planning_server.core.config import get_settings
from planning_server.core.database import close_stores, get_store
from planning_server.core.errors import PlanningError
from planning_server.core.logging import configure_logging

log = structlog.get_logger()


async def planning_error_handler(request: Request, exc: PlanningError) -> JSONResponse:
    log.info(
        "request.failed",
        path=request.url.path,
        kind=exc.kind,
        status_code=exc.status_code,
        detail=exc.detail,
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


def create_app(project_path: Optional[str] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = get_store(app.state.project_path)
        await store.ensure_initialized()
        log.info("Planning server starting", project_path=str(store.project_path))
        yield
        log.info("Planning server shutting down")
        await close_stores()

    app = FastAPI(
        title="Planning Server",
        description="Task, dependency and blocker persistence for coding agents.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.project_path = project_path or settings.project_path

    app.add_exception_handler(PlanningError, planning_error_handler)

    # API routes
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness checks."""
        return {"status": "ok"}

    return app


app = create_app()


def run() -> None:
    """CLI entry point: ``planning-server [--project-path PATH]``."""
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Planning state server for coding agents")
    parser.add_argument(
        "-p", "--project-path",
        default=settings.project_path,
        help="Project directory whose .planning/ store is served (default: %(default)s)",
    )
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    args = parser.parse_args()

    uvicorn.run(
        create_app(args.project_path),
        host=args.host,
        port=args.port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    run()

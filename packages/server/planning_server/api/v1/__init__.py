"""
API v1 Router

All endpoints act on the current active project of the requested branch
(``?branch=``, defaulting to the configured branch).
"""

from fastapi import APIRouter

from . import blockers, context, decisions, dependencies, files, tasks

router = APIRouter()

router.include_router(context.router, prefix="/context", tags=["Context"])
router.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
router.include_router(dependencies.router, prefix="/dependencies", tags=["Dependencies"])
router.include_router(blockers.router, prefix="/blockers", tags=["Blockers"])
router.include_router(decisions.router, prefix="/decisions", tags=["Decisions"])
router.include_router(files.router, prefix="/files", tags=["Files"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/context",
            "/tasks",
            "/dependencies",
            "/blockers",
            "/decisions",
            "/files",
        ],
    }

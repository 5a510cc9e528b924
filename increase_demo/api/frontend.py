"""
Frontend hosting.

Serves the built single-page app: real files from the static
directory, index.html for every other path so client-side
routing works on reload.
"""

from pathlib import Path

from fastapi import APIRouter, FastAPI
from fastapi.responses import FileResponse

from increase_demo.utils.logging import get_logger

logger = get_logger(__name__)


def build_frontend_router(static_dir: Path) -> APIRouter:
    root = static_dir.resolve()
    index = root / "index.html"
    router = APIRouter(tags=["Frontend"], include_in_schema=False)

    @router.get("/{path:path}")
    def serve_frontend(path: str):
        candidate = (root / path).resolve()
        # Never serve anything outside the static directory
        if path and candidate.is_relative_to(root) and candidate.is_file():
            return FileResponse(candidate)
        return FileResponse(index)

    return router


def has_frontend_build(static_dir: str | Path) -> bool:
    return (Path(static_dir) / "index.html").is_file()


def register_frontend(app: FastAPI, static_dir: str | Path) -> bool:
    """
    Mount the frontend routes if a build is present.

    Must be called after every other router: the catch-all
    route would otherwise shadow them.
    """
    static_dir = Path(static_dir)
    if not has_frontend_build(static_dir):
        logger.info(f"No frontend build in {static_dir}, serving the API only")
        return False
    app.include_router(build_frontend_router(static_dir))
    return True

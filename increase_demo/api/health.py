"""
Health check endpoint.

Reports what a presenter needs to know before a demo: the
database answers, the frontend build is present, and which
sandbox host the demo will talk to.
"""

import httpx
from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from increase_demo.api.frontend import has_frontend_build
from increase_demo.config import get_settings
from increase_demo.models.base import get_db
from increase_demo.models.demo_session import DemoSession
from increase_demo.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    """
    The sandbox itself is not called: that needs an API key,
    and the demo stays usable for browsing without one.

    A missing frontend build is reported but is not unhealthy;
    the API runs on its own.
    """
    settings = get_settings()
    try:
        sessions = db.execute(select(func.count(DemoSession.id))).scalar_one()
        db_status = "healthy"
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        sessions = None
        db_status = "unhealthy"

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "service": "increase-demo",
        "version": settings.APP_VERSION,
        "database": db_status,
        "demo_sessions": sessions,
        "frontend": "built" if has_frontend_build(settings.STATIC_DIR) else "missing",
        "sandbox_host": httpx.URL(settings.INCREASE_BASE_URL).host,
        "default_api_key": bool(settings.INCREASE_API_KEY),
    }

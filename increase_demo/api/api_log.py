"""
API request log endpoints.

The log is the "behind the scenes" panel: every sandbox call a
session made, in order, with a link into the dashboard.
"""

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from increase_demo.models.base import get_db
from increase_demo.schemas.api_log import ApiRequestResponse
from increase_demo.services.api_log_service import ApiLogService
from increase_demo.services.session_service import get_demo_session

router = APIRouter(prefix="/demo/sessions/{session_id}/requests", tags=["Request Log"])


@router.get("", response_model=list[ApiRequestResponse])
def list_requests(
    session_id: int,
    db: Session = Depends(get_db),
):
    try:
        get_demo_session(db, session_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ApiLogService(db).list_for_session(session_id)


@router.delete("", status_code=204)
def clear_requests(
    session_id: int,
    db: Session = Depends(get_db),
):
    """Clear the log. The sandbox resources are left alone."""
    try:
        get_demo_session(db, session_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    ApiLogService(db).clear(session_id)
    db.commit()
    return Response(status_code=204)

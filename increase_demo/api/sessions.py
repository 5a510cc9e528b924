"""
Demo session endpoints.

Creating a session provisions a company in the sandbox. A
failed setup saves nothing; the calls it made are returned
in the 502 body instead of the request log.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from increase_demo.clients.increase import ClientFactory, IncreaseAPIError, get_client_factory
from increase_demo.models.base import get_db
from increase_demo.schemas.session import SessionCreate, SessionResponse
from increase_demo.services.session_service import SessionService

router = APIRouter(prefix="/demo/sessions", tags=["Sessions"])


@router.post("", response_model=SessionResponse, status_code=201)
def create_session(
    request: SessionCreate,
    db: Session = Depends(get_db),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    """
    Set up a demo company for Bill Pay or Banking.

    The API key is stored with the session and never returned.
    """
    service = SessionService(db, client_factory)
    try:
        session = service.create_session(request)
        db.commit()
        return session
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    except IncreaseAPIError:
        db.rollback()
        raise


@router.get("/{session_id}", response_model=SessionResponse)
def get_session(
    session_id: int,
    db: Session = Depends(get_db),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    service = SessionService(db, client_factory)
    try:
        return service.get_session(session_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))

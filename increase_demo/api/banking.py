"""
Banking demo API endpoints.

Vendor resources are returned as the sandbox sent them. Every
endpoint commits, since each one appends to the request log.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from increase_demo.clients.increase import ClientFactory, IncreaseAPIError, get_client_factory
from increase_demo.models.base import get_db
from increase_demo.schemas.banking import (
    BankingOverview,
    CardCreate,
    CardDetail,
    InboundSimulationRequest,
    InboundSimulationResponse,
    LockboxDetail,
    Resource,
    TransactionDetail,
)
from increase_demo.services.banking_service import BankingService

router = APIRouter(prefix="/demo/sessions/{session_id}/banking", tags=["Banking"])


def _run(db: Session, operation):
    """Commit the request log whatever the outcome."""
    try:
        result = operation()
        db.commit()
        return result
    except LookupError as e:
        db.commit()
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        db.commit()
        raise HTTPException(status_code=400, detail=str(e))
    except IncreaseAPIError:
        db.commit()
        raise


@router.get("", response_model=BankingOverview)
def get_overview(
    session_id: int,
    db: Session = Depends(get_db),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    """Account, balance, account numbers, lockboxes, transactions and cards."""
    service = BankingService(db, client_factory)
    return _run(db, lambda: service.overview(session_id))


@router.post("/account-numbers", response_model=Resource, status_code=201)
def roll_account_number(
    session_id: int,
    db: Session = Depends(get_db),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    service = BankingService(db, client_factory)
    return _run(db, lambda: service.roll_account_number(session_id))


@router.post("/lockboxes", response_model=Resource, status_code=201)
def roll_lockbox(
    session_id: int,
    db: Session = Depends(get_db),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    service = BankingService(db, client_factory)
    return _run(db, lambda: service.roll_lockbox(session_id))


@router.get("/lockbox", response_model=LockboxDetail)
def get_lockbox(
    session_id: int,
    db: Session = Depends(get_db),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    """The primary lockbox and the deposits routed to it."""
    service = BankingService(db, client_factory)
    return _run(db, lambda: service.lockbox_detail(session_id))


@router.get("/cards", response_model=list[Resource])
def list_cards(
    session_id: int,
    db: Session = Depends(get_db),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    service = BankingService(db, client_factory)
    return _run(db, lambda: service.list_cards(session_id))


@router.post("/cards", response_model=Resource, status_code=201)
def create_card(
    session_id: int,
    request: CardCreate,
    db: Session = Depends(get_db),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    service = BankingService(db, client_factory)
    return _run(db, lambda: service.create_card(session_id, request.description))


@router.get("/cards/{card_id}", response_model=CardDetail)
def get_card(
    session_id: int,
    card_id: str,
    db: Session = Depends(get_db),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    service = BankingService(db, client_factory)
    return _run(db, lambda: service.card_detail(session_id, card_id))


@router.get("/transactions/{transaction_id}", response_model=TransactionDetail)
def get_transaction(
    session_id: int,
    transaction_id: str,
    db: Session = Depends(get_db),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    service = BankingService(db, client_factory)
    return _run(db, lambda: service.transaction_detail(session_id, transaction_id))


@router.post(
    "/simulations/inbound",
    response_model=InboundSimulationResponse,
    status_code=201,
)
def simulate_inbound(
    session_id: int,
    request: InboundSimulationRequest,
    db: Session = Depends(get_db),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    """Simulate an inbound wire, ACH or check to the primary account number."""
    service = BankingService(db, client_factory)
    return _run(db, lambda: service.simulate_inbound(session_id, request))

"""
Bill payment API endpoints.

A payment moves forward one sandbox simulation per request.
When a step fails the payment is kept as FAILED, so error
paths commit instead of rolling back.
"""

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from increase_demo.clients.increase import ClientFactory, IncreaseAPIError, get_client_factory
from increase_demo.models.base import get_db
from increase_demo.models.enums import PaymentNetwork
from increase_demo.schemas.bill_payment import (
    BillPaymentCreate,
    BillPaymentResponse,
    CardPaymentPageResponse,
    SampleInvoice,
)
from increase_demo.services.bill_payment_service import (
    SAMPLE_INVOICE,
    BillPaymentService,
    sample_details,
)
from increase_demo.services.invoice_pdf import render_invoice_pdf

router = APIRouter(prefix="/demo", tags=["Bill Payments"])


# --- Sample data ---

@router.get("/bill-payments/sample-invoice", response_model=SampleInvoice)
def get_sample_invoice():
    """The invoice the demo pays."""
    return SAMPLE_INVOICE


@router.get("/bill-payments/sample-invoice.pdf", response_class=Response)
def get_sample_invoice_pdf():
    """The same invoice, printable."""
    return Response(
        content=render_invoice_pdf(SAMPLE_INVOICE),
        media_type="application/pdf",
        headers={"Content-Disposition": 'inline; filename="sample-invoice.pdf"'},
    )


@router.get("/bill-payments/sample-details/{network}")
def get_sample_details(network: PaymentNetwork):
    """Prefill values for the payment form."""
    return sample_details(network)


# --- Payments ---

@router.get(
    "/sessions/{session_id}/bill-payments",
    response_model=list[BillPaymentResponse],
)
def list_bill_payments(
    session_id: int,
    db: Session = Depends(get_db),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    service = BillPaymentService(db, client_factory)
    try:
        return service.list_payments(session_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post(
    "/sessions/{session_id}/bill-payments",
    response_model=BillPaymentResponse,
    status_code=201,
)
def create_bill_payment(
    session_id: int,
    request: BillPaymentCreate,
    db: Session = Depends(get_db),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    """
    Create a bill payment and its ACH debit.

    The payment starts in DEBIT_PROCESSING; settle the debit
    to send the credit leg.
    """
    service = BillPaymentService(db, client_factory)
    try:
        payment = service.create_payment(session_id, request)
        db.commit()
        return payment
    except LookupError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    except IncreaseAPIError:
        db.commit()
        raise


@router.get(
    "/sessions/{session_id}/bill-payments/{payment_id}",
    response_model=BillPaymentResponse,
)
def get_bill_payment(
    session_id: int,
    payment_id: int,
    db: Session = Depends(get_db),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    service = BillPaymentService(db, client_factory)
    try:
        return service.get_payment(session_id, payment_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post(
    "/sessions/{session_id}/bill-payments/{payment_id}/settle-debit",
    response_model=BillPaymentResponse,
)
def settle_debit(
    session_id: int,
    payment_id: int,
    db: Session = Depends(get_db),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    """
    Settle the debit and send the credit leg.

    Wire and RTP payments complete here; ACH, check and card
    payments wait for one more step.
    """
    service = BillPaymentService(db, client_factory)
    try:
        payment = service.settle_debit_and_create_credit(session_id, payment_id)
        db.commit()
        return payment
    except LookupError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        db.commit()
        raise HTTPException(status_code=400, detail=str(e))
    except IncreaseAPIError:
        db.commit()
        raise


@router.post(
    "/sessions/{session_id}/bill-payments/{payment_id}/settle-credit",
    response_model=BillPaymentResponse,
)
def settle_credit(
    session_id: int,
    payment_id: int,
    db: Session = Depends(get_db),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    """Settle an ACH credit, or deposit a mailed check."""
    service = BillPaymentService(db, client_factory)
    try:
        payment = service.settle_credit(session_id, payment_id)
        db.commit()
        return payment
    except LookupError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        db.commit()
        raise HTTPException(status_code=400, detail=str(e))
    except IncreaseAPIError:
        db.commit()
        raise


@router.post(
    "/sessions/{session_id}/bill-payments/{payment_id}/authorize-card",
    response_model=BillPaymentResponse,
)
def authorize_card(
    session_id: int,
    payment_id: int,
    db: Session = Depends(get_db),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    """Simulate the payee charging the single-use card."""
    service = BillPaymentService(db, client_factory)
    try:
        payment = service.simulate_card_authorization(session_id, payment_id)
        db.commit()
        return payment
    except LookupError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        db.commit()
        raise HTTPException(status_code=400, detail=str(e))
    except IncreaseAPIError:
        db.commit()
        raise


@router.get(
    "/sessions/{session_id}/bill-payments/{payment_id}/card-details",
    response_model=CardPaymentPageResponse,
)
def get_card_payment_page(
    session_id: int,
    payment_id: int,
    db: Session = Depends(get_db),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    """The payee's page for a card payment, with the card details iframe."""
    service = BillPaymentService(db, client_factory)
    try:
        page = service.card_payment_page(session_id, payment_id)
        db.commit()
        return page
    except LookupError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    except IncreaseAPIError:
        db.commit()
        raise

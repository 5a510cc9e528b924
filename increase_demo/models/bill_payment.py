"""
Bill payment model.

The only record this app invents itself. A bill payment pulls
money from an external account (the debit leg) and pushes it
to a payee over one of five rails (the credit leg). Its status
is a thin label over the vendor transfer states, advanced by
sandbox simulation calls.

The status has a state machine. Invalid transitions are
rejected before any vendor call is made.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    String, DateTime, Integer, ForeignKey, JSON,
    Enum as SAEnum, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from increase_demo.models.base import Base
from increase_demo.models.enums import BillPaymentStatus, PaymentNetwork


VALID_TRANSITIONS: dict[BillPaymentStatus, set[BillPaymentStatus]] = {
    BillPaymentStatus.PENDING_DEBIT: {
        BillPaymentStatus.DEBIT_PROCESSING,
        BillPaymentStatus.FAILED,
    },
    BillPaymentStatus.DEBIT_PROCESSING: {
        BillPaymentStatus.PENDING_CREDIT,
        BillPaymentStatus.FAILED,
    },
    BillPaymentStatus.PENDING_CREDIT: {
        BillPaymentStatus.CREDIT_SUBMITTED,
        BillPaymentStatus.CREDIT_MAILED,
        BillPaymentStatus.PENDING_AUTHORIZATION,
        BillPaymentStatus.COMPLETED,
        BillPaymentStatus.FAILED,
    },
    BillPaymentStatus.CREDIT_SUBMITTED: {
        BillPaymentStatus.COMPLETED,
        BillPaymentStatus.FAILED,
    },
    BillPaymentStatus.CREDIT_MAILED: {
        BillPaymentStatus.COMPLETED,
        BillPaymentStatus.FAILED,
    },
    BillPaymentStatus.PENDING_AUTHORIZATION: {
        BillPaymentStatus.COMPLETED,
        BillPaymentStatus.FAILED,
    },
    BillPaymentStatus.COMPLETED: set(),
    BillPaymentStatus.FAILED: set(),
}


class BillPayment(Base):
    __tablename__ = "bill_payments"

    id: Mapped[int] = mapped_column(primary_key=True)
    external_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, unique=True, nullable=False, default=uuid.uuid4
    )
    session_id: Mapped[int] = mapped_column(
        ForeignKey("demo_sessions.id"), nullable=False, index=True
    )
    # Amount in cents
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    network: Mapped[PaymentNetwork] = mapped_column(
        SAEnum(
            PaymentNetwork,
            name="payment_network_enum",
            create_constraint=True,
        ),
        nullable=False,
    )
    status: Mapped[BillPaymentStatus] = mapped_column(
        SAEnum(
            BillPaymentStatus,
            name="bill_payment_status_enum",
            create_constraint=True,
        ),
        nullable=False,
        default=BillPaymentStatus.PENDING_DEBIT,
    )
    payment_details: Mapped[dict] = mapped_column(JSON, nullable=False)
    external_account_id: Mapped[str] = mapped_column(
        String(100), nullable=False
    )

    debit_transfer_id: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    credit_transfer_id: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    # Check rail: needed to simulate the payee depositing the check
    check_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    source_account_number_id: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    # Card rail
    card_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    card_last4: Mapped[str | None] = mapped_column(String(4), nullable=True)

    error_message: Mapped[str | None] = mapped_column(
        String(500), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    session: Mapped["DemoSession"] = relationship(
        back_populates="bill_payments"
    )

    def can_transition_to(self, new_status: BillPaymentStatus) -> bool:
        """Check if a status transition is valid."""
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    def __repr__(self) -> str:
        return (
            f"<BillPayment {self.id} {self.network.value} "
            f"{self.amount} ({self.status.value})>"
        )

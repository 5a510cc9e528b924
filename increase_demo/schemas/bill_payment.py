"""
Pydantic schemas for bill payments.

Payment details are a discriminated union on `network`. The
field rules are the ones the payment form enforces: every
listed field is required and may not be blank.
"""

import uuid
from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, computed_field

from increase_demo.models.enums import (
    BillPaymentStatus,
    PaymentNetwork,
    ShippingMethod,
)


# --- Payment details ---

class _PaymentDetailsBase(BaseModel):
    # "  " counts as blank
    model_config = {"str_strip_whitespace": True}


class AchPaymentDetails(_PaymentDetailsBase):
    network: Literal["ach"] = "ach"
    account_number: str = Field(min_length=1, max_length=17)
    routing_number: str = Field(min_length=1, max_length=9)
    statement_descriptor: str = Field(min_length=1, max_length=200)


class RtpPaymentDetails(_PaymentDetailsBase):
    network: Literal["rtp"] = "rtp"
    account_number: str = Field(min_length=1, max_length=17)
    routing_number: str = Field(min_length=1, max_length=9)
    statement_descriptor: str = Field(min_length=1, max_length=200)


class WirePaymentDetails(_PaymentDetailsBase):
    network: Literal["wire"] = "wire"
    account_number: str = Field(min_length=1, max_length=17)
    routing_number: str = Field(min_length=1, max_length=9)
    statement_descriptor: str = Field(min_length=1, max_length=200)


class CheckPaymentDetails(_PaymentDetailsBase):
    network: Literal["check"] = "check"
    recipient_name: str = Field(min_length=1, max_length=255)
    address_line1: str = Field(min_length=1, max_length=255)
    address_line2: str | None = Field(default=None, max_length=255)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=50)
    zip: str = Field(min_length=1, max_length=20)
    memo: str = Field(default="", max_length=255)
    shipping_method: ShippingMethod = ShippingMethod.USPS


class CardPaymentDetails(_PaymentDetailsBase):
    network: Literal["card"] = "card"
    # e.g. "Single-use card for invoice #123"
    description: str = Field(min_length=1, max_length=200)


PaymentDetails = Annotated[
    Union[
        AchPaymentDetails,
        RtpPaymentDetails,
        WirePaymentDetails,
        CheckPaymentDetails,
        CardPaymentDetails,
    ],
    Field(discriminator="network"),
]


# --- Requests ---

class BillPaymentCreate(BaseModel):
    """
    Request to pay a bill.

    external_account_id is the funding source; when omitted the
    session's external account is used.
    """
    amount: int = Field(gt=0, description="Amount in cents")
    payment_details: PaymentDetails
    external_account_id: str | None = Field(default=None, max_length=100)


# --- Responses ---

class TimelineStep(BaseModel):
    label: str
    state: Literal["completed", "current", "pending"]


class NextAction(BaseModel):
    action: Literal["settle_debit", "settle_credit", "authorize_card"]
    label: str


STATUS_LABELS: dict[BillPaymentStatus, str] = {
    BillPaymentStatus.PENDING_DEBIT: "Pending Debit",
    BillPaymentStatus.DEBIT_PROCESSING: "Debit Processing",
    BillPaymentStatus.PENDING_CREDIT: "Pending Credit",
    BillPaymentStatus.CREDIT_SUBMITTED: "Credit Submitted",
    BillPaymentStatus.CREDIT_MAILED: "Check Mailed",
    BillPaymentStatus.PENDING_AUTHORIZATION: "Awaiting Card Auth",
    BillPaymentStatus.COMPLETED: "Completed",
    BillPaymentStatus.FAILED: "Failed",
}

NETWORK_LABELS: dict[PaymentNetwork, str] = {
    PaymentNetwork.ACH: "ACH",
    PaymentNetwork.RTP: "RTP",
    PaymentNetwork.WIRE: "Wire",
    PaymentNetwork.CHECK: "Check",
    PaymentNetwork.CARD: "Card",
}

NEXT_ACTIONS: dict[BillPaymentStatus, NextAction] = {
    BillPaymentStatus.DEBIT_PROCESSING: NextAction(
        action="settle_debit", label="Settle Debit"
    ),
    BillPaymentStatus.CREDIT_SUBMITTED: NextAction(
        action="settle_credit", label="Settle Credit"
    ),
    BillPaymentStatus.CREDIT_MAILED: NextAction(
        action="settle_credit", label="Deposit Check"
    ),
    BillPaymentStatus.PENDING_AUTHORIZATION: NextAction(
        action="authorize_card", label="Authorize Card"
    ),
}


def _step(label: str, completed: bool, current: bool) -> TimelineStep:
    if completed:
        return TimelineStep(label=label, state="completed")
    return TimelineStep(label=label, state="current" if current else "pending")


def build_timeline(
    network: PaymentNetwork, status: BillPaymentStatus
) -> list[TimelineStep]:
    """
    Progress steps for the payment detail view.

    The two debit steps are shared by every rail; the credit
    steps depend on the network.
    """
    S = BillPaymentStatus
    debit_steps = [
        _step("Debit initiated", status != S.PENDING_DEBIT, status == S.PENDING_DEBIT),
        _step(
            "Debit settled",
            status not in (S.PENDING_DEBIT, S.DEBIT_PROCESSING),
            status == S.DEBIT_PROCESSING,
        ),
    ]

    if status == S.FAILED:
        return debit_steps + [TimelineStep(label="Payment failed", state="current")]

    post_debit = status not in (S.PENDING_DEBIT, S.DEBIT_PROCESSING)
    done = status == S.COMPLETED

    if network == PaymentNetwork.ACH:
        credit_steps = [
            _step("ACH credit submitted", post_debit and status != S.PENDING_CREDIT,
                  status == S.PENDING_CREDIT),
            _step("ACH credit settled", done, status == S.CREDIT_SUBMITTED),
        ]
    elif network == PaymentNetwork.WIRE:
        credit_steps = [_step("Wire sent", done, post_debit)]
    elif network == PaymentNetwork.RTP:
        credit_steps = [_step("RTP sent", done, post_debit)]
    elif network == PaymentNetwork.CHECK:
        credit_steps = [
            _step("Check mailed", status in (S.CREDIT_MAILED, S.COMPLETED), post_debit),
            _step("Check deposited", done, status == S.CREDIT_MAILED),
        ]
    else:
        credit_steps = [
            _step("Card created", post_debit, False),
            _step("Card authorized", done, status == S.PENDING_AUTHORIZATION),
        ]

    return debit_steps + credit_steps


class BillPaymentResponse(BaseModel):
    id: int
    external_id: uuid.UUID
    session_id: int
    amount: int
    network: PaymentNetwork
    status: BillPaymentStatus
    payment_details: dict
    external_account_id: str
    debit_transfer_id: str | None
    credit_transfer_id: str | None
    check_number: str | None
    source_account_number_id: str | None
    card_id: str | None
    card_last4: str | None
    error_message: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def status_label(self) -> str:
        return STATUS_LABELS[self.status]

    @computed_field
    @property
    def network_label(self) -> str:
        return NETWORK_LABELS[self.network]

    @computed_field
    @property
    def next_action(self) -> NextAction | None:
        return NEXT_ACTIONS.get(self.status)

    @computed_field
    @property
    def timeline(self) -> list[TimelineStep]:
        return build_timeline(self.network, self.status)


class CardPaymentPageResponse(BaseModel):
    """What the payee sees to charge a single-use card."""
    payment_id: int
    card_id: str
    amount: int
    iframe_url: str
    expires_at: str | None
    message: str


# --- Sample data ---

class InvoiceLineItem(BaseModel):
    description: str
    amount: int


class AchInstructions(BaseModel):
    bank_name: str
    routing_number: str
    account_number: str


class SampleInvoice(BaseModel):
    invoice_number: str
    vendor_name: str
    vendor_address: str
    amount: int
    line_items: list[InvoiceLineItem]
    ach_instructions: AchInstructions

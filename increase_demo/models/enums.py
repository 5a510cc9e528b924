"""
Shared enumerations for database models and request schemas.

Values are the lowercase identifiers the frontend and the
Increase API use, so they round-trip through JSON unchanged.
"""

import enum


class Product(str, enum.Enum):
    """Which demo a session was set up for."""
    BILL_PAY = "bill_pay"
    BANKING = "banking"


class PaymentNetwork(str, enum.Enum):
    """Rail used for the credit leg of a bill payment."""
    ACH = "ach"
    RTP = "rtp"
    WIRE = "wire"
    CHECK = "check"
    CARD = "card"


class BillPaymentStatus(str, enum.Enum):
    PENDING_DEBIT = "pending_debit"
    DEBIT_PROCESSING = "debit_processing"
    PENDING_CREDIT = "pending_credit"
    # ACH: submitted, awaiting settlement
    CREDIT_SUBMITTED = "credit_submitted"
    # Check: mailed, awaiting deposit
    CREDIT_MAILED = "credit_mailed"
    # Card: created, awaiting authorization
    PENDING_AUTHORIZATION = "pending_authorization"
    COMPLETED = "completed"
    FAILED = "failed"


class InboundTransferType(str, enum.Enum):
    """Kinds of inbound money the banking demo can simulate."""
    ACH = "ach"
    WIRE = "wire"
    CHECK = "check"


class ShippingMethod(str, enum.Enum):
    USPS = "usps"
    FEDEX = "fedex"

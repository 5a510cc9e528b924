"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from increase_demo.models.base import Base
from increase_demo.models.enums import (
    Product,
    PaymentNetwork,
    BillPaymentStatus,
    InboundTransferType,
    ShippingMethod,
)
from increase_demo.models.demo_session import DemoSession
from increase_demo.models.bill_payment import BillPayment
from increase_demo.models.api_request import ApiRequestLog

__all__ = [
    "Base",
    "Product",
    "PaymentNetwork",
    "BillPaymentStatus",
    "InboundTransferType",
    "ShippingMethod",
    "DemoSession",
    "BillPayment",
    "ApiRequestLog",
]

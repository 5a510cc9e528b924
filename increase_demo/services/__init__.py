"""Business logic services."""

from increase_demo.services.api_log_service import ApiLogService
from increase_demo.services.session_service import SessionService
from increase_demo.services.bill_payment_service import BillPaymentService
from increase_demo.services.banking_service import BankingService

__all__ = ["ApiLogService", "SessionService", "BillPaymentService", "BankingService"]

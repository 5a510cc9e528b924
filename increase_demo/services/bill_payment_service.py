"""
Bill payment service: moves a bill payment through its rails.

Each payment is two legs:
1. Debit: an ACH pull from the funding external account
2. Credit: a push to the payee over ACH, RTP, wire, check or card

The sandbox does not advance transfers on its own, so every
step after creation is a simulation call made on request:

    create            -> debit_processing
    settle debit      -> pending_credit -> (network specific)
    settle credit     -> completed  (ACH settlement, check deposit)
    authorize card    -> completed  (card rail)

Preconditions are checked before any vendor call and raise
ValueError without touching the payment. Once a vendor call is
made, any failure marks the payment FAILED with the error
message and re-raises. The caller controls the commit.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from increase_demo.clients.increase import ClientFactory, IncreaseAPIError, IncreaseClient
from increase_demo.models.bill_payment import BillPayment
from increase_demo.models.demo_session import DemoSession
from increase_demo.models.enums import BillPaymentStatus, PaymentNetwork, Product
from increase_demo.schemas.bill_payment import BillPaymentCreate
from increase_demo.services.api_log_service import ApiLogService
from increase_demo.services.session_service import get_demo_session
from increase_demo.utils.logging import get_logger

logger = get_logger(__name__)


DEBIT_STATEMENT_DESCRIPTOR = "Bill Payment Debit"
CARD_MERCHANT_DESCRIPTOR = "Bill Payment"
# Miscellaneous retail
CARD_MERCHANT_CATEGORY_CODE = "5999"

CHECK_SHIPPING_METHODS = {
    "usps": "usps_first_class",
    "fedex": "fedex_overnight",
}

SAMPLE_INVOICE = {
    "invoice_number": "INV-2024-0847",
    "vendor_name": "ACME Corporation",
    "vendor_address": "1 Coyote Canyon Road\nDesert, AZ 00000",
    "amount": 499999,
    "line_items": [
        {"description": "Giant Rubber Band Slingshot", "amount": 129999},
        {"description": "Rocket-Powered Roller Skates", "amount": 184999},
        {"description": "Portable Hole (3-pack)", "amount": 99999},
        {"description": "Bird Seed (50lb bag)", "amount": 4999},
        {"description": "Anvil, 1-Ton (Express Delivery)", "amount": 80003},
    ],
    "ach_instructions": {
        "bank_name": "First National Bank of the Desert",
        "routing_number": "101050001",
        "account_number": "9876543210",
    },
}

_SAMPLE_BANK_DETAILS = {
    "account_number": "123456789",
    "routing_number": "101050001",
    "statement_descriptor": "VENDOR PAYMENT",
}

# Prefill values for the payment form, per network
SAMPLE_PAYMENT_DETAILS: dict[PaymentNetwork, dict] = {
    PaymentNetwork.ACH: {"network": "ach", **_SAMPLE_BANK_DETAILS},
    PaymentNetwork.RTP: {"network": "rtp", **_SAMPLE_BANK_DETAILS},
    PaymentNetwork.WIRE: {"network": "wire", **_SAMPLE_BANK_DETAILS},
    PaymentNetwork.CHECK: {
        "network": "check",
        "recipient_name": "Acme Supplies Inc",
        "address_line1": "456 Commerce Street",
        "address_line2": "Suite 100",
        "city": "Los Angeles",
        "state": "CA",
        "zip": "90012",
        "memo": "Invoice #12345",
        "shipping_method": "usps",
    },
    PaymentNetwork.CARD: {
        "network": "card",
        "description": "Single-use card for Invoice #12345",
    },
}


class BillPaymentService:

    def __init__(self, db: Session, client_factory: ClientFactory):
        self.db = db
        self.client_factory = client_factory
        self.api_log = ApiLogService(db)

    def _session(self, session_id: int) -> DemoSession:
        return get_demo_session(self.db, session_id, Product.BILL_PAY)

    def _transition(
        self, payment: BillPayment, new_status: BillPaymentStatus, **fields
    ) -> None:
        if not payment.can_transition_to(new_status):
            raise ValueError(
                f"Cannot transition from {payment.status.value} "
                f"to {new_status.value}"
            )
        payment.status = new_status
        for name, value in fields.items():
            setattr(payment, name, value)
        self.db.flush()

    def _fail(self, payment: BillPayment, error: Exception) -> None:
        message = error.message if isinstance(error, IncreaseAPIError) else str(error)
        logger.warning(f"Bill payment {payment.id} failed: {message}")
        payment.status = BillPaymentStatus.FAILED
        payment.error_message = (message or "Unknown error")[:500]
        self.db.flush()

    # --- Queries ---

    def list_payments(self, session_id: int) -> list[BillPayment]:
        """Payments of a session, oldest first."""
        self._session(session_id)
        payments = self.db.execute(
            select(BillPayment)
            .where(BillPayment.session_id == session_id)
            .order_by(BillPayment.id)
        ).scalars().all()
        return list(payments)

    def get_payment(self, session_id: int, payment_id: int) -> BillPayment:
        self._session(session_id)
        payment = self.db.get(BillPayment, payment_id)
        if not payment or payment.session_id != session_id:
            raise LookupError(f"Bill payment {payment_id} not found")
        return payment

    # --- Lifecycle ---

    def create_payment(
        self, session_id: int, request: BillPaymentCreate
    ) -> BillPayment:
        """
        Record a payment and create its debit leg.

        Only the debit leg is created here; the credit leg waits
        until the debit settles.
        """
        session = self._session(session_id)
        external_account_id = request.external_account_id or session.external_account_id
        if not external_account_id:
            raise ValueError("A funding external account is required")

        details = request.payment_details
        payment = BillPayment(
            session_id=session.id,
            amount=request.amount,
            network=PaymentNetwork(details.network),
            status=BillPaymentStatus.PENDING_DEBIT,
            payment_details=details.model_dump(mode="json"),
            external_account_id=external_account_id,
        )
        self.db.add(payment)
        self.db.flush()
        logger.info(
            f"Bill payment {payment.id} created: {payment.amount} cents "
            f"via {payment.network.value}"
        )

        with self.client_factory(session.api_key) as client, \
                self.api_log.capture(client, session.id):
            try:
                # A negative amount with an external account pulls
                # funds FROM that account.
                debit = client.create_ach_transfer({
                    "account_id": session.account_id,
                    "amount": -payment.amount,
                    "external_account_id": external_account_id,
                    "statement_descriptor": DEBIT_STATEMENT_DESCRIPTOR,
                })
                self._transition(
                    payment,
                    BillPaymentStatus.DEBIT_PROCESSING,
                    debit_transfer_id=debit["id"],
                )
            except Exception as e:
                self._fail(payment, e)
                raise

        return payment

    def settle_debit_and_create_credit(
        self, session_id: int, payment_id: int
    ) -> BillPayment:
        """Settle the debit leg, then send the credit leg on the payment's rail."""
        session = self._session(session_id)
        payment = self.get_payment(session_id, payment_id)
        if payment.status != BillPaymentStatus.DEBIT_PROCESSING or not payment.debit_transfer_id:
            raise ValueError(
                f"Bill payment {payment.id} has no debit awaiting settlement "
                f"(status: {payment.status.value})"
            )

        with self.client_factory(session.api_key) as client, \
                self.api_log.capture(client, session.id):
            try:
                client.simulate_ach_transfer_settlement(payment.debit_transfer_id)
                self._transition(payment, BillPaymentStatus.PENDING_CREDIT)
                self._send_credit(client, session, payment)
            except Exception as e:
                self._fail(payment, e)
                raise

        return payment

    def _send_credit(
        self, client: IncreaseClient, session: DemoSession, payment: BillPayment
    ) -> None:
        details = payment.payment_details
        network = payment.network

        if network == PaymentNetwork.ACH:
            transfer = client.create_ach_transfer({
                "account_id": session.account_id,
                "amount": payment.amount,
                "routing_number": details["routing_number"],
                "account_number": details["account_number"],
                "statement_descriptor": details["statement_descriptor"],
            })
            client.simulate_ach_transfer_submission(transfer["id"])
            self._transition(
                payment,
                BillPaymentStatus.CREDIT_SUBMITTED,
                credit_transfer_id=transfer["id"],
            )

        elif network == PaymentNetwork.WIRE:
            transfer = client.create_wire_transfer({
                "account_id": session.account_id,
                "amount": payment.amount,
                "routing_number": details["routing_number"],
                "account_number": details["account_number"],
                "creditor": {"name": details["statement_descriptor"]},
                "remittance": {
                    "category": "unstructured",
                    "unstructured": {"message": details["statement_descriptor"]},
                },
            })
            # Wires complete as soon as they are submitted
            client.simulate_wire_transfer_submission(transfer["id"])
            self._transition(
                payment,
                BillPaymentStatus.COMPLETED,
                credit_transfer_id=transfer["id"],
            )

        elif network == PaymentNetwork.RTP:
            # RTP sends from an account number, created on demand
            account_number = client.create_account_number(
                session.account_id, "RTP Transfer"
            )
            transfer = client.create_real_time_payments_transfer({
                "source_account_number_id": account_number["id"],
                "account_number": details["account_number"],
                "routing_number": details["routing_number"],
                "amount": payment.amount,
                "creditor_name": details["statement_descriptor"],
                "unstructured_remittance_information": details["statement_descriptor"],
            })
            client.simulate_real_time_payments_transfer_completion(transfer["id"])
            self._transition(
                payment,
                BillPaymentStatus.COMPLETED,
                credit_transfer_id=transfer["id"],
            )

        elif network == PaymentNetwork.CHECK:
            # Checks are drawn on an account number, created on demand
            account_number = client.create_account_number(
                session.account_id, "Check Transfer"
            )
            mailing_address = {
                "name": details["recipient_name"],
                "line1": details["address_line1"],
                "city": details["city"],
                "state": details["state"],
                "postal_code": details["zip"],
            }
            if details.get("address_line2"):
                mailing_address["line2"] = details["address_line2"]
            physical_check = {
                "recipient_name": details["recipient_name"],
                "mailing_address": mailing_address,
                "memo": details.get("memo") or "",
                "payer": [{"contents": session.company_name}],
                "shipping_method": CHECK_SHIPPING_METHODS[
                    details.get("shipping_method") or "usps"
                ],
            }
            transfer = client.create_check_transfer({
                "account_id": session.account_id,
                "amount": payment.amount,
                "source_account_number_id": account_number["id"],
                "fulfillment_method": "physical_check",
                "physical_check": physical_check,
            })
            client.simulate_check_transfer_mailing(transfer["id"])
            self._transition(
                payment,
                BillPaymentStatus.CREDIT_MAILED,
                credit_transfer_id=transfer["id"],
                check_number=transfer.get("check_number"),
                source_account_number_id=account_number["id"],
            )

        elif network == PaymentNetwork.CARD:
            card = client.create_card(session.account_id, details["description"])
            # The card is usable at once; the payee still has to charge it
            self._transition(
                payment,
                BillPaymentStatus.PENDING_AUTHORIZATION,
                card_id=card["id"],
                card_last4=card.get("last4"),
            )

    def settle_credit(self, session_id: int, payment_id: int) -> BillPayment:
        """
        Finish a credit leg that needs a second simulation.

        ACH credits are settled; mailed checks are deposited by
        the payee through an inbound check deposit.
        """
        session = self._session(session_id)
        payment = self.get_payment(session_id, payment_id)
        awaiting = (BillPaymentStatus.CREDIT_SUBMITTED, BillPaymentStatus.CREDIT_MAILED)
        if payment.status not in awaiting or not payment.credit_transfer_id:
            raise ValueError(
                f"Bill payment {payment.id} has no credit awaiting settlement "
                f"(status: {payment.status.value})"
            )

        with self.client_factory(session.api_key) as client, \
                self.api_log.capture(client, session.id):
            try:
                if payment.network == PaymentNetwork.ACH:
                    client.simulate_ach_transfer_settlement(payment.credit_transfer_id)
                elif payment.network == PaymentNetwork.CHECK:
                    if not payment.source_account_number_id or not payment.check_number:
                        raise ValueError("Missing check details for deposit simulation")
                    client.simulate_inbound_check_deposit(
                        payment.source_account_number_id,
                        payment.amount,
                        payment.check_number,
                    )
                self._transition(payment, BillPaymentStatus.COMPLETED)
            except Exception as e:
                self._fail(payment, e)
                raise

        return payment

    def simulate_card_authorization(
        self, session_id: int, payment_id: int
    ) -> BillPayment:
        """Charge the payment's single-use card for the full amount."""
        session = self._session(session_id)
        payment = self.get_payment(session_id, payment_id)
        if payment.status != BillPaymentStatus.PENDING_AUTHORIZATION or not payment.card_id:
            raise ValueError(
                f"Bill payment {payment.id} has no card awaiting authorization "
                f"(status: {payment.status.value})"
            )

        with self.client_factory(session.api_key) as client, \
                self.api_log.capture(client, session.id):
            try:
                result = client.simulate_card_authorization({
                    "card_id": payment.card_id,
                    "amount": payment.amount,
                    "merchant_descriptor": CARD_MERCHANT_DESCRIPTOR,
                    "merchant_category_code": CARD_MERCHANT_CATEGORY_CODE,
                })
                if result.get("declined_transaction"):
                    raise ValueError("Card authorization was declined")
                self._transition(payment, BillPaymentStatus.COMPLETED)
            except Exception as e:
                self._fail(payment, e)
                raise

        return payment

    def card_payment_page(self, session_id: int, payment_id: int) -> dict:
        """
        Build the payee's view of a card payment.

        The card number is only ever shown inside the vendor's
        iframe; this returns the iframe URL.
        """
        session = self._session(session_id)
        payment = self.get_payment(session_id, payment_id)
        if not payment.card_id:
            raise ValueError("No card ID available")

        with self.client_factory(session.api_key) as client, \
                self.api_log.capture(client, session.id):
            iframe = client.create_card_details_iframe(payment.card_id)

        sender = session.end_user_name or session.company_name
        return {
            "payment_id": payment.id,
            "card_id": payment.card_id,
            "amount": payment.amount,
            "iframe_url": iframe["iframe_url"],
            "expires_at": iframe.get("expires_at"),
            "message": f"{sender} has sent you a payment via single-use virtual card.",
        }


def sample_details(network: PaymentNetwork) -> dict:
    return dict(SAMPLE_PAYMENT_DETAILS[network])

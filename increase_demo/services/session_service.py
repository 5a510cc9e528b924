"""
Session service: provisions a demo company in the sandbox.

Setup runs in order:
1. Validates the form (API key and company name, with defaults)
2. Creates a corporation entity and its operating account
3. Runs the product-specific setup:
   - Bill Pay: a vendor external account to pull funds from
   - Banking: account number, lockbox and cards, then seed
     transactions so the overview has something to show
4. Saves the session with every vendor id it created

A successful setup logs every vendor call against the new
session. A failed setup saves nothing: its calls, the failed
one included, travel back on the IncreaseAPIError. The caller
controls the commit.
"""

import time
from functools import partial

from sqlalchemy.orm import Session

from increase_demo.clients.increase import ClientFactory, IncreaseAPIError, IncreaseClient
from increase_demo.config import get_settings
from increase_demo.models.demo_session import DemoSession
from increase_demo.models.enums import Product
from increase_demo.schemas.session import SessionCreate
from increase_demo.services.api_log_service import ApiLogService
from increase_demo.utils.concurrency import run_parallel
from increase_demo.utils.logging import get_logger

logger = get_logger(__name__)


DEMO_ADDRESS = {
    "line1": "123 Main St",
    "city": "San Francisco",
    "state": "CA",
    "zip": "94102",
}

# Fixed sandbox identity for the entity's beneficial owner
DEMO_BENEFICIAL_OWNER = {
    "individual": {
        "name": "Jane Demo",
        "date_of_birth": "1980-01-01",
        "address": {**DEMO_ADDRESS, "country": "US"},
        "identification": {
            "method": "social_security_number",
            "number": "078051120",
        },
    },
    "prongs": ["ownership", "control"],
}

DEMO_TAX_IDENTIFIER = "12-3456789"
OPERATING_ACCOUNT_NAME = "Operating Account"

VENDOR_ACCOUNT_NUMBER = "987654321"
VENDOR_ROUTING_NUMBER = "101050001"

VENDOR_EXTERNAL_ACCOUNT = {
    "account_number": VENDOR_ACCOUNT_NUMBER,
    "routing_number": VENDOR_ROUTING_NUMBER,
    "description": "Vendor Payment Account",
    "account_holder": "business",
    "funding": "checking",
}

# Banking seed data: (card description, purchase amount in cents)
SEED_CARDS = [
    ("Office Supplies", 4599),
    ("Travel", 32000),
    ("Software Subscriptions", 9900),
]
SEED_WIRE_AMOUNT = 1_000_000
SEED_MAIL_ITEM_AMOUNT = 250_000
PAYROLL_AMOUNT = 120_000


def get_demo_session(
    db: Session, session_id: int, product: Product | None = None
) -> DemoSession:
    """Load a session, optionally requiring it to be for a product."""
    session = db.get(DemoSession, session_id)
    if not session:
        raise LookupError(f"Demo session {session_id} not found")
    if product is not None and session.product != product:
        raise ValueError(
            f"Demo session {session_id} is a {session.product.value} "
            f"session, not {product.value}"
        )
    return session


class SessionService:

    def __init__(
        self,
        db: Session,
        client_factory: ClientFactory,
        settle_delay: float | None = None,
    ):
        self.db = db
        self.client_factory = client_factory
        self.api_log = ApiLogService(db)
        if settle_delay is None:
            settle_delay = get_settings().SETUP_SETTLE_DELAY_SECONDS
        self.settle_delay = settle_delay

    def create_session(self, request: SessionCreate) -> DemoSession:
        """
        Provision a demo company and save the session.

        Raises ValueError for an incomplete form and
        IncreaseAPIError when a vendor call fails.
        """
        settings = get_settings()
        api_key = (request.api_key or settings.INCREASE_API_KEY).strip()
        company_name = (request.company_name or settings.DEFAULT_COMPANY_NAME).strip()
        if not api_key:
            raise ValueError("API key is required")
        if not company_name:
            raise ValueError("Company name is required")

        logger.info(f"Setting up {request.product.value} demo for {company_name!r}")

        with self.client_factory(api_key) as client:
            try:
                resources = self._provision(client, request.product, company_name)
            except IncreaseAPIError as e:
                logger.warning(f"Demo setup failed: {e.message}")
                # No session to log against; the calls go back with the error
                e.requests = client.drain_requests()
                raise

        session = DemoSession(
            api_key=api_key,
            company_name=company_name,
            end_user_name=(request.end_user_name or "").strip() or None,
            product=request.product,
            **resources,
        )
        self.db.add(session)
        self.db.flush()

        self.api_log.record_all(client.drain_requests(), session.id)
        logger.info(f"Demo session {session.id} ready (account {session.account_id})")
        return session

    def get_session(self, session_id: int) -> DemoSession:
        return get_demo_session(self.db, session_id)

    def _provision(
        self, client: IncreaseClient, product: Product, company_name: str
    ) -> dict:
        entity = client.create_entity({
            "structure": "corporation",
            "corporation": {
                "name": company_name,
                "tax_identifier": DEMO_TAX_IDENTIFIER,
                "address": DEMO_ADDRESS,
                "beneficial_owners": [DEMO_BENEFICIAL_OWNER],
            },
        })
        account = client.create_account(OPERATING_ACCOUNT_NAME, entity["id"])
        resources = {"entity_id": entity["id"], "account_id": account["id"]}

        if product == Product.BILL_PAY:
            external_account = client.create_external_account(VENDOR_EXTERNAL_ACCOUNT)
            resources["external_account_id"] = external_account["id"]
        else:
            resources.update(self._seed_banking(client, account["id"]))

        return resources

    def _seed_banking(self, client: IncreaseClient, account_id: str) -> dict:
        """
        Create the banking resources and give them history.

        Independent resources are created concurrently; each
        later step depends on the ones before it.
        """
        account_number, lockbox, *cards = run_parallel(
            partial(client.create_account_number, account_id, "Primary Account Number"),
            partial(client.create_lockbox, account_id, "Primary Lockbox"),
            *[
                partial(client.create_card, account_id, description)
                for description, _ in SEED_CARDS
            ],
        )

        # Opening balance
        client.simulate_inbound_wire_transfer(account_number["id"], SEED_WIRE_AMOUNT)

        # A check mailed to the lockbox, then deposited
        mail_item = client.simulate_inbound_mail_item(lockbox["id"], SEED_MAIL_ITEM_AMOUNT)
        for check in mail_item.get("checks") or []:
            if check.get("check_deposit_id"):
                client.simulate_check_deposit_submission(check["check_deposit_id"])

        # Let the simulated deposits settle before spending
        if self.settle_delay > 0:
            time.sleep(self.settle_delay)

        payroll = client.create_ach_transfer({
            "account_id": account_id,
            "amount": PAYROLL_AMOUNT,
            "account_number": VENDOR_ACCOUNT_NUMBER,
            "routing_number": VENDOR_ROUTING_NUMBER,
            "statement_descriptor": "Payroll",
        })
        client.simulate_ach_transfer_settlement(payroll["id"])

        authorizations = run_parallel(*[
            partial(client.simulate_card_authorization, {
                "card_id": card["id"],
                "amount": amount,
                "merchant_descriptor": description,
            })
            for card, (description, amount) in zip(cards, SEED_CARDS)
        ])

        settlements = []
        for card, authorization, (_, amount) in zip(cards, authorizations, SEED_CARDS):
            pending = authorization.get("pending_transaction")
            if not pending:
                logger.warning(f"Seed authorization on card {card['id']} was declined")
                continue
            settlements.append(
                partial(client.simulate_card_settlement, card["id"], pending["id"], amount)
            )
        run_parallel(*settlements)

        return {
            "account_number_id": account_number["id"],
            "lockbox_id": lockbox["id"],
            "card_ids": [card["id"] for card in cards],
        }

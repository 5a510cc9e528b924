"""
Banking service: the operating account views of the banking demo.

Reads go straight to the sandbox; nothing here is cached. The
only local state is the session, which holds the account id.
"""

from datetime import date
from functools import partial

from sqlalchemy.orm import Session

from increase_demo.clients.increase import ClientFactory
from increase_demo.models.demo_session import DemoSession
from increase_demo.models.enums import InboundTransferType, Product
from increase_demo.schemas.banking import InboundSimulationRequest
from increase_demo.services.api_log_service import ApiLogService
from increase_demo.services.session_service import get_demo_session
from increase_demo.utils.concurrency import run_parallel
from increase_demo.utils.logging import get_logger

logger = get_logger(__name__)


RECENT_TRANSACTIONS_LIMIT = 10
FEATURED_CARDS_LIMIT = 3

INBOUND_ACH_COMPANY_NAME = "External Company"
INBOUND_ACH_ENTRY_DESCRIPTION = "Payment"
DEFAULT_INBOUND_CHECK_NUMBER = "1001"


def _routed_to(transactions: list[dict], route_id: str) -> list[dict]:
    return [t for t in transactions if t.get("route_id") == route_id]


class BankingService:

    def __init__(self, db: Session, client_factory: ClientFactory):
        self.db = db
        self.client_factory = client_factory
        self.api_log = ApiLogService(db)

    def _session(self, session_id: int) -> DemoSession:
        return get_demo_session(self.db, session_id, Product.BANKING)

    def _call(self, session: DemoSession, operation):
        """Run operation(client) and log its vendor calls."""
        with self.client_factory(session.api_key) as client, \
                self.api_log.capture(client, session.id):
            return operation(client)

    def overview(self, session_id: int) -> dict:
        """
        Everything the dashboard shows, fetched in one fan-out.

        Also used to refresh after any change.
        """
        session = self._session(session_id)
        account_id = session.account_id

        def fetch(client):
            return run_parallel(
                partial(client.retrieve_account, account_id),
                partial(client.get_account_balance, account_id),
                partial(client.list_account_numbers, account_id),
                partial(client.list_lockboxes, account_id),
                partial(client.list_transactions, account_id),
                partial(client.list_cards, account_id),
            )

        account, balance, account_numbers, lockboxes, transactions, cards = (
            self._call(session, fetch)
        )
        return {
            "account": account,
            "balance": balance,
            "account_numbers": account_numbers,
            "lockboxes": lockboxes,
            "transactions": transactions,
            "cards": cards,
            "primary_account_number": account_numbers[0] if account_numbers else None,
            "primary_lockbox": lockboxes[0] if lockboxes else None,
            "recent_transactions": transactions[:RECENT_TRANSACTIONS_LIMIT],
            "featured_cards": cards[:FEATURED_CARDS_LIMIT],
        }

    def roll_account_number(self, session_id: int) -> dict:
        """Create another account number, named by how many exist."""
        session = self._session(session_id)

        def roll(client):
            existing = client.list_account_numbers(session.account_id)
            return client.create_account_number(
                session.account_id, f"Account Number {len(existing) + 1}"
            )

        account_number = self._call(session, roll)
        logger.info(f"Session {session.id} rolled account number {account_number['id']}")
        return account_number

    def roll_lockbox(self, session_id: int) -> dict:
        session = self._session(session_id)

        def roll(client):
            existing = client.list_lockboxes(session.account_id)
            return client.create_lockbox(
                session.account_id, f"Lockbox {len(existing) + 1}"
            )

        lockbox = self._call(session, roll)
        logger.info(f"Session {session.id} rolled lockbox {lockbox['id']}")
        return lockbox

    def create_card(self, session_id: int, description: str) -> dict:
        description = description.strip()
        if not description:
            raise ValueError("Card description is required")
        session = self._session(session_id)
        return self._call(
            session, lambda client: client.create_card(session.account_id, description)
        )

    def list_cards(self, session_id: int) -> list[dict]:
        session = self._session(session_id)
        return self._call(session, lambda client: client.list_cards(session.account_id))

    def card_detail(self, session_id: int, card_id: str) -> dict:
        """A card and the transactions made with it."""
        session = self._session(session_id)

        def fetch(client):
            return run_parallel(
                partial(client.list_cards, session.account_id),
                partial(client.list_transactions, session.account_id),
            )

        cards, transactions = self._call(session, fetch)
        card = next((c for c in cards if c.get("id") == card_id), None)
        if not card:
            raise LookupError("Card not found")
        return {"card": card, "transactions": _routed_to(transactions, card_id)}

    def lockbox_detail(self, session_id: int) -> dict:
        """The primary lockbox and the deposits that arrived through it."""
        session = self._session(session_id)

        def fetch(client):
            return run_parallel(
                partial(client.list_lockboxes, session.account_id),
                partial(client.list_transactions, session.account_id),
            )

        lockboxes, transactions = self._call(session, fetch)
        if not lockboxes:
            raise LookupError("Lockbox not found")
        lockbox = lockboxes[0]
        return {"lockbox": lockbox, "transactions": _routed_to(transactions, lockbox["id"])}

    def transaction_detail(self, session_id: int, transaction_id: str) -> dict:
        session = self._session(session_id)
        transactions = self._call(
            session, lambda client: client.list_transactions(session.account_id)
        )
        transaction = next((t for t in transactions if t.get("id") == transaction_id), None)
        if not transaction:
            raise LookupError("Transaction not found")

        category = (transaction.get("source") or {}).get("category")
        return {
            "transaction": transaction,
            "source_category": category.replace("_", " ") if category else "unknown",
        }

    def simulate_inbound(
        self, session_id: int, request: InboundSimulationRequest
    ) -> dict:
        """
        Simulate money arriving at the primary account number.

        Raises ValueError for a non-positive amount or when the
        account has no account number to receive on.
        """
        if request.amount <= 0:
            raise ValueError("Amount must be greater than 0")
        session = self._session(session_id)

        def simulate(client):
            account_numbers = client.list_account_numbers(session.account_id)
            if not account_numbers:
                raise ValueError("No account number available")
            account_number_id = account_numbers[0]["id"]

            if request.type == InboundTransferType.WIRE:
                result = client.simulate_inbound_wire_transfer(
                    account_number_id, request.amount
                )
            elif request.type == InboundTransferType.ACH:
                result = client.simulate_inbound_ach_transfer({
                    "account_number_id": account_number_id,
                    "amount": request.amount,
                    "company_name": INBOUND_ACH_COMPANY_NAME,
                    "company_descriptive_date": date.today().isoformat(),
                    "company_entry_description": INBOUND_ACH_ENTRY_DESCRIPTION,
                })
            else:
                result = client.simulate_inbound_check_deposit(
                    account_number_id,
                    request.amount,
                    request.check_number or DEFAULT_INBOUND_CHECK_NUMBER,
                )
            return account_number_id, result

        account_number_id, result = self._call(session, simulate)
        logger.info(
            f"Session {session.id} simulated inbound {request.type.value} "
            f"of {request.amount} cents"
        )
        return {
            "type": request.type,
            "account_number_id": account_number_id,
            "result": result,
        }

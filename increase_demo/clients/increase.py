"""
Increase API client.

Purpose:
- The only place where the demo talks to the Increase REST API
- Records every call (method, path, status, resource id) so the
  request log can mirror what happened behind each demo step

Implementation notes:
- Calls go through the official `increase` SDK; this module wraps
  it with request recording and one error type for the services
- The SDK runs on an httpx client we build, so a response hook
  sees every HTTP exchange, failed ones included
- Retries are off: one demo step is one logged call
- Responses are returned as plain dicts: vendor resources are
  passed through, never re-modelled
- Non-2xx responses, unreadable bodies and transport failures
  raise IncreaseAPIError
- The client is shared by fan-out worker threads, so recording
  only appends to a list and never touches the database
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import httpx
import increase
from increase import Increase
from increase.pagination import SyncPage

from increase_demo.config import get_settings

# Maps a request's resource type to its section in the dashboard.
# Simulations are synthetic and have no dashboard page.
DASHBOARD_TYPES: Dict[str, Optional[str]] = {
    "entities": "entities",
    "accounts": "accounts",
    "account_numbers": "account_numbers",
    "external_accounts": "external_accounts",
    "ach_transfers": "transfers",
    "wire_transfers": "transfers",
    "real_time_payments_transfers": "transfers",
    "check_transfers": "transfers",
    "cards": "cards",
    "simulations": None,
}

LIST_PAGE_SIZE = 100

UNREADABLE_RESPONSE_MESSAGE = "Increase returned a response that could not be read"


def resource_type_for(path: str) -> str:
    """First path segment, e.g. 'simulations' for simulations/ach_transfers/x/settle."""
    segments = [s for s in path.split("?")[0].split("/") if s]
    return segments[0] if segments else "unknown"


def dashboard_url_for(resource_type: str, resource_id: Optional[str]) -> Optional[str]:
    if not resource_id:
        return None
    dashboard_type = DASHBOARD_TYPES.get(resource_type)
    if not dashboard_type:
        return None
    base = get_settings().INCREASE_DASHBOARD_URL.rstrip("/")
    return f"{base}/{dashboard_type}/{resource_id}"


@dataclass
class RequestRecord:
    method: str
    path: str
    status_code: int
    resource_type: str
    resource_id: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)


class IncreaseAPIError(Exception):
    """
    A call to the Increase API failed.

    `requests` carries the calls made before the failure when
    there is no session to log them against.
    """

    def __init__(self, status_code: Optional[int], message: str, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.body = body
        self.requests: List[RequestRecord] = []

    @classmethod
    def from_response(cls, response: httpx.Response) -> "IncreaseAPIError":
        try:
            body = response.json()
        except ValueError:
            body = None

        message = None
        if isinstance(body, dict):
            title = body.get("title")
            detail = body.get("detail")
            if title and detail:
                message = f"{title}: {detail}"
            else:
                message = title or detail
        if not message:
            message = response.text or response.reason_phrase or "Unknown error"
        return cls(response.status_code, message, body)


class UnreadableResponse(Exception):
    """A 2xx response whose body is not a JSON object."""

    def __init__(self, response: httpx.Response):
        super().__init__(UNREADABLE_RESPONSE_MESSAGE)
        self.response = response


def _extract_resource_id(data: Any) -> Optional[str]:
    if not isinstance(data, dict):
        return None
    if data.get("id"):
        return data["id"]
    # Card authorization simulations return a result wrapper
    for key in ("pending_transaction", "declined_transaction"):
        nested = data.get(key)
        if isinstance(nested, dict) and nested.get("id"):
            return nested["id"]
    return None


class IncreaseClient:
    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.INCREASE_BASE_URL).rstrip("/")
        self._base_path = httpx.URL(self.base_url).path.rstrip("/")
        timeout = timeout_seconds or settings.HTTP_TIMEOUT_SECONDS

        self._http = httpx.Client(
            timeout=timeout,
            transport=transport,
            event_hooks={"response": [self._on_response]},
        )
        self._sdk = Increase(
            api_key=api_key,
            base_url=self.base_url,
            timeout=timeout,
            max_retries=0,
            http_client=self._http,
        )
        self.requests: List[RequestRecord] = []

    def __enter__(self) -> "IncreaseClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._sdk.close()

    def drain_requests(self) -> List[RequestRecord]:
        """Return and forget the calls recorded so far."""
        drained, self.requests = self.requests, []
        return drained

    def _record(
        self, request: httpx.Request, status_code: int, resource_id: Optional[str]
    ) -> None:
        path = self._logged_path(request.url)
        self.requests.append(RequestRecord(
            method=request.method,
            path=path,
            status_code=status_code,
            resource_type=resource_type_for(path),
            resource_id=resource_id,
        ))

    def _logged_path(self, url: httpx.URL) -> str:
        """Path relative to the API root, with its query string."""
        path = url.path[len(self._base_path):].strip("/")
        query = url.query.decode()
        return f"{path}?{query}" if query else path

    def _on_response(self, response: httpx.Response) -> None:
        """httpx response hook: record the call before the SDK parses it."""
        response.read()
        try:
            data = response.json() if response.content else None
        except ValueError:
            data = None

        if response.is_success and not isinstance(data, dict):
            self._record(response.request, response.status_code, None)
            raise UnreadableResponse(response)

        resource_id = _extract_resource_id(data) if response.is_success else None
        self._record(response.request, response.status_code, resource_id)

    def _call(self, operation: Callable[[], Any]) -> Any:
        """Run one SDK call, mapping its failures to IncreaseAPIError."""
        try:
            return operation()
        except increase.APIStatusError as e:
            raise IncreaseAPIError.from_response(e.response) from e
        except increase.APIConnectionError as e:
            if isinstance(e.__cause__, UnreadableResponse):
                response = e.__cause__.response
                raise IncreaseAPIError(
                    response.status_code, UNREADABLE_RESPONSE_MESSAGE, response.text
                ) from e
            self._record(e.request, 500, None)
            reason = e.__cause__ or e
            raise IncreaseAPIError(None, f"Could not reach Increase: {reason}") from e
        except increase.APIResponseValidationError as e:
            raise IncreaseAPIError(e.status_code, UNREADABLE_RESPONSE_MESSAGE, e.body) from e

    def _one(self, operation: Callable[[], Any]) -> Dict[str, Any]:
        result = self._call(operation)
        if isinstance(result, increase.BaseModel):
            return result.to_dict(mode="json", warnings=False)
        if isinstance(result, dict):
            return result
        raise IncreaseAPIError(None, UNREADABLE_RESPONSE_MESSAGE, result)

    def _many(self, operation: Callable[[], Any]) -> List[Dict[str, Any]]:
        page = self._call(operation)
        if isinstance(page, SyncPage):
            return [item.to_dict(mode="json", warnings=False) for item in page.data]
        if isinstance(page, dict):
            return list(page.get("data") or [])
        raise IncreaseAPIError(None, UNREADABLE_RESPONSE_MESSAGE, page)

    # --- Entities and accounts ---

    def create_entity(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._one(lambda: self._sdk.entities.create(**body))

    def create_account(self, name: str, entity_id: str) -> Dict[str, Any]:
        return self._one(lambda: self._sdk.accounts.create(name=name, entity_id=entity_id))

    def retrieve_account(self, account_id: str) -> Dict[str, Any]:
        return self._one(lambda: self._sdk.accounts.retrieve(account_id))

    def get_account_balance(self, account_id: str) -> Dict[str, Any]:
        return self._one(lambda: self._sdk.accounts.balance(account_id))

    def create_external_account(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._one(lambda: self._sdk.external_accounts.create(**body))

    def create_account_number(self, account_id: str, name: str) -> Dict[str, Any]:
        return self._one(
            lambda: self._sdk.account_numbers.create(account_id=account_id, name=name)
        )

    def list_account_numbers(self, account_id: str) -> List[Dict[str, Any]]:
        return self._many(
            lambda: self._sdk.account_numbers.list(account_id=account_id, limit=LIST_PAGE_SIZE)
        )

    # The SDK has no typed lockbox resource; use its raw request methods.

    def create_lockbox(self, account_id: str, description: str) -> Dict[str, Any]:
        return self._one(lambda: self._sdk.post(
            "/lockboxes",
            body={"account_id": account_id, "description": description},
            cast_to=object,
        ))

    def list_lockboxes(self, account_id: str) -> List[Dict[str, Any]]:
        return self._many(lambda: self._sdk.get(
            "/lockboxes",
            options={"params": {"account_id": account_id, "limit": LIST_PAGE_SIZE}},
            cast_to=object,
        ))

    def list_transactions(self, account_id: str) -> List[Dict[str, Any]]:
        return self._many(
            lambda: self._sdk.transactions.list(account_id=account_id, limit=LIST_PAGE_SIZE)
        )

    # --- Cards ---

    def create_card(self, account_id: str, description: str) -> Dict[str, Any]:
        return self._one(
            lambda: self._sdk.cards.create(account_id=account_id, description=description)
        )

    def list_cards(self, account_id: str) -> List[Dict[str, Any]]:
        return self._many(
            lambda: self._sdk.cards.list(account_id=account_id, limit=LIST_PAGE_SIZE)
        )

    def create_card_details_iframe(self, card_id: str) -> Dict[str, Any]:
        return self._one(lambda: self._sdk.cards.create_details_iframe(card_id))

    # --- Transfers ---

    def create_ach_transfer(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._one(lambda: self._sdk.ach_transfers.create(**body))

    def create_wire_transfer(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._one(lambda: self._sdk.wire_transfers.create(**body))

    def create_real_time_payments_transfer(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._one(lambda: self._sdk.real_time_payments_transfers.create(**body))

    def create_check_transfer(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._one(lambda: self._sdk.check_transfers.create(**body))

    # --- Sandbox simulations ---

    def simulate_ach_transfer_settlement(self, transfer_id: str) -> Dict[str, Any]:
        return self._one(lambda: self._sdk.simulations.ach_transfers.settle(transfer_id))

    def simulate_ach_transfer_submission(self, transfer_id: str) -> Dict[str, Any]:
        return self._one(lambda: self._sdk.simulations.ach_transfers.submit(transfer_id))

    def simulate_wire_transfer_submission(self, transfer_id: str) -> Dict[str, Any]:
        return self._one(lambda: self._sdk.simulations.wire_transfers.submit(transfer_id))

    def simulate_real_time_payments_transfer_completion(self, transfer_id: str) -> Dict[str, Any]:
        return self._one(
            lambda: self._sdk.simulations.real_time_payments_transfers.complete(transfer_id)
        )

    def simulate_check_transfer_mailing(self, transfer_id: str) -> Dict[str, Any]:
        return self._one(lambda: self._sdk.simulations.check_transfers.mail(transfer_id))

    def simulate_check_deposit_submission(self, check_deposit_id: str) -> Dict[str, Any]:
        return self._one(lambda: self._sdk.simulations.check_deposits.submit(check_deposit_id))

    def simulate_inbound_check_deposit(
        self, account_number_id: str, amount: int, check_number: str
    ) -> Dict[str, Any]:
        return self._one(lambda: self._sdk.simulations.inbound_check_deposits.create(
            account_number_id=account_number_id,
            amount=amount,
            check_number=check_number,
        ))

    def simulate_inbound_wire_transfer(self, account_number_id: str, amount: int) -> Dict[str, Any]:
        return self._one(lambda: self._sdk.simulations.inbound_wire_transfers.create(
            account_number_id=account_number_id,
            amount=amount,
        ))

    def simulate_inbound_ach_transfer(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._one(lambda: self._sdk.simulations.inbound_ach_transfers.create(**body))

    def simulate_inbound_mail_item(self, lockbox_id: str, amount: int) -> Dict[str, Any]:
        return self._one(lambda: self._sdk.simulations.inbound_mail_items.create(
            amount=amount,
            extra_body={"lockbox_id": lockbox_id},
        ))

    def simulate_card_authorization(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._one(lambda: self._sdk.simulations.card_authorizations.create(**body))

    def simulate_card_settlement(
        self, card_id: str, pending_transaction_id: str, amount: Optional[int] = None
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "card_id": card_id,
            "pending_transaction_id": pending_transaction_id,
        }
        if amount is not None:
            params["amount"] = amount
        return self._one(lambda: self._sdk.simulations.card_settlements.create(**params))


ClientFactory = Callable[[str], IncreaseClient]


def build_client(api_key: str) -> IncreaseClient:
    """Create a client against the configured sandbox host."""
    return IncreaseClient(api_key)


def get_client_factory() -> ClientFactory:
    """
    FastAPI dependency returning how to build vendor clients.

    Tests override this to point clients at a fake sandbox.
    """
    return build_client

"""
Pydantic schemas for the banking demo.

Vendor resources are passed through as dicts; only the
request bodies and the view wrappers are modelled here.
"""

from typing import Any

from pydantic import BaseModel, Field

from increase_demo.models.enums import InboundTransferType

Resource = dict[str, Any]


class BankingOverview(BaseModel):
    account: Resource
    balance: Resource
    account_numbers: list[Resource]
    lockboxes: list[Resource]
    transactions: list[Resource]
    cards: list[Resource]
    primary_account_number: Resource | None
    primary_lockbox: Resource | None
    recent_transactions: list[Resource]
    featured_cards: list[Resource]


class CardCreate(BaseModel):
    description: str = Field(min_length=1, max_length=200)


class CardDetail(BaseModel):
    card: Resource
    transactions: list[Resource]


class LockboxDetail(BaseModel):
    lockbox: Resource
    transactions: list[Resource]


class TransactionDetail(BaseModel):
    transaction: Resource
    source_category: str


class InboundSimulationRequest(BaseModel):
    type: InboundTransferType
    # Amount in cents. Validated by the service so the error
    # reads the same as the simulate form's.
    amount: int
    check_number: str | None = Field(default=None, max_length=20)


class InboundSimulationResponse(BaseModel):
    type: InboundTransferType
    account_number_id: str
    result: Resource

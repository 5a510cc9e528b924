"""
Pydantic schemas for demo session setup.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from increase_demo.models.enums import Product


class SessionCreate(BaseModel):
    """
    Setup form.

    api_key and company_name may be omitted when the server has
    defaults configured for them.
    """
    api_key: str | None = Field(default=None, max_length=255)
    company_name: str | None = Field(default=None, max_length=255)
    end_user_name: str | None = Field(default=None, max_length=255)
    product: Product = Product.BILL_PAY


class SessionResponse(BaseModel):
    id: int
    external_id: uuid.UUID
    product: Product
    company_name: str
    end_user_name: str | None
    entity_id: str
    account_id: str
    external_account_id: str | None
    account_number_id: str | None
    lockbox_id: str | None
    card_ids: list[str]
    created_at: datetime

    model_config = {"from_attributes": True}

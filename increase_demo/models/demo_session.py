"""
Demo session model.

A session is created by the setup flow. It remembers the
sandbox API key and every vendor resource the setup created,
so later demo steps know which account to act on.
"""

import uuid
from datetime import datetime

from sqlalchemy import String, DateTime, JSON, Enum as SAEnum, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from increase_demo.models.base import Base
from increase_demo.models.enums import Product


class DemoSession(Base):
    __tablename__ = "demo_sessions"

    id: Mapped[int] = mapped_column(primary_key=True)
    external_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, unique=True, nullable=False, default=uuid.uuid4
    )
    # Sandbox credential. Never returned by the API and never logged.
    api_key: Mapped[str] = mapped_column(String(255), nullable=False)
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    end_user_name: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    product: Mapped[Product] = mapped_column(
        SAEnum(Product, name="product_enum", create_constraint=True),
        nullable=False,
    )

    # Vendor resource ids created during setup
    entity_id: Mapped[str] = mapped_column(String(100), nullable=False)
    account_id: Mapped[str] = mapped_column(String(100), nullable=False)
    external_account_id: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    account_number_id: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    lockbox_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    card_ids: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=list
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    bill_payments: Mapped[list["BillPayment"]] = relationship(
        back_populates="session",
        order_by="BillPayment.id",
    )

    def __repr__(self) -> str:
        return f"<DemoSession {self.id} {self.product.value} {self.company_name!r}>"

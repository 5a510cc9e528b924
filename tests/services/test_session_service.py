"""
Tests for SessionService: demo setup against the fake sandbox.
"""

import pytest
from sqlalchemy import select

from increase_demo.clients.increase import IncreaseAPIError
from increase_demo.models.api_request import ApiRequestLog
from increase_demo.models.demo_session import DemoSession
from increase_demo.models.enums import Product
from increase_demo.schemas.session import SessionCreate
from increase_demo.services.session_service import (
    SEED_CARDS,
    SessionService,
    get_demo_session,
)


def make_service(db_session, fake_increase):
    return SessionService(db_session, fake_increase.client_factory, settle_delay=0)


def setup_form(product=Product.BILL_PAY, **overrides):
    fields = {
        "api_key": "test_api_key",
        "company_name": "Acme Co",
        "product": product,
    }
    fields.update(overrides)
    return SessionCreate(**fields)


class TestFormValidation:

    def test_missing_api_key_rejected(self, db_session, fake_increase):
        service = make_service(db_session, fake_increase)
        with pytest.raises(ValueError, match="API key is required"):
            service.create_session(setup_form(api_key="  "))
        assert fake_increase.calls == []

    def test_missing_company_name_rejected(self, db_session, fake_increase):
        service = make_service(db_session, fake_increase)
        with pytest.raises(ValueError, match="Company name is required"):
            service.create_session(setup_form(company_name=""))
        assert fake_increase.calls == []

    def test_values_are_trimmed(self, db_session, fake_increase):
        service = make_service(db_session, fake_increase)
        session = service.create_session(setup_form(
            company_name="  Acme Co  ", end_user_name="   ",
        ))
        assert session.company_name == "Acme Co"
        assert session.end_user_name is None


class TestBillPaySetup:

    def test_creates_entity_account_and_external_account(self, db_session, fake_increase):
        service = make_service(db_session, fake_increase)
        session = service.create_session(setup_form())
        db_session.commit()

        assert fake_increase.paths() == ["entities", "accounts", "external_accounts"]
        assert session.product == Product.BILL_PAY
        assert session.entity_id.startswith("entity_")
        assert session.account_id.startswith("account_")
        assert session.external_account_id.startswith("external_account_")
        assert session.lockbox_id is None
        assert session.card_ids == []

    def test_entity_is_a_corporation_named_after_company(self, db_session, fake_increase):
        make_service(db_session, fake_increase).create_session(setup_form())
        entity = fake_increase.bodies("entities")[0]
        assert entity["structure"] == "corporation"
        assert entity["corporation"]["name"] == "Acme Co"

    def test_account_is_opened_for_entity(self, db_session, fake_increase):
        session = make_service(db_session, fake_increase).create_session(setup_form())
        account = fake_increase.bodies("accounts")[0]
        assert account["entity_id"] == session.entity_id
        assert account["name"] == "Operating Account"

    def test_every_call_is_logged_against_session(self, db_session, fake_increase):
        session = make_service(db_session, fake_increase).create_session(setup_form())
        db_session.commit()

        entries = db_session.execute(
            select(ApiRequestLog).order_by(ApiRequestLog.id)
        ).scalars().all()
        assert [e.path for e in entries] == ["entities", "accounts", "external_accounts"]
        assert all(e.session_id == session.id for e in entries)
        assert all(e.status_code == 200 for e in entries)
        assert entries[0].resource_id == session.entity_id


class TestBankingSetup:

    def test_creates_resources_and_seed_history(self, db_session, fake_increase):
        session = make_service(db_session, fake_increase).create_session(
            setup_form(Product.BANKING)
        )
        db_session.commit()

        assert session.account_number_id.startswith("account_number_")
        assert session.lockbox_id.startswith("lockbox_")
        assert len(session.card_ids) == len(SEED_CARDS)
        assert session.external_account_id is None

        posts = fake_increase.paths("POST")
        assert posts.count("cards") == 3
        assert "simulations/inbound_wire_transfers" in posts
        assert "simulations/inbound_mail_items" in posts
        assert posts.count("simulations/card_authorizations") == 3
        assert posts.count("simulations/card_settlements") == 3
        assert len(fake_increase.calls) == 18

    def test_mailed_check_is_deposited(self, db_session, fake_increase):
        make_service(db_session, fake_increase).create_session(setup_form(Product.BANKING))
        deposits = [p for p in fake_increase.paths() if p.startswith("simulations/check_deposits/")]
        assert len(deposits) == 1
        assert deposits[0].endswith("/submit")

    def test_payroll_is_settled_after_deposits(self, db_session, fake_increase):
        make_service(db_session, fake_increase).create_session(setup_form(Product.BANKING))
        paths = fake_increase.paths()
        payroll = paths.index("ach_transfers")
        assert paths.index("simulations/inbound_wire_transfers") < payroll
        assert paths[payroll + 1].startswith("simulations/ach_transfers/")
        assert paths[payroll + 1].endswith("/settle")

    def test_card_purchases_are_routed_to_cards(self, db_session, fake_increase):
        session = make_service(db_session, fake_increase).create_session(
            setup_form(Product.BANKING)
        )
        settled = [t for t in fake_increase.transactions if t["route_type"] == "card"]
        assert {t["route_id"] for t in settled} == set(session.card_ids)
        assert sorted(-t["amount"] for t in settled) == sorted(a for _, a in SEED_CARDS)

    def test_declined_seed_authorizations_are_skipped(self, db_session, fake_increase):
        fake_increase.decline_card_authorizations = True
        session = make_service(db_session, fake_increase).create_session(
            setup_form(Product.BANKING)
        )
        assert session.id is not None
        assert "simulations/card_settlements" not in fake_increase.paths()


class TestSetupFailure:

    def test_vendor_failure_raises(self, db_session, fake_increase):
        fake_increase.fail("POST", "accounts", title="Invalid entity", detail="Entity is closed")
        service = make_service(db_session, fake_increase)

        with pytest.raises(IncreaseAPIError) as exc_info:
            service.create_session(setup_form())

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Invalid entity: Entity is closed"

    def test_failure_saves_nothing_and_returns_calls(self, db_session, fake_increase):
        fake_increase.fail("POST", "external_accounts")
        service = make_service(db_session, fake_increase)

        with pytest.raises(IncreaseAPIError) as exc_info:
            service.create_session(setup_form())
        db_session.commit()

        assert db_session.execute(select(DemoSession)).scalars().all() == []
        assert db_session.execute(select(ApiRequestLog)).scalars().all() == []
        assert [(r.path, r.status_code) for r in exc_info.value.requests] == [
            ("entities", 200),
            ("accounts", 200),
            ("external_accounts", 400),
        ]

    def test_unreadable_vendor_response_fails_setup(self, db_session, fake_increase):
        fake_increase.respond_with_text("POST", "accounts", "<html>upstream hiccup</html>")
        service = make_service(db_session, fake_increase)

        with pytest.raises(IncreaseAPIError, match="could not be read") as exc_info:
            service.create_session(setup_form())

        assert exc_info.value.status_code == 200
        assert [r.path for r in exc_info.value.requests] == ["entities", "accounts"]
        assert db_session.execute(select(DemoSession)).scalars().all() == []


class TestGetDemoSession:

    def test_unknown_session_raises_lookup_error(self, db_session):
        with pytest.raises(LookupError, match="not found"):
            get_demo_session(db_session, 999)

    def test_product_mismatch_rejected(self, db_session, bill_pay_session):
        with pytest.raises(ValueError, match="not banking"):
            get_demo_session(db_session, bill_pay_session.id, Product.BANKING)

    def test_matching_product_returns_session(self, db_session, bill_pay_session):
        session = get_demo_session(db_session, bill_pay_session.id, Product.BILL_PAY)
        assert session.id == bill_pay_session.id

"""
Tests for the bill payment endpoints.

These test the HTTP layer: status codes, response format and
the derived view fields. Rail behaviour is tested in
test_bill_payment_service.py.
"""

ACH = {
    "network": "ach",
    "account_number": "123456789",
    "routing_number": "101050001",
    "statement_descriptor": "VENDOR PAYMENT",
}


def payments_url(session):
    return f"/demo/sessions/{session.id}/bill-payments"


def create(client, session, details=ACH, amount=499999):
    return client.post(payments_url(session), json={
        "amount": amount,
        "payment_details": details,
    })


class TestSampleData:

    def test_sample_invoice(self, client):
        data = client.get("/demo/bill-payments/sample-invoice").json()
        assert data["invoice_number"] == "INV-2024-0847"
        assert data["vendor_name"] == "ACME Corporation"
        assert data["amount"] == 499999
        assert len(data["line_items"]) == 5
        assert data["ach_instructions"]["routing_number"] == "101050001"

    def test_sample_details_per_network(self, client):
        check = client.get("/demo/bill-payments/sample-details/check").json()
        assert check["recipient_name"] == "Acme Supplies Inc"
        assert check["shipping_method"] == "usps"

        rtp = client.get("/demo/bill-payments/sample-details/rtp").json()
        assert rtp["network"] == "rtp"
        assert rtp["statement_descriptor"] == "VENDOR PAYMENT"

    def test_unknown_network_returns_422(self, client):
        assert client.get("/demo/bill-payments/sample-details/zelle").status_code == 422

    def test_sample_invoice_pdf(self, client):
        response = client.get("/demo/bill-payments/sample-invoice.pdf")
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert "sample-invoice.pdf" in response.headers["content-disposition"]
        assert response.content.startswith(b"%PDF-")


class TestCreateBillPayment:

    def test_returns_201_with_view_fields(self, client, bill_pay_session):
        response = create(client, bill_pay_session)
        assert response.status_code == 201

        data = response.json()
        assert data["status"] == "debit_processing"
        assert data["status_label"] == "Debit Processing"
        assert data["network_label"] == "ACH"
        assert data["next_action"] == {"action": "settle_debit", "label": "Settle Debit"}
        assert [step["state"] for step in data["timeline"]] == [
            "completed", "current", "pending", "pending",
        ]

    def test_zero_amount_returns_422(self, client, bill_pay_session):
        assert create(client, bill_pay_session, amount=0).status_code == 422

    def test_blank_detail_returns_422(self, client, bill_pay_session):
        response = create(client, bill_pay_session, details={**ACH, "account_number": ""})
        assert response.status_code == 422

    def test_unknown_network_returns_422(self, client, bill_pay_session):
        response = create(client, bill_pay_session, details={**ACH, "network": "zelle"})
        assert response.status_code == 422

    def test_unknown_session_returns_404(self, client):
        response = client.post("/demo/sessions/999/bill-payments", json={
            "amount": 100, "payment_details": ACH,
        })
        assert response.status_code == 404

    def test_vendor_failure_persists_failed_payment(self, client, fake_increase, bill_pay_session):
        fake_increase.fail("POST", "ach_transfers", title="Insufficient funds",
                           detail="The external account has insufficient funds")

        response = create(client, bill_pay_session)
        assert response.status_code == 502
        assert response.json()["vendor_status"] == 400

        payments = client.get(payments_url(bill_pay_session)).json()
        assert len(payments) == 1
        assert payments[0]["status"] == "failed"
        assert payments[0]["status_label"] == "Failed"
        assert payments[0]["next_action"] is None
        assert payments[0]["error_message"] == (
            "Insufficient funds: The external account has insufficient funds"
        )

    def test_unreadable_vendor_response_fails_payment(self, client, fake_increase, bill_pay_session):
        log_url = f"/demo/sessions/{bill_pay_session.id}/requests"
        logged_before = len(client.get(log_url).json())
        fake_increase.respond_with_text("POST", "ach_transfers", "<html>upstream hiccup</html>")

        response = create(client, bill_pay_session)
        assert response.status_code == 502
        assert response.json()["vendor_status"] == 200

        payments = client.get(payments_url(bill_pay_session)).json()
        assert [p["status"] for p in payments] == ["failed"]
        assert payments[0]["error_message"] == "Increase returned a response that could not be read"

        entries = client.get(log_url).json()
        assert len(entries) == logged_before + 1
        assert (entries[-1]["method"], entries[-1]["path"]) == ("POST", "ach_transfers")


class TestPaymentFlow:

    def test_ach_flow(self, client, bill_pay_session):
        payment = create(client, bill_pay_session).json()
        url = f"{payments_url(bill_pay_session)}/{payment['id']}"

        data = client.post(f"{url}/settle-debit").json()
        assert data["status"] == "credit_submitted"
        assert data["next_action"]["action"] == "settle_credit"

        data = client.post(f"{url}/settle-credit").json()
        assert data["status"] == "completed"
        assert data["next_action"] is None
        assert all(step["state"] == "completed" for step in data["timeline"])

    def test_check_flow(self, client, bill_pay_session):
        payment = create(client, bill_pay_session, details={
            "network": "check",
            "recipient_name": "Acme Supplies Inc",
            "address_line1": "456 Commerce Street",
            "city": "Los Angeles",
            "state": "CA",
            "zip": "90012",
        }).json()
        url = f"{payments_url(bill_pay_session)}/{payment['id']}"

        data = client.post(f"{url}/settle-debit").json()
        assert data["status"] == "credit_mailed"
        assert data["status_label"] == "Check Mailed"
        assert data["next_action"]["label"] == "Deposit Check"

        assert client.post(f"{url}/settle-credit").json()["status"] == "completed"

    def test_card_flow(self, client, bill_pay_session):
        payment = create(client, bill_pay_session, details={
            "network": "card", "description": "Single-use card for Invoice #12345",
        }).json()
        url = f"{payments_url(bill_pay_session)}/{payment['id']}"

        data = client.post(f"{url}/settle-debit").json()
        assert data["status"] == "pending_authorization"
        assert data["card_last4"] is not None

        page = client.get(f"{url}/card-details").json()
        assert page["iframe_url"].startswith("https://")
        assert page["message"].startswith("Wile E. Coyote has sent you a payment")

        assert client.post(f"{url}/authorize-card").json()["status"] == "completed"

    def test_invalid_transition_returns_400(self, client, bill_pay_session):
        payment = create(client, bill_pay_session).json()
        url = f"{payments_url(bill_pay_session)}/{payment['id']}"

        response = client.post(f"{url}/settle-credit")
        assert response.status_code == 400
        assert client.get(url).json()["status"] == "debit_processing"

    def test_declined_card_returns_400_and_fails_payment(self, client, fake_increase, bill_pay_session):
        payment = create(client, bill_pay_session, details={
            "network": "card", "description": "Card",
        }).json()
        url = f"{payments_url(bill_pay_session)}/{payment['id']}"
        client.post(f"{url}/settle-debit")
        fake_increase.decline_card_authorizations = True

        response = client.post(f"{url}/authorize-card")

        assert response.status_code == 400
        assert response.json()["detail"] == "Card authorization was declined"
        data = client.get(url).json()
        assert data["status"] == "failed"
        assert data["timeline"][-1] == {"label": "Payment failed", "state": "current"}

    def test_unknown_payment_returns_404(self, client, bill_pay_session):
        assert client.get(f"{payments_url(bill_pay_session)}/999").status_code == 404
        assert client.post(f"{payments_url(bill_pay_session)}/999/settle-debit").status_code == 404

from decimal import Decimal

from conftest import login


def create_invoice(client, headers, patient_id, **overrides):
    payload = {
        "patient_id": patient_id,
        "items": [
            {"description": "Cleaning", "quantity": 2, "unit_price": "50"},
            {"description": "X-Ray", "quantity": 1, "unit_price": "30"},
        ],
        "tax": "13",
        "discount": "20",
    }
    payload.update(overrides)
    return client.post("/api/v1/billing/invoices", headers=headers, json=payload)


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"


def test_requires_authentication(client):
    assert client.get("/api/v1/billing/invoices").status_code == 401


def test_create_invoice_computes_everything(client, admin_headers, patient):
    response = create_invoice(client, admin_headers, patient["id"], paid_amount="50")
    assert response.status_code == 201, response.text
    invoice = response.json()

    assert invoice["invoice_number"].startswith("INV")
    assert invoice["invoice_number"].endswith("0001")
    assert [Decimal(item["total"]) for item in invoice["items"]] == [Decimal("100"), Decimal("30")]
    assert Decimal(invoice["subtotal"]) == Decimal("130")
    assert Decimal(invoice["total"]) == Decimal("123")
    assert Decimal(invoice["balance"]) == Decimal("73")
    assert invoice["status"] == "partial"


def test_client_totals_and_status_are_ignored(client, admin_headers, patient):
    response = create_invoice(client, admin_headers, patient["id"], total="1", subtotal="1", status="paid")
    assert response.status_code == 201
    assert Decimal(response.json()["total"]) == Decimal("123")
    assert response.json()["status"] == "pending"


def test_invalid_lines_are_rejected_and_nothing_is_stored(client, admin_headers, patient):
    bad = [{"description": "Filling", "quantity": 0, "unit_price": "10"}]
    assert create_invoice(client, admin_headers, patient["id"], items=bad).status_code == 422
    bad = [{"description": "Filling", "quantity": 1, "unit_price": "ten"}]
    assert create_invoice(client, admin_headers, patient["id"], items=bad).status_code == 422

    assert client.get("/api/v1/billing/invoices", headers=admin_headers).json() == []
    # The failed attempts did not consume numbers
    ok = create_invoice(client, admin_headers, patient["id"]).json()
    assert ok["invoice_number"].endswith("0001")


def test_unknown_patient_is_rejected(client, admin_headers):
    assert create_invoice(client, admin_headers, 999).status_code == 400


def test_numbers_increase(client, admin_headers, patient):
    numbers = [create_invoice(client, admin_headers, patient["id"]).json()["invoice_number"] for _ in range(3)]
    assert [n[-4:] for n in numbers] == ["0001", "0002", "0003"]
    assert len(set(numbers)) == 3


def test_payments_move_status_to_paid(client, admin_headers, patient):
    invoice = create_invoice(client, admin_headers, patient["id"]).json()

    first = client.post("/api/v1/billing/payments", headers=admin_headers, json={
        "invoice_id": invoice["id"], "amount": "23", "payment_method": "cash",
    })
    assert first.status_code == 201, first.text
    assert first.json()["payment_id"] == "PAY-000001"

    current = client.get(f"/api/v1/billing/invoices/{invoice['id']}", headers=admin_headers).json()
    assert current["status"] == "partial"
    assert Decimal(current["paid_amount"]) == Decimal("23")

    client.post("/api/v1/billing/payments", headers=admin_headers, json={
        "invoice_id": invoice["id"], "amount": "100", "payment_method": "credit_card",
    })
    current = client.get(f"/api/v1/billing/invoices/{invoice['id']}", headers=admin_headers).json()
    assert current["status"] == "paid"
    assert Decimal(current["balance"]) == Decimal("0")
    assert current["payment_date"] is not None


def test_payment_larger_than_balance_is_rejected(client, admin_headers, patient):
    invoice = create_invoice(client, admin_headers, patient["id"]).json()
    response = client.post("/api/v1/billing/payments", headers=admin_headers, json={
        "invoice_id": invoice["id"], "amount": "500", "payment_method": "cash",
    })
    assert response.status_code == 400


def test_overdue_holds_until_paid(client, admin_headers, patient):
    invoice = create_invoice(client, admin_headers, patient["id"]).json()
    overdue = client.post(f"/api/v1/billing/invoices/{invoice['id']}/overdue", headers=admin_headers)
    assert overdue.json()["status"] == "overdue"

    client.post("/api/v1/billing/payments", headers=admin_headers, json={
        "invoice_id": invoice["id"], "amount": "20", "payment_method": "cash",
    })
    current = client.get(f"/api/v1/billing/invoices/{invoice['id']}", headers=admin_headers).json()
    assert current["status"] == "overdue"

    client.post("/api/v1/billing/payments", headers=admin_headers, json={
        "invoice_id": invoice["id"], "amount": "103", "payment_method": "cash",
    })
    current = client.get(f"/api/v1/billing/invoices/{invoice['id']}", headers=admin_headers).json()
    assert current["status"] == "paid"


def test_cancelled_invoice_is_frozen(client, admin_headers, patient):
    invoice = create_invoice(client, admin_headers, patient["id"]).json()
    cancelled = client.post(f"/api/v1/billing/invoices/{invoice['id']}/cancel", headers=admin_headers,
                            json={"reason": "Duplicate"})
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"

    update = client.put(f"/api/v1/billing/invoices/{invoice['id']}", headers=admin_headers,
                        json={"notes": "reissued"})
    assert update.status_code == 400
    payment = client.post("/api/v1/billing/payments", headers=admin_headers, json={
        "invoice_id": invoice["id"], "amount": "10", "payment_method": "cash",
    })
    assert payment.status_code == 400


def test_update_recomputes_from_new_items(client, admin_headers, patient):
    invoice = create_invoice(client, admin_headers, patient["id"], tax="0", discount="0").json()
    response = client.put(f"/api/v1/billing/invoices/{invoice['id']}", headers=admin_headers, json={
        "items": [{"description": "Root canal", "quantity": 1, "unit_price": "400"}],
    })
    assert response.status_code == 200, response.text
    updated = response.json()
    assert updated["invoice_number"] == invoice["invoice_number"]
    assert len(updated["items"]) == 1
    assert Decimal(updated["total"]) == Decimal("400")
    assert updated["status"] == "pending"


def test_receipt_and_summary(client, admin_headers, patient):
    invoice = create_invoice(client, admin_headers, patient["id"]).json()
    client.post("/api/v1/billing/payments", headers=admin_headers, json={
        "invoice_id": invoice["id"], "amount": "23", "payment_method": "cash",
    })

    receipt = client.get(f"/api/v1/billing/invoices/{invoice['id']}/receipt", headers=admin_headers).json()
    assert receipt["patient_name"] == "Ada Molar"
    assert Decimal(receipt["balance"]) == Decimal("100")
    assert len(receipt["payments"]) == 1

    summary = client.get("/api/v1/billing/summary", headers=admin_headers).json()
    assert summary == [{
        "status": "partial", "count": 1, "total": "123.00", "paid": "23.00", "outstanding": "100.00",
    }]


def test_legacy_status_filter(client, admin_headers, patient):
    create_invoice(client, admin_headers, patient["id"], paid_amount="10")
    listed = client.get("/api/v1/billing/invoices?status=partially-paid", headers=admin_headers).json()
    assert len(listed) == 1
    assert client.get("/api/v1/billing/invoices?status=bogus", headers=admin_headers).status_code == 400


def test_payments_are_audited(client, admin_headers, patient, db):
    from dentalcare.models import AuditLog

    invoice = create_invoice(client, admin_headers, patient["id"]).json()
    client.post("/api/v1/billing/payments", headers=admin_headers, json={
        "invoice_id": invoice["id"], "amount": "23", "payment_method": "cash",
    })
    entry = db.query(AuditLog).filter(AuditLog.action == "PAYMENT_RECEIVED").one()
    assert entry.resource_code == "PAY-000001"
    assert entry.username == "admin"


def test_clinical_roles_cannot_bill(client, make_user, patient):
    make_user("hygiene", "hygienist")
    headers = login(client, "hygiene", "password-123")
    assert create_invoice(client, headers, patient["id"]).status_code == 403


def test_next_number_preview(client, admin_headers, patient):
    preview = client.get("/api/v1/billing/next-number", headers=admin_headers).json()["invoice_number"]
    created = create_invoice(client, admin_headers, patient["id"]).json()["invoice_number"]
    assert preview == created


def test_invoice_history_in_audit_log(client, admin_headers, patient, make_user):
    invoice = create_invoice(client, admin_headers, patient["id"]).json()
    client.post(f"/api/v1/billing/invoices/{invoice['id']}/cancel", headers=admin_headers,
                json={"reason": "duplicate"})

    history = client.get(
        f"/api/v1/audit-logs?resource_type=BillingInvoice&resource_id={invoice['id']}",
        headers=admin_headers,
    ).json()
    assert [entry["action"] for entry in history] == ["INVOICE_CANCELLED", "CREATE"]
    assert history[0]["resource_code"] == invoice["invoice_number"]

    make_user("frontdesk", "receptionist")
    headers = login(client, "frontdesk", "password-123")
    assert client.get("/api/v1/audit-logs", headers=headers).status_code == 403


def test_paid_amount_only_moves_through_payments(client, admin_headers, patient):
    invoice = create_invoice(client, admin_headers, patient["id"], tax="0", discount="0", items=[
        {"description": "Crown", "quantity": 1, "unit_price": "100"},
    ]).json()
    url = f"/api/v1/billing/invoices/{invoice['id']}"
    first = client.post("/api/v1/billing/payments", headers=admin_headers, json={
        "invoice_id": invoice["id"], "amount": "60", "payment_method": "cash",
    })
    assert first.status_code == 201

    # paid_amount is not an editable invoice field
    edited = client.put(url, headers=admin_headers, json={"paid_amount": None, "notes": "called"})
    assert edited.status_code == 200
    assert Decimal(edited.json()["paid_amount"]) == Decimal("60")
    assert edited.json()["status"] == "partial"

    assert client.put(url, headers=admin_headers, json={"discount": None}).status_code == 422
    shrink = client.put(url, headers=admin_headers, json={
        "items": [{"description": "Crown", "quantity": 1, "unit_price": "50"}],
    })
    assert shrink.status_code == 400

    overpay = client.post("/api/v1/billing/payments", headers=admin_headers, json={
        "invoice_id": invoice["id"], "amount": "100", "payment_method": "cash",
    })
    assert overpay.status_code == 400

    receipt = client.get(f"{url}/receipt", headers=admin_headers).json()
    recorded = sum(Decimal(p["amount"]) for p in receipt["payments"])
    assert recorded == Decimal(receipt["paid_amount"]) == Decimal("60")


def test_refused_payments_are_logged(client, admin_headers, patient, caplog):
    invoice = create_invoice(client, admin_headers, patient["id"]).json()
    with caplog.at_level("WARNING", logger="dentalcare.services.billing_service"):
        response = client.post("/api/v1/billing/payments", headers=admin_headers, json={
            "invoice_id": invoice["id"], "amount": "5000", "payment_method": "cash",
        })
    assert response.status_code == 400
    assert any("exceeds balance" in record.getMessage() for record in caplog.records)


def test_invoice_edits_are_audited_with_before_and_after(client, admin_headers, patient):
    import json

    invoice = create_invoice(client, admin_headers, patient["id"], discount="0").json()
    url = f"/api/v1/billing/invoices/{invoice['id']}"
    assert client.put(url, headers=admin_headers, json={"discount": "10"}).status_code == 200

    history = client.get(
        f"/api/v1/audit-logs?resource_type=BillingInvoice&resource_id={invoice['id']}",
        headers=admin_headers,
    ).json()
    assert [entry["action"] for entry in history] == ["UPDATE", "CREATE"]

    update = history[0]
    assert update["resource_code"] == invoice["invoice_number"]
    assert Decimal(json.loads(update["old_values"])["discount"]) == Decimal("0")
    assert Decimal(json.loads(update["new_values"])["discount"]) == Decimal("10")
    assert Decimal(json.loads(update["new_values"])["total"]) == Decimal("133")

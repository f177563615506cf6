from decimal import Decimal

from conftest import login


def create_expense(client, headers, **overrides):
    payload = {
        "category": "supplies",
        "description": "Nitrile gloves",
        "amount": "80",
        "paid_amount": "30",
        "expense_date": "2024-03-01",
        "vendor": "DentSupply",
    }
    payload.update(overrides)
    return client.post("/api/v1/expenses", headers=headers, json=payload)


def test_create_expense(client, admin_headers):
    response = create_expense(client, admin_headers)
    assert response.status_code == 201, response.text
    expense = response.json()
    assert expense["expense_id"] == "EXP-000001"
    assert expense["payment_status"] == "partial"
    assert expense["approval_status"] == "pending"
    assert Decimal(expense["balance"]) == Decimal("50")


def test_overpaid_expense_is_clamped(client, admin_headers):
    expense = create_expense(client, admin_headers, paid_amount="100").json()
    assert Decimal(expense["paid_amount"]) == Decimal("80")
    assert expense["payment_status"] == "paid"


def test_negative_and_non_numeric_amounts_are_rejected(client, admin_headers):
    assert create_expense(client, admin_headers, amount="-5").status_code == 422
    assert create_expense(client, admin_headers, amount="lots").status_code == 422


def test_update_rederives_status(client, admin_headers):
    expense = create_expense(client, admin_headers).json()
    response = client.put(f"/api/v1/expenses/{expense['id']}", headers=admin_headers, json={"paid_amount": "80"})
    assert response.status_code == 200
    assert response.json()["payment_status"] == "paid"
    assert response.json()["expense_id"] == expense["expense_id"]


def test_approval_flow(client, admin_headers, make_user):
    expense = create_expense(client, admin_headers).json()

    make_user("frontdesk", "receptionist")
    desk = login(client, "frontdesk", "password-123")
    denied = client.post(f"/api/v1/expenses/{expense['id']}/approve", headers=desk, json={"status": "approved"})
    assert denied.status_code == 403

    approved = client.post(f"/api/v1/expenses/{expense['id']}/approve", headers=admin_headers,
                           json={"status": "approved"})
    assert approved.status_code == 200
    assert approved.json()["approval_status"] == "approved"

    again = client.post(f"/api/v1/expenses/{expense['id']}/approve", headers=admin_headers,
                        json={"status": "rejected"})
    assert again.status_code == 400

    changed = client.put(f"/api/v1/expenses/{expense['id']}", headers=admin_headers, json={"amount": "90"})
    assert changed.status_code == 400


def test_category_stats_skip_rejected(client, admin_headers):
    create_expense(client, admin_headers)
    create_expense(client, admin_headers, amount="20", paid_amount="20")
    create_expense(client, admin_headers, category="rent", amount="1000", paid_amount="0")
    rejected = create_expense(client, admin_headers, category="rent", amount="500").json()
    client.post(f"/api/v1/expenses/{rejected['id']}/approve", headers=admin_headers, json={"status": "rejected"})

    stats = client.get("/api/v1/expenses/stats/summary", headers=admin_headers).json()
    by_category = {row["category"]: row for row in stats}
    assert by_category["rent"]["count"] == 1
    assert Decimal(by_category["rent"]["total_pending"]) == Decimal("1000")
    assert by_category["supplies"]["count"] == 2
    assert Decimal(by_category["supplies"]["total_amount"]) == Decimal("100")
    assert Decimal(by_category["supplies"]["total_paid"]) == Decimal("50")


def test_expense_writes_are_audited(client, admin_headers):
    expense = create_expense(client, admin_headers).json()
    client.put(f"/api/v1/expenses/{expense['id']}", headers=admin_headers, json={"paid_amount": "80"})

    history = client.get(
        f"/api/v1/audit-logs?resource_type=Expense&resource_id={expense['id']}", headers=admin_headers
    ).json()
    assert [entry["action"] for entry in history] == ["UPDATE", "CREATE"]
    assert history[0]["resource_code"] == "EXP-000001"
    assert '"payment_status": "paid"' in history[0]["new_values"]
    assert '"payment_status": "partial"' in history[0]["old_values"]


def test_explicit_null_amount_is_rejected(client, admin_headers):
    expense = create_expense(client, admin_headers).json()
    response = client.put(f"/api/v1/expenses/{expense['id']}", headers=admin_headers, json={"amount": None})
    assert response.status_code == 422

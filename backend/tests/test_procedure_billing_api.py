from decimal import Decimal

import pytest


@pytest.fixture
def make_plan(client, admin_headers, dentist):
    def _make(patient_id, **fields):
        body = {
            "patient_id": patient_id,
            "dentist_id": dentist["id"],
            "treatment_type": "filling",
            "description": "Composite filling",
        }
        body.update(fields)
        response = client.post("/api/v1/treatments", headers=admin_headers, json=body)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def crown_procedure(client, admin_headers):
    response = client.post("/api/v1/treatments/procedures", headers=admin_headers, json={
        "name": "Porcelain crown", "category": "prosthetics", "price": "80", "duration": 60,
    })
    assert response.status_code == 201, response.text
    return response.json()


def test_plans_are_billed_together_and_only_once(client, admin_headers, patient, make_plan, crown_procedure):
    crown = make_plan(patient["id"], treatment_type="crown", description="Crown 46",
                      procedure_id=crown_procedure["id"], teeth=["46"])
    filling = make_plan(patient["id"], estimated_cost="120", actual_cost="150", teeth=["11", "12"])

    unbilled = client.get("/api/v1/treatments", headers=admin_headers, params={"unbilled": True}).json()
    assert {plan["id"] for plan in unbilled} == {crown["id"], filling["id"]}

    response = client.post("/api/v1/billing/procedure-invoices", headers=admin_headers, json={
        "treatment_ids": [crown["id"], filling["id"], crown["id"]],
    })
    assert response.status_code == 201, response.text
    invoice = response.json()
    assert invoice["invoice_type"] == "procedure"
    assert invoice["treatment_id"] == crown["id"]
    assert invoice["notes"] == "Procedure fees for 2 treatment(s)"
    assert invoice["due_date"] is not None
    assert [item["description"] for item in invoice["items"]] == [
        "Porcelain crown - 46", "Composite filling - 11, 12"
    ]
    # estimate copied from the catalog, actual cost wins over estimate
    assert Decimal(invoice["total"]) == Decimal("230")

    for plan in (crown, filling):
        fetched = client.get(f"/api/v1/treatments/{plan['id']}", headers=admin_headers).json()
        assert fetched["invoice_id"] == invoice["id"]
    assert client.get("/api/v1/treatments", headers=admin_headers, params={"unbilled": True}).json() == []

    again = client.post("/api/v1/billing/procedure-invoices", headers=admin_headers,
                        json={"treatment_ids": [filling["id"]]})
    assert again.status_code == 400
    assert "already been invoiced" in again.json()["detail"]

    history = client.get("/api/v1/audit-logs", headers=admin_headers, params={
        "resource_type": "BillingInvoice", "resource_id": invoice["id"],
    }).json()
    assert [entry["action"] for entry in history] == ["CREATE"]


def test_plans_of_different_patients_cannot_share_an_invoice(client, admin_headers, patient, make_plan):
    other = client.post("/api/v1/patients", headers=admin_headers, json={
        "first_name": "Bo", "last_name": "Incisor", "date_of_birth": "1985-02-01",
        "gender": "male", "phone": "+1 555 0199",
    }).json()
    mine = make_plan(patient["id"], actual_cost="50")
    theirs = make_plan(other["id"], actual_cost="70")

    response = client.post("/api/v1/billing/procedure-invoices", headers=admin_headers,
                           json={"treatment_ids": [mine["id"], theirs["id"]]})
    assert response.status_code == 400
    assert response.json()["detail"] == "All treatments must belong to the same patient"

    fetched = client.get(f"/api/v1/treatments/{mine['id']}", headers=admin_headers).json()
    assert fetched["invoice_id"] is None


def test_procedure_cost_overrides_a_single_plan(client, admin_headers, patient, make_plan):
    first = make_plan(patient["id"], actual_cost="50")
    second = make_plan(patient["id"])

    both = client.post("/api/v1/billing/procedure-invoices", headers=admin_headers,
                       json={"treatment_ids": [first["id"], second["id"]], "procedure_cost": "10"})
    assert both.status_code == 400

    invoice = client.post("/api/v1/billing/procedure-invoices", headers=admin_headers, json={
        "treatment_ids": [second["id"]], "procedure_cost": "65.50", "notes": "Walk-in filling",
    }).json()
    assert Decimal(invoice["total"]) == Decimal("65.50")
    assert invoice["items"][0]["description"] == "Composite filling - N/A"
    assert invoice["notes"] == "Walk-in filling"


@pytest.mark.parametrize("body", [{"treatment_ids": []}, {"treatment_ids": [1], "procedure_cost": "-1"}])
def test_malformed_procedure_requests_are_rejected(client, admin_headers, body):
    response = client.post("/api/v1/billing/procedure-invoices", headers=admin_headers, json=body)
    assert response.status_code == 422


def test_missing_or_cancelled_plans_are_refused(client, admin_headers, patient, make_plan):
    missing = client.post("/api/v1/billing/procedure-invoices", headers=admin_headers,
                          json={"treatment_ids": [999]})
    assert missing.status_code == 400

    cancelled = make_plan(patient["id"], actual_cost="40", status="cancelled")
    response = client.post("/api/v1/billing/procedure-invoices", headers=admin_headers,
                           json={"treatment_ids": [cancelled["id"]]})
    assert response.status_code == 400

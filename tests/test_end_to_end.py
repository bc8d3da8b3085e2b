# tests/test_end_to_end.py
# Full user journey over HTTP: register -> login -> account -> category ->
# negative transaction -> balance -> budget month with a clamped actual.

from datetime import datetime, timezone

from conftest import PASSWORD, auth_headers, register


def test_register_to_budget_flow(client):
    register(client, email="flow@test.com")
    login = client.post(
        "/api/auth/login", json={"email": "flow@test.com", "password": PASSWORD}
    )
    assert login.status_code == 200
    headers = auth_headers(login.json()["accessToken"])

    acct = client.post(
        "/api/accounts",
        json={"name": "Everyday", "type": "checking", "currency": "USD"},
        headers=headers,
    )
    assert acct.status_code == 201
    account_id = acct.json()["id"]

    cat = client.post(
        "/api/categories", json={"name": "Groceries", "kind": "expense"}, headers=headers
    )
    assert cat.status_code == 201
    category_id = cat.json()["id"]

    when = datetime(2025, 7, 14, 9, 30, tzinfo=timezone.utc)
    txn = client.post(
        "/api/transactions",
        json={
            "accountId": account_id,
            "categoryId": category_id,
            "amountCents": -2500,
            "occurredAt": int(when.timestamp() * 1000),
            "note": "weekly shop",
        },
        headers=headers,
    )
    assert txn.status_code == 201

    balance = client.get(f"/api/accounts/{account_id}/balance", headers=headers)
    assert balance.json()["balanceCents"] == -2500

    item = client.post(
        f"/api/budgets/{when.year}/{when.month}/items",
        json={"categoryId": category_id, "plannedCents": 40000},
        headers=headers,
    )
    assert item.status_code == 201

    month = client.get(f"/api/budgets/{when.year}/{when.month}", headers=headers)
    assert month.status_code == 200
    assert month.json()["items"] == [
        {"categoryId": category_id, "plannedCents": 40000, "actualCents": 0}
    ]

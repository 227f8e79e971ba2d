import pytest

from api.v1.services.dashboard_service import dashboard_service
from api.v1.services.transaction_service import transaction_service


def add(context, db, kind, amount, description, date):
    return transaction_service.create_transaction(
        context,
        db,
        type=kind,
        amount=amount,
        description=description,
        category=description,
        date=date,
    )


def test_totals_and_balance_for_sample_month(db, make_user, make_context):
    ctx = make_context(make_user())
    add(ctx, db, "INCOME", 5000, "Salary", "2024-12-01T00:00:00Z")
    add(ctx, db, "EXPENSE", 1200, "Rent", "2024-12-01T00:00:00Z")
    add(ctx, db, "EXPENSE", 300, "Groceries", "2024-12-02T00:00:00Z")

    summary = dashboard_service.compute_dashboard(ctx, db)

    assert summary.total_income == 5000
    assert summary.total_expenses == 1500
    assert summary.balance == 3500
    assert summary.currency == "USD"


@pytest.mark.parametrize(
    "rows",
    [
        [],
        [("EXPENSE", 80.25)],
        [("INCOME", 10.1), ("EXPENSE", 20.2), ("EXPENSE", 0.05)],
        [("INCOME", 999999.99), ("INCOME", 0.01), ("EXPENSE", 1000000)],
    ],
)
def test_balance_is_income_minus_expenses(db, make_user, make_context, rows):
    ctx = make_context(make_user())
    for kind, amount in rows:
        add(ctx, db, kind, amount, "row", "2024-12-01T00:00:00Z")

    summary = dashboard_service.compute_dashboard(ctx, db)

    assert summary.balance == pytest.approx(summary.total_income - summary.total_expenses)


def test_negative_balance_is_not_clamped(db, make_user, make_context):
    ctx = make_context(make_user())
    add(ctx, db, "INCOME", 100, "Gift", "2024-12-01T00:00:00Z")
    add(ctx, db, "EXPENSE", 250.5, "Repair", "2024-12-01T00:00:00Z")

    summary = dashboard_service.compute_dashboard(ctx, db)

    assert summary.balance == pytest.approx(-150.5)


def test_recent_list_follows_creation_order_not_date(db, make_user, make_context):
    ctx = make_context(make_user())
    created = [
        add(ctx, db, "EXPENSE", i + 1, f"tx-{i}", f"2024-12-{20 - i:02d}T00:00:00Z")
        for i in range(7)
    ]

    summary = dashboard_service.compute_dashboard(ctx, db)

    assert [t.id for t in summary.recent_transactions] == [
        t.id for t in reversed(created[-5:])
    ]


def test_other_users_rows_are_not_counted(db, make_user, make_context):
    alice = make_context(make_user())
    bob = make_context(make_user(email="bob@example.com", name="Bob"))
    add(alice, db, "INCOME", 100, "Alice pay", "2024-12-01T00:00:00Z")
    add(bob, db, "INCOME", 700, "Bob pay", "2024-12-01T00:00:00Z")

    summary = dashboard_service.compute_dashboard(alice, db)

    assert summary.total_income == 100
    assert [t.description for t in summary.recent_transactions] == ["Alice pay"]


def test_api_shape(client, auth_headers):
    headers = auth_headers()
    client.post(
        "/api/v1/transactions",
        json={
            "type": "INCOME",
            "amount": 5000,
            "description": "Salary",
            "category": "Salary",
            "date": "2024-12-01T00:00:00Z",
        },
        headers=headers,
    )
    client.put("/api/v1/user/currency", json={"currency": "EUR"}, headers=headers)

    response = client.get("/api/v1/dashboard", headers=headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["totalIncome"] == 5000
    assert data["totalExpenses"] == 0
    assert data["balance"] == 5000
    assert data["currency"] == "EUR"
    recent = data["recentTransactions"][0]
    assert recent["amount"] == 5000
    assert isinstance(recent["amount"], (int, float))
    assert recent["date"].startswith("2024-12-01T00:00:00")

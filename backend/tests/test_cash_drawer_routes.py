"""
Cash drawer API tests.

Verifies:
- Requests without a resolvable actor return 401
- Error kinds map to 400 / 403 / 404 / 409
- The full day scenario works end to end over HTTP
"""

import pytest

from conftest import actor_headers


DAY = "2024-01-10"


@pytest.fixture
def cashier_headers(cashier):
    return actor_headers(cashier)


@pytest.fixture
def admin_headers(admin):
    return actor_headers(admin)


def _open(client, headers, opening=500000, day=DAY):
    return client.post(
        "/api/cash-drawer/open",
        json={"date": day, "opening_balance_cents": opening},
        headers=headers,
    )


def _close(client, headers, actual, day=DAY, notes=None):
    return client.post(
        "/api/cash-drawer/close",
        json={"date": day, "actual_cash_cents": actual, "notes": notes},
        headers=headers,
    )


# =============================================================================
# UNAUTHENTICATED ACCESS - 401
# =============================================================================


class TestUnauthenticatedAccess:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", f"/api/cash-drawer/status?date={DAY}"),
            ("POST", "/api/cash-drawer/open"),
            ("POST", "/api/cash-drawer/expenses"),
            ("POST", "/api/cash-drawer/close"),
            ("POST", "/api/cash-drawer/reopen"),
            ("GET", f"/api/cash-drawer/audit?date={DAY}"),
            ("GET", "/api/cash-drawer/history"),
        ],
    )
    def test_requires_actor(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    @pytest.mark.parametrize("actor_id", ["999", "abc"])
    def test_unknown_actor(self, client, db_session, actor_id):
        resp = client.get(f"/api/cash-drawer/status?date={DAY}", headers={"X-User-Id": actor_id})
        assert resp.status_code == 401

    def test_inactive_actor(self, client, inactive_user):
        resp = _open(client, actor_headers(inactive_user))
        assert resp.status_code == 401


# =============================================================================
# STATUS
# =============================================================================


class TestStatus:

    def test_unopened_date(self, client, cashier_headers):
        resp = client.get(f"/api/cash-drawer/status?date={DAY}", headers=cashier_headers)

        assert resp.status_code == 200
        assert resp.get_json()["drawer"] == {"business_date": DAY, "status": "UNOPENED", "exists": False}

    def test_missing_date_is_400(self, client, cashier_headers):
        resp = client.get("/api/cash-drawer/status", headers=cashier_headers)

        assert resp.status_code == 400
        assert resp.get_json()["code"] == "VALIDATION_ERROR"

    def test_status_lists_expenses(self, client, cashier_headers):
        _open(client, cashier_headers)
        client.post(
            "/api/cash-drawer/expenses",
            json={"date": DAY, "amount_cents": 50000, "category": "Shop Expense", "description": "Broom"},
            headers=cashier_headers,
        )

        drawer = client.get(f"/api/cash-drawer/status?date={DAY}", headers=cashier_headers).get_json()["drawer"]

        assert drawer["cash_expenses_cents"] == 50000
        assert drawer["expected_cash_cents"] == 450000
        assert drawer["expenses"][0]["category"] == "SHOP_EXPENSE"
        assert drawer["expenses"][0]["category_label"] == "Shop Expense"
        assert drawer["display"]["expected_cash"] == "Rs. 4,500.00"


# =============================================================================
# LIFECYCLE ERRORS
# =============================================================================


class TestLifecycleErrors:

    def test_open_returns_201(self, client, cashier_headers):
        resp = _open(client, cashier_headers)

        assert resp.status_code == 201
        assert resp.get_json()["drawer"]["status"] == "OPEN"

    def test_open_twice_is_409(self, client, cashier_headers):
        _open(client, cashier_headers)
        resp = _open(client, cashier_headers, opening=1)

        assert resp.status_code == 409
        assert resp.get_json()["code"] == "INVALID_STATE"

    def test_negative_opening_is_400(self, client, cashier_headers):
        resp = _open(client, cashier_headers, opening=-100)
        assert resp.status_code == 400

    def test_non_json_body_is_400(self, client, cashier_headers):
        resp = client.post("/api/cash-drawer/open", data="not json", headers=cashier_headers)
        assert resp.status_code == 400

    def test_expense_on_unopened_is_409(self, client, cashier_headers):
        resp = client.post(
            "/api/cash-drawer/expenses",
            json={"date": DAY, "amount_cents": 100, "category": "OTHER"},
            headers=cashier_headers,
        )
        assert resp.status_code == 409

    def test_zero_expense_is_400(self, client, cashier_headers):
        _open(client, cashier_headers)
        resp = client.post(
            "/api/cash-drawer/expenses",
            json={"date": DAY, "amount_cents": 0, "category": "OTHER"},
            headers=cashier_headers,
        )
        assert resp.status_code == 400

    def test_close_twice_is_409(self, client, cashier_headers):
        _open(client, cashier_headers)
        _close(client, cashier_headers, 500000)

        resp = _close(client, cashier_headers, 400000)
        assert resp.status_code == 409

    def test_cashier_reopen_is_403(self, client, cashier_headers):
        _open(client, cashier_headers)
        _close(client, cashier_headers, 500000)

        resp = client.post(
            "/api/cash-drawer/reopen",
            json={"date": DAY, "reason": "Counting mistake"},
            headers=cashier_headers,
        )

        assert resp.status_code == 403
        assert resp.get_json()["code"] == "UNAUTHORIZED"

    def test_reopen_without_reason_is_400(self, client, cashier_headers, admin_headers):
        _open(client, cashier_headers)
        _close(client, cashier_headers, 500000)

        resp = client.post("/api/cash-drawer/reopen", json={"date": DAY, "reason": "  "}, headers=admin_headers)
        assert resp.status_code == 400

    def test_audit_for_unknown_date_is_404(self, client, cashier_headers):
        resp = client.get(f"/api/cash-drawer/audit?date={DAY}", headers=cashier_headers)

        assert resp.status_code == 404
        assert resp.get_json()["code"] == "NOT_FOUND"


# =============================================================================
# END TO END
# =============================================================================


def test_full_day_over_http(client, cashier_headers, admin_headers, record_sale):
    assert _open(client, cashier_headers).status_code == 201

    resp = client.post(
        "/api/cash-drawer/expenses",
        json={"date": DAY, "amount_cents": 50000, "category": "SHOP_EXPENSE"},
        headers=cashier_headers,
    )
    assert resp.status_code == 201
    assert resp.get_json()["expense"]["sequence"] == 1

    record_sale(200000)

    first = _close(client, cashier_headers, 645000, notes="Short")
    assert first.status_code == 200
    drawer = first.get_json()["drawer"]
    assert drawer["expected_cash_cents"] == 650000
    assert drawer["difference_cents"] == -5000
    assert drawer["balance_state"] == "SHORT"
    assert drawer["display"]["difference"] == "-Rs. 50.00"

    reopened = client.post(
        "/api/cash-drawer/reopen",
        json={"date": DAY, "reason": "Counting mistake"},
        headers=admin_headers,
    )
    assert reopened.status_code == 200
    assert reopened.get_json()["drawer"]["status"] == "REOPENED"

    second = _close(client, cashier_headers, 650000)
    assert second.status_code == 200
    assert second.get_json()["drawer"]["difference_cents"] == 0
    assert second.get_json()["drawer"]["balance_state"] == "BALANCED"

    audit = client.get(f"/api/cash-drawer/audit?date={DAY}", headers=cashier_headers).get_json()["entries"]
    assert [e["action"] for e in audit] == ["OPEN", "EXPENSE_ADDED", "CLOSE", "REOPEN", "CLOSE"]
    assert audit[3]["actor_username"] == "admin"
    assert audit[3]["note"] == "Counting mistake"


# =============================================================================
# HISTORY & HEALTH
# =============================================================================


class TestHistory:

    def test_explicit_range(self, client, cashier_headers):
        _open(client, cashier_headers, day="2024-01-08")
        _open(client, cashier_headers, day="2024-01-10")

        resp = client.get(
            "/api/cash-drawer/history?start=2024-01-01&end=2024-01-31&order=asc",
            headers=cashier_headers,
        )

        assert resp.status_code == 200
        assert [row["business_date"] for row in resp.get_json()["history"]] == ["2024-01-08", "2024-01-10"]

    def test_default_window_ends_at_given_date(self, client, cashier_headers):
        _open(client, cashier_headers, day="2023-11-01")
        _open(client, cashier_headers, day="2024-01-10")

        resp = client.get("/api/cash-drawer/history?end=2024-01-10", headers=cashier_headers)

        assert [row["business_date"] for row in resp.get_json()["history"]] == ["2024-01-10"]

    def test_inverted_range_is_400(self, client, cashier_headers):
        resp = client.get(
            "/api/cash-drawer/history?start=2024-01-31&end=2024-01-01",
            headers=cashier_headers,
        )
        assert resp.status_code == 400


def test_health(client, db_session):
    resp = client.get("/api/health")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "healthy"
    assert body["checks"]["database"]["status"] == "healthy"

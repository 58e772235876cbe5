"""
API tests.

Verifies:
- Unauthenticated requests return 401; staff cannot manage categories (403)
- Store errors map to their status codes (400 / 409)
- Quick entry, undo and redo over HTTP
- Stock adjustment returns the saga outcome plus the inventory log
"""

from decimal import Decimal

import pytest

from shopledger.errors import RemoteFailure
from shopledger.models import Transaction


# =============================================================================
# UNAUTHENTICATED ACCESS - 401
# =============================================================================


class TestUnauthenticatedAccess:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/categories"),
            ("POST", "/api/categories"),
            ("GET", "/api/transactions"),
            ("POST", "/api/transactions"),
            ("GET", "/api/transactions/summary"),
            ("POST", "/api/quick-entry"),
            ("POST", "/api/quick-entry/undo"),
            ("GET", "/api/products"),
            ("POST", "/api/inventory/adjust"),
            ("GET", "/api/inventory/logs"),
        ],
    )
    def test_requires_session(self, client, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_session_reports_signed_out(self, client):
        assert client.get("/api/session").json == {
            "authenticated": False, "operator": None, "role": None, "local_admin": False,
        }

    @pytest.mark.parametrize(
        "body",
        [
            None,
            {},
            {"username": "admin"},
            {"username": "admin", "password": "wrong"},
            {"username": "root", "password": "123"},
            {"username": "admin", "password": 123},
            ["admin", "123"],
        ],
    )
    def test_local_admin_rejects_bad_credentials(self, client, services, body):
        resp = client.post("/api/session/local-admin", json=body)

        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid credentials"
        assert not services.session.is_authenticated
        assert client.get("/api/categories").status_code == 401

    def test_rejected_local_admin_cannot_delete_categories(self, client, services):
        services.categories.seed_defaults()
        photocopy = services.categories.get("photocopy")

        client.post("/api/session/local-admin", json={"username": "admin", "password": "guess"})

        assert client.delete(f"/api/categories/{photocopy['id']}").status_code == 401
        assert services.categories.get("photocopy") is not None

    def test_local_admin_with_credentials(self, client):
        enabled = client.post("/api/session/local-admin", json={"username": "admin", "password": "123"})

        assert enabled.status_code == 200
        assert enabled.json["authenticated"] is True
        assert enabled.json["role"] == "admin"

        signed_out = client.delete("/api/session")
        assert signed_out.json["authenticated"] is False
        assert client.get("/api/categories").status_code == 401

    def test_local_admin_unconfigured_is_forbidden(self, app, client, services):
        app.config["LOCAL_ADMIN_PASSWORD_HASH"] = None

        resp = client.post("/api/session/local-admin", json={"username": "admin", "password": "123"})

        assert resp.status_code == 403
        assert not services.session.is_authenticated

    def test_health(self, client):
        resp = client.get("/api/system/health")

        assert resp.status_code == 200
        assert resp.json["status"] == "healthy"
        assert resp.json["database"]["details"]["transactions"] == 0


# =============================================================================
# CATEGORIES
# =============================================================================


class TestCategoriesApi:

    def test_list_defaults_by_type(self, client, local_admin):
        resp = client.get("/api/categories?type=income")

        assert resp.status_code == 200
        assert resp.json["count"] == 5

    def test_staff_cannot_create(self, client, staff):
        resp = client.post("/api/categories", json={"name": "x", "label": "X", "type": "income"})

        assert resp.status_code == 403

    def test_create_validation(self, client, local_admin):
        resp = client.post("/api/categories", json={"name": "x", "label": "X", "type": "refund"})

        assert resp.status_code == 400

    def test_delete_in_use_is_conflict(self, client, services, local_admin):
        services.categories.seed_defaults()
        photocopy = services.categories.get("photocopy")
        client.post("/api/transactions", json={"type": "income", "category": "photocopy", "amount": 20})

        resp = client.delete(f"/api/categories/{photocopy['id']}")

        assert resp.status_code == 409
        names = [c["name"] for c in client.get("/api/categories").json["items"]]
        assert "photocopy" in names

    def test_reorder(self, client, services, local_admin):
        services.categories.seed_defaults()
        ids = [c["id"] for c in services.categories.list()]

        resp = client.post("/api/categories/reorder", json={"ids": [ids[-1], ids[0]]})

        assert resp.status_code == 200
        names = [c["name"] for c in resp.json["items"]]
        assert names[:3] == ["other_expense", "photocopy", "stationery"]

    def test_reorder_unknown_id(self, client, services, local_admin):
        services.categories.seed_defaults()

        resp = client.post("/api/categories/reorder", json={"ids": ["nope"]})

        assert resp.status_code == 400

    @pytest.mark.parametrize(
        "body",
        [
            {"ids": [{"x": 1}]},
            {"ids": [["a"]]},
            {"ids": [1, 2]},
            {"ids": []},
            {"ids": "abc"},
            ["abc"],
        ],
    )
    def test_reorder_malformed_ids(self, client, services, local_admin, body):
        services.categories.seed_defaults()
        before = [c["name"] for c in services.categories.list()]

        resp = client.post("/api/categories/reorder", json=body)

        assert resp.status_code == 400
        assert [c["name"] for c in services.categories.list()] == before

    def test_reorder_duplicate_ids(self, client, services, local_admin):
        services.categories.seed_defaults()
        ids = [c["id"] for c in services.categories.list()]

        resp = client.post("/api/categories/reorder", json={"ids": [ids[1], ids[1]]})

        assert resp.status_code == 400
        assert resp.json["error"] == "ids must not repeat"
        assert [c["id"] for c in services.categories.list()] == ids


# =============================================================================
# TRANSACTIONS
# =============================================================================


class TestTransactionsApi:

    def test_add_and_list(self, client, staff):
        resp = client.post("/api/transactions", json={"transactions": [
            {"type": "income", "category": "photocopy", "amount": 20},
            {"type": "expense", "category": "rent", "amount": "500.5"},
        ]})

        assert resp.status_code == 201
        assert resp.json["count"] == 2
        assert all(item["created_by"] == "rahim" for item in resp.json["items"])

        listed = client.get("/api/transactions?type=expense").json
        assert listed["count"] == 1
        assert Decimal(listed["items"][0]["amount"]) == Decimal("500.50")

    def test_invalid_amount_is_400(self, client, local_admin):
        resp = client.post("/api/transactions", json={"type": "income", "category": "photocopy", "amount": -5})

        assert resp.status_code == 400
        assert Transaction.query.count() == 0

    def test_delete_requires_confirmation(self, client, local_admin):
        created = client.post(
            "/api/transactions", json={"type": "income", "category": "photocopy", "amount": 20}
        ).json["items"][0]

        assert client.delete(f"/api/transactions/{created['id']}").status_code == 400
        assert Transaction.query.count() == 1

        assert client.delete(f"/api/transactions/{created['id']}?confirm=true").status_code == 200
        assert Transaction.query.count() == 0

    def test_patch(self, client, local_admin):
        created = client.post(
            "/api/transactions", json={"type": "income", "category": "photocopy", "amount": 20}
        ).json["items"][0]

        resp = client.patch(f"/api/transactions/{created['id']}", json={"amount": 25})

        assert resp.status_code == 200
        assert Decimal(resp.json["amount"]) == Decimal("25")

    def test_summary(self, client, local_admin):
        client.post("/api/transactions", json=[
            {"type": "income", "category": "photocopy", "amount": 100, "timestamp": "2026-03-05T10:00:00Z"},
            {"type": "expense", "category": "rent", "amount": 40, "timestamp": "2026-03-09T10:00:00Z"},
        ])

        resp = client.get("/api/transactions/summary?period=monthly&date=2026-03-15")

        assert resp.status_code == 200
        assert Decimal(resp.json["net"]) == Decimal("60")
        assert resp.json["count"] == 2

    @pytest.mark.parametrize(
        "query",
        ["period=weekly", "date=05-03-2026"],
    )
    def test_summary_bad_params(self, client, local_admin, query):
        assert client.get(f"/api/transactions/summary?{query}").status_code == 400

    def test_daily_series(self, client, local_admin):
        resp = client.get("/api/transactions/daily?start=2026-03-01&end=2026-03-07")

        assert resp.status_code == 200
        assert resp.json["count"] == 7

    def test_daily_series_range_limit(self, client, local_admin):
        resp = client.get("/api/transactions/daily?start=2024-01-01&end=2026-01-01")

        assert resp.status_code == 400


# =============================================================================
# QUICK ENTRY
# =============================================================================


class TestQuickEntryApi:

    def test_entry_undo_redo(self, client, local_admin):
        created = client.post("/api/quick-entry", json={"category": "photocopy", "amount": 50})
        assert created.status_code == 201
        first_id = created.json["transaction"]["id"]
        assert created.json["quick_entry"]["last_action"]["mode"] == "add"
        assert created.json["quick_entry"]["banner"]["action"] == "undo"

        undone = client.post("/api/quick-entry/undo")
        assert undone.status_code == 200
        assert undone.json["quick_entry"]["last_action"]["mode"] == "delete"
        assert Transaction.query.count() == 0

        redone = client.post("/api/quick-entry/redo")
        assert redone.status_code == 201
        assert redone.json["transaction"]["id"] != first_id
        assert Transaction.query.count() == 1

    def test_unknown_category(self, client, local_admin):
        resp = client.post("/api/quick-entry", json={"category": "lottery", "amount": 50})

        assert resp.status_code == 400

    def test_zero_amount_writes_nothing(self, client, local_admin):
        resp = client.post("/api/quick-entry", json={"category": "photocopy", "amount": 0})

        assert resp.status_code == 400
        assert resp.json["quick_entry"]["state"] == "idle"
        assert Transaction.query.count() == 0

    def test_busy_is_conflict(self, client, services, local_admin):
        services.quick_entry._guard.acquire()
        try:
            resp = client.post("/api/quick-entry", json={"category": "photocopy", "amount": 50})
        finally:
            services.quick_entry._guard.release()

        assert resp.status_code == 409

    @pytest.mark.parametrize("path", ["/api/quick-entry/undo", "/api/quick-entry/redo"])
    def test_undo_redo_busy_is_conflict(self, client, services, local_admin, path):
        client.post("/api/quick-entry", json={"category": "photocopy", "amount": 50})
        services.quick_entry._guard.acquire()
        try:
            resp = client.post(path)
        finally:
            services.quick_entry._guard.release()

        assert resp.status_code == 409
        assert Transaction.query.count() == 1

    def test_bulk(self, client, local_admin):
        resp = client.post("/api/quick-entry/bulk", json={
            "type": "expense",
            "entries": {"rent": {"amount": 5000}, "internet": {"amount": 0}},
        })

        assert resp.status_code == 201
        assert resp.json["count"] == 1

    def test_nothing_to_undo(self, client, local_admin):
        assert client.post("/api/quick-entry/undo").status_code == 400

    def test_dismiss_banner(self, client, local_admin):
        client.post("/api/quick-entry", json={"category": "photocopy", "amount": 50})

        resp = client.delete("/api/quick-entry/status")

        assert resp.json["banner"] is None
        assert resp.json["last_action"]["mode"] == "add"


# =============================================================================
# PRODUCTS AND INVENTORY
# =============================================================================


class TestInventoryApi:

    def test_adjust_returns_outcome_and_log(self, client, local_admin, product):
        resp = client.post("/api/inventory/adjust", json={
            "product_id": product["id"], "direction": "out", "quantity": 3, "unit_price": 20,
        })

        assert resp.status_code == 201
        body = resp.json
        assert body["new_stock"] == 7
        assert Decimal(body["transaction"]["amount"]) == Decimal("60")
        assert body["log"]["transaction_id"] == body["transaction"]["id"]
        assert [s["status"] for s in body["steps"]] == ["done", "done"]

        logs = client.get(f"/api/inventory/logs?product_id={product['id']}").json
        assert logs["count"] == 1

    def test_adjust_missing_field(self, client, local_admin, product):
        resp = client.post("/api/inventory/adjust", json={"product_id": product["id"], "direction": "out"})

        assert resp.status_code == 400

    def test_compensated_adjust_reports_steps(self, client, services, local_admin, product, monkeypatch):
        def offline(rows):
            raise RemoteFailure("transactions insert failed")

        monkeypatch.setattr(services.ledger.gateway, "insert", offline)

        resp = client.post("/api/inventory/adjust", json={
            "product_id": product["id"], "direction": "out", "quantity": 3, "unit_price": 20,
        })

        assert resp.status_code == 502
        assert resp.json["detail"]["steps"][0] == {"name": "stock", "status": "compensated", "error": None}
        assert client.get(f"/api/products/{product['id']}").json["current_stock"] == 10

    def test_product_stock_is_not_editable(self, client, local_admin, product):
        resp = client.put(f"/api/products/{product['id']}", json={"current_stock": 99})

        assert resp.status_code == 400

    def test_product_listing_carries_stock_level(self, client, local_admin, product):
        items = client.get("/api/products?q=pen").json["items"]

        assert [(p["name"], p["stock_level"]) for p in items] == [("Ball Pen", "ok")]

    def test_delete_product_needs_admin_and_confirm(self, client, staff, services, product):
        assert client.delete(f"/api/products/{product['id']}?confirm=true").status_code == 403

        services.session.enable_local_admin()
        assert client.delete(f"/api/products/{product['id']}").status_code == 400
        assert client.delete(f"/api/products/{product['id']}?confirm=true").status_code == 200

    def test_stock_status(self, client, local_admin, product):
        resp = client.get("/api/inventory/status")

        assert resp.json["total_products"] == 1
        assert resp.json["units_on_hand"] == 10

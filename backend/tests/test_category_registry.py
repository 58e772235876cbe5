"""
Category registry tests.

Verifies:
- An empty table lists the 15 defaults (5 income, 10 expense) without persisting them
- upsert validates before writing
- Categories used by transactions cannot be deleted
- reorder() changes the local order even when persistence fails
"""

import logging

import pytest

from shopledger.errors import ConflictError, RemoteFailure, ValidationError
from shopledger.models import Category
from shopledger.services.category_registry import (
    CATEGORY_IN_USE_MESSAGE,
    DEFAULT_CATEGORIES,
    CategoryRegistry,
)


# =============================================================================
# DEFAULTS
# =============================================================================


class TestDefaults:

    def test_empty_table_lists_defaults(self, services):
        items = services.categories.list()

        assert len(items) == 15
        assert [c["type"] for c in items[:5]] == ["income"] * 5
        assert [c["type"] for c in items[5:]] == ["expense"] * 10
        assert [c["name"] for c in items] == [d[0] for d in DEFAULT_CATEGORIES]
        assert all(c["id"] is None for c in items)
        assert [c["sort_order"] for c in items] == list(range(15))

    def test_listing_is_idempotent_and_writes_nothing(self, services):
        first = services.categories.list()
        second = services.categories.list()

        assert first == second
        assert Category.query.count() == 0

    def test_seed_defaults_once(self, services):
        assert services.categories.seed_defaults() == 15
        assert services.categories.seed_defaults() == 0

        items = services.categories.list()
        assert len(items) == 15
        assert all(c["id"] for c in items)
        assert items[0]["name"] == "photocopy"
        assert items[-1]["name"] == "other_expense"


# =============================================================================
# UPSERT
# =============================================================================


class TestUpsert:

    @pytest.mark.parametrize(
        "payload",
        [
            {"name": "", "label": "Lamination", "type": "income"},
            {"name": "lamination", "label": "   ", "type": "income"},
            {"name": "lamination", "label": "Lamination", "type": "refund"},
            {"name": "lamination", "label": "Lamination", "type": "income", "sort_order": "first"},
        ],
    )
    def test_invalid_category_is_rejected_before_writing(self, services, payload):
        result = services.categories.upsert(payload)

        assert not result.success
        assert isinstance(result.error, ValidationError)
        assert Category.query.count() == 0

    def test_new_category_is_appended(self, services):
        services.categories.seed_defaults()

        result = services.categories.upsert({"name": "lamination", "label": "Lamination", "type": "income"})

        assert result.success
        assert result.data["sort_order"] == 15
        assert services.categories.list()[-1]["name"] == "lamination"

    def test_duplicate_name_fails_remotely(self, services):
        services.categories.seed_defaults()

        result = services.categories.upsert({"name": "photocopy", "label": "Copy", "type": "income"})

        assert not result.success
        assert isinstance(result.error, RemoteFailure)
        assert Category.query.count() == 15

    def test_update_changes_label_only(self, services):
        services.categories.seed_defaults()
        rent = services.categories.get("rent")

        result = services.categories.upsert({"label": "Shop Rent"}, rent["id"])

        assert result.success
        updated = services.categories.get("rent")
        assert updated["label"] == "Shop Rent"
        assert updated["type"] == "expense"
        assert updated["sort_order"] == rent["sort_order"]


# =============================================================================
# DELETE
# =============================================================================


class TestDelete:

    def test_unused_category_is_deleted(self, services):
        services.categories.seed_defaults()
        transport = services.categories.get("transport")

        result = services.categories.delete(transport["id"])

        assert result.success
        assert services.categories.get("transport") is None
        assert Category.query.count() == 14

    def test_referenced_category_is_kept(self, services, local_admin):
        services.categories.seed_defaults()
        photocopy = services.categories.get("photocopy")
        booked = services.ledger.add_many([{"type": "income", "category": "photocopy", "amount": 20}])
        assert booked.success

        result = services.categories.delete(photocopy["id"])

        assert not result.success
        assert isinstance(result.error, ConflictError)
        assert result.message == CATEGORY_IN_USE_MESSAGE
        assert result.error.status_code == 409
        assert services.categories.get("photocopy") is not None
        assert Category.query.filter_by(name="photocopy").count() == 1


# =============================================================================
# REORDER
# =============================================================================


class TestReorder:

    def test_reorder_persists_every_index(self, services):
        services.categories.seed_defaults()
        reversed_items = list(reversed(services.categories.list()))

        items = services.categories.reorder(reversed_items)

        assert [c["name"] for c in items] == [d[0] for d in reversed(DEFAULT_CATEGORIES)]
        assert services.categories.reconciliation.failed == []
        assert Category.query.filter_by(name="other_expense").one().sort_order == 0
        assert Category.query.filter_by(name="photocopy").one().sort_order == 14

    def test_failed_patches_are_logged_not_reverted(self, app, services, monkeypatch, caplog):
        services.categories.seed_defaults()
        original = services.categories.list()

        def reject(category_id, fields):
            raise RemoteFailure("categories update failed: database is locked")

        monkeypatch.setattr(services.categories.gateway, "update", reject)

        with caplog.at_level(logging.WARNING):
            items = services.categories.reorder(list(reversed(original)))

        # Local order is the new one
        assert items[0]["name"] == "other_expense"
        assert services.categories.list()[0]["name"] == "other_expense"

        # Every patch failed independently and was logged
        failed = services.categories.reconciliation.failed
        assert len(failed) == 15
        assert all(p.attempts == 1 for p in failed)
        assert "database is locked" in failed[0].last_error
        assert "Failed to persist" in caplog.text

        # Backend still holds the old order
        fresh = CategoryRegistry(app.logger)
        assert fresh.list()[0]["name"] == "photocopy"

    def test_one_failed_patch_does_not_stop_the_rest(self, services, monkeypatch):
        services.categories.seed_defaults()
        items = list(reversed(services.categories.list()))
        blocked = items[3]["id"]
        real_update = services.categories.gateway.update

        def flaky(category_id, fields):
            if category_id == blocked:
                raise RemoteFailure("categories update failed")
            return real_update(category_id, fields)

        monkeypatch.setattr(services.categories.gateway, "update", flaky)

        services.categories.reorder(items)

        failed = services.categories.reconciliation.failed
        assert [p.row_id for p in failed] == [blocked]
        assert Category.query.filter_by(name="other_expense").one().sort_order == 0

    def test_requeued_patches_persist_on_next_flush(self, services, monkeypatch):
        services.categories.seed_defaults()
        items = list(reversed(services.categories.list()))

        def offline(category_id, fields):
            raise RemoteFailure("offline")

        with monkeypatch.context() as m:
            m.setattr(services.categories.gateway, "update", offline)
            services.categories.reorder(items)

        queue = services.categories.reconciliation
        assert queue.requeue_failed() == 15
        assert queue.flush() == 15
        assert queue.failed == []
        assert Category.query.filter_by(name="other_expense").one().sort_order == 0

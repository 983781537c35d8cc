# Overview: Pytest coverage for inventory status derivation and catalog management.

"""
Inventory Tests

Stock status is derived, never stored from client input:
- stock <= 0              -> Out of Stock
- stock <= reorder_level  -> Low Stock (inclusive boundary)
- otherwise               -> In Stock
"""

import pytest

from retailpos.errors import ConflictError, NotFoundError, ValidationError
from retailpos.models import InventoryItem, Supplier
from retailpos.services import inventory_service
from retailpos.services.inventory_service import derive_status


class TestDeriveStatus:
    """Pure status rule."""

    @pytest.mark.parametrize("stock,reorder,expected", [
        (0, 10, "Out of Stock"),
        (-1, 10, "Out of Stock"),
        (10, 10, "Low Stock"),
        (1, 10, "Low Stock"),
        (11, 10, "In Stock"),
        (0, 0, "Out of Stock"),
        (1, 0, "In Stock"),
    ])
    def test_boundaries(self, stock, reorder, expected):
        assert derive_status(stock, reorder) == expected


class TestStatusMaintainedOnWrite:
    """Status follows stock on every write path."""

    def test_stock_at_reorder_level_is_low(self, db_session, user_a):
        item = inventory_service.create_item(user_a.id, {
            "sku": "LW-1", "name": "Widget", "category": "Parts",
            "price_cents": 100, "stock": 10, "reorder_level": 10,
        })
        assert item.status == "Low Stock"

    def test_update_to_zero_is_out_of_stock(self, db_session, user_a):
        item = inventory_service.create_item(user_a.id, {
            "sku": "LW-2", "name": "Widget", "category": "Parts",
            "price_cents": 100, "stock": 10, "reorder_level": 10,
        })
        updated = inventory_service.update_item(user_a.id, item.id, {"stock": 0})
        assert updated.status == "Out of Stock"

    def test_raising_reorder_level_changes_status(self, db_session, user_a, stapler):
        assert stapler.status == "In Stock"
        updated = inventory_service.update_item(user_a.id, stapler.id, {"reorder_level": 100})
        assert updated.status == "Low Stock"

    def test_client_cannot_set_status(self, db_session, user_a, stapler):
        with pytest.raises(ValidationError):
            inventory_service.update_item(user_a.id, stapler.id, {"status": "In Stock", "stock": 0})
        db_session.refresh(stapler)
        assert stapler.stock == 62

    def test_negative_stock_rejected(self, db_session, user_a, stapler):
        with pytest.raises(ValidationError):
            inventory_service.update_item(user_a.id, stapler.id, {"stock": -1})


class TestCatalog:
    """Create, list, stats and tenancy."""

    def test_missing_required_fields(self, db_session, user_a):
        with pytest.raises(ValidationError) as exc:
            inventory_service.create_item(user_a.id, {"sku": "X-1", "name": "No category"})
        assert "category" in exc.value.message

    def test_duplicate_sku_is_conflict(self, db_session, user_a, stapler):
        with pytest.raises(ConflictError):
            inventory_service.create_item(user_a.id, {
                "sku": "OF-2002", "name": "Another", "category": "Office", "price_cents": 1,
            })

    def test_same_sku_allowed_for_other_user(self, db_session, user_b, stapler):
        item = inventory_service.create_item(user_b.id, {
            "sku": "OF-2002", "name": "Stapler", "category": "Office", "price_cents": 899,
        })
        assert item.user_id == user_b.id

    def test_other_user_cannot_read_item(self, db_session, user_b, stapler):
        with pytest.raises(NotFoundError):
            inventory_service.get_item(user_b.id, stapler.id)

    def test_supplier_order_counter_bumped(self, db_session, user_a):
        supplier = Supplier(user_id=user_a.id, name="Acme", contact="Ann", email="a@acme.test", phone="1")
        db_session.add(supplier)
        db_session.commit()

        inventory_service.create_item(user_a.id, {
            "sku": "S-1", "name": "Thing", "category": "Misc", "price_cents": 10, "supplier_id": supplier.id,
        })
        db_session.refresh(supplier)
        assert supplier.total_orders == 1
        assert supplier.last_order_at is not None

    def test_list_filters_and_pagination(self, db_session, user_a, stapler, pens):
        items, pagination = inventory_service.list_items(user_a.id, status="Low Stock")
        assert [i.sku for i in items] == ["OF-1001"]
        assert pagination["total_items"] == 1

        items, pagination = inventory_service.list_items(user_a.id, search="stap")
        assert [i.sku for i in items] == ["OF-2002"]

        items, pagination = inventory_service.list_items(user_a.id, page=2, limit=1)
        assert len(items) == 1
        assert pagination == {"page": 2, "limit": 1, "total_items": 2, "total_pages": 2}

    def test_stats(self, db_session, user_a, stapler, pens):
        stats = inventory_service.get_stats(user_a.id)
        assert stats["total_items"] == 2
        assert stats["low_stock_items"] == 1
        assert stats["out_of_stock_items"] == 0
        assert stats["total_value_cents"] == 62 * 899 + 3 * 250

    def test_categories(self, db_session, user_a, stapler, pens):
        assert inventory_service.list_categories(user_a.id) == ["Office"]

    def test_delete(self, db_session, user_a, stapler):
        inventory_service.delete_item(user_a.id, stapler.id)
        assert db_session.query(InventoryItem).count() == 0

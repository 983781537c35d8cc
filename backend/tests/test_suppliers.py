# Overview: Pytest coverage for the supplier directory.

import pytest

from retailpos.errors import AuthorizationError, ConflictError, ValidationError
from retailpos.models import Supplier
from retailpos.services import inventory_service, supplier_service


ACME = {"name": "Acme", "contact": "Ann Lee", "email": "Orders@Acme.test", "phone": "555-0100"}


class TestSupplierDirectory:
    """CRUD, unique email per user, admin-only delete."""

    def test_create_normalizes_email(self, db_session, user_a):
        supplier = supplier_service.create_supplier(user_a.id, dict(ACME))
        assert supplier.email == "orders@acme.test"
        assert supplier.payment_terms == "Net 30"
        assert supplier.status == "Active"

    def test_invalid_email(self, db_session, user_a):
        with pytest.raises(ValidationError):
            supplier_service.create_supplier(user_a.id, {**ACME, "email": "not-an-email"})

    def test_duplicate_email_for_same_user(self, db_session, user_a, user_b):
        supplier_service.create_supplier(user_a.id, dict(ACME))
        with pytest.raises(ConflictError):
            supplier_service.create_supplier(user_a.id, {**ACME, "name": "Acme Two"})
        assert supplier_service.create_supplier(user_b.id, dict(ACME)).user_id == user_b.id

    def test_set_status(self, db_session, user_a):
        supplier = supplier_service.create_supplier(user_a.id, dict(ACME))
        assert supplier_service.set_status(user_a.id, supplier.id, "Inactive").status == "Inactive"
        with pytest.raises(ValidationError):
            supplier_service.set_status(user_a.id, supplier.id, "Archived")

    def test_non_admin_cannot_delete(self, db_session, user_b):
        supplier = supplier_service.create_supplier(user_b.id, dict(ACME))
        with pytest.raises(AuthorizationError):
            supplier_service.delete_supplier(user_b, supplier.id)
        assert db_session.query(Supplier).count() == 1

    def test_admin_delete_unlinks_items(self, db_session, user_a):
        supplier = supplier_service.create_supplier(user_a.id, dict(ACME))
        item = inventory_service.create_item(user_a.id, {
            "sku": "AC-1", "name": "Anvil", "category": "Hardware",
            "price_cents": 5000, "supplier_id": supplier.id,
        })

        supplier_service.delete_supplier(user_a, supplier.id)

        db_session.refresh(item)
        assert item.supplier_id is None
        assert db_session.query(Supplier).count() == 0

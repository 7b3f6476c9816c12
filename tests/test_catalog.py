"""
test_catalog.py — Tests for routers/catalog.py and services/catalog_service.py

Covers suppliers (YTD refresh, delete keeps products), categories,
products (list-field normalization, search), and the vendor approval
request/review workflow.

Called by: pytest
Depends on: routers/catalog.py, services/catalog_service.py, conftest.py
"""

import json

from swagsuite.models import Notification, Product, VendorApprovalRequest
from swagsuite.services.catalog_service import (
    escape_like,
    normalize_list_field,
    parse_list_field,
)


# ── List fields ──────────────────────────────────────────────────────


class TestListFields:
    def test_list_input(self):
        assert json.loads(normalize_list_field([" Red", "Blue ", ""])) == ["Red", "Blue"]

    def test_csv_input(self):
        assert json.loads(normalize_list_field("S, M ,L")) == ["S", "M", "L"]

    def test_json_text_input(self):
        assert json.loads(normalize_list_field('["Screen Print", "Embroidery"]')) == ["Screen Print", "Embroidery"]

    def test_none_and_blank(self):
        assert normalize_list_field(None) is None
        assert normalize_list_field("  ") == "[]"

    def test_parse_legacy_csv(self):
        assert parse_list_field("Red,Blue") == ["Red", "Blue"]
        assert parse_list_field(None) == []

    def test_escape_like(self):
        assert escape_like("50%_off") == r"50\%\_off"


# ── Suppliers ────────────────────────────────────────────────────────


class TestSuppliers:
    def test_create_and_get(self, client):
        resp = client.post("/api/suppliers", json={"name": "Hit Promotional", "asi_id": "61125"})
        assert resp.status_code == 201
        sid = resp.json()["id"]
        data = client.get(f"/api/suppliers/{sid}").json()
        assert data["asi_id"] == "61125"
        assert data["do_not_order"] is False

    def test_list_refreshes_spend_and_counts(self, client, test_order, test_supplier):
        row = next(s for s in client.get("/api/suppliers").json() if s["id"] == test_supplier.id)
        assert row["ytd_spend"] == 1250.0
        assert row["product_count"] == 1

    def test_update_do_not_order(self, client, test_supplier):
        resp = client.patch(f"/api/suppliers/{test_supplier.id}", json={"do_not_order": True})
        assert resp.json()["do_not_order"] is True

    def test_delete_keeps_products(self, client, test_supplier, test_product, db_session):
        assert client.delete(f"/api/suppliers/{test_supplier.id}").status_code == 204
        db_session.expire_all()
        product = db_session.get(Product, test_product.id)
        assert product is not None
        assert product.supplier_id is None

    def test_get_404(self, client):
        assert client.get("/api/suppliers/999").status_code == 404


# ── Categories ───────────────────────────────────────────────────────


def test_categories(client):
    assert client.post("/api/product-categories", json={"name": "Drinkware"}).status_code == 201
    assert client.post("/api/product-categories", json={"name": "Drinkware"}).status_code == 409
    assert [c["name"] for c in client.get("/api/product-categories").json()] == ["Drinkware"]


# ── Products ─────────────────────────────────────────────────────────


class TestProducts:
    def test_create_normalizes_lists(self, client, test_supplier):
        resp = client.post(
            "/api/products",
            json={"name": "Travel Mug", "supplier_id": test_supplier.id, "colors": "Red, Navy", "sizes": ["12oz"]},
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["colors"] == ["Red", "Navy"]
        assert data["sizes"] == ["12oz"]
        assert data["supplier_name"] == test_supplier.name

    def test_create_unknown_supplier_404(self, client):
        assert client.post("/api/products", json={"name": "X", "supplier_id": 999}).status_code == 404

    def test_update_product(self, client, test_product):
        resp = client.patch(f"/api/products/{test_product.id}", json={"imprint_methods": "Screen Print"})
        assert resp.json()["imprint_methods"] == ["Screen Print"]
        assert resp.json()["colors"] == ["Black", "White"]

    def test_update_unknown_links_404(self, client, test_product):
        url = f"/api/products/{test_product.id}"
        assert client.patch(url, json={"supplier_id": 999}).status_code == 404
        assert client.patch(url, json={"category_id": 999}).status_code == 404

    def test_list_by_supplier(self, client, test_product, test_supplier):
        assert len(client.get("/api/products", params={"supplier_id": test_supplier.id}).json()) == 1
        assert client.get("/api/products", params={"supplier_id": 999}).json() == []

    def test_search_by_sku(self, client, test_product):
        resp = client.get("/api/products/search", params={"q": "tee-1"})
        assert [p["id"] for p in resp.json()] == [test_product.id]

    def test_search_requires_query(self, client):
        assert client.get("/api/products/search").status_code == 400

    def test_delete_product(self, client, test_product):
        assert client.delete(f"/api/products/{test_product.id}").status_code == 204
        assert client.get(f"/api/products/{test_product.id}").status_code == 404


# ── Vendor approvals ─────────────────────────────────────────────────


class TestVendorApprovals:
    def test_request_is_pending(self, client, blocked_supplier, test_user):
        resp = client.post("/api/vendor-approvals", json={"supplier_id": blocked_supplier.id, "reason": "Only source"})
        assert resp.status_code == 201
        assert resp.json()["status"] == "pending"
        assert resp.json()["requested_by"] == test_user.id

    def test_regular_user_cannot_review(self, client, blocked_supplier):
        req = client.post("/api/vendor-approvals", json={"supplier_id": blocked_supplier.id}).json()
        resp = client.post(f"/api/vendor-approvals/{req['id']}/review", json={"status": "approved"})
        assert resp.status_code == 403

    def test_manager_review_notifies_requester(
        self, client_as, db_session, blocked_supplier, test_user, manager_user
    ):
        req = VendorApprovalRequest(supplier_id=blocked_supplier.id, requested_by=test_user.id, status="pending")
        db_session.add(req)
        db_session.commit()

        mgr = client_as(db_session, manager_user)
        resp = mgr.post(f"/api/vendor-approvals/{req.id}/review", json={"status": "approved"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "approved"
        assert resp.json()["reviewed_by"] == manager_user.id
        note = db_session.query(Notification).filter_by(type="vendor_approval").one()
        assert note.recipient_id == test_user.id

        again = mgr.post(f"/api/vendor-approvals/{req.id}/review", json={"status": "rejected"})
        assert again.status_code == 409

    def test_invalid_review_status_422(self, client_as, db_session, blocked_supplier, manager_user, test_user):
        req = VendorApprovalRequest(supplier_id=blocked_supplier.id, requested_by=test_user.id)
        db_session.add(req)
        db_session.commit()
        resp = client_as(db_session, manager_user).post(
            f"/api/vendor-approvals/{req.id}/review", json={"status": "maybe"}
        )
        assert resp.status_code == 422

    def test_list_by_status(self, client, blocked_supplier):
        client.post("/api/vendor-approvals", json={"supplier_id": blocked_supplier.id})
        assert len(client.get("/api/vendor-approvals", params={"status": "pending"}).json()) == 1
        assert client.get("/api/vendor-approvals", params={"status": "approved"}).json() == []

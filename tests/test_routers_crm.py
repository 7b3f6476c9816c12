"""
test_routers_crm.py — Tests for routers/crm.py

Covers companies (CRUD, search, YTD refresh, cascade delete), contacts
(one-parent rule, primary flag), and leads (CRUD, conversion).

Called by: pytest
Depends on: routers/crm.py, conftest.py
"""

from datetime import datetime, timezone
from decimal import Decimal

from swagsuite.models import (
    Activity,
    ArtworkCard,
    ArtworkColumn,
    Company,
    Contact,
    Lead,
    Order,
    OrderItem,
)


# ── Companies ────────────────────────────────────────────────────────


class TestCompanies:
    def test_create_company(self, client, db_session):
        resp = client.post("/api/companies", json={"name": "Globex", "industry": "Tech"})
        assert resp.status_code == 201
        data = resp.json()
        assert data["name"] == "Globex"
        assert data["ytd_spend"] == 0.0
        activity = db_session.query(Activity).filter_by(entity_type="company", action="created").one()
        assert activity.entity_id == data["id"]

    def test_create_company_blank_name_422(self, client):
        resp = client.post("/api/companies", json={"name": "   "})
        assert resp.status_code == 422

    def test_list_refreshes_ytd(self, client, test_order, test_company, db_session):
        test_company.ytd_spend = Decimal("0")
        db_session.commit()
        resp = client.get("/api/companies")
        assert resp.status_code == 200
        row = next(c for c in resp.json() if c["id"] == test_company.id)
        assert row["ytd_spend"] == 1250.0

    def test_ytd_ignores_prior_year_orders(self, client, test_company, db_session):
        last_year = datetime.now(timezone.utc).year - 1
        db_session.add(
            Order(
                order_number=f"ORD-{last_year}-001",
                company_id=test_company.id,
                total=Decimal("999.00"),
                created_at=datetime(last_year, 6, 1, tzinfo=timezone.utc),
            )
        )
        db_session.commit()
        resp = client.get("/api/companies")
        row = next(c for c in resp.json() if c["id"] == test_company.id)
        assert row["ytd_spend"] == 0.0

    def test_get_company_includes_contacts(self, client, test_company, test_contact, test_order):
        resp = client.get(f"/api/companies/{test_company.id}")
        assert resp.status_code == 200
        data = resp.json()
        assert [c["id"] for c in data["contacts"]] == [test_contact.id]
        assert data["order_count"] == 1

    def test_get_company_404(self, client):
        assert client.get("/api/companies/9999").status_code == 404

    def test_update_company(self, client, test_company):
        resp = client.patch(f"/api/companies/{test_company.id}", json={"city": "Austin"})
        assert resp.status_code == 200
        assert resp.json()["city"] == "Austin"
        assert resp.json()["name"] == test_company.name

    def test_search_companies(self, client, test_company):
        resp = client.get("/api/companies/search", params={"q": "acme"})
        assert resp.status_code == 200
        assert [c["id"] for c in resp.json()] == [test_company.id]

    def test_search_escapes_wildcards(self, client, test_company):
        resp = client.get("/api/companies/search", params={"q": "%"})
        assert resp.json() == []

    def test_search_requires_query(self, client):
        assert client.get("/api/companies/search", params={"q": " "}).status_code == 400

    def test_delete_company_cascades(self, client, test_company, test_contact, test_order, db_session):
        order_id = test_order.id
        resp = client.delete(f"/api/companies/{test_company.id}")
        assert resp.status_code == 204
        db_session.expire_all()
        assert db_session.get(Company, test_company.id) is None
        assert db_session.get(Contact, test_contact.id) is None
        assert db_session.get(Order, order_id) is None
        assert db_session.query(OrderItem).filter_by(order_id=order_id).count() == 0

    def test_delete_company_keeps_artwork_cards(self, client, test_company, test_order, db_session):
        column = ArtworkColumn(name="Proof", position=1)
        db_session.add(column)
        db_session.flush()
        order_card = ArtworkCard(title="Logo proof", column_id=column.id, order_id=test_order.id)
        company_card = ArtworkCard(title="Brand kit", column_id=column.id, company_id=test_company.id, position=1)
        db_session.add_all([order_card, company_card])
        db_session.commit()

        assert client.delete(f"/api/orders/{test_order.id}").status_code == 204
        db_session.expire_all()
        assert db_session.get(ArtworkCard, order_card.id).order_id is None

        assert client.delete(f"/api/companies/{test_company.id}").status_code == 204
        db_session.expire_all()
        kept = db_session.get(ArtworkCard, company_card.id)
        assert kept is not None
        assert kept.company_id is None
        assert db_session.query(ArtworkCard).count() == 2


# ── Contacts ─────────────────────────────────────────────────────────


class TestContacts:
    def test_create_company_contact(self, client, test_company):
        resp = client.post(
            "/api/contacts",
            json={"company_id": test_company.id, "first_name": "Sam", "last_name": "Lee"},
        )
        assert resp.status_code == 201
        assert resp.json()["full_name"] == "Sam Lee"

    def test_contact_cannot_have_two_parents(self, client, test_company, test_supplier):
        resp = client.post(
            "/api/contacts",
            json={
                "company_id": test_company.id,
                "supplier_id": test_supplier.id,
                "first_name": "Sam",
                "last_name": "Lee",
            },
        )
        assert resp.status_code == 422

    def test_contact_unknown_company_404(self, client):
        resp = client.post("/api/contacts", json={"company_id": 999, "first_name": "A", "last_name": "B"})
        assert resp.status_code == 404

    def test_new_primary_clears_previous(self, client, test_company, test_contact, db_session):
        resp = client.post(
            "/api/contacts",
            json={"company_id": test_company.id, "first_name": "New", "last_name": "Boss", "is_primary": True},
        )
        assert resp.status_code == 201
        db_session.refresh(test_contact)
        assert test_contact.is_primary is False

    def test_list_contacts_by_supplier(self, client, test_supplier, test_contact, db_session):
        db_session.add(Contact(supplier_id=test_supplier.id, first_name="Vic", last_name="Vendor"))
        db_session.commit()
        resp = client.get("/api/contacts", params={"supplier_id": test_supplier.id})
        assert [c["first_name"] for c in resp.json()] == ["Vic"]

    def test_update_contact_to_both_parents_400(self, client, test_contact, test_supplier):
        resp = client.patch(f"/api/contacts/{test_contact.id}", json={"supplier_id": test_supplier.id})
        assert resp.status_code == 400

    def test_delete_contact(self, client, test_contact):
        assert client.delete(f"/api/contacts/{test_contact.id}").status_code == 204
        assert client.get(f"/api/contacts/{test_contact.id}").status_code == 404


# ── Leads ────────────────────────────────────────────────────────────


class TestLeads:
    def _lead(self, db_session, **kw):
        lead = Lead(first_name="Lou", last_name="Prospect", email="lou@startup.io", company_name="Startup Inc", **kw)
        db_session.add(lead)
        db_session.commit()
        return lead

    def test_create_lead_defaults(self, client, test_user):
        resp = client.post("/api/leads", json={"first_name": "Lou", "last_name": "Prospect"})
        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "new"
        assert data["assigned_user_id"] == test_user.id

    def test_invalid_status_422(self, client):
        resp = client.post("/api/leads", json={"first_name": "A", "last_name": "B", "status": "hot"})
        assert resp.status_code == 422

    def test_unknown_assignee_404(self, client, db_session):
        resp = client.post("/api/leads", json={"first_name": "A", "last_name": "B", "assigned_user_id": 999})
        assert resp.status_code == 404
        lead = self._lead(db_session)
        assert client.patch(f"/api/leads/{lead.id}", json={"assigned_user_id": 999}).status_code == 404

    def test_filter_by_status(self, client, db_session):
        self._lead(db_session, status="qualified")
        self._lead(db_session)
        resp = client.get("/api/leads", params={"status": "qualified"})
        assert len(resp.json()) == 1

    def test_convert_lead(self, client, db_session):
        lead = self._lead(db_session)
        resp = client.post(f"/api/leads/{lead.id}/convert")
        assert resp.status_code == 201
        data = resp.json()
        assert data["company"]["name"] == "Startup Inc"
        assert data["contact"]["is_primary"] is True
        assert data["contact"]["company_id"] == data["company"]["id"]
        assert data["lead"]["status"] == "converted"
        assert data["lead"]["converted_company_id"] == data["company"]["id"]

    def test_convert_with_override_name(self, client, db_session):
        lead = self._lead(db_session)
        resp = client.post(f"/api/leads/{lead.id}/convert", json={"company_name": "Startup Holdings"})
        assert resp.json()["company"]["name"] == "Startup Holdings"

    def test_convert_twice_409(self, client, db_session):
        lead = self._lead(db_session)
        client.post(f"/api/leads/{lead.id}/convert")
        assert client.post(f"/api/leads/{lead.id}/convert").status_code == 409

    def test_delete_lead(self, client, db_session):
        lead = self._lead(db_session)
        assert client.delete(f"/api/leads/{lead.id}").status_code == 204
        assert client.delete(f"/api/leads/{lead.id}").status_code == 404

"""Tests for swagsuite/schemas — request validation models."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from swagsuite.schemas.artwork import CardCreate, CardMove, ColumnCreate
from swagsuite.schemas.catalog import ProductCreate, VendorApprovalReview
from swagsuite.schemas.crm import CompanyCreate, CompanyUpdate, ContactCreate, LeadCreate
from swagsuite.schemas.orders import OrderCreate, OrderItemCreate, OrderUpdate
from swagsuite.schemas.sequences import EnrollmentCreate, StepCreate


# ── CRM ──────────────────────────────────────────────────────────────


class TestCompanySchemas:
    def test_strips_name(self) -> None:
        assert CompanyCreate(name="  Acme  ").name == "Acme"

    def test_blank_name_raises(self) -> None:
        with pytest.raises(ValidationError):
            CompanyCreate(name="   ")

    def test_update_allows_omitted_name(self) -> None:
        assert CompanyUpdate(industry="Tech").model_dump(exclude_unset=True) == {"industry": "Tech"}

    def test_engagement_level_enum(self) -> None:
        with pytest.raises(ValidationError):
            CompanyCreate(name="Acme", engagement_level="extreme")


class TestContactSchemas:
    def test_single_parent(self) -> None:
        with pytest.raises(ValidationError):
            ContactCreate(first_name="A", last_name="B", company_id=1, supplier_id=2)

    def test_defaults(self) -> None:
        c = ContactCreate(first_name="A", last_name="B", company_id=1)
        assert c.is_primary is False
        assert c.receive_order_emails is True


def test_lead_status_enum() -> None:
    assert LeadCreate(first_name="A", last_name="B").status == "new"
    with pytest.raises(ValidationError):
        LeadCreate(first_name="A", last_name="B", status="warm")


# ── Orders ───────────────────────────────────────────────────────────


class TestOrderSchemas:
    def test_defaults(self) -> None:
        o = OrderCreate()
        assert o.status == "quote"
        assert o.tax == Decimal("0")
        assert o.items == []

    def test_blank_order_number_becomes_none(self) -> None:
        assert OrderCreate(order_number="  ").order_number is None

    def test_negative_tax_raises(self) -> None:
        with pytest.raises(ValidationError):
            OrderUpdate(tax="-1")

    def test_item_quantity_positive(self) -> None:
        with pytest.raises(ValidationError):
            OrderItemCreate(quantity=0, unit_price="1")

    def test_item_price_parsed_as_decimal(self) -> None:
        assert OrderItemCreate(quantity=1, unit_price="19.99").unit_price == Decimal("19.99")


# ── Catalog ──────────────────────────────────────────────────────────


def test_product_minimum_quantity() -> None:
    with pytest.raises(ValidationError):
        ProductCreate(name="Mug", minimum_quantity=0)


def test_review_status_enum() -> None:
    assert VendorApprovalReview(status="rejected").status == "rejected"
    with pytest.raises(ValidationError):
        VendorApprovalReview(status="pending")


# ── Artwork ──────────────────────────────────────────────────────────


class TestArtworkSchemas:
    def test_hex_color(self) -> None:
        assert ColumnCreate(name="Proof", color="#00FF00").color == "#00FF00"
        with pytest.raises(ValidationError):
            ColumnCreate(name="Proof", color="00FF00")

    def test_card_defaults(self) -> None:
        card = CardCreate(title="Logo", column_id=1)
        assert card.priority == "medium"
        assert card.labels == []

    def test_move_position_non_negative(self) -> None:
        with pytest.raises(ValidationError):
            CardMove(column_id=1, position=-1)


# ── Sequences ────────────────────────────────────────────────────────


class TestSequenceSchemas:
    def test_step_delay_bounds(self) -> None:
        with pytest.raises(ValidationError):
            StepCreate(type="email", title="Hi", delay_hours=24)
        with pytest.raises(ValidationError):
            StepCreate(type="email", title="Hi", delay_minutes=60)

    def test_step_type_enum(self) -> None:
        assert StepCreate(type="linkedin_message", title="Connect").delay_days == 1
        with pytest.raises(ValidationError):
            StepCreate(type="sms", title="Hi")

    def test_enrollment_contact_type(self) -> None:
        assert EnrollmentCreate(sequence_id=1, contact_id=2).contact_type == "company"
        with pytest.raises(ValidationError):
            EnrollmentCreate(sequence_id=1, contact_id=2, contact_type="supplier")

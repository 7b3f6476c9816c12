"""Catalog models — Suppliers, Product Categories, Products, Vendor Approvals."""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .base import Base

APPROVAL_STATUSES = ("pending", "approved", "rejected")


class Supplier(Base):
    """Vendor — owns products. do_not_order vendors need approval per use."""

    __tablename__ = "suppliers"
    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255))
    phone = Column(String(100))
    website = Column(String(500))
    address = Column(Text)
    contact_person = Column(String(255))
    payment_terms = Column(String(100))
    notes = Column(Text)
    is_preferred = Column(Boolean, default=False)
    do_not_order = Column(Boolean, default=False)

    ytd_spend = Column(Numeric(12, 2), default=0)
    last_year_spend = Column(Numeric(12, 2), default=0)
    product_count = Column(Integer, default=0)

    # Distributor database identifiers
    esp_id = Column(String(100))
    asi_id = Column(String(100))
    sage_id = Column(String(100))

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    products = relationship("Product", back_populates="supplier")
    contacts = relationship(
        "Contact", back_populates="supplier", cascade="all, delete-orphan"
    )

    __table_args__ = (Index("ix_suppliers_name", "name"),)


class ProductCategory(Base):
    __tablename__ = "product_categories"
    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))


class Product(Base):
    """Catalog product. colors/sizes/imprint_methods are JSON arrays stored as text."""

    __tablename__ = "products"
    id = Column(Integer, primary_key=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="SET NULL"))
    category_id = Column(
        Integer, ForeignKey("product_categories.id", ondelete="SET NULL")
    )
    name = Column(String(255), nullable=False)
    description = Column(Text)
    sku = Column(String(100))
    supplier_sku = Column(String(100))
    base_price = Column(Numeric(10, 2))
    minimum_quantity = Column(Integer, default=1)
    brand = Column(String(255))
    colors = Column(Text)
    sizes = Column(Text)
    imprint_methods = Column(Text)
    lead_time = Column(Integer)  # days
    image_url = Column(String(1000))
    product_type = Column(String(50), default="promotional")  # apparel, hard_goods, promotional
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    supplier = relationship("Supplier", back_populates="products")
    category = relationship("ProductCategory")

    __table_args__ = (
        Index("ix_products_supplier", "supplier_id"),
        Index("ix_products_name", "name"),
        Index("ix_products_sku", "sku"),
    )


class VendorApprovalRequest(Base):
    """Request to use a do_not_order supplier — reviewed by a manager."""

    __tablename__ = "vendor_approval_requests"
    id = Column(Integer, primary_key=True)
    supplier_id = Column(
        Integer, ForeignKey("suppliers.id", ondelete="CASCADE"), nullable=False
    )
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"))
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"))
    requested_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    reason = Column(Text)
    status = Column(String(20), default="pending")
    reviewed_by = Column(Integer, ForeignKey("users.id"))
    reviewed_at = Column(DateTime)
    review_notes = Column(Text)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    supplier = relationship("Supplier")
    requester = relationship("User", foreign_keys=[requested_by])
    reviewer = relationship("User", foreign_keys=[reviewed_by])

    __table_args__ = (
        Index("ix_vendor_approvals_supplier_status", "supplier_id", "status"),
    )

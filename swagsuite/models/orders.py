"""Order models — Orders, Order Items, Artwork Files, Communications, Attachments, Errors."""

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
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

# Descriptive lifecycle, not a guarded state machine
ORDER_STATUSES = (
    "quote",
    "pending_approval",
    "approved",
    "in_production",
    "shipped",
    "delivered",
    "cancelled",
)

# Statuses that count as booked revenue on the dashboard and leaderboard
REVENUE_STATUSES = ("approved", "in_production", "shipped", "delivered")

ORDER_TYPES = ("quote", "sales_order", "rush_order")
COMMUNICATION_TYPES = ("client_email", "vendor_email", "internal_note")

ERROR_TYPES = ("pricing", "in_hands_date", "shipping", "printing", "artwork_proofing", "oos", "other")
RESPONSIBLE_PARTIES = ("customer", "vendor", "company")
ERROR_RESOLUTIONS = ("refund", "credit_for_future_order", "reprint", "courier_shipping", "other")


class Order(Base):
    """Quote or confirmed purchase. Totals are derived from order items."""

    __tablename__ = "orders"
    id = Column(Integer, primary_key=True)
    order_number = Column(String(50), nullable=False, unique=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"))
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="SET NULL"))
    assigned_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    csr_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))

    status = Column(String(30), nullable=False, default="quote")
    status_changed_at = Column(DateTime)
    order_type = Column(String(30), default="quote")

    subtotal = Column(Numeric(12, 2), default=0)
    tax = Column(Numeric(12, 2), default=0)
    shipping = Column(Numeric(12, 2), default=0)
    order_discount = Column(Numeric(12, 2), default=0)
    total = Column(Numeric(12, 2), default=0)
    margin = Column(Numeric(5, 2), default=0)  # percent

    in_hands_date = Column(DateTime)
    event_date = Column(DateTime)
    supplier_in_hands_date = Column(DateTime)
    is_firm = Column(Boolean, default=False)
    is_rush = Column(Boolean, default=False)
    next_action_date = Column(DateTime)
    next_action_notes = Column(Text)

    customer_po = Column(String(100))
    payment_terms = Column(String(100), default="Net 30")

    notes = Column(Text)
    customer_notes = Column(Text)  # visible to customer
    internal_notes = Column(Text)  # internal only
    supplier_notes = Column(Text)  # visible to supplier only

    shipping_address = Column(Text)
    billing_address = Column(Text)
    tracking_number = Column(String(255))
    shipping_method = Column(String(100))

    # production board; stage ids come from services.production_service
    current_stage = Column(String(50))
    stages_completed = Column(JSON, default=list)
    stage_data = Column(JSON, default=dict)

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    company = relationship("Company", back_populates="orders")
    contact = relationship("Contact", foreign_keys=[contact_id])
    assigned_user = relationship("User", foreign_keys=[assigned_user_id])
    csr_user = relationship("User", foreign_keys=[csr_user_id])
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    artwork_files = relationship(
        "ArtworkFile", back_populates="order", cascade="all, delete-orphan"
    )
    communications = relationship(
        "Communication", back_populates="order", cascade="all, delete-orphan"
    )
    attachments = relationship(
        "Attachment", back_populates="order", cascade="all, delete-orphan"
    )
    notifications = relationship(
        "Notification", back_populates="order", cascade="all, delete-orphan"
    )
    errors = relationship("OrderError", back_populates="order", passive_deletes=True)

    __table_args__ = (
        Index("ix_orders_company", "company_id"),
        Index("ix_orders_status", "status"),
        Index("ix_orders_assigned", "assigned_user_id"),
        Index("ix_orders_created", "created_at"),
    )


class OrderItem(Base):
    """Line item. total_price is quantity * unit_price, computed server-side."""

    __tablename__ = "order_items"
    id = Column(Integer, primary_key=True)
    order_id = Column(
        Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"))
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="SET NULL"))
    quantity = Column(Integer, nullable=False)
    cost = Column(Numeric(10, 2))  # per unit (COGS)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    decoration_cost = Column(Numeric(10, 2))
    charges = Column(Numeric(10, 2))
    size_pricing = Column(JSON)  # {"S": {"cost": 10, "price": 20, "quantity": 5}, ...}
    color = Column(String(100))
    size = Column(String(50))
    imprint_location = Column(String(255))
    imprint_method = Column(String(100))
    notes = Column(Text)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    order = relationship("Order", back_populates="items")
    product = relationship("Product")
    supplier = relationship("Supplier")

    __table_args__ = (
        Index("ix_order_items_order", "order_id"),
        Index("ix_order_items_supplier", "supplier_id"),
    )


class ArtworkFile(Base):
    """Artwork file metadata. Storage itself lives outside this service."""

    __tablename__ = "artwork_files"
    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"))
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"))
    file_name = Column(String(500), nullable=False)
    original_name = Column(String(500), nullable=False)
    file_size = Column(Integer)
    mime_type = Column(String(100))
    file_path = Column(String(1000), nullable=False)
    thumbnail_path = Column(String(1000))
    uploaded_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    order = relationship("Order", back_populates="artwork_files")
    company = relationship("Company", back_populates="artwork_files")

    __table_args__ = (
        Index("ix_artwork_files_order", "order_id"),
        Index("ix_artwork_files_company", "company_id"),
    )


class Communication(Base):
    """Email log entry tied to an order (client or vendor)."""

    __tablename__ = "communications"
    id = Column(Integer, primary_key=True)
    order_id = Column(
        Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    communication_type = Column(String(30), nullable=False)
    direction = Column(String(10), nullable=False)  # inbound | outbound
    recipient_email = Column(String(255), nullable=False)
    recipient_name = Column(String(255))
    subject = Column(String(500), nullable=False)
    body = Column(Text, nullable=False)
    meta = Column("metadata", JSON)
    sent_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    order = relationship("Order", back_populates="communications")
    user = relationship("User")
    attachments = relationship(
        "Attachment", back_populates="communication", cascade="all, delete-orphan"
    )

    __table_args__ = (Index("ix_communications_order_type", "order_id", "communication_type"),)


class Attachment(Base):
    """Generic file attachment on an order or a communication."""

    __tablename__ = "attachments"
    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"))
    communication_id = Column(
        Integer, ForeignKey("communications.id", ondelete="CASCADE")
    )
    filename = Column(String(500), nullable=False)
    original_filename = Column(String(500), nullable=False)
    storage_path = Column(String(1000), nullable=False)
    mime_type = Column(String(100))
    file_size = Column(Integer)
    category = Column(String(50), default="attachment")
    uploaded_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    order = relationship("Order", back_populates="attachments")
    communication = relationship("Communication", back_populates="attachments")

    __table_args__ = (Index("ix_attachments_order", "order_id"),)


class OrderError(Base):
    """A logged production/fulfilment mistake and how it was made right.

    Survives deletion of its order (order_id is nulled) so cost history stays intact.
    """

    __tablename__ = "order_errors"
    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="SET NULL"))
    error_date = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    project_number = Column(String(100))  # may differ from order_number
    error_type = Column(String(30), nullable=False)
    client_name = Column(String(255), nullable=False)
    vendor_name = Column(String(255))
    responsible_party = Column(String(20), nullable=False)
    resolution = Column(String(30), nullable=False)
    cost_to_company = Column(Numeric(12, 2), default=0)
    production_rep = Column(String(255))
    order_rep = Column(String(255))
    client_rep = Column(String(255))
    additional_notes = Column(Text)
    is_resolved = Column(Boolean, default=False)
    resolved_at = Column(DateTime)
    resolved_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    order = relationship("Order", back_populates="errors")
    creator = relationship("User", foreign_keys=[created_by])
    resolver = relationship("User", foreign_keys=[resolved_by])

    __table_args__ = (
        Index("ix_order_errors_order", "order_id"),
        Index("ix_order_errors_type", "error_type"),
        Index("ix_order_errors_date", "error_date"),
    )

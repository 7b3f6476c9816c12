"""Mockup templates and customer presentations."""

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

TEMPLATE_TYPES = ("company", "customer")
PRESENTATION_STATUSES = ("draft", "sent", "viewed", "approved", "rejected")


class MockupTemplate(Base):
    """Saved logo layout for the mockup builder. logos is a list of placements."""

    __tablename__ = "mockup_templates"
    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False, default="company")
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"))
    header = Column(Text)
    footer = Column(Text)
    logos = Column(JSON, default=list)
    is_active = Column(Boolean, default=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    product = relationship("Product")


class Presentation(Base):
    __tablename__ = "presentations"
    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="SET NULL"))
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="SET NULL"))
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    status = Column(String(20), default="draft")
    share_token = Column(String(64), unique=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    company = relationship("Company", foreign_keys=[company_id])
    products = relationship(
        "PresentationProduct",
        back_populates="presentation",
        cascade="all, delete-orphan",
        order_by="PresentationProduct.sort_order",
    )


class PresentationProduct(Base):
    __tablename__ = "presentation_products"
    id = Column(Integer, primary_key=True)
    presentation_id = Column(
        Integer, ForeignKey("presentations.id", ondelete="CASCADE"), nullable=False
    )
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"))
    product_name = Column(String(255), nullable=False)
    suggested_price = Column(Numeric(10, 2))
    suggested_quantity = Column(Integer)
    notes = Column(Text)
    sort_order = Column(Integer, default=0)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    presentation = relationship("Presentation", back_populates="products")
    product = relationship("Product")

    __table_args__ = (Index("ix_presentation_products_pres", "presentation_id"),)

"""CRM models — Companies, Contacts, and Leads."""

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
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

LEAD_STATUSES = ("new", "contacted", "qualified", "converted", "lost")


class Company(Base):
    """Customer company — owns contacts, orders, and artwork files."""

    __tablename__ = "companies"
    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255))
    phone = Column(String(100))
    website = Column(String(500))
    address = Column(Text)
    city = Column(String(255))
    state = Column(String(100))
    zip_code = Column(String(20))
    country = Column(String(100), default="US")
    industry = Column(String(255))
    notes = Column(Text)

    # Recomputed from orders created this calendar year
    ytd_spend = Column(Numeric(12, 2), default=0)

    social_media_links = Column(JSON)  # {"linkedin": url, "twitter": url, ...}
    customer_score = Column(Integer, default=0)
    engagement_level = Column(String(20))  # high, medium, low
    hubspot_id = Column(String(100))

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    contacts = relationship(
        "Contact", back_populates="company", cascade="all, delete-orphan"
    )
    orders = relationship(
        "Order", back_populates="company", cascade="all, delete-orphan"
    )
    artwork_files = relationship(
        "ArtworkFile", back_populates="company", cascade="all, delete-orphan"
    )

    __table_args__ = (Index("ix_companies_name", "name"),)


class Contact(Base):
    """Person at a company or a supplier — at most one parent."""

    __tablename__ = "contacts"
    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"))
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="CASCADE"))
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255))
    phone = Column(String(100))
    title = Column(String(255))
    is_primary = Column(Boolean, default=False)
    receive_order_emails = Column(Boolean, default=True)
    billing_address = Column(Text)
    shipping_address = Column(Text)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    company = relationship("Company", back_populates="contacts")
    supplier = relationship("Supplier", back_populates="contacts")

    __table_args__ = (
        CheckConstraint(
            "company_id IS NULL OR supplier_id IS NULL", name="ck_contacts_one_parent"
        ),
        Index("ix_contacts_company", "company_id"),
        Index("ix_contacts_supplier", "supplier_id"),
        Index("ix_contacts_email", "email"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Lead(Base):
    """Sales prospect — converted into a Company + primary Contact."""

    __tablename__ = "leads"
    id = Column(Integer, primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255))
    phone = Column(String(100))
    company_name = Column(String(255))
    title = Column(String(255))
    source = Column(String(100))  # Website, Referral, Trade Show, ...
    status = Column(String(20), default="new")
    estimated_value = Column(Numeric(12, 2))
    next_follow_up_date = Column(DateTime)
    notes = Column(Text)
    assigned_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    converted_company_id = Column(
        Integer, ForeignKey("companies.id", ondelete="SET NULL")
    )
    converted_at = Column(DateTime)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    assigned_user = relationship("User", foreign_keys=[assigned_user_id])
    converted_company = relationship("Company", foreign_keys=[converted_company_id])

    __table_args__ = (Index("ix_leads_status", "status"),)

"""Artwork kanban models — Columns and Cards."""

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .base import Base

CARD_PRIORITIES = ("low", "medium", "high", "urgent")


class ArtworkColumn(Base):
    __tablename__ = "artwork_columns"
    id = Column(Integer, primary_key=True)
    slug = Column(String(100), unique=True)
    name = Column(String(255), nullable=False)
    position = Column(Integer, nullable=False)
    color = Column(String(20), nullable=False, default="#6B7280")
    is_default = Column(Boolean, default=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    cards = relationship(
        "ArtworkCard",
        back_populates="column",
        cascade="all, delete-orphan",
        order_by="ArtworkCard.position",
    )


class ArtworkCard(Base):
    """One artwork production item on the board."""

    __tablename__ = "artwork_cards"
    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    column_id = Column(
        Integer, ForeignKey("artwork_columns.id", ondelete="CASCADE"), nullable=False
    )
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="SET NULL"))
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="SET NULL"))
    assigned_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    position = Column(Integer, nullable=False, default=0)
    priority = Column(String(10), default="medium")
    due_date = Column(DateTime)
    labels = Column(JSON, default=list)
    attachments = Column(JSON, default=list)
    checklist = Column(JSON, default=list)  # [{"text": str, "done": bool}]
    comments = Column(JSON, default=list)  # [{"user_id", "text", "created_at"}]
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    column = relationship("ArtworkColumn", back_populates="cards")
    order = relationship("Order", foreign_keys=[order_id])
    company = relationship("Company", foreign_keys=[company_id])
    assigned_user = relationship("User", foreign_keys=[assigned_user_id])

    __table_args__ = (Index("ix_artwork_cards_column_pos", "column_id", "position"),)

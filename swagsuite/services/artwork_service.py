"""
artwork_service.py — Artwork kanban board

Columns and cards are ordered by an integer position. Every move renumbers
the affected columns so positions stay contiguous (0..n-1).

Business Rules:
- initialize() creates the eight default columns only when the board is empty
- Default columns cannot be deleted
- A card created without a position goes to the end of its column
- move_card clamps the target position to [0, len(target column)]

Called by: routers/artwork.py
Depends on: models
"""

from datetime import datetime, timezone

from loguru import logger
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models import ArtworkCard, ArtworkColumn

DEFAULT_COLUMNS = (
    ("pms-colors", "PMS Colors", "#EF4444"),
    ("artist-schedule", "Artist Schedule", "#F97316"),
    ("artwork-todo", "Artwork to Do", "#EAB308"),
    ("in-progress", "In Progress", "#3B82F6"),
    ("questions", "Questions and clarifications", "#8B5CF6"),
    ("for-review", "For Review", "#EC4899"),
    ("sent-to-client", "Sent to Client", "#10B981"),
    ("completed", "Completed", "#22C55E"),
)


class DefaultColumnError(ValueError):
    """Raised when deleting one of the built-in columns."""


def initialize_board(db: Session) -> list[ArtworkColumn]:
    """Create the default columns if no columns exist. Idempotent."""
    if db.query(ArtworkColumn.id).first() is not None:
        return list_columns(db)
    for position, (slug, name, color) in enumerate(DEFAULT_COLUMNS):
        db.add(
            ArtworkColumn(
                slug=slug, name=name, color=color, position=position, is_default=True
            )
        )
    db.commit()
    logger.info("Initialized artwork board", columns=len(DEFAULT_COLUMNS))
    return list_columns(db)


def list_columns(db: Session) -> list[ArtworkColumn]:
    return db.query(ArtworkColumn).order_by(ArtworkColumn.position, ArtworkColumn.id).all()


def create_column(db: Session, name: str, color: str, position: int | None = None) -> ArtworkColumn:
    if position is None:
        highest = db.query(func.max(ArtworkColumn.position)).scalar()
        position = 0 if highest is None else highest + 1
    column = ArtworkColumn(name=name, color=color, position=position, is_default=False)
    db.add(column)
    db.commit()
    return column


def delete_column(db: Session, column: ArtworkColumn) -> None:
    if column.is_default:
        raise DefaultColumnError("Default columns cannot be deleted")
    for card in _column_cards(db, column.id):
        db.delete(card)
    db.delete(column)
    db.commit()


def _column_cards(db: Session, column_id: int, exclude_id: int | None = None) -> list[ArtworkCard]:
    query = db.query(ArtworkCard).filter(ArtworkCard.column_id == column_id)
    if exclude_id is not None:
        query = query.filter(ArtworkCard.id != exclude_id)
    return query.order_by(ArtworkCard.position, ArtworkCard.id).all()


def _renumber(cards: list[ArtworkCard]) -> None:
    for index, card in enumerate(cards):
        card.position = index


def add_card(db: Session, card: ArtworkCard, position: int | None = None) -> ArtworkCard:
    """Insert a card, appending to the column unless a position is given."""
    siblings = _column_cards(db, card.column_id)
    if position is None or position >= len(siblings):
        siblings.append(card)
    else:
        siblings.insert(max(position, 0), card)
    db.add(card)
    _renumber(siblings)
    db.commit()
    return card


def move_card(db: Session, card: ArtworkCard, column_id: int, position: int) -> ArtworkCard:
    """Move a card and renumber source and target columns contiguously."""
    source_id = card.column_id
    target = _column_cards(db, column_id, exclude_id=card.id)
    position = max(0, min(position, len(target)))
    target.insert(position, card)
    card.column_id = column_id
    _renumber(target)
    if source_id != column_id:
        _renumber(_column_cards(db, source_id, exclude_id=card.id))
    db.commit()
    logger.info(
        "Artwork card moved",
        card_id=card.id,
        from_column=source_id,
        to_column=column_id,
        position=position,
    )
    return card


def remove_card(db: Session, card: ArtworkCard) -> None:
    column_id = card.column_id
    db.delete(card)
    db.flush()
    _renumber(_column_cards(db, column_id))
    db.commit()


def add_comment(db: Session, card: ArtworkCard, user_id: int, text: str) -> dict:
    comment = {
        "id": len(card.comments or []) + 1,
        "user_id": user_id,
        "text": text,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    # Reassign so the JSON column is flagged dirty
    card.comments = [*(card.comments or []), comment]
    db.commit()
    return comment


def column_to_dict(c: ArtworkColumn, card_count: int | None = None) -> dict:
    return {
        "id": c.id,
        "name": c.name,
        "position": c.position,
        "color": c.color,
        "is_default": bool(c.is_default),
        "card_count": card_count if card_count is not None else len(c.cards),
    }


def card_to_dict(card: ArtworkCard) -> dict:
    return {
        "id": card.id,
        "title": card.title,
        "description": card.description,
        "column_id": card.column_id,
        "order_id": card.order_id,
        "order_number": card.order.order_number if card.order else None,
        "company_id": card.company_id,
        "company_name": card.company.name if card.company else None,
        "assigned_user_id": card.assigned_user_id,
        "assigned_user_name": card.assigned_user.name if card.assigned_user else None,
        "position": card.position,
        "priority": card.priority,
        "due_date": card.due_date.isoformat() if card.due_date else None,
        "labels": card.labels or [],
        "attachments": card.attachments or [],
        "checklist": card.checklist or [],
        "comments": card.comments or [],
        "created_at": card.created_at.isoformat() if card.created_at else None,
    }

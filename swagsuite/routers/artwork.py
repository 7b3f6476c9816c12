"""
routers/artwork.py — Artwork Kanban Board Routes (Columns, Cards)

Business Rules:
- Columns list in position order; initialize seeds the 8 defaults on an empty board
- Default columns cannot be deleted (400); deleting a custom column deletes its cards
- New cards append to their column unless a position is given
- Moving a card renumbers source and target columns to 0..n-1

Called by: main.py (router mount)
Depends on: models, dependencies, services.artwork_service
"""

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ..database import get_db
from ..dependencies import require_user
from ..models import ArtworkCard, ArtworkColumn, Company, Order, User
from ..schemas.artwork import (
    CardComment,
    CardCreate,
    CardMove,
    CardUpdate,
    ColumnCreate,
    ColumnUpdate,
)
from ..services.artwork_service import (
    DefaultColumnError,
    add_card,
    add_comment,
    card_to_dict,
    column_to_dict,
    create_column,
    delete_column,
    initialize_board,
    list_columns,
    move_card,
    remove_card,
)

router = APIRouter()


def _card_counts(db: Session) -> dict[int, int]:
    rows = (
        db.query(ArtworkCard.column_id, func.count(ArtworkCard.id))
        .group_by(ArtworkCard.column_id)
        .all()
    )
    return dict(rows)


def _get_column(db: Session, column_id: int) -> ArtworkColumn:
    column = db.get(ArtworkColumn, column_id)
    if not column:
        raise HTTPException(404, "Column not found")
    return column


def _get_card(db: Session, card_id: int) -> ArtworkCard:
    card = db.get(ArtworkCard, card_id)
    if not card:
        raise HTTPException(404, "Card not found")
    return card


def _check_links(
    db: Session, order_id: int | None, company_id: int | None, assigned_user_id: int | None = None
) -> None:
    if order_id and not db.get(Order, order_id):
        raise HTTPException(404, "Order not found")
    if company_id and not db.get(Company, company_id):
        raise HTTPException(404, "Company not found")
    if assigned_user_id and not db.get(User, assigned_user_id):
        raise HTTPException(404, "User not found")


# ── Columns ──────────────────────────────────────────────────────────────


@router.get("/api/artwork/columns")
async def get_columns(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    counts = _card_counts(db)
    return [column_to_dict(c, counts.get(c.id, 0)) for c in list_columns(db)]


@router.post("/api/artwork/columns/initialize")
async def initialize_columns(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    counts = _card_counts(db)
    return [column_to_dict(c, counts.get(c.id, 0)) for c in initialize_board(db)]


@router.post("/api/artwork/columns", status_code=201)
async def add_column(
    payload: ColumnCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    column = create_column(db, payload.name, payload.color, payload.position)
    return column_to_dict(column, 0)


@router.patch("/api/artwork/columns/{column_id}")
async def update_column(
    column_id: int,
    payload: ColumnUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    column = _get_column(db, column_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(column, field, value)
    db.commit()
    return column_to_dict(column, _card_counts(db).get(column.id, 0))


@router.delete("/api/artwork/columns/{column_id}", status_code=204)
async def remove_column(
    column_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    column = _get_column(db, column_id)
    try:
        delete_column(db, column)
    except DefaultColumnError as e:
        raise HTTPException(400, str(e))
    return Response(status_code=204)


# ── Cards ────────────────────────────────────────────────────────────────


@router.get("/api/artwork/cards")
async def get_cards(
    column_id: int | None = None,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    query = db.query(ArtworkCard).options(
        joinedload(ArtworkCard.order),
        joinedload(ArtworkCard.company),
        joinedload(ArtworkCard.assigned_user),
    )
    if column_id is not None:
        query = query.filter(ArtworkCard.column_id == column_id)
    cards = query.order_by(ArtworkCard.column_id, ArtworkCard.position, ArtworkCard.id).all()
    return [card_to_dict(c) for c in cards]


@router.post("/api/artwork/cards", status_code=201)
async def create_card(
    payload: CardCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    _get_column(db, payload.column_id)
    _check_links(db, payload.order_id, payload.company_id, payload.assigned_user_id)
    data = payload.model_dump(exclude={"position"})
    card = ArtworkCard(**data, comments=[])
    add_card(db, card, payload.position)
    return card_to_dict(card)


@router.patch("/api/artwork/cards/{card_id}")
async def update_card(
    card_id: int,
    payload: CardUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    card = _get_card(db, card_id)
    changes = payload.model_dump(exclude_unset=True)
    _check_links(db, changes.get("order_id"), changes.get("company_id"), changes.get("assigned_user_id"))
    for field, value in changes.items():
        setattr(card, field, value)
    db.commit()
    return card_to_dict(card)


@router.patch("/api/artwork/cards/{card_id}/move")
async def move(
    card_id: int,
    payload: CardMove,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    card = _get_card(db, card_id)
    _get_column(db, payload.column_id)
    move_card(db, card, payload.column_id, payload.position)
    return card_to_dict(card)


@router.post("/api/artwork/cards/{card_id}/comments", status_code=201)
async def comment(
    card_id: int,
    payload: CardComment,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    card = _get_card(db, card_id)
    return add_comment(db, card, user.id, payload.text)


@router.delete("/api/artwork/cards/{card_id}", status_code=204)
async def delete_card(
    card_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    remove_card(db, _get_card(db, card_id))
    return Response(status_code=204)

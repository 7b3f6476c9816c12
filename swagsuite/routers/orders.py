"""
routers/orders.py — Order Routes (Orders, Items, Communications, Attachments, Artwork Files)

Business Rules:
- Order numbers are generated as ORD-YYYY-NNN when not supplied; duplicates → 409
- status is validated against the lifecycle enum (422 otherwise); transitions
  are not guarded but every change is audited and notified
- Item total_price is always quantity * unit_price
- Every item mutation recomputes order subtotal/total/margin and refreshes
  company + supplier YTD spend
- Items from do_not_order suppliers need an approved vendor request (409);
  an item PATCH that swaps product takes the new product's supplier
- Unknown company, contact, user, product or supplier ids → 404
- File routes store metadata only; uploads happen outside this service

Called by: main.py (router mount)
Depends on: models, dependencies, services.order_service, services.activity_service
"""

from fastapi import APIRouter, Depends, HTTPException, Response
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..config import settings
from ..database import get_db
from ..dependencies import require_user
from ..models import (
    ArtworkFile,
    Attachment,
    Communication,
    Company,
    Contact,
    Order,
    OrderItem,
    Product,
    Supplier,
    User,
)
from ..schemas.orders import (
    ArtworkFileCreate,
    AttachmentCreate,
    CommunicationCreate,
    OrderCreate,
    OrderItemCreate,
    OrderItemUpdate,
    OrderUpdate,
)
from ..services.activity_service import log_activity
from ..services.order_service import (
    SupplierBlockedError,
    apply_item_total,
    change_status,
    ensure_supplier_allowed,
    item_to_dict,
    next_order_number,
    order_to_dict,
    recalculate_order_totals,
    recalculate_total_only,
    refresh_company_ytd,
    refresh_spend_for_order,
    refresh_supplier_ytd,
)

router = APIRouter()

TOTAL_INPUTS = ("tax", "shipping", "order_discount")


# ── Helpers ──────────────────────────────────────────────────────────────


def _get_order(db: Session, order_id: int) -> Order:
    order = db.get(Order, order_id)
    if not order:
        raise HTTPException(404, "Order not found")
    return order


def _check_order_links(db: Session, data: dict) -> None:
    if data.get("company_id") and not db.get(Company, data["company_id"]):
        raise HTTPException(404, "Company not found")
    if data.get("contact_id") and not db.get(Contact, data["contact_id"]):
        raise HTTPException(404, "Contact not found")
    for field in ("assigned_user_id", "csr_user_id"):
        if data.get(field) and not db.get(User, data[field]):
            raise HTTPException(404, "User not found")


def _prepare_item(db: Session, payload: OrderItemCreate, order_id: int | None) -> tuple[dict, object]:
    """Validate an item payload; returns (column data, client total_price)."""
    data = payload.model_dump()
    client_total = data.pop("total_price")
    if data["product_id"]:
        product = db.get(Product, data["product_id"])
        if not product:
            raise HTTPException(404, "Product not found")
        if data["supplier_id"] is None:
            data["supplier_id"] = product.supplier_id
    if data["supplier_id"] and not db.get(Supplier, data["supplier_id"]):
        raise HTTPException(404, "Supplier not found")
    try:
        ensure_supplier_allowed(db, data["supplier_id"], order_id)
    except SupplierBlockedError as e:
        raise HTTPException(409, str(e))
    return data, client_total


def _build_item(db: Session, order: Order, payload: OrderItemCreate) -> OrderItem:
    data, client_total = _prepare_item(db, payload, order.id)
    item = OrderItem(**data)
    order.items.append(item)
    apply_item_total(item, client_total)
    return item


def communication_to_dict(c: Communication) -> dict:
    return {
        "id": c.id,
        "order_id": c.order_id,
        "user_id": c.user_id,
        "user_name": c.user.name if c.user else None,
        "communication_type": c.communication_type,
        "direction": c.direction,
        "recipient_email": c.recipient_email,
        "recipient_name": c.recipient_name,
        "subject": c.subject,
        "body": c.body,
        "metadata": c.meta or {},
        "sent_at": c.sent_at.isoformat() if c.sent_at else None,
    }


def attachment_to_dict(a: Attachment) -> dict:
    return {
        "id": a.id,
        "order_id": a.order_id,
        "communication_id": a.communication_id,
        "filename": a.filename,
        "original_filename": a.original_filename,
        "storage_path": a.storage_path,
        "mime_type": a.mime_type,
        "file_size": a.file_size,
        "category": a.category,
        "uploaded_by": a.uploaded_by,
        "created_at": a.created_at.isoformat() if a.created_at else None,
    }


def artwork_file_to_dict(f: ArtworkFile) -> dict:
    return {
        "id": f.id,
        "order_id": f.order_id,
        "company_id": f.company_id,
        "file_name": f.file_name,
        "original_name": f.original_name,
        "file_size": f.file_size,
        "mime_type": f.mime_type,
        "file_path": f.file_path,
        "thumbnail_path": f.thumbnail_path,
        "uploaded_by": f.uploaded_by,
        "created_at": f.created_at.isoformat() if f.created_at else None,
    }


# ── Orders ───────────────────────────────────────────────────────────────


@router.get("/api/orders")
async def list_orders(
    status: str | None = None,
    company_id: int | None = None,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    query = db.query(Order).options(
        selectinload(Order.company), selectinload(Order.assigned_user)
    )
    if status:
        query = query.filter(Order.status == status)
    if company_id is not None:
        query = query.filter(Order.company_id == company_id)
    orders = query.order_by(Order.created_at.desc(), Order.id.desc()).limit(settings.max_list_limit).all()
    return [order_to_dict(o) for o in orders]


@router.get("/api/orders/{order_id}")
async def get_order(
    order_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return order_to_dict(_get_order(db, order_id), include_items=True)


@router.post("/api/orders", status_code=201)
async def create_order(
    payload: OrderCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    data = payload.model_dump(exclude={"items"})
    _check_order_links(db, data)
    data["order_number"] = data["order_number"] or next_order_number(db)
    data["payment_terms"] = data["payment_terms"] or settings.default_payment_terms
    if data["assigned_user_id"] is None:
        data["assigned_user_id"] = user.id
    if db.query(Order.id).filter(Order.order_number == data["order_number"]).first():
        raise HTTPException(409, f"Order number {data['order_number']} already exists")

    prepared = [_prepare_item(db, p, None) for p in payload.items]

    order = Order(**data)
    db.add(order)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise HTTPException(409, f"Order number {data['order_number']} already exists")

    for item_data, client_total in prepared:
        item = OrderItem(**item_data)
        order.items.append(item)
        apply_item_total(item, client_total)
    recalculate_order_totals(order)
    refresh_spend_for_order(db, order)
    log_activity(
        db,
        user_id=user.id,
        entity_type="order",
        entity_id=order.id,
        action="created",
        description=f"Created order {order.order_number}",
        metadata={"status": order.status, "items": len(order.items)},
    )
    db.commit()
    logger.info("Order created", order_id=order.id, order_number=order.order_number)
    return order_to_dict(order, include_items=True)


@router.patch("/api/orders/{order_id}")
async def update_order(
    order_id: int,
    payload: OrderUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    order = _get_order(db, order_id)
    changes = payload.model_dump(exclude_unset=True)
    new_status = changes.pop("status", None)
    _check_order_links(db, changes)
    old_company_id = order.company_id
    for field, value in changes.items():
        setattr(order, field, value)
    if new_status:
        change_status(db, order, new_status, user.id)
    if any(f in changes for f in TOTAL_INPUTS):
        recalculate_total_only(order)
    if any(f in changes for f in TOTAL_INPUTS) or "company_id" in changes:
        db.flush()
        refresh_company_ytd(db, [old_company_id, order.company_id])
    if changes:
        log_activity(
            db,
            user_id=user.id,
            entity_type="order",
            entity_id=order.id,
            action="updated",
            metadata={"fields": sorted(changes)},
        )
    db.commit()
    return order_to_dict(order, include_items=True)


@router.delete("/api/orders/{order_id}", status_code=204)
async def delete_order(
    order_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    order = _get_order(db, order_id)
    company_id = order.company_id
    supplier_ids = sorted({i.supplier_id for i in order.items if i.supplier_id})
    number = order.order_number
    db.delete(order)
    db.flush()
    refresh_company_ytd(db, [company_id])
    if supplier_ids:
        refresh_supplier_ytd(db, supplier_ids)
    log_activity(
        db,
        user_id=user.id,
        entity_type="order",
        entity_id=order_id,
        action="deleted",
        description=f"Deleted order {number}",
    )
    db.commit()
    return Response(status_code=204)


@router.post("/api/orders/{order_id}/recalculate-total")
async def recalculate_order(
    order_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    order = _get_order(db, order_id)
    before = float(order.total or 0)
    recalculate_order_totals(order)
    refresh_spend_for_order(db, order)
    db.commit()
    return {"order": order_to_dict(order, include_items=True), "previous_total": before}


# ── Order items ──────────────────────────────────────────────────────────


@router.get("/api/orders/{order_id}/items")
async def list_order_items(
    order_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return [item_to_dict(i) for i in _get_order(db, order_id).items]


@router.post("/api/orders/{order_id}/items", status_code=201)
async def add_order_item(
    order_id: int,
    payload: OrderItemCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    order = _get_order(db, order_id)
    item = _build_item(db, order, payload)
    recalculate_order_totals(order)
    refresh_spend_for_order(db, order)
    db.commit()
    return item_to_dict(item)


@router.patch("/api/orders/{order_id}/items/{item_id}")
async def update_order_item(
    order_id: int,
    item_id: int,
    payload: OrderItemUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    order = _get_order(db, order_id)
    item = db.get(OrderItem, item_id)
    if not item or item.order_id != order.id:
        raise HTTPException(404, "Order item not found")
    changes = payload.model_dump(exclude_unset=True)
    client_total = changes.pop("total_price", None)
    old_supplier_id = item.supplier_id
    if changes.get("product_id"):
        product = db.get(Product, changes["product_id"])
        if not product:
            raise HTTPException(404, "Product not found")
        if "supplier_id" not in changes:
            changes["supplier_id"] = product.supplier_id
    if changes.get("supplier_id") and not db.get(Supplier, changes["supplier_id"]):
        raise HTTPException(404, "Supplier not found")
    new_supplier_id = changes.get("supplier_id", old_supplier_id)
    if new_supplier_id != old_supplier_id:
        try:
            ensure_supplier_allowed(db, new_supplier_id, order.id)
        except SupplierBlockedError as e:
            raise HTTPException(409, str(e))
    for field, value in changes.items():
        setattr(item, field, value)
    apply_item_total(item, client_total)
    recalculate_order_totals(order)
    refresh_spend_for_order(db, order, extra_supplier_ids=[old_supplier_id])
    db.commit()
    db.refresh(item)
    return item_to_dict(item)


@router.delete("/api/orders/{order_id}/items/{item_id}", status_code=204)
async def delete_order_item(
    order_id: int,
    item_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    order = _get_order(db, order_id)
    item = db.get(OrderItem, item_id)
    if not item or item.order_id != order.id:
        raise HTTPException(404, "Order item not found")
    supplier_id = item.supplier_id
    order.items.remove(item)
    recalculate_order_totals(order)
    refresh_spend_for_order(db, order, extra_supplier_ids=[supplier_id])
    db.commit()
    return Response(status_code=204)


# ── Communications ───────────────────────────────────────────────────────


@router.get("/api/orders/{order_id}/communications")
async def list_communications(
    order_id: int,
    type: str | None = None,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    _get_order(db, order_id)
    query = db.query(Communication).filter(Communication.order_id == order_id)
    if type:
        query = query.filter(Communication.communication_type == type)
    rows = query.order_by(Communication.sent_at.desc(), Communication.id.desc()).all()
    return [communication_to_dict(c) for c in rows]


@router.post("/api/orders/{order_id}/communications", status_code=201)
async def create_communication(
    order_id: int,
    payload: CommunicationCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    order = _get_order(db, order_id)
    data = payload.model_dump()
    comm = Communication(order_id=order.id, user_id=user.id, meta=data.pop("metadata"), **data)
    db.add(comm)
    db.flush()
    log_activity(
        db,
        user_id=user.id,
        entity_type="order",
        entity_id=order.id,
        action=f"{comm.communication_type}_logged",
        description=comm.subject,
        metadata={"communication_id": comm.id, "direction": comm.direction},
    )
    db.commit()
    return communication_to_dict(comm)


# ── Attachments ──────────────────────────────────────────────────────────


@router.get("/api/orders/{order_id}/attachments")
async def list_attachments(
    order_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    _get_order(db, order_id)
    rows = (
        db.query(Attachment)
        .filter(Attachment.order_id == order_id)
        .order_by(Attachment.created_at.desc(), Attachment.id.desc())
        .all()
    )
    return [attachment_to_dict(a) for a in rows]


@router.post("/api/orders/{order_id}/attachments", status_code=201)
async def create_attachment(
    order_id: int,
    payload: AttachmentCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    order = _get_order(db, order_id)
    if payload.communication_id:
        comm = db.get(Communication, payload.communication_id)
        if not comm or comm.order_id != order.id:
            raise HTTPException(404, "Communication not found")
    att = Attachment(order_id=order.id, uploaded_by=user.id, **payload.model_dump())
    db.add(att)
    db.commit()
    return attachment_to_dict(att)


@router.delete("/api/orders/{order_id}/attachments/{attachment_id}", status_code=204)
async def delete_attachment(
    order_id: int,
    attachment_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    att = db.get(Attachment, attachment_id)
    if not att or att.order_id != order_id:
        raise HTTPException(404, "Attachment not found")
    db.delete(att)
    db.commit()
    return Response(status_code=204)


# ── Artwork files ────────────────────────────────────────────────────────


@router.get("/api/artwork")
async def list_artwork_files(
    order_id: int | None = None,
    company_id: int | None = None,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    query = db.query(ArtworkFile)
    if order_id is not None:
        query = query.filter(ArtworkFile.order_id == order_id)
    if company_id is not None:
        query = query.filter(ArtworkFile.company_id == company_id)
    rows = query.order_by(ArtworkFile.created_at.desc(), ArtworkFile.id.desc()).all()
    return [artwork_file_to_dict(f) for f in rows]


@router.post("/api/orders/{order_id}/artwork-files", status_code=201)
async def create_artwork_file(
    order_id: int,
    payload: ArtworkFileCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    order = _get_order(db, order_id)
    f = ArtworkFile(
        order_id=order.id,
        company_id=order.company_id,
        uploaded_by=user.id,
        **payload.model_dump(),
    )
    db.add(f)
    db.flush()
    log_activity(
        db,
        user_id=user.id,
        entity_type="order",
        entity_id=order.id,
        action="artwork_uploaded",
        description=f"Artwork {f.original_name} added",
        metadata={"artwork_file_id": f.id},
    )
    db.commit()
    return artwork_file_to_dict(f)


@router.delete("/api/artwork/{file_id}", status_code=204)
async def delete_artwork_file(
    file_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    f = db.get(ArtworkFile, file_id)
    if not f:
        raise HTTPException(404, "Artwork file not found")
    db.delete(f)
    db.commit()
    return Response(status_code=204)

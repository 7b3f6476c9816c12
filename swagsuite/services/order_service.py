"""
order_service.py — Order lifecycle: numbering, totals, YTD spend, vendor guard

Order totals are authoritative on the server. Every item mutation (and
order creation) runs recalculate_order_totals, then the affected company
and supplier YTD spend are refreshed.

Business Rules:
- Order number: {prefix}-{year}-{seq:03d}; seq = highest for the year + 1
- OrderItem.total_price = quantity * unit_price (client value ignored)
- subtotal = Σ item total_price
- total = subtotal + tax + shipping - order_discount
- margin = (subtotal - Σ cost * qty) / subtotal * 100, only when any item has a cost
- Company YTD = Σ order total for orders created this calendar year
- Supplier YTD = Σ item total_price on orders created this calendar year
- do_not_order suppliers need an approved VendorApprovalRequest
- Status transitions are not guarded; each change is audited and notified

Called by: routers/orders.py, routers/crm.py, routers/catalog.py,
           scripts/recalculate_order_totals.py
Depends on: models, activity_service, notification_service, config
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from loguru import logger
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..config import settings
from ..models import Company, Order, OrderItem, Supplier, VendorApprovalRequest
from .activity_service import log_activity
from .notification_service import notify

CENT = Decimal("0.01")


class SupplierBlockedError(ValueError):
    """Raised when an item uses a do_not_order supplier without approval."""


def to_money(value) -> Decimal:
    """Coerce a number (or None) to a Decimal rounded half-up to cents."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _year_bounds(now: datetime | None = None) -> tuple[datetime, datetime]:
    now = now or datetime.now(timezone.utc)
    start = datetime(now.year, 1, 1)
    return start, datetime(now.year + 1, 1, 1)


# ── Order numbers ────────────────────────────────────────────────────


def next_order_number(db: Session, now: datetime | None = None) -> str:
    """Generate next sequential order number: ORD-YYYY-NNN."""
    year = (now or datetime.now(timezone.utc)).year
    prefix = f"{settings.order_number_prefix}-{year}-"
    numbers = (
        db.query(Order.order_number)
        .filter(Order.order_number.like(f"{prefix}%"))
        .all()
    )
    highest = 0
    for (number,) in numbers:
        try:
            highest = max(highest, int(number.split("-")[-1]))
        except ValueError:
            continue
    return f"{prefix}{highest + 1:03d}"


# ── Totals ───────────────────────────────────────────────────────────


def item_total(quantity: int, unit_price) -> Decimal:
    return to_money(Decimal(quantity) * to_money(unit_price))


def apply_item_total(item: OrderItem, client_total=None) -> None:
    """Set item.total_price from quantity * unit_price, warning on disagreement."""
    computed = item_total(item.quantity, item.unit_price)
    if client_total is not None and abs(to_money(client_total) - computed) > CENT / 2:
        logger.warning(
            "Ignoring client total_price {} for item on order {}; using {}",
            client_total,
            item.order_id,
            computed,
        )
    item.total_price = computed


def compute_order_totals(order: Order) -> dict:
    """Return the authoritative subtotal/total/margin for an order."""
    subtotal = sum((item_total(i.quantity, i.unit_price) for i in order.items), Decimal("0.00"))
    total = to_money(
        subtotal + to_money(order.tax) + to_money(order.shipping) - to_money(order.order_discount)
    )
    margin = None
    costed = [i for i in order.items if i.cost is not None]
    if costed and subtotal > 0:
        cogs = sum((to_money(i.cost) * i.quantity for i in order.items if i.cost is not None), Decimal("0"))
        margin = to_money((subtotal - cogs) / subtotal * 100)
    return {"subtotal": to_money(subtotal), "total": total, "margin": margin}


def recalculate_order_totals(order: Order) -> Order:
    """Recompute item totals and order subtotal/total/margin in place."""
    for item in order.items:
        item.total_price = item_total(item.quantity, item.unit_price)
    totals = compute_order_totals(order)
    order.subtotal = totals["subtotal"]
    order.total = totals["total"]
    if totals["margin"] is not None:
        order.margin = totals["margin"]
    return order


def recalculate_total_only(order: Order) -> None:
    """Recompute total after a tax/shipping/discount change."""
    order.total = to_money(
        to_money(order.subtotal)
        + to_money(order.tax)
        + to_money(order.shipping)
        - to_money(order.order_discount)
    )


# ── YTD spend ────────────────────────────────────────────────────────


def refresh_company_ytd(db: Session, company_ids: list[int] | None = None) -> None:
    """Recompute ytd_spend for the given companies (all when None)."""
    start, end = _year_bounds()
    query = db.query(Order.company_id, func.coalesce(func.sum(Order.total), 0)).filter(
        Order.created_at >= start, Order.created_at < end, Order.company_id.isnot(None)
    )
    if company_ids is not None:
        ids = [cid for cid in company_ids if cid]
        if not ids:
            return
        query = query.filter(Order.company_id.in_(ids))
    sums = dict(query.group_by(Order.company_id).all())

    companies = db.query(Company)
    if company_ids is not None:
        companies = companies.filter(Company.id.in_(ids))
    for company in companies.all():
        company.ytd_spend = to_money(sums.get(company.id, 0))


def refresh_supplier_ytd(db: Session, supplier_ids: list[int] | None = None) -> None:
    """Recompute ytd_spend for the given suppliers (all when None)."""
    start, end = _year_bounds()
    query = (
        db.query(OrderItem.supplier_id, func.coalesce(func.sum(OrderItem.total_price), 0))
        .join(Order, OrderItem.order_id == Order.id)
        .filter(
            Order.created_at >= start,
            Order.created_at < end,
            OrderItem.supplier_id.isnot(None),
        )
    )
    if supplier_ids is not None:
        ids = [sid for sid in supplier_ids if sid]
        if not ids:
            return
        query = query.filter(OrderItem.supplier_id.in_(ids))
    sums = dict(query.group_by(OrderItem.supplier_id).all())

    suppliers = db.query(Supplier)
    if supplier_ids is not None:
        suppliers = suppliers.filter(Supplier.id.in_(ids))
    for supplier in suppliers.all():
        supplier.ytd_spend = to_money(sums.get(supplier.id, 0))
        supplier.product_count = len(supplier.products)


def refresh_spend_for_order(db: Session, order: Order, extra_supplier_ids=()) -> None:
    """Refresh YTD for the order's company and every supplier on its items."""
    db.flush()
    if order.company_id:
        refresh_company_ytd(db, [order.company_id])
    supplier_ids = {i.supplier_id for i in order.items if i.supplier_id}
    supplier_ids.update(s for s in extra_supplier_ids if s)
    if supplier_ids:
        refresh_supplier_ytd(db, sorted(supplier_ids))


# ── Vendor guard ─────────────────────────────────────────────────────


def ensure_supplier_allowed(db: Session, supplier_id: int | None, order_id: int | None) -> None:
    """Raise SupplierBlockedError if the supplier is do_not_order without approval."""
    if not supplier_id:
        return
    supplier = db.get(Supplier, supplier_id)
    if not supplier or not supplier.do_not_order:
        return
    query = db.query(VendorApprovalRequest.id).filter(
        VendorApprovalRequest.supplier_id == supplier_id,
        VendorApprovalRequest.status == "approved",
    )
    if order_id is None:
        # Order not created yet: only order-agnostic approvals apply
        query = query.filter(VendorApprovalRequest.order_id.is_(None))
    else:
        query = query.filter(
            or_(
                VendorApprovalRequest.order_id.is_(None),
                VendorApprovalRequest.order_id == order_id,
            )
        )
    if query.first() is None:
        raise SupplierBlockedError(
            f"Supplier '{supplier.name}' is marked do-not-order; an approved vendor request is required"
        )


# ── Lifecycle ────────────────────────────────────────────────────────


def change_status(db: Session, order: Order, new_status: str, actor_id: int | None) -> bool:
    """Apply a status change. Returns False when the status is unchanged."""
    old_status = order.status
    if old_status == new_status:
        return False
    order.status = new_status
    order.status_changed_at = datetime.now(timezone.utc)
    activity = log_activity(
        db,
        user_id=actor_id,
        entity_type="order",
        entity_id=order.id,
        action="status_changed",
        description=f"Order {order.order_number} moved from {old_status} to {new_status}",
        metadata={"from": old_status, "to": new_status},
    )
    if order.assigned_user_id:
        db.flush()
        notify(
            db,
            recipient_id=order.assigned_user_id,
            sender_id=actor_id,
            type="status_change",
            title=f"Order {order.order_number} is now {new_status.replace('_', ' ')}",
            message=f"Status changed from {old_status} to {new_status}",
            order_id=order.id,
            activity_id=activity.id,
        )
    logger.info(
        "Order status changed",
        order_id=order.id,
        old_status=old_status,
        new_status=new_status,
    )
    return True


# ── Reconciliation ───────────────────────────────────────────────────


def reconcile_order_totals(db: Session, fix: bool = False) -> dict:
    """Find orders whose stored subtotal/total drifted from their items.

    Returns {"checked", "mismatched", "fixed", "orders": [...]}; repairs and
    commits when fix=True.
    """
    tolerance = Decimal(str(settings.order_total_tolerance))
    report = {"checked": 0, "mismatched": 0, "fixed": 0, "orders": []}
    touched_companies: set[int] = set()

    for order in db.query(Order).order_by(Order.id).all():
        report["checked"] += 1
        expected = compute_order_totals(order)
        stored_subtotal = to_money(order.subtotal)
        stored_total = to_money(order.total)
        bad_items = [
            i.id
            for i in order.items
            if abs(to_money(i.total_price) - item_total(i.quantity, i.unit_price)) > tolerance
        ]
        if (
            abs(stored_subtotal - expected["subtotal"]) <= tolerance
            and abs(stored_total - expected["total"]) <= tolerance
            and not bad_items
        ):
            continue
        report["mismatched"] += 1
        report["orders"].append(
            {
                "order_id": order.id,
                "order_number": order.order_number,
                "stored_subtotal": float(stored_subtotal),
                "expected_subtotal": float(expected["subtotal"]),
                "stored_total": float(stored_total),
                "expected_total": float(expected["total"]),
                "item_ids_fixed": bad_items,
            }
        )
        if fix:
            recalculate_order_totals(order)
            report["fixed"] += 1
            if order.company_id:
                touched_companies.add(order.company_id)

    if fix and report["fixed"]:
        db.flush()
        refresh_company_ytd(db, sorted(touched_companies))
        refresh_supplier_ytd(db)
        db.commit()
        logger.info("Repaired order totals", fixed=report["fixed"])
    return report


# ── Serialization ────────────────────────────────────────────────────


def _iso(value):
    return value.isoformat() if value else None


def _num(value):
    return float(value) if value is not None else None


def item_to_dict(i: OrderItem) -> dict:
    return {
        "id": i.id,
        "order_id": i.order_id,
        "product_id": i.product_id,
        "product_name": i.product.name if i.product else None,
        "supplier_id": i.supplier_id,
        "supplier_name": i.supplier.name if i.supplier else None,
        "quantity": i.quantity,
        "cost": _num(i.cost),
        "unit_price": _num(i.unit_price),
        "total_price": _num(i.total_price),
        "decoration_cost": _num(i.decoration_cost),
        "charges": _num(i.charges),
        "size_pricing": i.size_pricing,
        "color": i.color,
        "size": i.size,
        "imprint_location": i.imprint_location,
        "imprint_method": i.imprint_method,
        "notes": i.notes,
    }


def order_to_dict(o: Order, include_items: bool = False) -> dict:
    """Serialize an Order to API response dict."""
    d = {
        "id": o.id,
        "order_number": o.order_number,
        "company_id": o.company_id,
        "company_name": o.company.name if o.company else None,
        "contact_id": o.contact_id,
        "contact_name": o.contact.full_name if o.contact else None,
        "assigned_user_id": o.assigned_user_id,
        "assigned_user_name": o.assigned_user.name if o.assigned_user else None,
        "csr_user_id": o.csr_user_id,
        "status": o.status,
        "status_changed_at": _iso(o.status_changed_at),
        "order_type": o.order_type,
        "subtotal": _num(o.subtotal) or 0.0,
        "tax": _num(o.tax) or 0.0,
        "shipping": _num(o.shipping) or 0.0,
        "order_discount": _num(o.order_discount) or 0.0,
        "total": _num(o.total) or 0.0,
        "margin": _num(o.margin) or 0.0,
        "in_hands_date": _iso(o.in_hands_date),
        "event_date": _iso(o.event_date),
        "supplier_in_hands_date": _iso(o.supplier_in_hands_date),
        "is_firm": bool(o.is_firm),
        "is_rush": bool(o.is_rush),
        "next_action_date": _iso(o.next_action_date),
        "next_action_notes": o.next_action_notes,
        "customer_po": o.customer_po,
        "payment_terms": o.payment_terms,
        "notes": o.notes,
        "customer_notes": o.customer_notes,
        "internal_notes": o.internal_notes,
        "supplier_notes": o.supplier_notes,
        "shipping_address": o.shipping_address,
        "billing_address": o.billing_address,
        "tracking_number": o.tracking_number,
        "shipping_method": o.shipping_method,
        "current_stage": o.current_stage,
        "stages_completed": list(o.stages_completed or []),
        "stage_data": dict(o.stage_data or {}),
        "created_at": _iso(o.created_at),
        "updated_at": _iso(o.updated_at),
    }
    if include_items:
        d["items"] = [item_to_dict(i) for i in o.items]
    return d

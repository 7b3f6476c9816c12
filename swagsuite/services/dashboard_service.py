"""
dashboard_service.py — Dashboard stats, recent orders, team leaderboard

Business Rules:
- Revenue orders: created this calendar year AND status in
  approved / in_production / shipped / delivered
- totalRevenue = Σ total of revenue orders
- activeOrders = count of orders in_production (any year)
- grossMargin = average margin of revenue orders (0 when none)
- Leaderboard: per assigned user, YTD order count (any status) and YTD
  revenue (revenue statuses only), ranked by revenue descending

Called by: routers/dashboard.py
Depends on: models
"""

from datetime import datetime, timezone

from sqlalchemy import case, func
from sqlalchemy.orm import Session, joinedload

from ..models import Company, Order, User
from ..models.orders import REVENUE_STATUSES


def _year_start(now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return datetime(now.year, 1, 1)


def dashboard_stats(db: Session, now: datetime | None = None) -> dict:
    start = _year_start(now)
    revenue_q = db.query(Order).filter(
        Order.created_at >= start, Order.status.in_(REVENUE_STATUSES)
    )
    total_revenue, avg_margin, revenue_orders = revenue_q.with_entities(
        func.coalesce(func.sum(Order.total), 0),
        func.coalesce(func.avg(Order.margin), 0),
        func.count(Order.id),
    ).one()
    active_orders = (
        db.query(func.count(Order.id)).filter(Order.status == "in_production").scalar() or 0
    )
    customer_count = db.query(func.count(Company.id)).scalar() or 0
    return {
        "totalRevenue": round(float(total_revenue or 0), 2),
        "activeOrders": active_orders,
        "grossMargin": round(float(avg_margin or 0), 2),
        "customerCount": customer_count,
        "revenueOrders": revenue_orders,
    }


def recent_orders(db: Session, limit: int = 10) -> list[Order]:
    return (
        db.query(Order)
        .options(joinedload(Order.company), joinedload(Order.assigned_user))
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(limit)
        .all()
    )


def team_leaderboard(db: Session, now: datetime | None = None) -> list[dict]:
    start = _year_start(now)
    rows = (
        db.query(
            User,
            func.count(Order.id),
            func.coalesce(
                func.sum(case((Order.status.in_(REVENUE_STATUSES), Order.total), else_=0)), 0
            ),
        )
        .join(Order, Order.assigned_user_id == User.id)
        .filter(Order.created_at >= start)
        .group_by(User.id)
        .all()
    )
    board = [
        {
            "user_id": user.id,
            "name": user.name,
            "email": user.email,
            "order_count": count,
            "revenue": round(float(revenue or 0), 2),
        }
        for user, count, revenue in rows
    ]
    board.sort(key=lambda r: (-r["revenue"], r["name"] or ""))
    for rank, row in enumerate(board, start=1):
        row["rank"] = rank
    return board

"""
routers/dashboard.py — Dashboard & Global Search Routes

Called by: main.py (router mount)
Depends on: dependencies, services.dashboard_service, services.catalog_service
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_user
from ..models import User
from ..services.catalog_service import global_search
from ..services.dashboard_service import dashboard_stats, recent_orders, team_leaderboard
from ..services.order_service import order_to_dict

router = APIRouter()


@router.get("/api/dashboard/stats")
async def get_dashboard_stats(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return dashboard_stats(db)


@router.get("/api/dashboard/recent-orders")
async def get_recent_orders(
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return [order_to_dict(o) for o in recent_orders(db, limit)]


@router.get("/api/dashboard/team-leaderboard")
async def get_team_leaderboard(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return team_leaderboard(db)


@router.get("/api/search")
async def search(
    q: str = "",
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    if not q.strip():
        raise HTTPException(400, "Search query is required")
    return global_search(db, q)

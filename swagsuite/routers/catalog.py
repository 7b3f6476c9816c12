"""
routers/catalog.py — Catalog Routes (Suppliers, Categories, Products, Vendor Approvals)

Business Rules:
- Supplier list refreshes YTD spend and product counts before returning
- Deleting a supplier leaves its products in place with supplier_id cleared
- colors/sizes/imprint_methods are stored as JSON arrays in text columns
- Vendor approval requests unlock do_not_order suppliers once approved;
  only managers and admins may review them

Called by: main.py (router mount)
Depends on: models, dependencies, services.catalog_service, services.order_service
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Response
from loguru import logger
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..dependencies import require_manager, require_user
from ..models import (
    Order,
    Product,
    ProductCategory,
    Supplier,
    User,
    VendorApprovalRequest,
)
from ..schemas.catalog import (
    CategoryCreate,
    ProductCreate,
    ProductUpdate,
    SupplierCreate,
    SupplierUpdate,
    VendorApprovalCreate,
    VendorApprovalReview,
)
from ..services.activity_service import log_activity
from ..services.catalog_service import (
    normalize_list_field,
    product_to_dict,
    search_products,
    supplier_to_dict,
)
from ..services.notification_service import notify
from ..services.order_service import refresh_supplier_ytd

router = APIRouter()

LIST_FIELDS = ("colors", "sizes", "imprint_methods")


def _check_product_links(db: Session, supplier_id: int | None, category_id: int | None) -> None:
    if supplier_id and not db.get(Supplier, supplier_id):
        raise HTTPException(404, "Supplier not found")
    if category_id and not db.get(ProductCategory, category_id):
        raise HTTPException(404, "Category not found")


def _normalize_product_fields(data: dict) -> dict:
    for field in LIST_FIELDS:
        if field in data:
            data[field] = normalize_list_field(data[field])
    return data


def approval_to_dict(r: VendorApprovalRequest) -> dict:
    return {
        "id": r.id,
        "supplier_id": r.supplier_id,
        "supplier_name": r.supplier.name if r.supplier else None,
        "product_id": r.product_id,
        "order_id": r.order_id,
        "requested_by": r.requested_by,
        "requested_by_name": r.requester.name if r.requester else None,
        "reason": r.reason,
        "status": r.status,
        "reviewed_by": r.reviewed_by,
        "reviewed_at": r.reviewed_at.isoformat() if r.reviewed_at else None,
        "review_notes": r.review_notes,
        "created_at": r.created_at.isoformat() if r.created_at else None,
    }


# ── Suppliers ────────────────────────────────────────────────────────────


@router.get("/api/suppliers")
async def list_suppliers(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    refresh_supplier_ytd(db)
    db.commit()
    suppliers = db.query(Supplier).order_by(Supplier.name).limit(settings.max_list_limit).all()
    return [supplier_to_dict(s) for s in suppliers]


@router.get("/api/suppliers/{supplier_id}")
async def get_supplier(
    supplier_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    supplier = db.get(Supplier, supplier_id)
    if not supplier:
        raise HTTPException(404, "Supplier not found")
    return supplier_to_dict(supplier)


@router.post("/api/suppliers", status_code=201)
async def create_supplier(
    payload: SupplierCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    supplier = Supplier(**payload.model_dump())
    db.add(supplier)
    db.flush()
    log_activity(
        db,
        user_id=user.id,
        entity_type="supplier",
        entity_id=supplier.id,
        action="created",
        description=f"Created supplier {supplier.name}",
    )
    db.commit()
    return supplier_to_dict(supplier)


@router.patch("/api/suppliers/{supplier_id}")
async def update_supplier(
    supplier_id: int,
    payload: SupplierUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    supplier = db.get(Supplier, supplier_id)
    if not supplier:
        raise HTTPException(404, "Supplier not found")
    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(supplier, field, value)
    if "do_not_order" in changes:
        log_activity(
            db,
            user_id=user.id,
            entity_type="supplier",
            entity_id=supplier.id,
            action="do_not_order_changed",
            metadata={"do_not_order": bool(supplier.do_not_order)},
        )
    db.commit()
    return supplier_to_dict(supplier)


@router.delete("/api/suppliers/{supplier_id}", status_code=204)
async def delete_supplier(
    supplier_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    supplier = db.get(Supplier, supplier_id)
    if not supplier:
        raise HTTPException(404, "Supplier not found")
    db.delete(supplier)
    db.commit()
    return Response(status_code=204)


# ── Categories ───────────────────────────────────────────────────────────


@router.get("/api/product-categories")
async def list_categories(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    cats = db.query(ProductCategory).order_by(ProductCategory.name).all()
    return [{"id": c.id, "name": c.name, "description": c.description} for c in cats]


@router.post("/api/product-categories", status_code=201)
async def create_category(
    payload: CategoryCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    if db.query(ProductCategory).filter(ProductCategory.name == payload.name).first():
        raise HTTPException(409, "Category already exists")
    cat = ProductCategory(**payload.model_dump())
    db.add(cat)
    db.commit()
    return {"id": cat.id, "name": cat.name, "description": cat.description}


# ── Products ─────────────────────────────────────────────────────────────


@router.get("/api/products")
async def list_products(
    supplier_id: int | None = None,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    query = db.query(Product)
    if supplier_id is not None:
        query = query.filter(Product.supplier_id == supplier_id)
    products = query.order_by(Product.name).limit(settings.max_list_limit).all()
    return [product_to_dict(p) for p in products]


@router.get("/api/products/search")
async def product_search(
    q: str = "",
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    if not q.strip():
        raise HTTPException(400, "Search query is required")
    return [product_to_dict(p) for p in search_products(db, q)]


@router.get("/api/products/{product_id}")
async def get_product(
    product_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    product = db.get(Product, product_id)
    if not product:
        raise HTTPException(404, "Product not found")
    return product_to_dict(product)


@router.post("/api/products", status_code=201)
async def create_product(
    payload: ProductCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    _check_product_links(db, payload.supplier_id, payload.category_id)
    product = Product(**_normalize_product_fields(payload.model_dump()))
    db.add(product)
    db.commit()
    return product_to_dict(product)


@router.patch("/api/products/{product_id}")
async def update_product(
    product_id: int,
    payload: ProductUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    product = db.get(Product, product_id)
    if not product:
        raise HTTPException(404, "Product not found")
    changes = payload.model_dump(exclude_unset=True)
    _check_product_links(db, changes.get("supplier_id"), changes.get("category_id"))
    for field, value in _normalize_product_fields(changes).items():
        setattr(product, field, value)
    db.commit()
    return product_to_dict(product)


@router.delete("/api/products/{product_id}", status_code=204)
async def delete_product(
    product_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    product = db.get(Product, product_id)
    if not product:
        raise HTTPException(404, "Product not found")
    db.delete(product)
    db.commit()
    return Response(status_code=204)


# ── Vendor approvals ─────────────────────────────────────────────────────


@router.get("/api/vendor-approvals")
async def list_vendor_approvals(
    status: str | None = None,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    query = db.query(VendorApprovalRequest)
    if status:
        query = query.filter(VendorApprovalRequest.status == status)
    rows = query.order_by(VendorApprovalRequest.created_at.desc(), VendorApprovalRequest.id.desc()).all()
    return [approval_to_dict(r) for r in rows]


@router.post("/api/vendor-approvals", status_code=201)
async def request_vendor_approval(
    payload: VendorApprovalCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    supplier = db.get(Supplier, payload.supplier_id)
    if not supplier:
        raise HTTPException(404, "Supplier not found")
    if payload.order_id and not db.get(Order, payload.order_id):
        raise HTTPException(404, "Order not found")
    req = VendorApprovalRequest(**payload.model_dump(), requested_by=user.id, status="pending")
    db.add(req)
    db.commit()
    logger.info("Vendor approval requested", supplier_id=supplier.id, request_id=req.id)
    return approval_to_dict(req)


@router.post("/api/vendor-approvals/{request_id}/review")
async def review_vendor_approval(
    request_id: int,
    payload: VendorApprovalReview,
    user: User = Depends(require_manager),
    db: Session = Depends(get_db),
):
    req = db.get(VendorApprovalRequest, request_id)
    if not req:
        raise HTTPException(404, "Approval request not found")
    if req.status != "pending":
        raise HTTPException(409, f"Request already {req.status}")
    req.status = payload.status
    req.review_notes = payload.review_notes
    req.reviewed_by = user.id
    req.reviewed_at = datetime.now(timezone.utc)
    log_activity(
        db,
        user_id=user.id,
        entity_type="supplier",
        entity_id=req.supplier_id,
        action=f"vendor_request_{payload.status}",
        metadata={"request_id": req.id, "order_id": req.order_id},
    )
    notify(
        db,
        recipient_id=req.requested_by,
        sender_id=user.id,
        type="vendor_approval",
        title=f"Vendor request {payload.status}",
        message=payload.review_notes or f"Your request to use {req.supplier.name} was {payload.status}.",
        order_id=req.order_id,
    )
    db.commit()
    return approval_to_dict(req)

"""
catalog_service.py — Product catalog helpers and global search

Business Rules:
- colors/sizes/imprint_methods are stored as JSON arrays in text columns;
  input may be a list or a comma-separated string
- Search is case-insensitive substring (ILIKE) with % and _ escaped
- Global search returns at most 5 hits per entity type

Called by: routers/catalog.py, routers/crm.py, routers/mockups.py, routers/dashboard.py
Depends on: models
"""

import json

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ..models import Company, Contact, Order, Product, Supplier

SEARCH_LIMIT = 5


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return term.strip().replace("\\", "\\\\").replace("%", r"\%").replace("_", r"\_")


def normalize_list_field(value) -> str | None:
    """Normalize a list or comma-separated string to JSON-array text."""
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return json.dumps([])
        if stripped.startswith("["):
            try:
                parsed = json.loads(stripped)
            except ValueError:
                parsed = None
            if isinstance(parsed, list):
                return json.dumps([str(v).strip() for v in parsed if str(v).strip()])
        items = [part.strip() for part in stripped.split(",")]
    else:
        items = [str(v).strip() for v in value]
    return json.dumps([v for v in items if v])


def parse_list_field(text: str | None) -> list[str]:
    if not text:
        return []
    try:
        parsed = json.loads(text)
    except ValueError:
        return [part.strip() for part in text.split(",") if part.strip()]
    return parsed if isinstance(parsed, list) else []


def search_products(db: Session, q: str, limit: int = 50) -> list[Product]:
    """Match products by name, SKU, supplier SKU, brand or description."""
    pattern = f"%{escape_like(q)}%"
    return (
        db.query(Product)
        .options(joinedload(Product.supplier))
        .filter(
            or_(
                Product.name.ilike(pattern, escape="\\"),
                Product.sku.ilike(pattern, escape="\\"),
                Product.supplier_sku.ilike(pattern, escape="\\"),
                Product.brand.ilike(pattern, escape="\\"),
                Product.description.ilike(pattern, escape="\\"),
            )
        )
        .order_by(Product.name)
        .limit(limit)
        .all()
    )


def search_companies(db: Session, q: str, limit: int = 50) -> list[Company]:
    pattern = f"%{escape_like(q)}%"
    return (
        db.query(Company)
        .filter(
            or_(
                Company.name.ilike(pattern, escape="\\"),
                Company.email.ilike(pattern, escape="\\"),
                Company.industry.ilike(pattern, escape="\\"),
            )
        )
        .order_by(Company.name)
        .limit(limit)
        .all()
    )


def product_to_dict(p: Product) -> dict:
    return {
        "id": p.id,
        "name": p.name,
        "description": p.description,
        "sku": p.sku,
        "supplier_sku": p.supplier_sku,
        "supplier_id": p.supplier_id,
        "supplier_name": p.supplier.name if p.supplier else None,
        "category_id": p.category_id,
        "base_price": float(p.base_price) if p.base_price is not None else None,
        "minimum_quantity": p.minimum_quantity,
        "brand": p.brand,
        "colors": parse_list_field(p.colors),
        "sizes": parse_list_field(p.sizes),
        "imprint_methods": parse_list_field(p.imprint_methods),
        "lead_time": p.lead_time,
        "image_url": p.image_url,
        "product_type": p.product_type,
    }


def global_search(db: Session, q: str) -> dict:
    """Up to 5 orders, companies, contacts and products matching q."""
    pattern = f"%{escape_like(q)}%"

    orders = (
        db.query(Order)
        .outerjoin(Company, Order.company_id == Company.id)
        .filter(
            or_(
                Order.order_number.ilike(pattern, escape="\\"),
                Order.status.ilike(pattern, escape="\\"),
                Company.name.ilike(pattern, escape="\\"),
            )
        )
        .order_by(Order.created_at.desc())
        .limit(SEARCH_LIMIT)
        .all()
    )
    contacts = (
        db.query(Contact)
        .filter(
            or_(
                Contact.first_name.ilike(pattern, escape="\\"),
                Contact.last_name.ilike(pattern, escape="\\"),
                Contact.email.ilike(pattern, escape="\\"),
            )
        )
        .order_by(Contact.last_name, Contact.first_name)
        .limit(SEARCH_LIMIT)
        .all()
    )
    companies = search_companies(db, q, SEARCH_LIMIT)
    products = search_products(db, q, SEARCH_LIMIT)

    return {
        "orders": [
            {
                "id": o.id,
                "order_number": o.order_number,
                "status": o.status,
                "company_name": o.company.name if o.company else None,
                "total": float(o.total or 0),
            }
            for o in orders
        ],
        "companies": [{"id": c.id, "name": c.name, "industry": c.industry} for c in companies],
        "contacts": [
            {
                "id": c.id,
                "name": c.full_name,
                "email": c.email,
                "company_id": c.company_id,
            }
            for c in contacts
        ],
        "products": [
            {"id": p.id, "name": p.name, "sku": p.sku, "supplier_name": p.supplier.name if p.supplier else None}
            for p in products
        ],
    }


def supplier_to_dict(s: Supplier) -> dict:
    return {
        "id": s.id,
        "name": s.name,
        "email": s.email,
        "phone": s.phone,
        "website": s.website,
        "address": s.address,
        "contact_person": s.contact_person,
        "payment_terms": s.payment_terms,
        "notes": s.notes,
        "is_preferred": bool(s.is_preferred),
        "do_not_order": bool(s.do_not_order),
        "ytd_spend": float(s.ytd_spend or 0),
        "last_year_spend": float(s.last_year_spend or 0),
        "product_count": s.product_count or 0,
        "esp_id": s.esp_id,
        "asi_id": s.asi_id,
        "sage_id": s.sage_id,
    }

"""
routers/mockups.py — Mockup Builder & Presentation Routes

The mockup builder stores logo placements (position, size, rotation, opacity,
color, background-removed flag) on reusable templates. Rendering, background
removal and emailing are handled by the client; the server only persists state.

Business Rules:
- Logo ranges are enforced by schemas.mockups.LogoPlacement (422 when out of range)
- Product search uses the local catalog (name / SKU / brand / description)
- Presentations collect catalog products with a suggested price and quantity

Called by: main.py (router mount)
Depends on: models, dependencies, services.catalog_service
"""

import secrets

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_user
from ..models import (
    Company,
    Contact,
    MockupTemplate,
    Presentation,
    PresentationProduct,
    Product,
    User,
)
from ..schemas.mockups import (
    PresentationCreate,
    PresentationProductCreate,
    TemplateCreate,
    TemplateUpdate,
)
from ..services.catalog_service import product_to_dict, search_products

router = APIRouter()


def template_to_dict(t: MockupTemplate) -> dict:
    return {
        "id": t.id,
        "name": t.name,
        "type": t.type,
        "product_id": t.product_id,
        "product_name": t.product.name if t.product else None,
        "header": t.header,
        "footer": t.footer,
        "logos": t.logos or [],
        "is_active": bool(t.is_active),
        "created_by": t.created_by,
        "created_at": t.created_at.isoformat() if t.created_at else None,
        "updated_at": t.updated_at.isoformat() if t.updated_at else None,
    }


def presentation_to_dict(p: Presentation, include_products: bool = False) -> dict:
    d = {
        "id": p.id,
        "title": p.title,
        "description": p.description,
        "company_id": p.company_id,
        "company_name": p.company.name if p.company else None,
        "contact_id": p.contact_id,
        "user_id": p.user_id,
        "status": p.status,
        "share_token": p.share_token,
        "product_count": len(p.products),
        "created_at": p.created_at.isoformat() if p.created_at else None,
    }
    if include_products:
        d["products"] = [
            {
                "id": pp.id,
                "product_id": pp.product_id,
                "product_name": pp.product_name,
                "suggested_price": float(pp.suggested_price) if pp.suggested_price is not None else None,
                "suggested_quantity": pp.suggested_quantity,
                "notes": pp.notes,
                "sort_order": pp.sort_order,
            }
            for pp in p.products
        ]
    return d


def _get_template(db: Session, template_id: int) -> MockupTemplate:
    template = db.get(MockupTemplate, template_id)
    if not template:
        raise HTTPException(404, "Template not found")
    return template


def _get_presentation(db: Session, presentation_id: int) -> Presentation:
    p = db.get(Presentation, presentation_id)
    if not p:
        raise HTTPException(404, "Presentation not found")
    return p


# ── Mockup builder ───────────────────────────────────────────────────────


@router.get("/api/mockup-builder/products/search")
async def mockup_product_search(
    query: str = "",
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    if not query.strip():
        return []
    return [product_to_dict(p) for p in search_products(db, query, limit=20)]


@router.get("/api/mockup-builder/templates")
async def list_templates(
    type: str | None = None,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    q = db.query(MockupTemplate).filter(MockupTemplate.is_active.is_(True))
    if type:
        q = q.filter(MockupTemplate.type == type)
    return [template_to_dict(t) for t in q.order_by(MockupTemplate.name).all()]


@router.get("/api/mockup-builder/templates/{template_id}")
async def get_template(
    template_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return template_to_dict(_get_template(db, template_id))


@router.post("/api/mockup-builder/templates", status_code=201)
async def create_template(
    payload: TemplateCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    if payload.product_id and not db.get(Product, payload.product_id):
        raise HTTPException(404, "Product not found")
    template = MockupTemplate(**payload.model_dump(), created_by=user.id)
    db.add(template)
    db.commit()
    return template_to_dict(template)


@router.put("/api/mockup-builder/templates/{template_id}")
async def update_template(
    template_id: int,
    payload: TemplateUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    template = _get_template(db, template_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("product_id") and not db.get(Product, changes["product_id"]):
        raise HTTPException(404, "Product not found")
    for field, value in changes.items():
        setattr(template, field, value)
    db.commit()
    return template_to_dict(template)


@router.delete("/api/mockup-builder/templates/{template_id}", status_code=204)
async def delete_template(
    template_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    db.delete(_get_template(db, template_id))
    db.commit()
    return Response(status_code=204)


# ── Presentations ────────────────────────────────────────────────────────


@router.get("/api/presentations")
async def list_presentations(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    rows = db.query(Presentation).order_by(Presentation.created_at.desc(), Presentation.id.desc()).all()
    return [presentation_to_dict(p) for p in rows]


@router.post("/api/presentations", status_code=201)
async def create_presentation(
    payload: PresentationCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    if payload.company_id and not db.get(Company, payload.company_id):
        raise HTTPException(404, "Company not found")
    if payload.contact_id and not db.get(Contact, payload.contact_id):
        raise HTTPException(404, "Contact not found")
    p = Presentation(
        **payload.model_dump(),
        user_id=user.id,
        status="draft",
        share_token=secrets.token_urlsafe(24),
    )
    db.add(p)
    db.commit()
    return presentation_to_dict(p, include_products=True)


@router.get("/api/presentations/{presentation_id}")
async def get_presentation(
    presentation_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return presentation_to_dict(_get_presentation(db, presentation_id), include_products=True)


@router.delete("/api/presentations/{presentation_id}", status_code=204)
async def delete_presentation(
    presentation_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    db.delete(_get_presentation(db, presentation_id))
    db.commit()
    return Response(status_code=204)


@router.post("/api/presentations/{presentation_id}/products", status_code=201)
async def add_presentation_product(
    presentation_id: int,
    payload: PresentationProductCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    p = _get_presentation(db, presentation_id)
    data = payload.model_dump()
    if data["product_id"]:
        product = db.get(Product, data["product_id"])
        if not product:
            raise HTTPException(404, "Product not found")
        data["product_name"] = data["product_name"] or product.name
        if data["suggested_price"] is None:
            data["suggested_price"] = product.base_price
    if not data["product_name"]:
        raise HTTPException(400, "product_id or product_name is required")
    if data["sort_order"] is None:
        data["sort_order"] = len(p.products)
    p.products.append(PresentationProduct(**data))
    db.commit()
    return presentation_to_dict(p, include_products=True)

"""
routers/crm.py — CRM Routes (Companies, Contacts, Leads)

Customer relationship management endpoints: companies with their contacts,
supplier contacts, and sales leads that convert into companies.

Business Rules:
- Company list refreshes YTD spend from this year's orders before returning
- Deleting a company cascades to contacts, orders (and their items, files,
  communications, attachments, notifications) and artwork files
- Setting is_primary on a contact clears the flag on the company's other contacts
- Converting a lead creates a Company + primary Contact and marks the lead converted

Called by: main.py (router mount)
Depends on: models, dependencies, services.order_service, services.activity_service
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Response
from loguru import logger
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..dependencies import require_user
from ..models import Company, Contact, Lead, Supplier, User
from ..schemas.crm import (
    CompanyCreate,
    CompanyUpdate,
    ContactCreate,
    ContactUpdate,
    LeadConvert,
    LeadCreate,
    LeadUpdate,
)
from ..services.activity_service import log_activity
from ..services.catalog_service import search_companies
from ..services.order_service import refresh_company_ytd

router = APIRouter()


# ── Helpers ──────────────────────────────────────────────────────────────


def company_to_dict(c: Company) -> dict:
    return {
        "id": c.id,
        "name": c.name,
        "email": c.email,
        "phone": c.phone,
        "website": c.website,
        "address": c.address,
        "city": c.city,
        "state": c.state,
        "zip_code": c.zip_code,
        "country": c.country,
        "industry": c.industry,
        "notes": c.notes,
        "ytd_spend": float(c.ytd_spend or 0),
        "social_media_links": c.social_media_links or {},
        "customer_score": c.customer_score or 0,
        "engagement_level": c.engagement_level,
        "created_at": c.created_at.isoformat() if c.created_at else None,
        "updated_at": c.updated_at.isoformat() if c.updated_at else None,
    }


def contact_to_dict(c: Contact) -> dict:
    return {
        "id": c.id,
        "company_id": c.company_id,
        "supplier_id": c.supplier_id,
        "first_name": c.first_name,
        "last_name": c.last_name,
        "full_name": c.full_name,
        "email": c.email,
        "phone": c.phone,
        "title": c.title,
        "is_primary": bool(c.is_primary),
        "receive_order_emails": bool(c.receive_order_emails),
        "billing_address": c.billing_address,
        "shipping_address": c.shipping_address,
    }


def lead_to_dict(lead: Lead) -> dict:
    return {
        "id": lead.id,
        "first_name": lead.first_name,
        "last_name": lead.last_name,
        "email": lead.email,
        "phone": lead.phone,
        "company_name": lead.company_name,
        "title": lead.title,
        "source": lead.source,
        "status": lead.status,
        "estimated_value": float(lead.estimated_value) if lead.estimated_value is not None else None,
        "next_follow_up_date": lead.next_follow_up_date.isoformat() if lead.next_follow_up_date else None,
        "notes": lead.notes,
        "assigned_user_id": lead.assigned_user_id,
        "converted_company_id": lead.converted_company_id,
        "converted_at": lead.converted_at.isoformat() if lead.converted_at else None,
        "created_at": lead.created_at.isoformat() if lead.created_at else None,
    }


def _check_parent(db: Session, company_id: int | None, supplier_id: int | None) -> None:
    if company_id and not db.get(Company, company_id):
        raise HTTPException(404, "Company not found")
    if supplier_id and not db.get(Supplier, supplier_id):
        raise HTTPException(404, "Supplier not found")


def _check_assignee(db: Session, user_id: int | None) -> None:
    if user_id and not db.get(User, user_id):
        raise HTTPException(404, "User not found")


def _clear_other_primaries(db: Session, contact: Contact) -> None:
    if not (contact.is_primary and contact.company_id):
        return
    others = (
        db.query(Contact)
        .filter(
            Contact.company_id == contact.company_id,
            Contact.id != contact.id,
            Contact.is_primary.is_(True),
        )
        .all()
    )
    for other in others:
        other.is_primary = False


# ── Companies ────────────────────────────────────────────────────────────


@router.get("/api/companies")
async def list_companies(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    refresh_company_ytd(db)
    db.commit()
    companies = db.query(Company).order_by(Company.name).limit(settings.max_list_limit).all()
    return [company_to_dict(c) for c in companies]


@router.get("/api/companies/search")
async def company_search(
    q: str = "",
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    if not q.strip():
        raise HTTPException(400, "Search query is required")
    return [company_to_dict(c) for c in search_companies(db, q)]


@router.get("/api/companies/{company_id}")
async def get_company(
    company_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    company = db.get(Company, company_id)
    if not company:
        raise HTTPException(404, "Company not found")
    d = company_to_dict(company)
    d["contacts"] = [contact_to_dict(c) for c in company.contacts]
    d["order_count"] = len(company.orders)
    return d


@router.post("/api/companies", status_code=201)
async def create_company(
    payload: CompanyCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    company = Company(**payload.model_dump())
    db.add(company)
    db.flush()
    log_activity(
        db,
        user_id=user.id,
        entity_type="company",
        entity_id=company.id,
        action="created",
        description=f"Created company {company.name}",
    )
    db.commit()
    return company_to_dict(company)


@router.patch("/api/companies/{company_id}")
async def update_company(
    company_id: int,
    payload: CompanyUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    company = db.get(Company, company_id)
    if not company:
        raise HTTPException(404, "Company not found")
    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(company, field, value)
    log_activity(
        db,
        user_id=user.id,
        entity_type="company",
        entity_id=company.id,
        action="updated",
        metadata={"fields": sorted(changes)},
    )
    db.commit()
    return company_to_dict(company)


@router.delete("/api/companies/{company_id}", status_code=204)
async def delete_company(
    company_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    company = db.get(Company, company_id)
    if not company:
        raise HTTPException(404, "Company not found")
    name = company.name
    db.delete(company)
    log_activity(
        db,
        user_id=user.id,
        entity_type="company",
        entity_id=company_id,
        action="deleted",
        description=f"Deleted company {name}",
    )
    db.commit()
    logger.info("Company deleted", company_id=company_id, user_id=user.id)
    return Response(status_code=204)


# ── Contacts ─────────────────────────────────────────────────────────────


@router.get("/api/contacts")
async def list_contacts(
    company_id: int | None = None,
    supplier_id: int | None = None,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    query = db.query(Contact)
    if company_id is not None:
        query = query.filter(Contact.company_id == company_id)
    if supplier_id is not None:
        query = query.filter(Contact.supplier_id == supplier_id)
    contacts = (
        query.order_by(Contact.last_name, Contact.first_name)
        .limit(settings.max_list_limit)
        .all()
    )
    return [contact_to_dict(c) for c in contacts]


@router.get("/api/contacts/{contact_id}")
async def get_contact(
    contact_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    contact = db.get(Contact, contact_id)
    if not contact:
        raise HTTPException(404, "Contact not found")
    return contact_to_dict(contact)


@router.post("/api/contacts", status_code=201)
async def create_contact(
    payload: ContactCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    _check_parent(db, payload.company_id, payload.supplier_id)
    contact = Contact(**payload.model_dump())
    db.add(contact)
    db.flush()
    _clear_other_primaries(db, contact)
    log_activity(
        db,
        user_id=user.id,
        entity_type="contact",
        entity_id=contact.id,
        action="created",
        description=f"Created contact {contact.full_name}",
    )
    db.commit()
    return contact_to_dict(contact)


@router.patch("/api/contacts/{contact_id}")
async def update_contact(
    contact_id: int,
    payload: ContactUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    contact = db.get(Contact, contact_id)
    if not contact:
        raise HTTPException(404, "Contact not found")
    changes = payload.model_dump(exclude_unset=True)
    company_id = changes.get("company_id", contact.company_id)
    supplier_id = changes.get("supplier_id", contact.supplier_id)
    if company_id and supplier_id:
        raise HTTPException(400, "A contact belongs to a company or a supplier, not both")
    _check_parent(db, changes.get("company_id"), changes.get("supplier_id"))
    for field, value in changes.items():
        setattr(contact, field, value)
    _clear_other_primaries(db, contact)
    db.commit()
    return contact_to_dict(contact)


@router.delete("/api/contacts/{contact_id}", status_code=204)
async def delete_contact(
    contact_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    contact = db.get(Contact, contact_id)
    if not contact:
        raise HTTPException(404, "Contact not found")
    db.delete(contact)
    db.commit()
    return Response(status_code=204)


# ── Leads ────────────────────────────────────────────────────────────────


@router.get("/api/leads")
async def list_leads(
    status: str | None = None,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    query = db.query(Lead)
    if status:
        query = query.filter(Lead.status == status)
    leads = query.order_by(Lead.created_at.desc(), Lead.id.desc()).limit(settings.max_list_limit).all()
    return [lead_to_dict(lead) for lead in leads]


@router.post("/api/leads", status_code=201)
async def create_lead(
    payload: LeadCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    data = payload.model_dump()
    _check_assignee(db, data["assigned_user_id"])
    if data["assigned_user_id"] is None:
        data["assigned_user_id"] = user.id
    lead = Lead(**data)
    db.add(lead)
    db.flush()
    log_activity(
        db,
        user_id=user.id,
        entity_type="lead",
        entity_id=lead.id,
        action="created",
        description=f"Created lead {lead.first_name} {lead.last_name}",
    )
    db.commit()
    return lead_to_dict(lead)


@router.patch("/api/leads/{lead_id}")
async def update_lead(
    lead_id: int,
    payload: LeadUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    lead = db.get(Lead, lead_id)
    if not lead:
        raise HTTPException(404, "Lead not found")
    changes = payload.model_dump(exclude_unset=True)
    _check_assignee(db, changes.get("assigned_user_id"))
    for field, value in changes.items():
        setattr(lead, field, value)
    db.commit()
    return lead_to_dict(lead)


@router.delete("/api/leads/{lead_id}", status_code=204)
async def delete_lead(
    lead_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    lead = db.get(Lead, lead_id)
    if not lead:
        raise HTTPException(404, "Lead not found")
    db.delete(lead)
    db.commit()
    return Response(status_code=204)


@router.post("/api/leads/{lead_id}/convert", status_code=201)
async def convert_lead(
    lead_id: int,
    payload: LeadConvert | None = None,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    lead = db.get(Lead, lead_id)
    if not lead:
        raise HTTPException(404, "Lead not found")
    if lead.status == "converted":
        raise HTTPException(409, "Lead already converted")
    payload = payload or LeadConvert()
    company_name = (payload.company_name or lead.company_name or "").strip() or (
        f"{lead.first_name} {lead.last_name}".strip()
    )
    company = Company(
        name=company_name,
        email=lead.email,
        phone=lead.phone,
        industry=payload.industry,
        notes=lead.notes,
    )
    company.contacts.append(
        Contact(
            first_name=lead.first_name,
            last_name=lead.last_name,
            email=lead.email,
            phone=lead.phone,
            title=lead.title,
            is_primary=True,
        )
    )
    db.add(company)
    db.flush()
    lead.status = "converted"
    lead.converted_company_id = company.id
    lead.converted_at = datetime.now(timezone.utc)
    log_activity(
        db,
        user_id=user.id,
        entity_type="lead",
        entity_id=lead.id,
        action="converted",
        description=f"Converted lead into company {company.name}",
        metadata={"company_id": company.id},
    )
    db.commit()
    logger.info("Lead converted", lead_id=lead.id, company_id=company.id)
    return {
        "lead": lead_to_dict(lead),
        "company": company_to_dict(company),
        "contact": contact_to_dict(company.contacts[0]),
    }

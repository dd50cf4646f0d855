from datetime import datetime, time, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import Integer, cast, func, or_
from sqlalchemy.orm import Session, joinedload

from shared.core.schemas import TenantContext
from shared.utils.money import money
from ...core.exceptions import NotFoundError
from ...enum.billing_enum import FolioStatus
from ...models.billing.folios import Folio
from ...models.billing.payments import Payment
from ...models.hospitality.guests import Guest
from ...models.hospitality.properties import Property
from ...schemas.billing.folios_schemas import (
    FolioListResponse, FolioRequest, FolioStats, FolioSummaryOut
)


def build_folio_filters(ctx: TenantContext, params: FolioRequest):
    filters = [
        Folio.tenant_id == ctx.tenant_id,
        Folio.property_id == ctx.property_id,
    ]

    if params.status:
        filters.append(Folio.status == params.status.value)

    if params.guest_id:
        filters.append(Folio.guest_id == params.guest_id)

    # Text Search Bar (folio number OR guest name)
    if params.search:
        search_term = f"%{params.search}%"
        filters.append(or_(
            Folio.folio_number.ilike(search_term),
            Guest.first_name.ilike(search_term),
            Guest.last_name.ilike(search_term)
        ))

    return filters


# ----------------- Get All Folios -----------------
def get_folios(db: Session, ctx: TenantContext, params: FolioRequest) -> FolioListResponse:
    filters = build_folio_filters(ctx, params)

    base_query = db.query(Folio).outerjoin(Guest, Folio.guest_id == Guest.id).filter(*filters)
    total = base_query.with_entities(func.count(Folio.id)).scalar()

    folios = (
        base_query
        .options(joinedload(Folio.guest), joinedload(Folio.reservation))
        .order_by(Folio.created_at.desc(), Folio.folio_number.desc())
        .offset(params.skip)
        .limit(params.limit)
        .all()
    )

    return FolioListResponse(
        folios=[FolioSummaryOut.model_validate(f) for f in folios],
        total=total
    )


def get_folio(db: Session, ctx: TenantContext, folio_id: UUID) -> Folio:
    folio = db.query(Folio).filter(
        Folio.id == folio_id,
        Folio.tenant_id == ctx.tenant_id,
        Folio.property_id == ctx.property_id
    ).first()
    if not folio:
        raise NotFoundError("Folio not found")
    return folio


def get_folio_by_number(db: Session, ctx: TenantContext, folio_number: str) -> Folio:
    folio = db.query(Folio).filter(
        Folio.folio_number == folio_number,
        Folio.tenant_id == ctx.tenant_id,
        Folio.property_id == ctx.property_id
    ).first()
    if not folio:
        raise NotFoundError(f"Folio {folio_number} not found")
    return folio


def get_folio_by_reservation(db: Session, ctx: TenantContext, reservation_id: UUID) -> Optional[Folio]:
    # the open folio first, then the most recent one
    return db.query(Folio).filter(
        Folio.reservation_id == reservation_id,
        Folio.tenant_id == ctx.tenant_id,
        Folio.property_id == ctx.property_id
    ).order_by(
        (Folio.status == FolioStatus.open.value).desc(),
        Folio.created_at.desc()
    ).first()


# ----------------- Stats -----------------
def get_folio_stats(db: Session, ctx: TenantContext) -> FolioStats:
    scope = [
        Folio.tenant_id == ctx.tenant_id,
        Folio.property_id == ctx.property_id,
    ]

    total_open = db.query(func.count(Folio.id)).filter(
        *scope, Folio.status == FolioStatus.open.value).scalar()
    total_closed = db.query(func.count(Folio.id)).filter(
        *scope, Folio.status == FolioStatus.closed.value).scalar()
    total_balance = db.query(func.coalesce(func.sum(Folio.balance), 0)).filter(
        *scope, Folio.status == FolioStatus.open.value).scalar()

    start_of_day = datetime.combine(datetime.now(timezone.utc).date(), time.min)
    today_revenue = (
        db.query(func.coalesce(func.sum(Payment.amount), 0))
        .join(Folio, Payment.folio_id == Folio.id)
        .filter(*scope, Payment.voided == False, Payment.created_at >= start_of_day)
        .scalar()
    )

    return FolioStats(
        total_open=total_open or 0,
        total_closed=total_closed or 0,
        total_balance=money(total_balance),
        today_revenue=money(today_revenue),
    )


# ----------------- Numbering -----------------
def generate_folio_number(db: Session, ctx: TenantContext) -> str:
    hotel_property = db.query(Property).filter(
        Property.id == ctx.property_id,
        Property.tenant_id == ctx.tenant_id
    ).first()
    if not hotel_property:
        raise NotFoundError("Property not found")

    prefix = f"FOL-{hotel_property.code}-"
    last_number = (
        db.query(
            func.max(cast(func.replace(Folio.folio_number, prefix, ""), Integer))
        )
        .filter(Folio.property_id == ctx.property_id, Folio.folio_number.like(f"{prefix}%"))
        .scalar()
    )

    next_number = (last_number or 0) + 1
    return f"{prefix}{next_number:05d}"

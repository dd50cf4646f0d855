import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from shared.core.schemas import TenantContext
from ...core.databases import commit_or_raise
from ...core.exceptions import NotFoundError, ValidationError
from ...enum.financials_enum import TaxExemptionType
from ...models.financials.tax_configurations import TaxConfiguration, TaxExemption
from ...schemas.financials.tax_schemas import (
    TaxConfigurationCreate, TaxConfigurationUpdate, TaxExemptionCreate
)

logger = logging.getLogger(__name__)


# ----------------- Get All Tax Configurations -----------------
def get_tax_configurations(db: Session, ctx: TenantContext, active_only: bool = False) -> List[TaxConfiguration]:
    query = db.query(TaxConfiguration).filter(
        TaxConfiguration.tenant_id == ctx.tenant_id,
        TaxConfiguration.property_id == ctx.property_id
    )
    if active_only:
        query = query.filter(TaxConfiguration.is_active == True)
    return query.order_by(TaxConfiguration.is_compound.asc(), TaxConfiguration.calculation_order.asc()).all()


def get_tax_configuration(db: Session, ctx: TenantContext, tax_configuration_id: UUID) -> TaxConfiguration:
    tax = db.query(TaxConfiguration).filter(
        TaxConfiguration.id == tax_configuration_id,
        TaxConfiguration.tenant_id == ctx.tenant_id,
        TaxConfiguration.property_id == ctx.property_id
    ).first()
    if not tax:
        raise NotFoundError("Tax configuration not found")
    return tax


def _ensure_unique_code(db: Session, ctx: TenantContext, code: str, exclude_id: Optional[UUID] = None):
    query = db.query(TaxConfiguration).filter(
        TaxConfiguration.tenant_id == ctx.tenant_id,
        TaxConfiguration.property_id == ctx.property_id,
        func.lower(TaxConfiguration.code) == code.lower()
    )
    if exclude_id:
        query = query.filter(TaxConfiguration.id != exclude_id)
    if query.first():
        raise ValidationError(f"Tax with code '{code}' already exists for this property")


# ----------------- Create Tax Configuration -----------------
def create_tax_configuration(db: Session, ctx: TenantContext, payload: TaxConfigurationCreate) -> TaxConfiguration:
    _ensure_unique_code(db, ctx, payload.code)

    data = payload.model_dump()
    data["applies_to"] = [a.value for a in payload.applies_to]
    tax = TaxConfiguration(
        tenant_id=ctx.tenant_id,
        property_id=ctx.property_id,
        **data
    )
    db.add(tax)
    commit_or_raise(db, "tax configuration")
    db.refresh(tax)
    logger.info("Created tax %s (%s%%) for property %s", tax.code, tax.rate, ctx.property_id)
    return tax


# ----------------- Update Tax Configuration -----------------
def update_tax_configuration(db: Session, ctx: TenantContext, payload: TaxConfigurationUpdate) -> TaxConfiguration:
    tax = get_tax_configuration(db, ctx, payload.id)

    update_data = payload.model_dump(exclude_unset=True, exclude={"id"})
    if update_data.get("code"):
        _ensure_unique_code(db, ctx, update_data["code"], exclude_id=tax.id)
    if update_data.get("applies_to") is not None:
        update_data["applies_to"] = [a.value for a in payload.applies_to]

    for key, value in update_data.items():
        setattr(tax, key, value)

    commit_or_raise(db, "tax configuration")
    db.refresh(tax)
    return tax


# ----------------- Deactivate Tax Configuration -----------------
def deactivate_tax_configuration(db: Session, ctx: TenantContext, tax_configuration_id: UUID) -> TaxConfiguration:
    # Soft delete: posted items keep their historic breakdown
    tax = get_tax_configuration(db, ctx, tax_configuration_id)
    tax.is_active = False
    commit_or_raise(db, "tax configuration")
    db.refresh(tax)
    return tax


# ----------------- Exemptions -----------------
def get_tax_exemptions(db: Session, ctx: TenantContext, entity_id: Optional[UUID] = None) -> List[TaxExemption]:
    query = db.query(TaxExemption).join(
        TaxConfiguration, TaxExemption.tax_configuration_id == TaxConfiguration.id
    ).filter(
        TaxExemption.tenant_id == ctx.tenant_id,
        TaxConfiguration.property_id == ctx.property_id
    )
    if entity_id:
        query = query.filter(TaxExemption.entity_id == entity_id)
    return query.all()


def create_tax_exemption(db: Session, ctx: TenantContext, payload: TaxExemptionCreate) -> TaxExemption:
    get_tax_configuration(db, ctx, payload.tax_configuration_id)

    if payload.exemption_type == TaxExemptionType.partial and payload.exemption_rate is None:
        logger.warning(
            "Partial exemption without exemption_rate for entity %s; it will not reduce the tax",
            payload.entity_id)
    if payload.valid_from and payload.valid_until and payload.valid_until < payload.valid_from:
        raise ValidationError("valid_until must not be before valid_from")

    exemption = TaxExemption(
        tenant_id=ctx.tenant_id,
        tax_configuration_id=payload.tax_configuration_id,
        entity_type=payload.entity_type.value,
        entity_id=payload.entity_id,
        exemption_type=payload.exemption_type.value,
        exemption_rate=payload.exemption_rate,
        valid_from=payload.valid_from,
        valid_until=payload.valid_until,
        notes=payload.notes,
    )
    db.add(exemption)
    commit_or_raise(db, "tax exemption")
    db.refresh(exemption)
    return exemption


def delete_tax_exemption(db: Session, ctx: TenantContext, exemption_id: UUID) -> bool:
    exemption = db.query(TaxExemption).filter(
        TaxExemption.id == exemption_id,
        TaxExemption.tenant_id == ctx.tenant_id
    ).first()
    if not exemption:
        raise NotFoundError("Tax exemption not found")

    db.delete(exemption)
    commit_or_raise(db, "tax exemption")
    return True

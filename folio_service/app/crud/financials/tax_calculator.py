import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from shared.core.schemas import TenantContext
from shared.utils.money import money, to_decimal, ZERO
from ...enum.financials_enum import TaxAppliesTo, TaxExemptionEntityType, TaxExemptionType
from ...models.financials.tax_configurations import TaxConfiguration, TaxExemption

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


@dataclass
class TaxCalculation:
    breakdown: Dict[str, dict] = field(default_factory=dict)
    total_tax: Decimal = ZERO
    net_amount: Decimal = ZERO


# ----------------- Exemption lookup -----------------
def _exemption_is_valid(exemption: TaxExemption, on_date: Optional[date]) -> bool:
    if on_date is None:
        return True
    if exemption.valid_from and on_date < exemption.valid_from:
        return False
    if exemption.valid_until and on_date > exemption.valid_until:
        return False
    return True


def find_exemption(
    exemptions: Iterable[TaxExemption],
    tax_configuration_id: UUID,
    corporate_account_id: Optional[UUID] = None,
    guest_id: Optional[UUID] = None,
    on_date: Optional[date] = None,
) -> Optional[TaxExemption]:
    """Corporate account exemptions win over guest exemptions for the same tax."""
    candidates = [
        e for e in exemptions
        if e.tax_configuration_id == tax_configuration_id and _exemption_is_valid(e, on_date)
    ]

    if corporate_account_id:
        for exemption in candidates:
            if (exemption.entity_type == TaxExemptionEntityType.corporate_account.value
                    and exemption.entity_id == corporate_account_id):
                return exemption

    if guest_id:
        for exemption in candidates:
            if (exemption.entity_type == TaxExemptionEntityType.guest.value
                    and exemption.entity_id == guest_id):
                return exemption

    return None


def effective_rate(tax: TaxConfiguration, exemption: Optional[TaxExemption]) -> Decimal:
    rate = to_decimal(tax.rate)
    if exemption is None:
        return rate
    if exemption.exemption_type == TaxExemptionType.full.value:
        return ZERO
    # partial with no exemption_rate reduces nothing
    reduction = to_decimal(exemption.exemption_rate)
    return rate * (1 - reduction / HUNDRED)


def _applies(tax: TaxConfiguration, charge_type: str) -> bool:
    applies_to = tax.applies_to or [TaxAppliesTo.all.value]
    return charge_type in applies_to or TaxAppliesTo.all.value in applies_to


# ----------------- Calculation -----------------
def calculate_taxes(
    tax_configurations: Iterable[TaxConfiguration],
    exemptions: Iterable[TaxExemption],
    amount,
    charge_type,
    corporate_account_id: Optional[UUID] = None,
    guest_id: Optional[UUID] = None,
    on_date: Optional[date] = None,
) -> TaxCalculation:
    """
    Non-compound taxes are charged on the base amount; compound taxes on the base
    plus every non-compound tax, after all non-compound taxes, in calculation_order.
    Each tax amount is rounded to 2 decimals before it is accumulated.
    """
    base = to_decimal(amount)
    charge_type = TaxAppliesTo(charge_type).value
    exemptions = list(exemptions)

    applicable = [t for t in tax_configurations if t.is_active and _applies(t, charge_type)]
    non_compound = sorted(
        (t for t in applicable if not t.is_compound), key=lambda t: t.calculation_order or 0)
    compound = sorted(
        (t for t in applicable if t.is_compound), key=lambda t: t.calculation_order or 0)

    result = TaxCalculation()
    total_tax = ZERO

    def _apply(tax: TaxConfiguration, taxable: Decimal) -> Decimal:
        exemption = find_exemption(
            exemptions, tax.id, corporate_account_id, guest_id, on_date)
        rate = effective_rate(tax, exemption)
        tax_amount = money(taxable * rate / HUNDRED)
        result.breakdown[tax.code] = {
            "name": tax.name,
            "rate": float(rate),
            "amount": float(tax_amount),
            "is_compound": bool(tax.is_compound),
        }
        return tax_amount

    for tax in non_compound:
        total_tax += _apply(tax, base)

    base_for_compound = base + total_tax
    for tax in compound:
        total_tax += _apply(tax, base_for_compound)

    result.total_tax = money(total_tax)
    result.net_amount = money(base + total_tax)
    return result


# ----------------- Property scoped lookup -----------------
def get_active_tax_configurations(db: Session, ctx: TenantContext) -> List[TaxConfiguration]:
    return db.query(TaxConfiguration).filter(
        TaxConfiguration.tenant_id == ctx.tenant_id,
        TaxConfiguration.property_id == ctx.property_id,
        TaxConfiguration.is_active == True
    ).all()


def get_exemptions_for_entities(
    db: Session,
    ctx: TenantContext,
    corporate_account_id: Optional[UUID] = None,
    guest_id: Optional[UUID] = None,
) -> List[TaxExemption]:
    entity_ids = [e for e in (corporate_account_id, guest_id) if e]
    if not entity_ids:
        return []
    return db.query(TaxExemption).filter(
        TaxExemption.tenant_id == ctx.tenant_id,
        TaxExemption.entity_id.in_(entity_ids)
    ).all()


def calculate_taxes_for_property(
    db: Session,
    ctx: TenantContext,
    amount,
    charge_type,
    corporate_account_id: Optional[UUID] = None,
    guest_id: Optional[UUID] = None,
    on_date: Optional[date] = None,
) -> TaxCalculation:
    configurations = get_active_tax_configurations(db, ctx)
    if not configurations:
        return TaxCalculation(total_tax=ZERO, net_amount=money(amount))

    exemptions = get_exemptions_for_entities(db, ctx, corporate_account_id, guest_id)
    result = calculate_taxes(
        configurations, exemptions, amount, charge_type,
        corporate_account_id=corporate_account_id, guest_id=guest_id, on_date=on_date)

    logger.debug("Taxes for %s on %s: %s", charge_type, amount, result.breakdown)
    return result

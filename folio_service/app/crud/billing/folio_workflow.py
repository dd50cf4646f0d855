import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from shared.core.schemas import TenantContext
from shared.utils.money import ZERO, money, to_decimal
from ...core.exceptions import BillingError, NotFoundError, ValidationError
from ...enum.billing_enum import NON_REVENUE_ITEM_TYPES, FolioItemType, FolioStatus
from ...enum.financials_enum import tax_category_for
from ...enum.hospitality_enum import ReservationStatus
from ...models.billing.folio_items import FolioItem
from ...models.billing.folios import Folio
from ...models.billing.payments import Payment
from ...models.hospitality.properties import Property
from ...models.hospitality.reservations import Reservation
from ...schemas.billing.folios_schemas import (
    AddAdjustmentRequest, AddChargeRequest, BulkPaymentOut, BulkPaymentRequest,
    NightAuditOut, PaymentOut, RecordPaymentRequest
)
from ..financials.tax_calculator import calculate_taxes_for_property
from ..hospitality.rate_calculator import get_nightly_rate, get_room_types
from . import folio_ledger as ledger
from .folios_crud import get_folio, get_folio_by_reservation

logger = logging.getLogger(__name__)


def _get_property(db: Session, ctx: TenantContext) -> Property:
    hotel_property = db.query(Property).filter(
        Property.id == ctx.property_id,
        Property.tenant_id == ctx.tenant_id
    ).first()
    if not hotel_property:
        raise NotFoundError("Property not found")
    return hotel_property


def service_charge_for(hotel_property: Property, item_type: FolioItemType, total_price) -> Decimal:
    if FolioItemType(item_type) in NON_REVENUE_ITEM_TYPES:
        return ZERO
    rate = to_decimal(hotel_property.service_charge_rate)
    return money(to_decimal(total_price) * rate / Decimal("100"))


# ----------------- Charges -----------------
def _post_charge(
    db: Session,
    ctx: TenantContext,
    folio: Folio,
    item_type: FolioItemType,
    description: str,
    quantity,
    unit_price,
    service_date: date,
    expected_version: Optional[int] = None,
) -> FolioItem:
    gross = money(money(quantity) * money(unit_price))

    tax_amount = ZERO
    tax_breakdown = {}
    category = tax_category_for(item_type)
    if category is not None:
        guest = folio.guest
        taxes = calculate_taxes_for_property(
            db, ctx, gross, category,
            corporate_account_id=guest.corporate_account_id if guest else None,
            guest_id=folio.guest_id,
            on_date=service_date,
        )
        tax_amount = taxes.total_tax
        tax_breakdown = taxes.breakdown

    service_charge = service_charge_for(_get_property(db, ctx), item_type, gross)

    return ledger.add_charge(
        db, ctx, folio.id,
        item_type=item_type,
        description=description,
        quantity=quantity,
        unit_price=unit_price,
        service_date=service_date,
        tax_amount=tax_amount,
        tax_breakdown=tax_breakdown,
        service_charge=service_charge,
        expected_version=expected_version,
    )


def post_charge(db: Session, ctx: TenantContext, folio_id: UUID, payload: AddChargeRequest) -> FolioItem:
    ledger.require_reason(payload.description, "description")
    ledger.require_positive(payload.quantity, "Quantity")
    ledger.require_positive(payload.unit_price, "Unit price")

    folio = get_folio(db, ctx, folio_id)
    return _post_charge(
        db, ctx, folio,
        item_type=payload.item_type,
        description=payload.description.strip(),
        quantity=payload.quantity,
        unit_price=payload.unit_price,
        service_date=payload.service_date or date.today(),
        expected_version=payload.expected_version,
    )


def post_adjustment(db: Session, ctx: TenantContext, folio_id: UUID, payload: AddAdjustmentRequest) -> FolioItem:
    return ledger.add_adjustment(
        db, ctx, folio_id,
        adjustment_type=payload.adjustment_type,
        amount=payload.amount,
        reason=payload.reason,
        expected_version=payload.expected_version,
    )


def void_charge(db: Session, ctx: TenantContext, item_id: UUID, reason: str,
                expected_version: Optional[int] = None) -> FolioItem:
    return ledger.void_item(db, ctx, item_id, reason, expected_version)


def void_payment(db: Session, ctx: TenantContext, payment_id: UUID, reason: str,
                 expected_version: Optional[int] = None) -> Payment:
    return ledger.void_payment(db, ctx, payment_id, reason, expected_version)


# ----------------- Payments -----------------
def take_payment(db: Session, ctx: TenantContext, folio_id: UUID, payload: RecordPaymentRequest) -> Tuple[Payment, bool]:
    return ledger.record_payment(
        db, ctx, folio_id,
        amount=payload.amount,
        payment_method=payload.payment_method,
        reference_number=payload.reference_number,
        corporate_account_id=payload.corporate_account_id,
        notes=payload.notes,
        expected_version=payload.expected_version,
    )


def take_bulk_payment(db: Session, ctx: TenantContext, payload: BulkPaymentRequest) -> BulkPaymentOut:
    """
    Spread one amount over several folios in the given order. Folios without a
    positive balance are skipped; every folio gets min(remaining, balance).
    Each folio payment is committed on its own.
    """
    if not payload.folio_ids:
        raise ValidationError("Select at least one folio")
    remaining = ledger.require_positive(payload.amount, "Payment amount")

    folios = [get_folio(db, ctx, folio_id) for folio_id in dict.fromkeys(payload.folio_ids)]
    payable = [f for f in folios
               if f.status == FolioStatus.open.value and to_decimal(f.balance) > 0]
    if not payable:
        raise ValidationError("None of the selected folios has an outstanding balance")

    notes = f"{payload.notes} (Bulk payment)" if payload.notes else "Bulk payment"
    payments: List[Payment] = []
    for folio in payable:
        if remaining <= 0:
            break
        portion = min(remaining, money(folio.balance))
        payment, _ = ledger.record_payment(
            db, ctx, folio.id,
            amount=portion,
            payment_method=payload.payment_method,
            reference_number=payload.reference_number,
            notes=notes,
        )
        payments.append(payment)
        remaining = money(remaining - portion)

    applied = money(money(payload.amount) - remaining)
    logger.info("Bulk payment of %s spread over %s folio(s), %s unapplied",
                applied, len(payments), remaining)
    return BulkPaymentOut(
        payments=[PaymentOut.model_validate(p) for p in payments],
        applied_amount=applied,
        unapplied_amount=remaining,
    )


# ----------------- Transfer / Split / Close -----------------
def transfer_charge(db: Session, ctx: TenantContext, item_id: UUID, target_folio_id: UUID,
                    expected_version: Optional[int] = None,
                    target_expected_version: Optional[int] = None) -> Tuple[Folio, Folio]:
    return ledger.transfer_charge(
        db, ctx, item_id, target_folio_id, expected_version, target_expected_version)


def split_folio(db: Session, ctx: TenantContext, folio_id: UUID, item_ids: List[UUID],
                expected_version: Optional[int] = None) -> Tuple[Folio, Folio]:
    if not item_ids:
        raise ValidationError("Select at least one charge to split")
    return ledger.split_folio(db, ctx, folio_id, item_ids, expected_version)


def close_folio(db: Session, ctx: TenantContext, folio_id: UUID, expected_version: Optional[int] = None) -> Folio:
    return ledger.close_folio(db, ctx, folio_id, expected_version)


def reopen_folio(db: Session, ctx: TenantContext, folio_id: UUID, expected_version: Optional[int] = None) -> Folio:
    return ledger.reopen_folio(db, ctx, folio_id, expected_version)


# ----------------- Stay workflow -----------------
def _get_reservation(db: Session, ctx: TenantContext, reservation_id: UUID) -> Reservation:
    reservation = db.query(Reservation).filter(
        Reservation.id == reservation_id,
        Reservation.tenant_id == ctx.tenant_id,
        Reservation.property_id == ctx.property_id
    ).first()
    if not reservation:
        raise NotFoundError("Reservation not found")
    return reservation


def check_in(db: Session, ctx: TenantContext, reservation_id: UUID) -> Folio:
    """Marks the reservation checked in and opens its folio in one commit."""
    reservation = _get_reservation(db, ctx, reservation_id)
    if reservation.status in (
        ReservationStatus.cancelled.value,
        ReservationStatus.checked_out.value,
        ReservationStatus.no_show.value,
    ):
        raise ValidationError(f"Reservation {reservation.confirmation_number} is {reservation.status}")

    existing = get_folio_by_reservation(db, ctx, reservation.id)
    if existing is not None and existing.status == FolioStatus.open.value:
        if reservation.status != ReservationStatus.checked_in.value:
            reservation.status = ReservationStatus.checked_in.value
            ledger._commit(db)
        return existing

    reservation.status = ReservationStatus.checked_in.value
    try:
        folio = ledger.open_folio(db, ctx, reservation.guest_id, reservation.id)
    except BillingError:
        db.rollback()
        raise

    logger.info("Checked in reservation %s with folio %s",
                reservation.confirmation_number, folio.folio_number)
    return folio


def post_room_night_charge(
    db: Session,
    ctx: TenantContext,
    folio_id: UUID,
    service_date: date,
    expected_version: Optional[int] = None,
) -> FolioItem:
    folio = get_folio(db, ctx, folio_id)
    reservation = folio.reservation
    if reservation is None or reservation.room_type_id is None:
        raise ValidationError(f"Folio {folio.folio_number} has no reservation with a room type")

    room_type = get_room_types(db, ctx, reservation.room_type_id)[0]
    rate = get_nightly_rate(db, ctx, room_type.id, service_date)

    return _post_charge(
        db, ctx, folio,
        item_type=FolioItemType.room_charge,
        description=f"Room charge - {room_type.name} ({service_date.isoformat()})",
        quantity=1,
        unit_price=rate,
        service_date=service_date,
        expected_version=expected_version,
    )


def run_night_audit(db: Session, ctx: TenantContext, business_date: date) -> NightAuditOut:
    folios = (
        db.query(Folio)
        .join(Reservation, Folio.reservation_id == Reservation.id)
        .filter(
            Folio.tenant_id == ctx.tenant_id,
            Folio.property_id == ctx.property_id,
            Folio.status == FolioStatus.open.value,
            Reservation.status == ReservationStatus.checked_in.value,
            Reservation.check_in_date <= business_date,
            Reservation.check_out_date > business_date
        )
        .order_by(Folio.folio_number.asc())
        .all()
    )

    posted = 0
    revenue = ZERO
    for folio in folios:
        already_posted = any(
            not i.voided
            and i.item_type == FolioItemType.room_charge.value
            and i.service_date == business_date
            for i in folio.items
        )
        if already_posted:
            continue

        item = post_room_night_charge(db, ctx, folio.id, business_date)
        posted += 1
        revenue += to_decimal(item.total_price)

    logger.info("Night audit %s: %s room charge(s) posted, revenue %s",
                business_date, posted, money(revenue))
    return NightAuditOut(business_date=business_date, charges_posted=posted, revenue=money(revenue))

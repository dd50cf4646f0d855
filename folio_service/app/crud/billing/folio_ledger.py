"""
Folio ledger: every mutation of a guest's running bill.

Each public function loads what it needs inside the caller's tenant/property scope,
enforces the folio rules, rewrites the folio aggregates from the non-voided items and
payments, and commits once. Tax and service charge amounts are resolved by the caller
(see folio_workflow) and passed in.
"""
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from shared.core.config import settings
from shared.core.schemas import TenantContext
from shared.utils.money import ZERO, money, money_sum, to_decimal
from ...core.databases import commit_or_raise
from ...core.exceptions import (
    AlreadyVoided, BalanceNotZero, ConflictError, CreditLimitExceeded, FolioClosed,
    NotFoundError, ValidationError
)
from ...enum.billing_enum import AdjustmentType, FolioItemType, FolioStatus, PaymentMethod
from ...models.billing.folio_items import FolioItem
from ...models.billing.folios import Folio
from ...models.billing.payments import Payment
from ...models.hospitality.corporate_accounts import CorporateAccount
from ...models.hospitality.guests import Guest
from ...models.hospitality.reservations import Reservation
from .folios_crud import generate_folio_number, get_folio

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _commit(db: Session):
    commit_or_raise(db, "folio changes")


# ----------------- Guards -----------------
def require_reason(reason: Optional[str], what: str = "reason") -> str:
    if reason is None or not reason.strip():
        raise ValidationError(f"A {what} is required")
    return reason.strip()


def require_positive(amount, what: str = "Amount") -> Decimal:
    """Rounds half-up to cents, then insists on a positive result."""
    value = money(amount)
    if value <= 0:
        raise ValidationError(f"{what} must be greater than 0")
    return value


def _check_version(current: int, expected: Optional[int]):
    if expected is not None and current != expected:
        raise ConflictError(
            f"Version mismatch (expected {expected}, found {current}). Reload and try again.")


def _require_open(folio: Folio):
    if folio.status != FolioStatus.open.value:
        raise FolioClosed(f"Folio {folio.folio_number} is closed")


def _get_item(db: Session, ctx: TenantContext, item_id: UUID) -> FolioItem:
    item = db.query(FolioItem).join(Folio, FolioItem.folio_id == Folio.id).filter(
        FolioItem.id == item_id,
        Folio.tenant_id == ctx.tenant_id,
        Folio.property_id == ctx.property_id
    ).first()
    if not item:
        raise NotFoundError("Folio item not found")
    return item


def _get_payment(db: Session, ctx: TenantContext, payment_id: UUID) -> Payment:
    payment = db.query(Payment).join(Folio, Payment.folio_id == Folio.id).filter(
        Payment.id == payment_id,
        Folio.tenant_id == ctx.tenant_id,
        Folio.property_id == ctx.property_id
    ).first()
    if not payment:
        raise NotFoundError("Payment not found")
    return payment


# ----------------- Aggregates -----------------
def recalculate_folio_totals(folio: Folio) -> Folio:
    items = [i for i in folio.items if not i.voided]
    payments = [p for p in folio.payments if not p.voided]

    subtotal = money_sum(i.total_price for i in items)
    tax_amount = money_sum(i.tax_amount for i in items)
    service_charge = money_sum(i.service_charge for i in items)
    total_amount = money(subtotal + tax_amount + service_charge)
    paid_amount = money_sum(p.amount for p in payments)

    folio.subtotal = subtotal
    folio.tax_amount = tax_amount
    folio.service_charge = service_charge
    folio.total_amount = total_amount
    folio.paid_amount = paid_amount
    folio.balance = money(total_amount - paid_amount)
    return folio


# ----------------- Open -----------------
def open_folio(
    db: Session,
    ctx: TenantContext,
    guest_id: UUID,
    reservation_id: Optional[UUID] = None,
) -> Folio:
    guest = db.query(Guest).filter(
        Guest.id == guest_id,
        Guest.tenant_id == ctx.tenant_id
    ).first()
    if not guest:
        raise NotFoundError("Guest not found")

    if reservation_id:
        reservation = db.query(Reservation).filter(
            Reservation.id == reservation_id,
            Reservation.tenant_id == ctx.tenant_id,
            Reservation.property_id == ctx.property_id
        ).first()
        if not reservation:
            raise NotFoundError("Reservation not found")

    folio = Folio(
        tenant_id=ctx.tenant_id,
        property_id=ctx.property_id,
        guest_id=guest_id,
        reservation_id=reservation_id,
        folio_number=generate_folio_number(db, ctx),
        status=FolioStatus.open.value,
        subtotal=ZERO,
        tax_amount=ZERO,
        service_charge=ZERO,
        total_amount=ZERO,
        paid_amount=ZERO,
        balance=ZERO,
    )
    db.add(folio)
    _commit(db)
    db.refresh(folio)

    logger.info("Opened folio %s for guest %s", folio.folio_number, guest_id)
    return folio


# ----------------- Charges -----------------
def add_charge(
    db: Session,
    ctx: TenantContext,
    folio_id: UUID,
    item_type: FolioItemType,
    description: str,
    quantity,
    unit_price,
    service_date: Optional[date] = None,
    tax_amount=ZERO,
    tax_breakdown: Optional[dict] = None,
    service_charge=ZERO,
    expected_version: Optional[int] = None,
) -> FolioItem:
    item_type = FolioItemType(item_type)
    description = require_reason(description, "description")
    quantity = require_positive(quantity, "Quantity")
    unit_price = money(unit_price)

    folio = get_folio(db, ctx, folio_id)
    _check_version(folio.version_id, expected_version)
    _require_open(folio)

    total_price = money(quantity * unit_price)
    if item_type == FolioItemType.discount:
        total_price = -abs(total_price)

    item = FolioItem(
        tenant_id=ctx.tenant_id,
        item_type=item_type.value,
        description=description,
        quantity=quantity,
        unit_price=unit_price,
        total_price=total_price,
        tax_amount=money(tax_amount),
        tax_breakdown=tax_breakdown or {},
        service_charge=money(service_charge),
        service_date=service_date or _now().date(),
        is_posted=True,
        posted_by=ctx.actor_id,
        voided=False,
    )
    folio.items.append(item)
    recalculate_folio_totals(folio)
    _commit(db)
    db.refresh(item)

    logger.info("Posted %s %s to folio %s by %s",
                item_type.value, total_price, folio.folio_number, ctx.actor_id)
    return item


def add_adjustment(
    db: Session,
    ctx: TenantContext,
    folio_id: UUID,
    adjustment_type: AdjustmentType,
    amount,
    reason: str,
    expected_version: Optional[int] = None,
) -> FolioItem:
    """A discount posts a negative line, a debit a positive one. Neither is taxed."""
    adjustment_type = AdjustmentType(adjustment_type)
    amount = require_positive(amount, "Adjustment amount")
    reason = require_reason(reason)

    item_type = (FolioItemType.discount if adjustment_type == AdjustmentType.discount
                 else FolioItemType.miscellaneous)
    signed = -amount if adjustment_type == AdjustmentType.discount else amount

    return add_charge(
        db, ctx, folio_id,
        item_type=item_type,
        description=reason,
        quantity=1,
        unit_price=signed,
        expected_version=expected_version,
    )


# ----------------- Voids -----------------
def void_item(
    db: Session,
    ctx: TenantContext,
    item_id: UUID,
    reason: str,
    expected_version: Optional[int] = None,
) -> FolioItem:
    reason = require_reason(reason, "void reason")
    item = _get_item(db, ctx, item_id)
    _check_version(item.version_id, expected_version)

    folio = item.folio
    _require_open(folio)
    if item.voided:
        raise AlreadyVoided("This charge has already been voided")

    item.voided = True
    item.void_reason = reason
    item.voided_by = ctx.actor_id
    item.voided_at = _now()

    recalculate_folio_totals(folio)
    _commit(db)
    db.refresh(item)

    logger.info("Voided item %s (%s) on folio %s by %s: %s",
                item.id, item.total_price, folio.folio_number, ctx.actor_id, reason)
    return item


def void_payment(
    db: Session,
    ctx: TenantContext,
    payment_id: UUID,
    reason: str,
    expected_version: Optional[int] = None,
) -> Payment:
    reason = require_reason(reason, "void reason")
    payment = _get_payment(db, ctx, payment_id)
    _check_version(payment.version_id, expected_version)

    folio = payment.folio
    _require_open(folio)
    if payment.voided:
        raise AlreadyVoided("This payment has already been voided")

    payment.voided = True
    payment.void_reason = reason
    payment.voided_by = ctx.actor_id
    payment.voided_at = _now()

    if payment.corporate_account_id and payment.corporate_account is not None:
        account = payment.corporate_account
        account.current_balance = money(to_decimal(account.current_balance) - to_decimal(payment.amount))

    recalculate_folio_totals(folio)
    _commit(db)
    db.refresh(payment)

    logger.info("Voided payment %s (%s) on folio %s by %s: %s",
                payment.id, payment.amount, folio.folio_number, ctx.actor_id, reason)
    return payment


# ----------------- Payments -----------------
def corporate_credit_exceeded(account: CorporateAccount, amount) -> bool:
    limit = to_decimal(account.credit_limit)
    return limit > 0 and to_decimal(account.current_balance) + to_decimal(amount) > limit


def record_payment(
    db: Session,
    ctx: TenantContext,
    folio_id: UUID,
    amount,
    payment_method: PaymentMethod = PaymentMethod.cash,
    reference_number: Optional[str] = None,
    corporate_account_id: Optional[UUID] = None,
    notes: Optional[str] = None,
    expected_version: Optional[int] = None,
) -> Tuple[Payment, bool]:
    """Returns the payment and whether it took a corporate account over its credit limit."""
    amount = require_positive(amount, "Payment amount")
    payment_method = PaymentMethod(payment_method)

    folio = get_folio(db, ctx, folio_id)
    _check_version(folio.version_id, expected_version)
    _require_open(folio)

    credit_limit_exceeded = False
    if corporate_account_id:
        account = db.query(CorporateAccount).filter(
            CorporateAccount.id == corporate_account_id,
            CorporateAccount.tenant_id == ctx.tenant_id
        ).first()
        if not account:
            raise NotFoundError("Corporate account not found")

        credit_limit_exceeded = corporate_credit_exceeded(account, amount)
        if credit_limit_exceeded:
            logger.warning(
                "Corporate account %s exceeds credit limit %s with payment %s on folio %s",
                account.company_name, account.credit_limit, amount, folio.folio_number)
            if settings.ENFORCE_CORPORATE_CREDIT_LIMIT:
                raise CreditLimitExceeded(
                    f"Payment would exceed the credit limit of {account.company_name}")

        payment_method = PaymentMethod.other
        notes = f"Corporate billing: {account.company_name}" + (f" - {notes}" if notes else "")
        account.current_balance = money(to_decimal(account.current_balance) + amount)

    payment = Payment(
        tenant_id=ctx.tenant_id,
        amount=amount,
        payment_method=payment_method.value,
        reference_number=reference_number or None,
        corporate_account_id=corporate_account_id,
        notes=notes or None,
        received_by=ctx.actor_id,
        voided=False,
    )
    folio.payments.append(payment)
    recalculate_folio_totals(folio)
    _commit(db)
    db.refresh(payment)

    logger.info("Recorded %s payment %s on folio %s by %s",
                payment_method.value, amount, folio.folio_number, ctx.actor_id)
    return payment, credit_limit_exceeded


# ----------------- Transfer / Split -----------------
def transfer_charge(
    db: Session,
    ctx: TenantContext,
    item_id: UUID,
    target_folio_id: UUID,
    expected_version: Optional[int] = None,
    target_expected_version: Optional[int] = None,
) -> Tuple[Folio, Folio]:
    """expected_version guards the source folio, target_expected_version the target."""
    item = _get_item(db, ctx, item_id)
    source = item.folio
    _check_version(source.version_id, expected_version)

    if source.id == target_folio_id:
        raise ValidationError("Source and target folio must be different")
    if item.voided:
        raise ValidationError("A voided charge cannot be transferred")

    target = get_folio(db, ctx, target_folio_id)
    _check_version(target.version_id, target_expected_version)
    _require_open(source)
    _require_open(target)

    # load both collections before moving the item between them
    source_items = source.items
    target_items = target.items
    source_items.remove(item)
    target_items.append(item)

    recalculate_folio_totals(source)
    recalculate_folio_totals(target)
    _commit(db)

    logger.info("Transferred item %s (%s) from %s to %s by %s",
                item_id, item.total_price, source.folio_number, target.folio_number, ctx.actor_id)
    return source, target


def split_folio(
    db: Session,
    ctx: TenantContext,
    source_folio_id: UUID,
    item_ids: Iterable[UUID],
    expected_version: Optional[int] = None,
) -> Tuple[Folio, Folio]:
    item_ids = list(dict.fromkeys(item_ids or []))
    if not item_ids:
        raise ValidationError("Select at least one charge to split")

    source = get_folio(db, ctx, source_folio_id)
    _check_version(source.version_id, expected_version)
    _require_open(source)

    by_id = {item.id: item for item in source.items}
    selected: List[FolioItem] = []
    for item_id in item_ids:
        item = by_id.get(item_id)
        if item is None:
            raise ValidationError(f"Item {item_id} does not belong to folio {source.folio_number}")
        if item.voided:
            raise ValidationError("Voided charges cannot be split")
        selected.append(item)

    new_folio = Folio(
        tenant_id=ctx.tenant_id,
        property_id=source.property_id,
        guest_id=source.guest_id,
        reservation_id=source.reservation_id,
        folio_number=generate_folio_number(db, ctx),
        status=FolioStatus.open.value,
        paid_amount=ZERO,
    )
    db.add(new_folio)

    for item in selected:
        source.items.remove(item)
        new_folio.items.append(item)

    recalculate_folio_totals(source)
    recalculate_folio_totals(new_folio)
    _commit(db)
    db.refresh(new_folio)

    logger.info("Split %s item(s) from folio %s into %s by %s",
                len(selected), source.folio_number, new_folio.folio_number, ctx.actor_id)
    return source, new_folio


# ----------------- Close / Reopen -----------------
def close_folio(
    db: Session,
    ctx: TenantContext,
    folio_id: UUID,
    expected_version: Optional[int] = None,
) -> Folio:
    folio = get_folio(db, ctx, folio_id)
    _check_version(folio.version_id, expected_version)
    _require_open(folio)

    if to_decimal(folio.balance) != 0:
        logger.warning("Refused to close folio %s with balance %s", folio.folio_number, folio.balance)
        raise BalanceNotZero(
            f"Folio {folio.folio_number} cannot be closed with an outstanding balance of {folio.balance}")

    folio.status = FolioStatus.closed.value
    folio.closed_at = _now()
    folio.closed_by = ctx.actor_id
    _commit(db)
    db.refresh(folio)

    logger.info("Closed folio %s by %s", folio.folio_number, ctx.actor_id)
    return folio


def reopen_folio(
    db: Session,
    ctx: TenantContext,
    folio_id: UUID,
    expected_version: Optional[int] = None,
) -> Folio:
    folio = get_folio(db, ctx, folio_id)
    _check_version(folio.version_id, expected_version)
    if folio.status != FolioStatus.closed.value:
        raise ValidationError(f"Folio {folio.folio_number} is not closed")

    folio.status = FolioStatus.open.value
    folio.closed_at = None
    folio.closed_by = None
    _commit(db)
    db.refresh(folio)

    logger.info("Reopened folio %s by %s", folio.folio_number, ctx.actor_id)
    return folio

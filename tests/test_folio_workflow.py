import uuid
from datetime import date
from decimal import Decimal

import pytest

from folio_service.app.core.exceptions import NotFoundError, ValidationError
from folio_service.app.crud.billing import folio_ledger as ledger
from folio_service.app.crud.billing import folio_workflow as workflow
from folio_service.app.crud.hospitality import rate_periods_crud
from folio_service.app.models.billing.folios import Folio
from folio_service.app.models.financials.tax_configurations import TaxExemption
from folio_service.app.models.hospitality.reservations import Reservation
from folio_service.app.schemas.billing.folios_schemas import AddChargeRequest, BulkPaymentRequest
from folio_service.app.schemas.hospitality.rates_schemas import RatePeriodCreate, SetDailyRateRequest

SATURDAY = date(2024, 6, 1)


@pytest.fixture
def folio(db, ctx, hotel):
    return ledger.open_folio(db, ctx, hotel.guest.id, hotel.reservation.id)


def test_room_charge_is_taxed_with_compound_levy(db, ctx, folio, room_taxes):
    item = workflow.post_charge(db, ctx, folio.id, AddChargeRequest(
        item_type="room_charge", description="Room 204", unit_price=Decimal("1000")))

    db.refresh(folio)
    assert item.tax_amount == Decimal("155.00")
    assert set(item.tax_breakdown) == {"VAT", "CITY"}
    assert item.tax_breakdown["CITY"]["amount"] == 55.0
    assert folio.total_amount == Decimal("1155.00")
    assert folio.balance == Decimal("1155.00")


def test_food_charge_skips_room_only_taxes(db, ctx, folio, room_taxes):
    item = workflow.post_charge(db, ctx, folio.id, AddChargeRequest(
        item_type="food_beverage", description="Dinner", quantity=Decimal("2"),
        unit_price=Decimal("450")))

    assert item.total_price == Decimal("900.00")
    assert item.tax_amount == Decimal("90.00")
    assert set(item.tax_breakdown) == {"VAT"}


def test_corporate_guest_exemption_is_applied(db, ctx, hotel, room_taxes):
    db.add(TaxExemption(
        tenant_id=hotel.tenant_id, tax_configuration_id=room_taxes.vat.id,
        entity_type="corporate_account", entity_id=hotel.account.id, exemption_type="full"))
    db.commit()
    folio = ledger.open_folio(db, ctx, hotel.corporate_guest.id)

    item = workflow.post_charge(db, ctx, folio.id, AddChargeRequest(
        item_type="room_charge", description="Room 310", unit_price=Decimal("1000")))

    assert item.tax_amount == Decimal("50.00")
    assert item.tax_breakdown["VAT"]["amount"] == 0.0


def test_service_charge_uses_property_rate(db, ctx, hotel, folio):
    hotel.property.service_charge_rate = Decimal("10")
    db.commit()

    item = workflow.post_charge(db, ctx, folio.id, AddChargeRequest(
        item_type="spa", description="Massage", unit_price=Decimal("1500")))

    db.refresh(folio)
    assert item.service_charge == Decimal("150.00")
    assert folio.service_charge == Decimal("150.00")
    assert folio.total_amount == Decimal("1650.00")


def test_post_charge_validation(db, ctx, folio):
    with pytest.raises(ValidationError):
        workflow.post_charge(db, ctx, folio.id, AddChargeRequest(
            item_type="minibar", description="Chocolate", unit_price=Decimal("0")))
    with pytest.raises(ValidationError):
        workflow.post_charge(db, ctx, folio.id, AddChargeRequest(
            item_type="minibar", description="", unit_price=Decimal("5")))


def test_check_in_opens_a_folio_once(db, ctx, hotel):
    folio = workflow.check_in(db, ctx, hotel.reservation.id)

    reservation = db.get(Reservation, hotel.reservation.id)
    assert reservation.status == "checked_in"
    assert folio.reservation_id == reservation.id
    assert folio.guest_id == hotel.guest.id

    again = workflow.check_in(db, ctx, hotel.reservation.id)
    assert again.id == folio.id
    assert db.query(Folio).count() == 1


def test_check_in_refuses_cancelled_reservation(db, ctx, hotel):
    hotel.reservation.status = "cancelled"
    db.commit()

    with pytest.raises(ValidationError):
        workflow.check_in(db, ctx, hotel.reservation.id)


def test_failed_check_in_leaves_reservation_untouched(db, ctx, hotel):
    orphan = Reservation(
        tenant_id=hotel.tenant_id, property_id=hotel.property_id, guest_id=uuid.uuid4(),
        room_type_id=hotel.standard.id, confirmation_number="RES-00099",
        check_in_date=SATURDAY, check_out_date=date(2024, 6, 2), status="confirmed")
    db.add(orphan)
    db.commit()

    with pytest.raises(NotFoundError):
        workflow.check_in(db, ctx, orphan.id)

    assert db.get(Reservation, orphan.id).status == "confirmed"
    assert db.query(Folio).count() == 0


def test_room_night_charge_uses_resolved_rate(db, ctx, folio):
    rate_periods_crud.create_rate_period(db, ctx, RatePeriodCreate(
        name="Weekend", rate_type="weekend", amount=Decimal("20"),
        adjustment_type="percentage", days_of_week=[6]))

    item = workflow.post_room_night_charge(db, ctx, folio.id, SATURDAY)

    assert item.item_type == "room_charge"
    assert item.unit_price == Decimal("2400.00")
    assert item.description == "Room charge - Standard (2024-06-01)"
    assert item.service_date == SATURDAY


def test_room_night_charge_uses_manual_rate(db, ctx, hotel, folio):
    rate_periods_crud.set_daily_rate(db, ctx, SetDailyRateRequest(
        room_type_id=hotel.standard.id, date=SATURDAY, rate=Decimal("1800")))

    item = workflow.post_room_night_charge(db, ctx, folio.id, SATURDAY)

    assert item.total_price == Decimal("1800.00")


def test_room_night_charge_needs_a_reservation(db, ctx, hotel):
    walk_in = ledger.open_folio(db, ctx, hotel.guest.id)

    with pytest.raises(ValidationError):
        workflow.post_room_night_charge(db, ctx, walk_in.id, SATURDAY)


def test_night_audit_posts_each_stay_once(db, ctx, hotel):
    folio = workflow.check_in(db, ctx, hotel.reservation.id)

    first = workflow.run_night_audit(db, ctx, SATURDAY)
    second = workflow.run_night_audit(db, ctx, SATURDAY)
    after_checkout = workflow.run_night_audit(db, ctx, date(2024, 6, 3))

    db.refresh(folio)
    assert first.charges_posted == 1
    assert first.revenue == Decimal("2000.00")
    assert second.charges_posted == 0
    assert after_checkout.charges_posted == 0
    assert folio.subtotal == Decimal("2000.00")


def test_bulk_payment_is_spread_in_order(db, ctx, hotel):
    first = ledger.open_folio(db, ctx, hotel.guest.id)
    second = ledger.open_folio(db, ctx, hotel.guest.id)
    settled = ledger.open_folio(db, ctx, hotel.guest.id)
    ledger.add_charge(db, ctx, first.id, "spa", "Massage", 1, Decimal("1000"))
    ledger.add_charge(db, ctx, second.id, "laundry", "Pressing", 1, Decimal("500"))

    result = workflow.take_bulk_payment(db, ctx, BulkPaymentRequest(
        folio_ids=[settled.id, first.id, second.id], amount=Decimal("1200")))

    db.refresh(first)
    db.refresh(second)
    assert [p.folio_id for p in result.payments] == [first.id, second.id]
    assert [p.amount for p in result.payments] == [Decimal("1000.00"), Decimal("200.00")]
    assert result.payments[0].notes == "Bulk payment"
    assert result.applied_amount == Decimal("1200.00")
    assert result.unapplied_amount == Decimal("0.00")
    assert first.balance == Decimal("0.00")
    assert second.balance == Decimal("300.00")


def test_bulk_payment_reports_unapplied_remainder(db, ctx, hotel):
    folio = ledger.open_folio(db, ctx, hotel.guest.id)
    ledger.add_charge(db, ctx, folio.id, "minibar", "Snacks", 1, Decimal("80"))

    result = workflow.take_bulk_payment(db, ctx, BulkPaymentRequest(
        folio_ids=[folio.id], amount=Decimal("100"), notes="Group settlement"))

    assert result.applied_amount == Decimal("80.00")
    assert result.unapplied_amount == Decimal("20.00")
    assert result.payments[0].notes == "Group settlement (Bulk payment)"


def test_bulk_payment_needs_an_outstanding_balance(db, ctx, hotel):
    folio = ledger.open_folio(db, ctx, hotel.guest.id)

    with pytest.raises(ValidationError):
        workflow.take_bulk_payment(db, ctx, BulkPaymentRequest(
            folio_ids=[folio.id], amount=Decimal("50")))

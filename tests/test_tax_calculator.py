import uuid
from datetime import date
from decimal import Decimal

import pytest

from folio_service.app.crud.financials.tax_calculator import (
    calculate_taxes, calculate_taxes_for_property, find_exemption
)
from folio_service.app.models.financials.tax_configurations import TaxConfiguration, TaxExemption


def make_tax(code, rate, is_compound=False, applies_to=None, order=0, is_active=True):
    return TaxConfiguration(
        id=uuid.uuid4(),
        name=code,
        code=code,
        rate=Decimal(str(rate)),
        is_compound=is_compound,
        applies_to=applies_to or ["all"],
        calculation_order=order,
        is_active=is_active,
    )


def make_exemption(tax, entity_type, entity_id, exemption_type="full", rate=None,
                   valid_from=None, valid_until=None):
    return TaxExemption(
        id=uuid.uuid4(),
        tax_configuration_id=tax.id,
        entity_type=entity_type,
        entity_id=entity_id,
        exemption_type=exemption_type,
        exemption_rate=Decimal(str(rate)) if rate is not None else None,
        valid_from=valid_from,
        valid_until=valid_until,
    )


def test_compound_tax_is_charged_on_base_plus_simple_taxes():
    vat = make_tax("VAT", 10)
    city = make_tax("CITY", 5, is_compound=True)

    result = calculate_taxes([vat, city], [], Decimal("1000"), "room")

    assert result.breakdown["VAT"]["amount"] == 100.0
    assert result.breakdown["CITY"]["amount"] == 55.0
    assert result.breakdown["CITY"]["is_compound"] is True
    assert result.total_tax == Decimal("155.00")
    assert result.net_amount == Decimal("1155.00")


def test_compound_taxes_run_after_simple_taxes_regardless_of_order():
    city = make_tax("CITY", 5, is_compound=True, order=0)
    vat = make_tax("VAT", 10, order=9)

    result = calculate_taxes([city, vat], [], Decimal("1000"), "room")

    assert result.breakdown["CITY"]["amount"] == 55.0
    assert result.total_tax == Decimal("155.00")


def test_no_applicable_taxes_returns_base_amount():
    result = calculate_taxes([], [], Decimal("250.50"), "food")

    assert result.breakdown == {}
    assert result.total_tax == Decimal("0.00")
    assert result.net_amount == Decimal("250.50")


def test_taxes_only_apply_to_their_categories_and_when_active():
    room_only = make_tax("ROOM", 10, applies_to=["room"])
    inactive = make_tax("OLD", 7, is_active=False)
    food = make_tax("FOOD", 5, applies_to=["food", "service"])

    result = calculate_taxes([room_only, inactive, food], [], Decimal("200"), "food")

    assert list(result.breakdown) == ["FOOD"]
    assert result.total_tax == Decimal("10.00")


def test_each_tax_is_rounded_half_up():
    vat = make_tax("VAT", 10)

    result = calculate_taxes([vat], [], Decimal("0.05"), "room")

    assert result.total_tax == Decimal("0.01")
    assert result.net_amount == Decimal("0.06")


def test_full_exemption_zeroes_the_tax():
    guest_id = uuid.uuid4()
    vat = make_tax("VAT", 10)
    exemption = make_exemption(vat, "guest", guest_id)

    result = calculate_taxes([vat], [exemption], Decimal("1000"), "room", guest_id=guest_id)

    assert result.breakdown["VAT"]["rate"] == 0.0
    assert result.breakdown["VAT"]["amount"] == 0.0
    assert result.net_amount == Decimal("1000.00")


def test_partial_exemption_reduces_the_rate():
    account_id = uuid.uuid4()
    vat = make_tax("VAT", 10)
    exemption = make_exemption(vat, "corporate_account", account_id, "partial", rate=50)

    result = calculate_taxes([vat], [exemption], Decimal("1000"), "room",
                             corporate_account_id=account_id)

    assert result.breakdown["VAT"]["rate"] == 5.0
    assert result.total_tax == Decimal("50.00")


def test_partial_exemption_without_rate_changes_nothing():
    guest_id = uuid.uuid4()
    vat = make_tax("VAT", 10)
    exemption = make_exemption(vat, "guest", guest_id, "partial")

    result = calculate_taxes([vat], [exemption], Decimal("1000"), "room", guest_id=guest_id)

    assert result.total_tax == Decimal("100.00")


def test_corporate_exemption_wins_over_guest_exemption():
    guest_id = uuid.uuid4()
    account_id = uuid.uuid4()
    vat = make_tax("VAT", 10)
    guest_partial = make_exemption(vat, "guest", guest_id, "partial", rate=50)
    corporate_full = make_exemption(vat, "corporate_account", account_id, "full")

    chosen = find_exemption([guest_partial, corporate_full], vat.id, account_id, guest_id)
    result = calculate_taxes([vat], [guest_partial, corporate_full], Decimal("1000"), "room",
                             corporate_account_id=account_id, guest_id=guest_id)

    assert chosen is corporate_full
    assert result.total_tax == Decimal("0.00")


def test_exemption_outside_its_validity_window_is_ignored():
    guest_id = uuid.uuid4()
    vat = make_tax("VAT", 10)
    exemption = make_exemption(vat, "guest", guest_id,
                               valid_from=date(2024, 1, 1), valid_until=date(2024, 1, 31))

    inside = calculate_taxes([vat], [exemption], Decimal("100"), "room",
                             guest_id=guest_id, on_date=date(2024, 1, 15))
    outside = calculate_taxes([vat], [exemption], Decimal("100"), "room",
                              guest_id=guest_id, on_date=date(2024, 2, 1))

    assert inside.total_tax == Decimal("0.00")
    assert outside.total_tax == Decimal("10.00")


def test_unknown_charge_type_is_rejected():
    with pytest.raises(ValueError):
        calculate_taxes([make_tax("VAT", 10)], [], Decimal("100"), "casino")


def test_property_taxes_are_loaded_from_the_current_scope(db, ctx, hotel, room_taxes):
    other_property = TaxConfiguration(
        tenant_id=hotel.tenant_id, property_id=uuid.uuid4(),
        name="Other", code="OTHER", rate=Decimal("50"), applies_to=["all"])
    db.add(other_property)
    exemption = TaxExemption(
        tenant_id=hotel.tenant_id, tax_configuration_id=room_taxes.vat.id,
        entity_type="corporate_account", entity_id=hotel.account.id, exemption_type="full")
    db.add(exemption)
    db.commit()

    plain = calculate_taxes_for_property(db, ctx, Decimal("1000"), "room")
    corporate = calculate_taxes_for_property(
        db, ctx, Decimal("1000"), "room", corporate_account_id=hotel.account.id)

    assert set(plain.breakdown) == {"VAT", "CITY"}
    assert plain.total_tax == Decimal("155.00")
    assert corporate.total_tax == Decimal("50.00")


def test_property_without_taxes_returns_rounded_amount(db, ctx):
    result = calculate_taxes_for_property(db, ctx, Decimal("99.999"), "food")

    assert result.total_tax == Decimal("0.00")
    assert result.net_amount == Decimal("100.00")

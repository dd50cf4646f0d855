from decimal import Decimal

import pytest

from folio_service.app.crud.billing import folio_ledger as ledger
from folio_service.app.crud.billing.folio_invoice import (
    generate_folio_invoice_pdf, render_folio_invoice_html
)


@pytest.fixture
def folio(db, ctx, hotel):
    folio = ledger.open_folio(db, ctx, hotel.guest.id, hotel.reservation.id)
    ledger.add_charge(db, ctx, folio.id, "room_charge", "Deluxe room <sea view>", 1,
                      Decimal("2000"), tax_amount=Decimal("200"))
    wrong = ledger.add_charge(db, ctx, folio.id, "minibar", "Posted by mistake", 1, Decimal("35"))
    ledger.void_item(db, ctx, wrong.id, "Wrong room")
    db.refresh(folio)
    return folio


def test_html_invoice_shows_balance_due(folio):
    html = render_folio_invoice_html(folio)

    assert "<title>Folio Invoice - FOL-HVH-00001</title>" in html
    assert "FOLIO INVOICE" in html
    assert "Harbour View Hotel" in html
    assert "Nadia Rahman" in html
    assert "RES-00001" in html
    assert "Deluxe room &lt;sea view&gt;" in html
    assert "Posted by mistake" not in html
    assert "BDT 2,200.00" in html
    assert "Balance Due: BDT 2,200.00" in html
    assert "PAID IN FULL" not in html


def test_html_invoice_marks_settled_folio(db, ctx, folio):
    ledger.record_payment(db, ctx, folio.id, Decimal("2200"), "credit_card", reference_number="AUTH-991")
    db.refresh(folio)

    html = render_folio_invoice_html(folio)

    assert "PAID IN FULL" in html
    assert "Credit Card" in html
    assert "AUTH-991" in html
    assert "Balance Due" not in html


def test_pdf_invoice_is_a_pdf_document(folio):
    pdf = generate_folio_invoice_pdf(folio)

    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 1000

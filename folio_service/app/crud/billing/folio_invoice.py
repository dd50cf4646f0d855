from html import escape
from io import BytesIO
from reportlab.lib.pagesizes import A4
from reportlab.platypus import (
    SimpleDocTemplate, Paragraph, Table, TableStyle, Spacer
)
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib import colors

from shared.utils.money import to_decimal
from ...models.billing.folios import Folio


def _label(value: str) -> str:
    return value.replace("_", " ").title()


def _amount(value, currency: str) -> str:
    return f"{currency} {to_decimal(value):,.2f}"


def _paid_at(payment) -> str:
    return payment.created_at.strftime("%Y-%m-%d %H:%M") if payment.created_at else ""


def _invoice_parts(folio: Folio) -> dict:
    hotel_property = folio.hotel_property
    guest = folio.guest
    reservation = folio.reservation
    currency = (hotel_property.currency if hotel_property else None) or ""

    return {
        "hotel_name": hotel_property.name if hotel_property else "",
        "hotel_address": hotel_property.address if hotel_property else None,
        "hotel_phone": hotel_property.phone if hotel_property else None,
        "hotel_email": hotel_property.email if hotel_property else None,
        "logo_url": hotel_property.logo_url if hotel_property else None,
        "currency": currency,
        "guest": guest,
        "reservation": reservation,
        "items": [i for i in folio.items if not i.voided],
        "payments": [p for p in folio.payments if not p.voided],
        "paid_in_full": to_decimal(folio.balance) <= 0,
    }


# ----------------- HTML print view -----------------
def render_folio_invoice_html(folio: Folio) -> str:
    parts = _invoice_parts(folio)
    currency = parts["currency"]
    guest = parts["guest"]
    reservation = parts["reservation"]

    logo = (f'<img src="{escape(parts["logo_url"])}" alt="logo" style="max-height:60px;"/>'
            if parts["logo_url"] else "")
    contact = "<br/>".join(
        escape(v) for v in (parts["hotel_address"], parts["hotel_phone"], parts["hotel_email"]) if v)

    bill_to = ""
    if guest:
        guest_contact = "".join(f"<p>{escape(v)}</p>" for v in (guest.email, guest.phone) if v)
        bill_to = f"""
        <div class="block">
            <h3>Bill To</h3>
            <p><strong>{escape(guest.full_name)}</strong></p>
            {guest_contact}
        </div>
        """

    reservation_block = ""
    if reservation:
        reservation_block = f"""
        <div class="block">
            <h3>Reservation Details</h3>
            <p>Confirmation: <strong>{escape(reservation.confirmation_number)}</strong></p>
            <p>Check-in: {reservation.check_in_date}</p>
            <p>Check-out: {reservation.check_out_date}</p>
        </div>
        """

    charge_rows = "".join(
        f"""
            <tr>
                <td>{escape(item.description)}</td>
                <td>{_label(item.item_type)}</td>
                <td>{item.service_date}</td>
                <td class="amount">{_amount(item.total_price, currency)}</td>
            </tr>"""
        for item in parts["items"]
    )

    payments_table = ""
    if parts["payments"]:
        payment_rows = "".join(
            f"""
            <tr>
                <td>{_label(p.payment_method)}</td>
                <td>{_paid_at(p)}</td>
                <td>{escape(p.reference_number or '-')}</td>
                <td class="amount">{_amount(p.amount, currency)}</td>
            </tr>"""
            for p in parts["payments"]
        )
        payments_table = f"""
        <h3>Payments</h3>
        <table>
            <tr><th>Method</th><th>Date &amp; Time</th><th>Reference</th><th class="amount">Amount</th></tr>
            {payment_rows}
        </table>
        """

    if parts["paid_in_full"]:
        status = '<p class="status paid">PAID IN FULL</p>'
    else:
        status = f'<p class="status due">Balance Due: {_amount(folio.balance, currency)}</p>'

    return f"""
    <html>
    <head>
        <title>Folio Invoice - {escape(folio.folio_number)}</title>
        <style>
            body {{ font-family: Arial; padding: 20px; color: #2b2f36; }}
            table {{ width: 100%; border-collapse: collapse; margin-bottom: 20px; }}
            th, td {{ border-bottom: 1px solid #ddd; padding: 6px; text-align: left; }}
            .amount {{ text-align: right; }}
            .block {{ display: inline-block; vertical-align: top; width: 48%; }}
            .status {{ font-size: 18px; font-weight: bold; }}
            .paid {{ color: #15803d; }}
            .due {{ color: #b91c1c; }}
        </style>
    </head>
    <body>
        <div class="header">
            {logo}
            <h2>{escape(parts['hotel_name'])}</h2>
            <p>{contact}</p>
            <h1>FOLIO INVOICE</h1>
            <p>Folio: <strong>{escape(folio.folio_number)}</strong></p>
        </div>

        {bill_to}
        {reservation_block}

        <h3>Charges</h3>
        <table>
            <tr><th>Description</th><th>Type</th><th>Date</th><th class="amount">Amount</th></tr>
            {charge_rows}
        </table>

        {payments_table}

        <table class="summary">
            <tr><td>Subtotal</td><td class="amount">{_amount(folio.subtotal, currency)}</td></tr>
            <tr><td>Tax</td><td class="amount">{_amount(folio.tax_amount, currency)}</td></tr>
            <tr><td>Service Charge</td><td class="amount">{_amount(folio.service_charge, currency)}</td></tr>
            <tr><td><strong>Total</strong></td><td class="amount"><strong>{_amount(folio.total_amount, currency)}</strong></td></tr>
            <tr><td>Paid</td><td class="amount">{_amount(folio.paid_amount, currency)}</td></tr>
        </table>

        {status}
    </body>
    </html>
    """


# ----------------- PDF -----------------
def generate_folio_invoice_pdf(folio: Folio) -> bytes:
    parts = _invoice_parts(folio)
    currency = parts["currency"]
    buffer = BytesIO()

    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=40,
        leftMargin=40,
        topMargin=40,
        bottomMargin=40,
        title=f"Folio Invoice - {folio.folio_number}",
    )

    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(name="Right", alignment=TA_RIGHT))
    elements = []

    # ==================================================
    # HEADER
    # ==================================================
    header = Table(
        [[
            Paragraph(f"<b>{escape(parts['hotel_name'])}</b>", styles["Normal"]),
            Paragraph(
                f"<b>FOLIO INVOICE</b><br/>"
                f"Folio No: {escape(folio.folio_number)}<br/>"
                f"Status: {folio.status.upper()}",
                styles["Right"],
            )
        ]],
        colWidths=[300, 200]
    )
    elements.append(header)
    elements.append(Spacer(1, 20))

    # ==================================================
    # BILL TO / RESERVATION
    # ==================================================
    guest = parts["guest"]
    if guest:
        elements.append(Paragraph("<b>Bill To</b>", styles["Heading2"]))
        elements.append(Paragraph(escape(guest.full_name), styles["Normal"]))
        elements.append(Spacer(1, 10))

    reservation = parts["reservation"]
    if reservation:
        elements.append(Paragraph("<b>Reservation Details</b>", styles["Heading2"]))
        elements.append(Paragraph(
            f"Confirmation: {escape(reservation.confirmation_number)}<br/>"
            f"Check-in: {reservation.check_in_date} | Check-out: {reservation.check_out_date}",
            styles["Normal"]))
        elements.append(Spacer(1, 10))

    grid_style = TableStyle([
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
        ("ALIGN", (-1, 1), (-1, -1), "RIGHT"),
        ("TOPPADDING", (0, 0), (-1, -1), 6),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
    ])

    # ==================================================
    # CHARGES
    # ==================================================
    elements.append(Paragraph("<b>Charges</b>", styles["Heading2"]))
    charges = [["Description", "Type", "Date", "Amount"]]
    for item in parts["items"]:
        charges.append([
            item.description,
            _label(item.item_type),
            str(item.service_date),
            _amount(item.total_price, currency),
        ])
    charges_table = Table(charges, colWidths=[200, 100, 80, 120])
    charges_table.setStyle(grid_style)
    elements.append(charges_table)
    elements.append(Spacer(1, 15))

    # ==================================================
    # PAYMENTS
    # ==================================================
    if parts["payments"]:
        elements.append(Paragraph("<b>Payments</b>", styles["Heading2"]))
        payments = [["Method", "Date & Time", "Reference", "Amount"]]
        for p in parts["payments"]:
            payments.append([
                _label(p.payment_method),
                _paid_at(p),
                p.reference_number or "-",
                _amount(p.amount, currency),
            ])
        payments_table = Table(payments, colWidths=[120, 130, 130, 120])
        payments_table.setStyle(grid_style)
        elements.append(payments_table)
        elements.append(Spacer(1, 15))

    # ==================================================
    # SUMMARY
    # ==================================================
    summary = Table(
        [
            ["Subtotal", _amount(folio.subtotal, currency)],
            ["Tax", _amount(folio.tax_amount, currency)],
            ["Service Charge", _amount(folio.service_charge, currency)],
            ["Total", _amount(folio.total_amount, currency)],
            ["Paid", _amount(folio.paid_amount, currency)],
            ["PAID IN FULL" if parts["paid_in_full"] else "Balance Due",
             "" if parts["paid_in_full"] else _amount(folio.balance, currency)],
        ],
        colWidths=[380, 120]
    )
    summary.setStyle(TableStyle([
        ("ALIGN", (1, 0), (1, -1), "RIGHT"),
        ("LINEABOVE", (0, 3), (-1, 3), 1, colors.black),
        ("FONTNAME", (0, 3), (-1, 3), "Helvetica-Bold"),
        ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
    ]))
    elements.append(summary)

    doc.build(elements)
    return buffer.getvalue()

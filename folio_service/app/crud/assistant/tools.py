import logging
from decimal import Decimal
from typing import Any, Callable, Dict
from uuid import UUID

from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from shared.core.schemas import TenantContext
from ...core.exceptions import BillingError
from ...enum.billing_enum import FolioItemType, FolioStatus, PaymentMethod
from ...enum.financials_enum import TaxAppliesTo
from ...schemas.billing.folios_schemas import (
    AddChargeRequest, FolioItemOut, FolioOut, FolioRequest, FolioSummaryOut,
    PaymentOut, RecordPaymentRequest
)
from ...schemas.financials.tax_schemas import TaxCalculationResponse
from ..billing import folio_workflow as workflow
from ..billing.folios_crud import get_folio, get_folios
from ..financials.tax_calculator import calculate_taxes_for_property

logger = logging.getLogger(__name__)

CHARGE_TYPES = [t.value for t in FolioItemType if t not in (
    FolioItemType.tax, FolioItemType.service_charge, FolioItemType.discount, FolioItemType.deposit)]


def _function(name: str, description: str, properties: dict, required: list) -> dict:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": required,
            },
        },
    }


TOOL_DEFINITIONS = [
    _function("get_folios", "Get folios list for guests", {
        "status": {"type": "string", "enum": [s.value for s in FolioStatus], "description": "Filter by status"},
        "guest_id": {"type": "string", "description": "Filter by guest ID"},
        "search": {"type": "string", "description": "Folio number or guest name"},
    }, []),
    _function("get_folio_details", "Get detailed folio information with all charges and payments", {
        "folio_id": {"type": "string", "description": "Folio UUID"},
    }, ["folio_id"]),
    _function("add_folio_charge", "Add a charge to a guest folio", {
        "folio_id": {"type": "string", "description": "Folio UUID"},
        "item_type": {"type": "string", "enum": CHARGE_TYPES, "description": "Type of charge"},
        "description": {"type": "string", "description": "Charge description"},
        "amount": {"type": "number", "description": "Unit amount"},
        "quantity": {"type": "number", "description": "Quantity (default 1)"},
    }, ["folio_id", "item_type", "description", "amount"]),
    _function("void_folio_charge", "Void a charge from a folio", {
        "folio_item_id": {"type": "string", "description": "Folio item UUID to void"},
        "reason": {"type": "string", "description": "Reason for voiding"},
    }, ["folio_item_id", "reason"]),
    _function("record_payment", "Record a payment on a folio", {
        "folio_id": {"type": "string", "description": "Folio UUID"},
        "amount": {"type": "number", "description": "Payment amount"},
        "payment_method": {"type": "string", "enum": [m.value for m in PaymentMethod], "description": "Payment method"},
        "reference_number": {"type": "string", "description": "Reference/transaction number"},
        "notes": {"type": "string", "description": "Payment notes"},
    }, ["folio_id", "amount", "payment_method"]),
    _function("void_payment", "Void a payment", {
        "payment_id": {"type": "string", "description": "Payment UUID to void"},
        "reason": {"type": "string", "description": "Reason for voiding"},
    }, ["payment_id", "reason"]),
    _function("close_folio", "Close a folio (zero balance required)", {
        "folio_id": {"type": "string", "description": "Folio UUID to close"},
    }, ["folio_id"]),
    _function("reopen_folio", "Reopen a closed folio", {
        "folio_id": {"type": "string", "description": "Folio UUID to reopen"},
    }, ["folio_id"]),
    _function("transfer_charge", "Move a charge to another open folio", {
        "folio_item_id": {"type": "string", "description": "Folio item UUID to move"},
        "target_folio_id": {"type": "string", "description": "Folio UUID receiving the charge"},
    }, ["folio_item_id", "target_folio_id"]),
    _function("calculate_taxes", "Preview the taxes for an amount", {
        "amount": {"type": "number", "description": "Amount before tax"},
        "charge_type": {"type": "string", "enum": [a.value for a in TaxAppliesTo], "description": "Tax category"},
        "guest_id": {"type": "string", "description": "Guest UUID for exemptions"},
        "corporate_account_id": {"type": "string", "description": "Corporate account UUID for exemptions"},
    }, ["amount", "charge_type"]),
]


def _uuid(args: dict, key: str) -> UUID:
    return UUID(str(args[key]))


def _optional_uuid(args: dict, key: str):
    return UUID(str(args[key])) if args.get(key) else None


# ----------------- Tool handlers -----------------
def _get_folios(db: Session, ctx: TenantContext, args: dict):
    params = FolioRequest(
        status=args.get("status") or None,
        guest_id=_optional_uuid(args, "guest_id"),
        search=args.get("search") or None,
        limit=50,
    )
    return get_folios(db, ctx, params).folios


def _get_folio_details(db: Session, ctx: TenantContext, args: dict):
    return FolioOut.model_validate(get_folio(db, ctx, _uuid(args, "folio_id")))


def _add_folio_charge(db: Session, ctx: TenantContext, args: dict):
    quantity = args.get("quantity")
    payload = AddChargeRequest(
        item_type=args["item_type"],
        description=args["description"],
        quantity=1 if quantity is None else quantity,
        unit_price=args["amount"],
    )
    item = workflow.post_charge(db, ctx, _uuid(args, "folio_id"), payload)
    return FolioItemOut.model_validate(item)


def _void_folio_charge(db: Session, ctx: TenantContext, args: dict):
    item = workflow.void_charge(db, ctx, _uuid(args, "folio_item_id"), args.get("reason"))
    return FolioItemOut.model_validate(item)


def _record_payment(db: Session, ctx: TenantContext, args: dict):
    payload = RecordPaymentRequest(
        amount=args["amount"],
        payment_method=args.get("payment_method") or PaymentMethod.cash,
        reference_number=args.get("reference_number"),
        notes=args.get("notes"),
    )
    payment, _ = workflow.take_payment(db, ctx, _uuid(args, "folio_id"), payload)
    return PaymentOut.model_validate(payment)


def _void_payment(db: Session, ctx: TenantContext, args: dict):
    payment = workflow.void_payment(db, ctx, _uuid(args, "payment_id"), args.get("reason"))
    return PaymentOut.model_validate(payment)


def _close_folio(db: Session, ctx: TenantContext, args: dict):
    return FolioSummaryOut.model_validate(workflow.close_folio(db, ctx, _uuid(args, "folio_id")))


def _reopen_folio(db: Session, ctx: TenantContext, args: dict):
    return FolioSummaryOut.model_validate(workflow.reopen_folio(db, ctx, _uuid(args, "folio_id")))


def _transfer_charge(db: Session, ctx: TenantContext, args: dict):
    source, target = workflow.transfer_charge(
        db, ctx, _uuid(args, "folio_item_id"), _uuid(args, "target_folio_id"))
    return {
        "source": FolioSummaryOut.model_validate(source),
        "target": FolioSummaryOut.model_validate(target),
    }


def _calculate_taxes(db: Session, ctx: TenantContext, args: dict):
    result = calculate_taxes_for_property(
        db, ctx,
        amount=Decimal(str(args["amount"])),
        charge_type=TaxAppliesTo(args["charge_type"]),
        corporate_account_id=_optional_uuid(args, "corporate_account_id"),
        guest_id=_optional_uuid(args, "guest_id"),
    )
    return TaxCalculationResponse(
        breakdown=result.breakdown, total_tax=result.total_tax, net_amount=result.net_amount)


TOOL_HANDLERS: Dict[str, Callable[[Session, TenantContext, dict], Any]] = {
    "get_folios": _get_folios,
    "get_folio_details": _get_folio_details,
    "add_folio_charge": _add_folio_charge,
    "void_folio_charge": _void_folio_charge,
    "record_payment": _record_payment,
    "void_payment": _void_payment,
    "close_folio": _close_folio,
    "reopen_folio": _reopen_folio,
    "transfer_charge": _transfer_charge,
    "calculate_taxes": _calculate_taxes,
}


def format_error_message(error: str) -> str:
    lowered = error.lower()
    if "duplicate key" in lowered or "unique constraint" in lowered:
        return "This item already exists."
    if "not found" in lowered:
        return "The requested item was not found."
    return error if len(error) <= 100 else error[:100] + "..."


def execute_tool(db: Session, ctx: TenantContext, name: str, args: dict) -> dict:
    """Runs one tool call. Failures come back as {success: False, error} results."""
    handler = TOOL_HANDLERS.get(name)
    if handler is None:
        return {"success": False, "error": f"Unknown tool: {name}"}

    try:
        data = handler(db, ctx, args or {})
    except BillingError as e:
        logger.info("Tool %s rejected: %s", name, e.message)
        return {"success": False, "error": format_error_message(e.message)}
    except KeyError as e:
        return {"success": False, "error": f"Missing required argument: {e.args[0]}"}
    except (ValueError, TypeError) as e:
        logger.info("Tool %s called with invalid arguments: %s", name, e)
        return {"success": False, "error": "Invalid arguments for this action."}

    return {"success": True, "data": jsonable_encoder(data)}


# ----------------- Summaries -----------------
def _money(value) -> str:
    return f"{Decimal(str(value or 0)):,.2f}"


def generate_tool_summary(name: str, args: dict, result: dict) -> str:
    if not result.get("success"):
        return f"❌ {name.replace('_', ' ')} failed: {result.get('error')}"

    data = result.get("data")
    if name == "get_folios":
        if not data:
            return "No folios found."
        lines = [f"- {f['folio_number']}: {f.get('guest_name') or 'Unknown guest'} - {_money(f['balance'])} balance"
                 for f in data[:5]]
        return f"💳 **{len(data)} folio(s):**\n" + "\n".join(lines)
    if name == "get_folio_details":
        return (f"📄 **Folio {data['folio_number']}**\n"
                f"- Guest: {data.get('guest_name') or 'Unknown guest'}\n"
                f"- Total: {_money(data['total_amount'])}\n"
                f"- Paid: {_money(data['paid_amount'])}\n"
                f"- Balance: {_money(data['balance'])}\n"
                f"- Items: {len(data.get('items') or [])}")
    if name == "add_folio_charge":
        return f"✅ Added charge to folio\n- {data['description']}: {_money(data['total_price'])}"
    if name == "void_folio_charge":
        return f"✅ Voided folio charge: {data['description']}"
    if name == "record_payment":
        return f"✅ Recorded {data['payment_method'].replace('_', ' ')} payment of {_money(data['amount'])}"
    if name == "void_payment":
        return f"✅ Voided payment of {_money(data['amount'])}"
    if name == "close_folio":
        return f"✅ Closed folio **{data['folio_number']}**"
    if name == "reopen_folio":
        return f"✅ Reopened folio **{data['folio_number']}**"
    if name == "transfer_charge":
        return (f"✅ Moved charge from {data['source']['folio_number']} "
                f"to {data['target']['folio_number']}")
    if name == "calculate_taxes":
        return f"🧾 Tax {_money(data['total_tax'])}, total {_money(data['net_amount'])}"
    return "✅ Action completed successfully."

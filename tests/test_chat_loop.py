import json
from decimal import Decimal

import pytest

from folio_service.app.core.exceptions import AssistantUpstreamError
from folio_service.app.crud.assistant.chat_loop import CONFIRMATION_MESSAGE, run_chat
from folio_service.app.crud.assistant.tools import execute_tool, generate_tool_summary
from folio_service.app.crud.billing import folio_ledger as ledger
from folio_service.app.router.assistant.assistant_router import get_chat_client


class ScriptedClient:
    """Stands in for the chat-completion gateway; replays canned assistant messages."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.requests = []

    def complete(self, messages, tools=None, **kwargs):
        self.requests.append({"messages": messages, "tools": tools})
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


def tool_call(name, args, call_id="call_1"):
    return {
        "role": "assistant",
        "content": None,
        "tool_calls": [{
            "id": call_id,
            "type": "function",
            "function": {"name": name, "arguments": json.dumps(args)},
        }],
    }


def text(content):
    return {"role": "assistant", "content": content}


@pytest.fixture
def folio(db, ctx, hotel):
    return ledger.open_folio(db, ctx, hotel.guest.id, hotel.reservation.id)


def test_tool_call_is_executed_and_summarised(db, ctx, folio):
    client = ScriptedClient(
        tool_call("add_folio_charge", {
            "folio_id": str(folio.id), "item_type": "minibar",
            "description": "Sparkling water", "amount": 4.5, "quantity": 2,
        }),
        text("Charge posted."),
        text("I added 2 sparkling waters (9.00) to the folio."),
    )

    result = run_chat(db, ctx, [{"role": "user", "content": "Add two waters"}], client)

    db.refresh(folio)
    assert folio.subtotal == Decimal("9.00")
    assert result.message == "I added 2 sparkling waters (9.00) to the folio."
    assert result.tool_calls[0]["name"] == "add_folio_charge"
    assert result.tool_results[0]["success"] is True
    assert "Sparkling water" in result.tool_results[0]["_summary"]
    assert result.warning is None

    second_round = client.requests[1]["messages"]
    assert second_round[-1]["role"] == "tool"
    assert second_round[-1]["tool_call_id"] == "call_1"
    assert client.requests[2]["tools"] is None


def test_system_prompt_lists_open_folios(db, ctx, folio):
    client = ScriptedClient(text("You have one open folio."))

    run_chat(db, ctx, [{"role": "user", "content": "What is open?"}], client)

    system = client.requests[0]["messages"][0]
    assert system["role"] == "system"
    assert folio.folio_number in system["content"]


def test_loop_stops_after_max_iterations(db, ctx, folio):
    client = ScriptedClient(tool_call("get_folios", {}))

    result = run_chat(db, ctx, [{"role": "user", "content": "Loop"}], client, max_iterations=3)

    assert result.iterations == 3
    assert len(result.tool_calls) == 3
    # three tool rounds plus the closing summary request
    assert len(client.requests) == 4


def test_summary_failure_falls_back_to_tool_summaries(db, ctx, folio):
    client = ScriptedClient(
        tool_call("close_folio", {"folio_id": str(folio.id)}),
        text("Closed."),
        AssistantUpstreamError("gateway down"),
    )

    result = run_chat(db, ctx, [{"role": "user", "content": "Close it"}], client)

    assert result.message == f"✅ Closed folio **{folio.folio_number}**"


def test_claimed_action_without_tool_call_needs_confirmation(db, ctx, folio):
    client = ScriptedClient(text("I have added the charge to the folio."))

    result = run_chat(db, ctx, [{"role": "user", "content": "Add minibar"}], client)

    assert result.message == CONFIRMATION_MESSAGE
    assert result.warning == "Action requires confirmation"
    db.refresh(folio)
    assert folio.subtotal == Decimal("0.00")


def test_plain_answer_is_passed_through(db, ctx):
    client = ScriptedClient(text("Folios track a guest's charges and payments."))

    result = run_chat(db, ctx, [{"role": "user", "content": "What is a folio?"}], client)

    assert result.message == "Folios track a guest's charges and payments."
    assert result.tool_calls == []


def test_invalid_tool_arguments_are_reported(db, ctx, folio):
    broken = tool_call("close_folio", {})
    broken["tool_calls"][0]["function"]["arguments"] = "{not json"
    client = ScriptedClient(broken, text("Sorry."), text("The close request was malformed."))

    result = run_chat(db, ctx, [{"role": "user", "content": "Close"}], client)

    assert result.tool_results[0]["success"] is False
    assert result.tool_results[0]["error"] == "Invalid tool arguments"


def test_execute_tool_reports_business_errors(db, ctx, folio):
    ledger.add_charge(db, ctx, folio.id, "spa", "Massage", 1, Decimal("100"))

    closed = execute_tool(db, ctx, "close_folio", {"folio_id": str(folio.id)})
    missing = execute_tool(db, ctx, "void_folio_charge", {"reason": "Oops"})
    unknown = execute_tool(db, ctx, "delete_everything", {})
    bad_id = execute_tool(db, ctx, "get_folio_details", {"folio_id": "not-a-uuid"})

    assert closed["success"] is False
    assert "outstanding balance" in closed["error"]
    assert missing == {"success": False, "error": "Missing required argument: folio_item_id"}
    assert unknown == {"success": False, "error": "Unknown tool: delete_everything"}
    assert bad_id["success"] is False
    assert generate_tool_summary("close_folio", {}, closed).startswith("❌ close folio failed:")


def test_execute_tool_payment_and_tax_preview(db, ctx, folio, room_taxes):
    ledger.add_charge(db, ctx, folio.id, "room_charge", "Room", 1, Decimal("1000"))

    paid = execute_tool(db, ctx, "record_payment", {
        "folio_id": str(folio.id), "amount": 400, "payment_method": "cash"})
    taxes = execute_tool(db, ctx, "calculate_taxes", {"amount": 1000, "charge_type": "room"})

    assert paid["success"] is True
    assert Decimal(paid["data"]["amount"]) == Decimal("400.00")
    assert generate_tool_summary("record_payment", {}, paid) == "✅ Recorded cash payment of 400.00"
    assert Decimal(taxes["data"]["total_tax"]) == Decimal("155.00")


def test_chat_endpoint_uses_injected_client(client, hotel):
    from folio_service.app.main import app

    scripted = ScriptedClient(text("Hello from the front desk assistant."))
    app.dependency_overrides[get_chat_client] = lambda: scripted

    response = client.post("/api/assistant/chat", json={
        "messages": [{"role": "user", "content": "Hi"}],
    })

    body = response.json()
    assert response.status_code == 200
    assert body["data"]["message"] == "Hello from the front desk assistant."
    assert body["data"]["warning"] is None


def test_chat_endpoint_maps_rate_limit(client, hotel):
    from folio_service.app.core.exceptions import RateLimitedError
    from folio_service.app.main import app

    app.dependency_overrides[get_chat_client] = lambda: ScriptedClient(RateLimitedError("slow down"))

    response = client.post("/api/assistant/chat", json={
        "messages": [{"role": "user", "content": "Hi"}],
    })

    assert response.status_code == 429
    assert response.json()["message"] == "slow down"


def test_add_charge_tool_rejects_zero_quantity(db, ctx, folio):
    args = {"folio_id": str(folio.id), "item_type": "minibar", "description": "Cola", "amount": 3}

    rejected = execute_tool(db, ctx, "add_folio_charge", {**args, "quantity": 0})
    defaulted = execute_tool(db, ctx, "add_folio_charge", args)

    assert rejected["success"] is False
    assert defaulted["success"] is True
    assert Decimal(defaulted["data"]["quantity"]) == Decimal("1")
    db.refresh(folio)
    assert folio.subtotal == Decimal("3.00")

"""
Admin chat assistant loop.

    await model response -> tool calls? execute each, append results, loop
                         -> no tool calls? finish

The loop never asks the model more than `max_iterations` times for tool calls. When
any tool ran, one more call asks the model to summarise what was done; if that call
fails the tool summaries themselves are returned.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.orm import Session

from shared.core.config import settings
from shared.core.schemas import TenantContext
from ...core.exceptions import AssistantError
from ...enum.billing_enum import FolioStatus
from ...models.billing.folios import Folio
from .tools import TOOL_DEFINITIONS, execute_tool, generate_tool_summary

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are the front office assistant of a hotel property management system.
You help staff with guest folios: listing folios, posting and voiding charges, recording and
voiding payments, transferring charges, closing and reopening folios and previewing taxes.

CRITICAL ANTI-HALLUCINATION RULES - YOU MUST FOLLOW THESE EXACTLY:
- Never say an action was done unless you called the matching tool and it returned success.
- "Add charge" -> MUST call add_folio_charge(folio_id, item_type, description, amount)
- "Void charge" -> MUST call void_folio_charge(folio_item_id, reason)
- "Record payment" -> MUST call record_payment(folio_id, amount, payment_method)
- If a tool returns success: false, tell the user what went wrong.
- Ask for missing details instead of guessing ids or amounts.
"""

ACTION_CLAIM_PATTERNS = (
    "i have created", "i've created", "created successfully",
    "i have added", "i've added", "added successfully",
    "i have made", "i've made", "made successfully",
    "i have deleted", "i've deleted", "deleted successfully",
    "i have updated", "i've updated", "updated successfully",
    "i have voided", "i've voided", "voided successfully",
    "i have recorded", "i've recorded", "recorded successfully",
    "i have closed", "i've closed", "closed successfully",
    "payment has been recorded", "charge has been added", "successfully created",
)

CONFIRMATION_MESSAGE = (
    "I understand you want me to do something. Before I do it, please confirm:\n\n"
    "1. **What should I do?** (add a charge, record a payment, void, close...)\n"
    "2. **The details** (folio number, amount, payment method, reason)\n\n"
    "Once confirmed I will carry it out."
)
IDLE_MESSAGE = "I'm ready to help. What would you like to do?"


@dataclass
class ChatResult:
    message: str
    tool_calls: List[dict] = field(default_factory=list)
    tool_results: List[dict] = field(default_factory=list)
    warning: Optional[str] = None
    iterations: int = 0


def claims_action(content: Optional[str]) -> bool:
    text = (content or "").lower()
    return any(pattern in text for pattern in ACTION_CLAIM_PATTERNS)


def build_hotel_context(db: Session, ctx: TenantContext, limit: int = 20) -> str:
    folios = db.query(Folio).filter(
        Folio.tenant_id == ctx.tenant_id,
        Folio.property_id == ctx.property_id,
        Folio.status == FolioStatus.open.value
    ).order_by(Folio.created_at.desc()).limit(limit).all()

    lines = [f"\nOPEN FOLIOS ({len(folios)}):"]
    if not folios:
        lines.append("  No open folios")
    for f in folios:
        lines.append(f"  - {f.folio_number}: {f.guest_name or 'Unknown guest'}, Balance: {f.balance}, ID: {f.id}")
    return "\n".join(lines)


def _parse_arguments(raw) -> Optional[dict]:
    if isinstance(raw, dict):
        return raw
    try:
        parsed = json.loads(raw or "{}")
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def run_chat(
    db: Session,
    ctx: TenantContext,
    messages: List[dict],
    client,
    max_iterations: Optional[int] = None,
) -> ChatResult:
    max_iterations = max_iterations or settings.CHAT_MAX_TOOL_ITERATIONS
    system_prompt = SYSTEM_PROMPT + build_hotel_context(db, ctx)

    current_messages = list(messages)
    all_tool_calls: List[dict] = []
    all_tool_results: List[dict] = []
    all_summaries: List[str] = []
    final_message: Optional[dict] = None
    iterations = 0

    while iterations < max_iterations:
        iterations += 1
        logger.info("Tool iteration %s/%s", iterations, max_iterations)

        assistant_message = client.complete(
            [{"role": "system", "content": system_prompt}] + current_messages,
            tools=TOOL_DEFINITIONS,
        )
        tool_calls = assistant_message.get("tool_calls") or []
        if not tool_calls:
            final_message = assistant_message
            break

        tool_messages = []
        for tool_call in tool_calls:
            function = tool_call.get("function") or {}
            name = function.get("name", "")
            args = _parse_arguments(function.get("arguments"))

            if args is None:
                result = {"success": False, "error": "Invalid tool arguments"}
                args = {}
            else:
                logger.info("Executing tool %s with %s", name, args)
                result = execute_tool(db, ctx, name, args)

            summary = generate_tool_summary(name, args, result)
            all_summaries.append(summary)
            all_tool_calls.append({"name": name, "args": args})
            all_tool_results.append({**result, "_summary": summary})
            tool_messages.append({
                "role": "tool",
                "tool_call_id": tool_call.get("id"),
                "content": json.dumps({**result, "_summary": summary}),
            })

        current_messages.append(assistant_message)
        current_messages.extend(tool_messages)
    else:
        logger.warning("Stopped after %s tool iterations", max_iterations)

    if all_tool_calls:
        joined = "\n\n".join(all_summaries)
        summary_prompt = (
            system_prompt
            + "\n\nIMPORTANT: The following tool(s) were executed across multiple steps. "
              "Summarize ALL actions taken in a friendly, comprehensive response:\n\n"
            + joined
        )
        try:
            final = client.complete([{"role": "system", "content": summary_prompt}] + current_messages)
            content = final.get("content") or joined
        except AssistantError as e:
            logger.warning("Final summary call failed, returning tool summaries: %s", e.message)
            content = joined

        return ChatResult(
            message=content,
            tool_calls=all_tool_calls,
            tool_results=all_tool_results,
            iterations=iterations,
        )

    content = (final_message or {}).get("content")
    if claims_action(content):
        logger.warning("Assistant claimed an action without any tool call: %s", content)
        return ChatResult(
            message=CONFIRMATION_MESSAGE,
            warning="Action requires confirmation",
            iterations=iterations,
        )

    return ChatResult(message=content or IDLE_MESSAGE, iterations=iterations)

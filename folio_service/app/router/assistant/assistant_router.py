from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.core.auth import validate_current_token
from shared.core.database import get_folio_db as get_db
from shared.core.schemas import TenantContext
from ...crud.assistant.ai_client import ChatCompletionClient
from ...crud.assistant.chat_loop import run_chat
from ...schemas.assistant.chat_schemas import ChatRequest, ChatResponse

router = APIRouter(
    prefix="/api/assistant",
    tags=["assistant"],
    dependencies=[Depends(validate_current_token)]
)


def get_chat_client() -> ChatCompletionClient:
    return ChatCompletionClient()


@router.post("/chat", response_model=ChatResponse)
def chat(
    payload: ChatRequest,
    db: Session = Depends(get_db),
    client: ChatCompletionClient = Depends(get_chat_client),
    current_user: TenantContext = Depends(validate_current_token)
):
    result = run_chat(
        db, current_user,
        messages=[m.model_dump() for m in payload.messages],
        client=client
    )
    return ChatResponse(
        message=result.message,
        tool_calls=result.tool_calls,
        tool_results=result.tool_results,
        warning=result.warning
    )

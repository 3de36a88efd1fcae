from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from kaji.api.deps import AI, Database
from kaji.core.auth import get_current_user_optional, require_user
from kaji.schemas.chat import ChatRequest, SessionCreate, SessionExchange, SuggestionsRequest, SuggestionsResponse
from kaji.schemas.users import CurrentUser
from kaji.services import chat_service

router = APIRouter(prefix="/chat", tags=["Chat"])

OptionalUser = Annotated[CurrentUser | None, Depends(get_current_user_optional)]
User = Annotated[CurrentUser, Depends(require_user)]


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def create_session(payload: SessionCreate, db: Database, user: OptionalUser) -> dict[str, Any]:
    session = await chat_service.create_session(
        db,
        user_id=user.id if user else None,
        session_name=payload.session_name,
    )
    return {"session": session}


@router.get("/sessions")
async def list_sessions(db: Database, user: User) -> dict[str, Any]:
    """The caller's sessions, most recently active first, with message counts."""
    sessions = await chat_service.list_sessions(db, user_id=user.id)
    return {"sessions": sessions}


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: UUID, db: Database, user: User) -> Response:
    await chat_service.delete_session(db, str(session_id), user_id=user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/sessions/{session_id}/messages")
async def list_messages(
    session_id: UUID,
    db: Database,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> dict[str, Any]:
    messages = await chat_service.list_messages(db, str(session_id), limit=limit, offset=offset)
    return {"messages": messages}


@router.post("/sessions/{session_id}/messages", response_model=SessionExchange)
async def send_message(session_id: UUID, payload: ChatRequest, db: Database, ai: AI) -> SessionExchange:
    """Store the message, ask the assistant with recent history, store the reply."""
    return await chat_service.send_message(
        db,
        ai,
        str(session_id),
        message=payload.message,
        context=payload.context,
    )


@router.post("/suggestions", response_model=SuggestionsResponse)
def suggestions(payload: SuggestionsRequest) -> SuggestionsResponse:
    return SuggestionsResponse(suggestions=chat_service.suggest(payload.query))

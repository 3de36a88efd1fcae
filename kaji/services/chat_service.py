"""Chat sessions persisted in the database with AI replies."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from kaji.adapters.database.gateway import DatabaseGateway, Row
from kaji.adapters.llm.base import ChatTurn
from kaji.core.errors import AuthorizationAppError, NotFoundAppError
from kaji.schemas.chat import SessionExchange
from kaji.services.ai_service import AIService

logger = logging.getLogger(__name__)

# Turns of prior conversation sent along with a new message
HISTORY_WINDOW = 10
MAX_SUGGESTIONS = 5

SUGGESTIONS = [
    "What are the most critical ChromeOS vulnerabilities?",
    "How can I protect my ChromeOS device?",
    "What's the latest ChromeOS security update?",
    "Explain this exploit in simple terms",
    "What are the CVSS scores for recent vulnerabilities?",
    "How do I report a security issue?",
    "What's the difference between these vulnerability types?",
    "Show me vulnerabilities for ChromeOS version 120",
    "What are the mitigation strategies for this exploit?",
    "How often should I update ChromeOS?",
]


def suggest(query: str | None) -> list[str]:
    """Return up to five canned prompts, filtered by a case-insensitive substring."""
    if query:
        needle = query.lower()
        matches = [s for s in SUGGESTIONS if needle in s.lower()]
    else:
        matches = list(SUGGESTIONS)
    return matches[:MAX_SUGGESTIONS]


async def create_session(db: DatabaseGateway, *, user_id: str | None, session_name: str | None) -> Row:
    return await db.fetch_one(
        "INSERT INTO chat_sessions (user_id, session_name) VALUES (:user_id, :session_name) RETURNING *",
        {"user_id": user_id, "session_name": session_name},
    )


async def _require_session(db: DatabaseGateway, session_id: str) -> Row:
    session = await db.fetch_one("SELECT * FROM chat_sessions WHERE id = :id", {"id": session_id})
    if session is None:
        raise NotFoundAppError(code="chat_session_not_found", message="Chat session not found")
    return session


async def list_sessions(db: DatabaseGateway, *, user_id: str) -> list[Row]:
    return await db.fetch_all(
        """
        SELECT cs.*, COUNT(cm.id) AS message_count, MAX(cm.created_at) AS last_message_at
        FROM chat_sessions cs
        LEFT JOIN chat_messages cm ON cs.id = cm.session_id
        WHERE cs.user_id = :user_id
        GROUP BY cs.id
        ORDER BY cs.updated_at DESC
        """,
        {"user_id": user_id},
    )


async def delete_session(db: DatabaseGateway, session_id: str, *, user_id: str) -> None:
    """Delete a session and, by cascade, its messages.

    Raises:
        NotFoundAppError: If the session does not exist.
        AuthorizationAppError: If it belongs to someone else or to no one.
    """
    session = await _require_session(db, session_id)
    if str(session.get("user_id")) != user_id:
        logger.warning("chat.delete_forbidden", extra={"session_id": session_id, "user_id": user_id})
        raise AuthorizationAppError(code="not_session_owner", message="Chat session belongs to another user")

    await db.execute("DELETE FROM chat_sessions WHERE id = :id", {"id": session_id})
    logger.info("chat.session_deleted", extra={"session_id": session_id, "user_id": user_id})


async def list_messages(db: DatabaseGateway, session_id: str, *, limit: int, offset: int) -> list[Row]:
    await _require_session(db, session_id)
    return await db.fetch_all(
        """
        SELECT * FROM chat_messages
        WHERE session_id = :session_id
        ORDER BY created_at ASC
        LIMIT :limit OFFSET :offset
        """,
        {"session_id": session_id, "limit": limit, "offset": offset},
    )


async def send_message(
    db: DatabaseGateway,
    ai: AIService,
    session_id: str,
    *,
    message: str,
    context: dict[str, Any] | None = None,
) -> SessionExchange:
    """Store a user message, ask the assistant, and store its reply.

    The assistant sees the last ``HISTORY_WINDOW`` stored turns and, when
    ``context.exploit_id`` names an exploit, that exploit's row.
    """
    await _require_session(db, session_id)

    user_message = await db.fetch_one(
        """
        INSERT INTO chat_messages (session_id, role, content, metadata)
        VALUES (:session_id, 'user', :content, CAST(:metadata AS jsonb))
        RETURNING *
        """,
        {
            "session_id": session_id,
            "content": message,
            "metadata": json.dumps(context) if context else None,
        },
    )

    recent = await db.fetch_all(
        """
        SELECT role, content FROM chat_messages
        WHERE session_id = :session_id
        ORDER BY created_at DESC
        LIMIT :limit
        """,
        {"session_id": session_id, "limit": HISTORY_WINDOW + 1},
    )
    # Newest first from SQL; drop the message just stored and restore order
    history: list[ChatTurn] = [
        {"role": row["role"], "content": row["content"]} for row in reversed(recent[1:])
    ]

    extra_context: dict[str, Any] = {}
    if context and context.get("exploit_id"):
        exploit = await db.fetch_one(
            """
            SELECT e.title, e.description, e.severity, e.cvss_score, e.cve_id,
                   cv.version AS chromeos_version
            FROM exploits e
            LEFT JOIN chromeos_versions cv ON e.chromeos_version_id = cv.id
            WHERE e.id = :id
            """,
            {"id": str(context["exploit_id"])},
        )
        if exploit:
            extra_context["exploit"] = exploit

    completion = await ai.answer_question(message, context=extra_context or None, history=history)

    async with db.transaction() as tx:
        ai_message = await tx.fetch_one(
            """
            INSERT INTO chat_messages (session_id, role, content, metadata)
            VALUES (:session_id, 'assistant', :content, CAST(:metadata AS jsonb))
            RETURNING *
            """,
            {
                "session_id": session_id,
                "content": completion.content,
                "metadata": json.dumps(
                    {"model": completion.model, "timestamp": datetime.now(timezone.utc).isoformat()}
                ),
            },
        )
        await tx.execute(
            "UPDATE chat_sessions SET updated_at = CURRENT_TIMESTAMP WHERE id = :id",
            {"id": session_id},
        )

    logger.info(
        "chat.message_processed",
        extra={
            "session_id": session_id,
            "message_length": len(message),
            "response_length": len(completion.content),
        },
    )
    return SessionExchange(user_message=user_message, ai_message=ai_message)

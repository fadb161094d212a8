# -*- coding: utf-8 -*-
"""Coach — API endpoints (conversations/messages, direct command apply)."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..deps import get_surface, resolve_day
from ..ledger.conversations import DEFAULT_TITLE, GREETING
from ..ledger.models import Conversation, Sender
from ..runtime import LedgerSurface
from .client import CoachUnavailableError, generate_reply
from .context import build_system_prompt
from .models import (
    ChatMessageCreateRequest,
    ChatMessageCreateResponse,
    CommandApplyRequest,
    CommandApplyResponse,
    ConversationCreateRequest,
    ConversationListResponse,
    ConversationSummary,
    outcomes,
)

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "I apologize, but I cannot connect right now. Please check your connection and try again."

router = APIRouter(prefix="/api/chat", tags=["Coach"])
commands_router = APIRouter(prefix="/api/commands", tags=["Commands"])


@router.get("/conversations", response_model=ConversationListResponse, summary="List conversations (most recent first)")
def list_conversations(surface: LedgerSurface = Depends(get_surface)):
    items = [ConversationSummary.of(c) for c in surface.conversations.list()]
    return ConversationListResponse(count=len(items), items=items)


@router.post("/conversations", response_model=Conversation, summary="Start a conversation")
def create_conversation(request: ConversationCreateRequest, surface: LedgerSurface = Depends(get_surface)):
    return surface.conversations.create(
        title=request.title or DEFAULT_TITLE,
        greeting=GREETING if request.greeting else None,
    )


@router.get("/conversations/{conversation_id}", response_model=Conversation, summary="Get a conversation with its messages")
def get_conversation(conversation_id: str, surface: LedgerSurface = Depends(get_surface)):
    conv = surface.conversations.get(conversation_id)
    if conv is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conv


@router.delete("/conversations/{conversation_id}", summary="Delete a conversation")
def delete_conversation(conversation_id: str, surface: LedgerSurface = Depends(get_surface)):
    if not surface.conversations.delete(conversation_id):
        raise HTTPException(status_code=404, detail="Conversation not found")
    return {"status": "ok"}


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=ChatMessageCreateResponse,
    summary="Send a message; the coach reply may log data",
)
async def send_message(
    conversation_id: str,
    request: ChatMessageCreateRequest,
    surface: LedgerSurface = Depends(get_surface),
):
    conversations = surface.conversations
    if conversations.add_message(conversation_id, request.content, Sender.user) is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    conversations.retitle_from_first_user_message(conversation_id)

    day = resolve_day(None)
    system_prompt = build_system_prompt(
        surface.store.snapshot(), day, water_goal_ml=surface.runtime.water_goal_ml
    )
    degraded = False
    try:
        raw = await generate_reply(system_prompt=system_prompt, messages=conversations.history(conversation_id))
    except CoachUnavailableError as exc:
        logger.info("Coach unavailable, using fallback reply: %s", exc)
        raw = FALLBACK_REPLY
        degraded = True

    result = surface.commands.process(raw)
    conversations.add_message(conversation_id, result.display_text, Sender.assistant)
    return ChatMessageCreateResponse(
        conversation_id=conversation_id,
        answer=result.display_text,
        degraded=degraded,
        directives=outcomes(result),
    )


@commands_router.post("/apply", response_model=CommandApplyResponse, summary="Apply the directives found in a text")
def apply_commands(request: CommandApplyRequest, surface: LedgerSurface = Depends(get_surface)):
    result = surface.commands.process(request.text)
    return CommandApplyResponse(
        display_text=result.display_text,
        changed=result.changed,
        directives=outcomes(result),
    )

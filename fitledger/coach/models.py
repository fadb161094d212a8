# -*- coding: utf-8 -*-
"""Coach — Pydantic request/response models."""

from __future__ import annotations

from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field

from ..commands.processor import AppliedDirective, CommandResult, SkippedDirective
from ..ledger.models import Conversation


class ConversationSummary(BaseModel):
    id: str
    title: str
    message_count: int = 0
    created_at: str
    updated_at: str

    @classmethod
    def of(cls, conv: Conversation) -> "ConversationSummary":
        return cls(
            id=conv.id,
            title=conv.title,
            message_count=len(conv.messages),
            created_at=conv.created_at,
            updated_at=conv.updated_at,
        )


class ConversationListResponse(BaseModel):
    count: int
    items: List[ConversationSummary]


class ConversationCreateRequest(BaseModel):
    title: str | None = Field(default=None, max_length=200)
    greeting: bool = True


class ChatMessageCreateRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=8000)


class DirectiveOutcome(BaseModel):
    kind: str
    status: Literal["applied", "skipped"]
    summary: str = ""
    record_ids: List[str] = []
    values: Dict[str, Any] = {}

    @classmethod
    def applied(cls, item: AppliedDirective) -> "DirectiveOutcome":
        return cls(
            kind=item.kind.value,
            status="applied",
            summary=item.summary,
            record_ids=list(item.record_ids),
            values=dict(item.values),
        )

    @classmethod
    def skipped(cls, item: SkippedDirective) -> "DirectiveOutcome":
        return cls(kind=item.kind.value, status="skipped", summary=item.reason)


def outcomes(result: CommandResult) -> List[DirectiveOutcome]:
    return [DirectiveOutcome.applied(a) for a in result.applied] + [
        DirectiveOutcome.skipped(s) for s in result.skipped
    ]


class ChatMessageCreateResponse(BaseModel):
    conversation_id: str
    answer: str
    degraded: bool = Field(False, description="True when the coach could not be reached")
    directives: List[DirectiveOutcome] = []


class CommandApplyRequest(BaseModel):
    text: str = Field(..., max_length=20000)


class CommandApplyResponse(BaseModel):
    display_text: str
    changed: bool
    directives: List[DirectiveOutcome] = []

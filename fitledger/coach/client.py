# -*- coding: utf-8 -*-
"""OpenAI-compatible chat-completions client for the coach."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings

logger = logging.getLogger(__name__)


class CoachUnavailableError(RuntimeError):
    pass


def _extract_reply(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    message = first.get("message")
    if isinstance(message, dict) and isinstance(message.get("content"), str):
        return message["content"]
    if isinstance(first.get("text"), str):
        return first["text"]
    return ""


def _extract_error(data: Any) -> Optional[str]:
    if not isinstance(data, dict):
        return None
    err = data.get("error")
    if isinstance(err, dict):
        msg = err.get("message") or err.get("code")
        return str(msg) if msg else None
    if isinstance(err, str):
        return err
    return None


async def generate_reply(
    *,
    system_prompt: str,
    messages: List[Dict[str, str]],
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Send the conversation to the collaborator and return its raw text.

    Raises :class:`CoachUnavailableError` for any transport, HTTP or shape problem.
    """
    if not settings.coach_api_key:
        raise CoachUnavailableError("COACH_API_KEY is not configured")

    url = f"{settings.coach_base_url.rstrip('/')}/chat/completions"
    payload = {
        "model": settings.coach_model,
        "messages": [{"role": "system", "content": system_prompt}, *messages],
        "max_tokens": settings.coach_max_tokens,
        "temperature": settings.coach_temperature,
    }
    headers = {
        "Authorization": f"Bearer {settings.coach_api_key}",
        "Content-Type": "application/json",
    }
    try:
        async with httpx.AsyncClient(
            timeout=settings.coach_timeout, follow_redirects=True, transport=transport
        ) as client:
            resp = await client.post(url, json=payload, headers=headers)
    except httpx.HTTPError as exc:
        logger.warning("Coach request failed: %s", exc)
        raise CoachUnavailableError(f"Coach request failed: {exc}") from exc

    try:
        data = resp.json()
    except ValueError:
        data = None

    if resp.status_code >= 400:
        detail = _extract_error(data) or resp.text[:200]
        logger.warning("Coach returned %s: %s", resp.status_code, detail)
        raise CoachUnavailableError(f"Coach error {resp.status_code}: {detail}")

    reply = _extract_reply(data)
    if not reply.strip():
        raise CoachUnavailableError("Coach returned an empty reply")
    return reply

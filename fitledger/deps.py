# -*- coding: utf-8 -*-
"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException

from .ledger.days import parse_day, today
from .runtime import LedgerSurface, get_runtime


def get_surface(x_surface_id: Optional[str] = Header(default=None)) -> LedgerSurface:
    """The calling surface; its own writes are not echoed back to it over sync."""
    surface_id = (x_surface_id or "").strip() or None
    return get_runtime().surface(surface_id)


def resolve_day(day: Optional[str]) -> str:
    if not day:
        return today(get_runtime().tz)
    parsed = parse_day(day)
    if parsed is None:
        raise HTTPException(status_code=400, detail=f"Invalid day: {day!r} (expected YYYY-MM-DD)")
    return parsed.isoformat()

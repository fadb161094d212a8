# -*- coding: utf-8 -*-
"""Directive grammar.

Line oriented, case-sensitive keywords, colon-delimited payloads::

    FOOD_UPDATE: name:calories[, name2:calories2, ...]
    WORKOUT_UPDATE: name:durationMinutes[, ...]
    WEIGHT_UPDATE: weightKg
    WATER_UPDATE: amountMl
    PROFILE_UPDATE: key:value[, key2:value2, ...]

A directive runs from its keyword to the end of its line (or to the next
keyword on the same line). Text before the keyword stays where it is.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple


class DirectiveKind(str, Enum):
    FOOD_UPDATE = "FOOD_UPDATE"
    WORKOUT_UPDATE = "WORKOUT_UPDATE"
    WEIGHT_UPDATE = "WEIGHT_UPDATE"
    WATER_UPDATE = "WATER_UPDATE"
    PROFILE_UPDATE = "PROFILE_UPDATE"


_KEYWORD_RE = re.compile(
    r"(?<![A-Za-z0-9_])(" + "|".join(k.value for k in DirectiveKind) + r")[ \t]*:"
)
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")
# Models like to decorate keywords as markdown (**FOOD_UPDATE:** ...).
_DECORATION = "*_`\"' \t"
_LEADING_MARKUP = "*_`"


@dataclass(frozen=True)
class Directive:
    kind: DirectiveKind
    payload: str
    line: int
    start: int  # offset of the keyword in the source text
    end: int  # end of the directive's line, newline excluded


def _lines(text: str) -> Iterable[Tuple[int, int, int]]:
    """(line number, start offset, end offset without the newline)."""
    offset = 0
    for number, line in enumerate(text.splitlines(keepends=True)):
        body = line.rstrip("\r\n")
        yield number, offset, offset + len(body)
        offset += len(line)


def tokenize(text: Optional[str]) -> List[Directive]:
    if not text:
        return []
    directives: List[Directive] = []
    for number, start, end in _lines(text):
        matches = list(_KEYWORD_RE.finditer(text, start, end))
        for i, match in enumerate(matches):
            payload_end = matches[i + 1].start() if i + 1 < len(matches) else end
            payload = text[match.end():payload_end].strip(_DECORATION)
            directives.append(
                Directive(
                    kind=DirectiveKind(match.group(1)),
                    payload=payload,
                    line=number,
                    start=match.start(),
                    end=end,
                )
            )
    return directives


def strip_directives(text: Optional[str], directives: Optional[List[Directive]] = None) -> str:
    """Remove every directive (keyword through end of line) from ``text``."""
    if not text:
        return ""
    found = tokenize(text) if directives is None else directives
    if not found:
        return text
    # One cut per line, from the first keyword on that line.
    cuts = {}
    for d in found:
        start = d.start
        while start > 0 and text[start - 1] in _LEADING_MARKUP:
            start -= 1
        if d.line not in cuts or start < cuts[d.line][0]:
            cuts[d.line] = (start, d.end)
    out: List[str] = []
    pos = 0
    for start, end in sorted(cuts.values()):
        out.append(text[pos:start])
        pos = end
    out.append(text[pos:])
    return "".join(out).strip()


def split_pairs(payload: str) -> List[Tuple[str, str]]:
    """Comma segments, each split on its first colon into (name, value)."""
    pairs: List[Tuple[str, str]] = []
    for segment in payload.split(","):
        segment = segment.strip(_DECORATION)
        if not segment:
            continue
        name, _, value = segment.partition(":")
        pairs.append((name.strip(_DECORATION), value.strip(_DECORATION)))
    return pairs


def first_number(text: str) -> Optional[float]:
    match = _NUMBER_RE.search(text or "")
    if match is None:
        return None
    return float(match.group(0))

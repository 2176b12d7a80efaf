# src/taskdeck/tasks/title_hints.py

"""
Natural-language hints for quick task entry ("Call John tomorrow", "urgent: report").

This is a best-effort suggestion layer. Precedence is fixed and simple:
- date:     "today" beats "tomorrow"
- priority: urgent/important/asap (high) beats "low priority"/sometime (low)
Callers may ignore any suggestion.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from .task_models import Priority

_TODAY_RE = re.compile(r"\btoday\b", re.IGNORECASE)
_TOMORROW_RE = re.compile(r"\btomorrow\b", re.IGNORECASE)
_HIGH_RE = re.compile(r"\b(?:urgent|important|asap)\b:?", re.IGNORECASE)
_LOW_RE = re.compile(r"\b(?:low priority|sometime)\b", re.IGNORECASE)
_SPACES_RE = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class TitleHints:
    clean_title: str
    due_date: datetime | None
    priority: Priority


def _strip(pattern: re.Pattern[str], text: str) -> str:
    return _SPACES_RE.sub(" ", pattern.sub(" ", text)).strip()


def parse_title_hints(
    text: str,
    *,
    now: datetime | None = None,
    default_priority: Priority = Priority.MEDIUM,
) -> TitleHints:
    now = datetime.now(UTC) if now is None else now
    title = text or ""

    due_date: datetime | None = None
    if _TODAY_RE.search(title):
        due_date = now
        title = _strip(_TODAY_RE, title)
    elif _TOMORROW_RE.search(title):
        due_date = now + timedelta(days=1)
        title = _strip(_TOMORROW_RE, title)

    priority = default_priority
    if _HIGH_RE.search(title):
        priority = Priority.HIGH
        title = _strip(_HIGH_RE, title)
    elif _LOW_RE.search(title):
        priority = Priority.LOW
        title = _strip(_LOW_RE, title)

    return TitleHints(clean_title=_SPACES_RE.sub(" ", title).strip(), due_date=due_date, priority=priority)

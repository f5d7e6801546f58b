from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from core.models import STATUSES

ALL = "all"


@dataclass(frozen=True)
class HistoryFilters:
    advisor_filter: str = ALL
    status: str = ALL
    query: str = ""


def normalize_filters(raw: dict, *, advisor_ids: Optional[Iterable[str]] = None) -> HistoryFilters:
    known = set(advisor_ids) if advisor_ids is not None else None

    advisor_filter = str(raw.get("advisor_filter") or ALL).strip() or ALL
    if known is not None and advisor_filter != ALL and advisor_filter not in known:
        advisor_filter = ALL

    status = str(raw.get("status") or ALL).strip().lower()
    if status not in STATUSES:
        status = ALL

    query = (raw.get("query") or "").strip()
    return HistoryFilters(advisor_filter=advisor_filter, status=status, query=query)

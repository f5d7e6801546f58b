from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import pandas as pd

from core.charts import advisor_performance_chart, to_vega_spec
from core.filters import ALL, HistoryFilters
from core.models import Advisor, Quotation

UNASSIGNED_ID = "__unassigned__"
UNASSIGNED_NAME = "Sin asignar"
EMPTY_MESSAGE = "No hay datos suficientes para mostrar el gráfico."

ROW_COLUMNS = ["advisor_id", "advisor_name", "quoted", "sold"]


def advisor_performance_rows(
    advisors: List[Advisor],
    quotations: List[Quotation],
    advisor_filter: str = ALL,
) -> List[Dict[str, Any]]:
    if advisor_filter == ALL:
        scoped_quotations = quotations
        advisors_to_render = advisors
    else:
        scoped_quotations = [q for q in quotations if q.client.asesor_id == advisor_filter]
        advisors_to_render = [a for a in advisors if a.id == advisor_filter]

    names = {a.id: a.name for a in advisors}
    rows: Dict[str, Dict[str, Any]] = {}

    # Seed advisors so they show up even with no quotations.
    for a in advisors_to_render:
        rows[a.id] = {"advisor_id": a.id, "advisor_name": a.name, "quoted": 0.0, "sold": 0.0}

    for q in scoped_quotations:
        raw_id = q.client.asesor_id
        advisor_id = raw_id if raw_id else UNASSIGNED_ID
        advisor_name = (names.get(raw_id) or UNASSIGNED_NAME) if raw_id else UNASSIGNED_NAME

        current = rows.setdefault(
            advisor_id,
            {"advisor_id": advisor_id, "advisor_name": advisor_name, "quoted": 0.0, "sold": 0.0},
        )
        amount = float(q.total or 0)
        current["quoted"] += amount
        if q.status == "approved":
            current["sold"] += amount

    return sorted(rows.values(), key=lambda r: r["sold"], reverse=True)


def compute_advisor_performance(
    advisors: List[Advisor],
    quotations: List[Quotation],
    advisor_filter: str = ALL,
    *,
    filters: Optional[HistoryFilters] = None,
) -> Dict[str, Any]:
    filters = filters or HistoryFilters(advisor_filter=advisor_filter)
    rows = advisor_performance_rows(advisors, quotations, filters.advisor_filter)
    if not rows:
        return {"filters": asdict(filters), "rows": [], "chart": None, "empty": True, "message": EMPTY_MESSAGE}

    df = pd.DataFrame(rows, columns=ROW_COLUMNS)
    return {
        "filters": asdict(filters),
        "rows": rows,
        "chart": to_vega_spec(advisor_performance_chart(df)),
        "empty": False,
        "message": None,
    }

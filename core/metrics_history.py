from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import pandas as pd

from core.filters import ALL, HistoryFilters
from core.metrics_performance import UNASSIGNED_NAME
from core.models import Advisor, Quotation

STATUS_LABELS = {"pending": "Pendiente", "approved": "Aprobada", "rejected": "Rechazada"}

HISTORY_COLUMNS = ["id", "code", "ruc", "razon_social", "advisor_id", "advisor_name", "status", "status_label", "created_at", "total"]


def quotations_frame(advisors: List[Advisor], quotations: List[Quotation]) -> pd.DataFrame:
    names = {a.id: a.name for a in advisors}
    records = [
        {
            "id": q.id,
            "code": q.code,
            "ruc": q.client.ruc,
            "razon_social": q.client.razon_social,
            "advisor_id": q.client.asesor_id,
            "advisor_name": names.get(q.client.asesor_id) or UNASSIGNED_NAME,
            "status": q.status,
            "status_label": STATUS_LABELS.get(q.status, q.status),
            "created_at": q.created_at,
            "total": float(q.total or 0),
        }
        for q in quotations
    ]
    return pd.DataFrame(records, columns=HISTORY_COLUMNS)


def apply_history_filters(df: pd.DataFrame, filters: HistoryFilters) -> pd.DataFrame:
    if df.empty:
        return df
    out = df
    if filters.advisor_filter != ALL:
        out = out[out["advisor_id"] == filters.advisor_filter]
    if filters.status != ALL:
        out = out[out["status"] == filters.status]
    q = filters.query.lower()
    if q:
        mask = (
            out["code"].astype(str).str.lower().str.contains(q, regex=False, na=False)
            | out["razon_social"].astype(str).str.lower().str.contains(q, regex=False, na=False)
            | out["ruc"].astype(str).str.contains(q, regex=False, na=False)
        )
        out = out[mask]
    return out


def compute_quotation_history(advisors: List[Advisor], quotations: List[Quotation], filters: HistoryFilters) -> Dict[str, Any]:
    df = apply_history_filters(quotations_frame(advisors, quotations), filters)
    if df.empty:
        return {
            "filters": asdict(filters),
            "kpis": {"count": 0, "quoted": 0.0, "sold": 0.0, "approval_rate": None},
            "rows": [],
        }

    approved = df[df["status"] == "approved"]
    kpis = {
        "count": int(len(df)),
        "quoted": float(df["total"].sum()),
        "sold": float(approved["total"].sum()),
        "approval_rate": float(len(approved) / len(df)),
    }
    rows = df.sort_values(["created_at", "code"], ascending=False, na_position="last").reset_index(drop=True)
    return {"filters": asdict(filters), "kpis": kpis, "rows": rows.to_dict(orient="records")}

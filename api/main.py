from __future__ import annotations

from dataclasses import asdict
import logging
import math

import numpy as np
import pandas as pd
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.schemas import DeleteRequestModel, HistoryFiltersModel, QuotationEditsModel, TotalsResponse
from core import config
from core.confirmation import WRONG_CODE_DESCRIPTION, WRONG_CODE_TITLE, InvalidDeleteCodeError, require_delete_code
from core.data import QuotationNotFoundError, get_store
from core.filters import HistoryFilters, normalize_filters
from core.metrics_history import compute_quotation_history
from core.metrics_performance import compute_advisor_performance
from core.models import Quotation, client_from_dict, implementation_from_dict, quotation_to_dict, selected_iso_from_dict
from core.pricing import QuotationEdits, apply_quotation_edits, calculate_totals, edits_from_quotation, totals_to_dict


app = FastAPI(title="Cotizaciones ISO API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _filters_from_model(model: HistoryFiltersModel, *, advisor_ids: list[str]) -> HistoryFilters:
    raw = model.model_dump()
    return normalize_filters(raw, advisor_ids=advisor_ids)


def _edits_from_model(model: QuotationEditsModel, base: Quotation) -> QuotationEdits:
    """Overlay the fields actually sent in ``model`` onto the stored quotation."""
    sent = model.model_dump(exclude_unset=True)
    edits = edits_from_quotation(base)
    if "client" in sent:
        edits.client = client_from_dict({**asdict(edits.client), **sent["client"]})
    if "selected_isos" in sent:
        edits.selected_isos = [selected_iso_from_dict(s) for s in sent["selected_isos"]]
    if "discount" in sent:
        edits.discount = float(sent["discount"])
    if "include_igv" in sent:
        edits.include_igv = bool(sent["include_igv"])
    if "implementation" in sent:
        edits.implementation = implementation_from_dict({**asdict(edits.implementation), **sent["implementation"]})
    return edits


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        ),
    )


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _not_found(exc: QuotationNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/meta/advisors")
def meta_advisors():
    try:
        advisors = get_store().load_advisors()
        return _json({"advisors": [asdict(a) for a in advisors]})
    except Exception as exc:
        logger.exception("meta_advisors failed")
        return _error(exc)


@app.get("/meta/iso-standards")
def meta_iso_standards():
    try:
        standards = get_store().load_iso_standards()
        return _json({"iso_standards": [asdict(s) for s in standards]})
    except Exception as exc:
        logger.exception("meta_iso_standards failed")
        return _error(exc)


@app.get("/quotations")
def list_quotations():
    try:
        quotations = get_store().load_quotations()
        return _json({"quotations": [quotation_to_dict(q) for q in quotations]})
    except Exception as exc:
        logger.exception("list_quotations failed")
        return _error(exc)


@app.get("/quotations/{quotation_id}")
def get_quotation(quotation_id: str):
    try:
        return _json(quotation_to_dict(get_store().get_quotation(quotation_id)))
    except QuotationNotFoundError as exc:
        return _not_found(exc)
    except Exception as exc:
        logger.exception("get_quotation failed")
        return _error(exc)


@app.post("/performance")
def performance(filters: HistoryFiltersModel):
    try:
        store = get_store()
        advisors = store.load_advisors()
        f = _filters_from_model(filters, advisor_ids=[a.id for a in advisors])
        return _json(compute_advisor_performance(advisors, store.load_quotations(), filters=f))
    except Exception as exc:
        logger.exception("performance failed")
        return _error(exc)


@app.post("/history")
def history(filters: HistoryFiltersModel):
    try:
        store = get_store()
        advisors = store.load_advisors()
        f = _filters_from_model(filters, advisor_ids=[a.id for a in advisors])
        return _json(compute_quotation_history(advisors, store.load_quotations(), f))
    except Exception as exc:
        logger.exception("history failed")
        return _error(exc)


@app.post("/quotations/{quotation_id}/totals")
def preview_totals(quotation_id: str, edits: QuotationEditsModel):
    try:
        e = _edits_from_model(edits, get_store().get_quotation(quotation_id))
        totals = calculate_totals(e.selected_isos, e.discount, e.include_igv, e.implementation)
        return _json(TotalsResponse(**totals_to_dict(totals)).model_dump())
    except QuotationNotFoundError as exc:
        return _not_found(exc)
    except Exception as exc:
        logger.exception("preview_totals failed")
        return _error(exc)


@app.put("/quotations/{quotation_id}")
def update_quotation(quotation_id: str, edits: QuotationEditsModel):
    try:
        store = get_store()
        stored = store.get_quotation(quotation_id)
        updated = apply_quotation_edits(stored, _edits_from_model(edits, stored))
        store.update_quotation(updated)
        return _json(
            {
                "quotation": quotation_to_dict(updated),
                "title": "Cotización actualizada",
                "description": "Los cambios se han guardado correctamente",
            }
        )
    except QuotationNotFoundError as exc:
        return _not_found(exc)
    except Exception as exc:
        logger.exception("update_quotation failed")
        return JSONResponse(
            status_code=500,
            content={
                "error": str(exc),
                "type": type(exc).__name__,
                "title": "Error",
                "description": "No se pudo actualizar la cotización",
            },
        )


@app.post("/quotations/{quotation_id}/delete")
def delete_quotation(quotation_id: str, request: DeleteRequestModel):
    try:
        require_delete_code(request.code)
        get_store().delete_quotation(quotation_id)
        return _json({"deleted": quotation_id})
    except InvalidDeleteCodeError as exc:
        return JSONResponse(
            status_code=403,
            content={
                "error": str(exc),
                "type": type(exc).__name__,
                "title": WRONG_CODE_TITLE,
                "description": WRONG_CODE_DESCRIPTION,
            },
        )
    except QuotationNotFoundError as exc:
        return _not_found(exc)
    except Exception as exc:
        logger.exception("delete_quotation failed")
        return _error(exc)

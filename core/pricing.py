"""Quotation pricing: ISO line items, discount, IGV and the implementation service."""

from __future__ import annotations

import math
import re
from dataclasses import asdict, dataclass, field, replace
from typing import Dict, List, Optional

from core import config
from core.models import (
    PRICE_FIELD_FOR,
    ClientData,
    ImplementationData,
    IsoStandard,
    Quotation,
    SelectedISO,
)

IGV_RATE = config.IGV_RATE


@dataclass(frozen=True)
class QuotationTotals:
    subtotal: float
    igv: float
    total_certificacion: float
    implementation_total: float
    total: float


@dataclass
class QuotationEdits:
    """Everything the edit dialog lets the user change."""

    client: ClientData = field(default_factory=ClientData)
    selected_isos: List[SelectedISO] = field(default_factory=list)
    discount: float = 0.0
    include_igv: bool = True
    implementation: ImplementationData = field(default_factory=ImplementationData)


def calculate_totals(
    selected_isos: List[SelectedISO],
    discount: float,
    include_igv: bool,
    implementation: Optional[ImplementationData],
    *,
    igv_rate: Optional[float] = None,
) -> QuotationTotals:
    rate = IGV_RATE if igv_rate is None else igv_rate

    subtotal = 0.0
    for iso in selected_isos:
        if iso.certification:
            subtotal += iso.certification_price
        if iso.follow_up:
            subtotal += iso.follow_up_price
        if iso.recertification:
            subtotal += iso.recertification_price

    # A discount above the subtotal is not clamped.
    subtotal_after_discount = subtotal - discount
    igv = subtotal_after_discount * rate if include_igv else 0.0
    total_certificacion = subtotal_after_discount + igv

    implementation_total = (
        implementation.unit_price * implementation.quantity
        if implementation is not None and implementation.enabled
        else 0.0
    )
    return QuotationTotals(
        subtotal=subtotal,
        igv=igv,
        total_certificacion=total_certificacion,
        implementation_total=implementation_total,
        total=total_certificacion + implementation_total,
    )


def toggle_iso_service(
    selected_isos: List[SelectedISO],
    iso_standards: List[IsoStandard],
    iso_id: str,
    field_name: str,
    checked: bool,
) -> List[SelectedISO]:
    """Check or uncheck one service of an ISO line.

    A line that does not exist yet is created from the catalog prices with only
    ``field_name`` set. Unknown ISO ids leave the selection untouched.
    """
    if field_name not in PRICE_FIELD_FOR:
        raise ValueError(f"Unknown service field: {field_name}")

    if any(iso.iso_id == iso_id for iso in selected_isos):
        return [replace(iso, **{field_name: checked}) if iso.iso_id == iso_id else iso for iso in selected_isos]

    standard = next((s for s in iso_standards if s.id == iso_id), None)
    if standard is None:
        return list(selected_isos)

    new_line = SelectedISO(
        iso_id=iso_id,
        certification=checked if field_name == "certification" else False,
        certification_price=standard.certification_price,
        follow_up=checked if field_name == "follow_up" else False,
        follow_up_price=standard.follow_up_price,
        recertification=checked if field_name == "recertification" else False,
        recertification_price=standard.recertification_price,
    )
    return [*selected_isos, new_line]


def set_iso_price(selected_isos: List[SelectedISO], iso_id: str, price_field: str, value: float) -> List[SelectedISO]:
    if price_field not in PRICE_FIELD_FOR.values():
        raise ValueError(f"Unknown price field: {price_field}")
    return [replace(iso, **{price_field: value}) if iso.iso_id == iso_id else iso for iso in selected_isos]


def displayed_price(selected: Optional[SelectedISO], standard: IsoStandard, price_field: str) -> float:
    """Price shown in the editor; a zero or missing line price falls back to the catalog."""
    line_price = getattr(selected, price_field, 0.0) if selected is not None else 0.0
    return line_price or getattr(standard, price_field)


# Leading-number prefix, so "12abc" reads as 12 like a browser number field.
_AMOUNT_PREFIX = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_QUANTITY_PREFIX = re.compile(r"^\s*[+-]?\d+")


def parse_amount(raw: object) -> float:
    if isinstance(raw, str):
        match = _AMOUNT_PREFIX.match(raw)
        if not match:
            return 0.0
        raw = match.group(0)
    try:
        value = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return value


def parse_quantity(raw: object) -> int:
    if isinstance(raw, str):
        match = _QUANTITY_PREFIX.match(raw)
        if not match:
            return 1
        return int(match.group(0)) or 1
    try:
        value = int(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return 1
    return value or 1


def edits_from_quotation(quotation: Quotation) -> QuotationEdits:
    """Initial dialog state for ``quotation``."""
    return QuotationEdits(
        client=replace(quotation.client),
        selected_isos=[replace(iso) for iso in quotation.selected_isos],
        discount=quotation.discount,
        include_igv=True if quotation.include_igv is None else quotation.include_igv,
        implementation=replace(quotation.implementation) if quotation.implementation else ImplementationData(),
    )


def apply_quotation_edits(quotation: Quotation, edits: QuotationEdits) -> Quotation:
    totals = calculate_totals(edits.selected_isos, edits.discount, edits.include_igv, edits.implementation)
    client = ClientData(**{**asdict(quotation.client), **asdict(edits.client)})
    return replace(
        quotation,
        client=client,
        selected_isos=list(edits.selected_isos),
        subtotal=totals.subtotal,
        igv=totals.igv,
        discount=edits.discount,
        total=totals.total,
        include_igv=edits.include_igv,
        implementation=edits.implementation,
        implementation_total=totals.implementation_total,
    )


def totals_to_dict(totals: QuotationTotals) -> Dict[str, float]:
    return asdict(totals)

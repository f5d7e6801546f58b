from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


COMPANY_SIZES: List[str] = ["pequeña", "mediana", "grande"]
STATUSES: List[str] = ["pending", "approved", "rejected"]
SERVICE_FIELDS: List[str] = ["certification", "follow_up", "recertification"]

# toggle -> price field of the same service
PRICE_FIELD_FOR: Dict[str, str] = {
    "certification": "certification_price",
    "follow_up": "follow_up_price",
    "recertification": "recertification_price",
}


@dataclass(frozen=True)
class Advisor:
    id: str
    name: str


@dataclass(frozen=True)
class IsoStandard:
    id: str
    code: str
    name: str = ""
    certification_price: float = 0.0
    follow_up_price: float = 0.0
    recertification_price: float = 0.0


@dataclass
class ClientData:
    ruc: str = ""
    razon_social: str = ""
    representante: str = ""
    celular: str = ""
    correo: str = ""
    asesor_id: str = ""


@dataclass
class SelectedISO:
    iso_id: str
    certification: bool = False
    certification_price: float = 0.0
    follow_up: bool = False
    follow_up_price: float = 0.0
    recertification: bool = False
    recertification_price: float = 0.0


@dataclass
class ImplementationData:
    enabled: bool = False
    company_size: str = "pequeña"
    unit_price: float = 0.0
    quantity: int = 1


@dataclass
class Quotation:
    id: str
    code: str
    client: ClientData = field(default_factory=ClientData)
    selected_isos: List[SelectedISO] = field(default_factory=list)
    subtotal: float = 0.0
    igv: float = 0.0
    discount: float = 0.0
    total: float = 0.0
    include_igv: bool = True
    implementation: Optional[ImplementationData] = None
    implementation_total: float = 0.0
    status: str = "pending"
    created_at: Optional[str] = None


def _as_float(value: object, default: float = 0.0) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_int(value: object, default: int) -> int:
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default


def advisor_from_dict(raw: Dict[str, Any]) -> Advisor:
    return Advisor(id=str(raw["id"]), name=str(raw.get("name") or ""))


def iso_standard_from_dict(raw: Dict[str, Any]) -> IsoStandard:
    return IsoStandard(
        id=str(raw["id"]),
        code=str(raw.get("code") or ""),
        name=str(raw.get("name") or ""),
        certification_price=_as_float(raw.get("certification_price")),
        follow_up_price=_as_float(raw.get("follow_up_price")),
        recertification_price=_as_float(raw.get("recertification_price")),
    )


def selected_iso_from_dict(raw: Dict[str, Any]) -> SelectedISO:
    return SelectedISO(
        iso_id=str(raw["iso_id"]),
        certification=bool(raw.get("certification", False)),
        certification_price=_as_float(raw.get("certification_price")),
        follow_up=bool(raw.get("follow_up", False)),
        follow_up_price=_as_float(raw.get("follow_up_price")),
        recertification=bool(raw.get("recertification", False)),
        recertification_price=_as_float(raw.get("recertification_price")),
    )


def implementation_from_dict(raw: Optional[Dict[str, Any]]) -> ImplementationData:
    """Build implementation data; a missing block is a disabled, small-company default."""
    if not raw:
        return ImplementationData()
    size = str(raw.get("company_size") or "pequeña")
    if size not in COMPANY_SIZES:
        size = "pequeña"
    return ImplementationData(
        enabled=bool(raw.get("enabled", False)),
        company_size=size,
        unit_price=_as_float(raw.get("unit_price")),
        quantity=_as_int(raw.get("quantity"), 1),
    )


def client_from_dict(raw: Optional[Dict[str, Any]]) -> ClientData:
    raw = raw or {}
    return ClientData(**{k: str(raw.get(k) or "") for k in ClientData.__dataclass_fields__})


def quotation_from_dict(raw: Dict[str, Any]) -> Quotation:
    include_igv = raw.get("include_igv")
    status = str(raw.get("status") or "pending")
    return Quotation(
        id=str(raw["id"]),
        code=str(raw.get("code") or ""),
        client=client_from_dict(raw.get("client")),
        selected_isos=[selected_iso_from_dict(s) for s in (raw.get("selected_isos") or [])],
        subtotal=_as_float(raw.get("subtotal")),
        igv=_as_float(raw.get("igv")),
        discount=_as_float(raw.get("discount")),
        total=_as_float(raw.get("total")),
        include_igv=True if include_igv is None else bool(include_igv),
        implementation=implementation_from_dict(raw.get("implementation")),
        implementation_total=_as_float(raw.get("implementation_total")),
        status=status if status in STATUSES else "pending",
        created_at=raw.get("created_at"),
    )


def quotation_to_dict(quotation: Quotation) -> Dict[str, Any]:
    return asdict(quotation)

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field


class HistoryFiltersModel(BaseModel):
    advisor_filter: str = "all"
    status: str = "all"
    query: str = ""


class ClientDataModel(BaseModel):
    ruc: str = ""
    razon_social: str = ""
    representante: str = ""
    celular: str = ""
    correo: str = ""
    asesor_id: str = ""


class SelectedISOModel(BaseModel):
    iso_id: str
    certification: bool = False
    certification_price: float = 0.0
    follow_up: bool = False
    follow_up_price: float = 0.0
    recertification: bool = False
    recertification_price: float = 0.0


class ImplementationModel(BaseModel):
    enabled: bool = False
    company_size: Literal["pequeña", "mediana", "grande"] = "pequeña"
    unit_price: float = 0.0
    quantity: int = Field(default=1, ge=1)


class QuotationEditsModel(BaseModel):
    client: ClientDataModel = Field(default_factory=ClientDataModel)
    selected_isos: List[SelectedISOModel] = Field(default_factory=list)
    discount: float = 0.0
    include_igv: bool = True
    implementation: ImplementationModel = Field(default_factory=ImplementationModel)


class DeleteRequestModel(BaseModel):
    code: str = ""


class TotalsResponse(BaseModel):
    subtotal: float
    igv: float
    total_certificacion: float
    implementation_total: float
    total: float

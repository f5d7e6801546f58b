"""Shared pytest fixtures: an isolated JSON store per test."""
import json

import pytest

from core import config
from core.data import QuotationStore
from core.models import Advisor, ClientData, ImplementationData, IsoStandard, Quotation, SelectedISO


ADVISORS = [
    {"id": "adv-1", "name": "María Quispe"},
    {"id": "adv-2", "name": "Jorge Salazar"},
    {"id": "adv-3", "name": "Lucía Fernández"},
]

ISO_STANDARDS = [
    {"id": "iso-9001", "code": "ISO 9001", "name": "Calidad", "certification_price": 4500.0, "follow_up_price": 2500.0, "recertification_price": 3800.0},
    {"id": "iso-14001", "code": "ISO 14001", "name": "Ambiental", "certification_price": 5000.0, "follow_up_price": 2800.0, "recertification_price": 4200.0},
]


def _quotation(qid, code, asesor_id, total, status, created_at, **extra):
    record = {
        "id": qid,
        "code": code,
        "client": {"ruc": "20512345678", "razon_social": f"Cliente {code}", "representante": "Rep", "celular": "999", "correo": "a@b.pe", "asesor_id": asesor_id},
        "selected_isos": [
            {"iso_id": "iso-9001", "certification": True, "certification_price": 4500.0, "follow_up": False, "follow_up_price": 2500.0, "recertification": False, "recertification_price": 3800.0}
        ],
        "subtotal": 4500.0,
        "igv": 810.0,
        "discount": 0.0,
        "total": total,
        "include_igv": True,
        "implementation": {"enabled": False, "company_size": "pequeña", "unit_price": 0.0, "quantity": 1},
        "implementation_total": 0.0,
        "status": status,
        "created_at": created_at,
    }
    record.update(extra)
    return record


QUOTATIONS = [
    _quotation("q-1", "COT-001", "adv-1", 5310.0, "approved", "2026-08-01"),
    _quotation("q-2", "COT-002", "adv-1", 1000.0, "pending", "2026-08-02"),
    _quotation("q-3", "COT-003", "adv-2", 2000.0, "approved", "2026-08-03"),
    _quotation("q-4", "COT-004", "", 700.0, "rejected", "2026-08-04"),
]


@pytest.fixture
def seed_payload():
    return {"advisors": ADVISORS, "iso_standards": ISO_STANDARDS, "quotations": QUOTATIONS}


@pytest.fixture
def data_path(tmp_path, monkeypatch, seed_payload):
    path = tmp_path / "quotations.json"
    path.write_text(json.dumps(seed_payload, ensure_ascii=False), encoding="utf-8")
    monkeypatch.setattr(config, "DATA_PATH", path)
    return path


@pytest.fixture
def store(data_path):
    return QuotationStore(data_path)


@pytest.fixture
def advisors():
    return [Advisor(id=a["id"], name=a["name"]) for a in ADVISORS]


@pytest.fixture
def iso_standards():
    return [IsoStandard(**s) for s in ISO_STANDARDS]


@pytest.fixture
def make_quotation():
    def _make(qid="q-x", asesor_id="adv-1", total=100.0, status="pending", **kwargs):
        return Quotation(
            id=qid,
            code=kwargs.pop("code", f"COT-{qid}"),
            client=ClientData(razon_social="ACME", asesor_id=asesor_id),
            selected_isos=kwargs.pop("selected_isos", [SelectedISO(iso_id="iso-9001", certification=True, certification_price=100.0)]),
            total=total,
            status=status,
            implementation=kwargs.pop("implementation", ImplementationData()),
            **kwargs,
        )

    return _make

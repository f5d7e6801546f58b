"""
Integration tests for the FastAPI routes in api/main.py.

Every test runs against an isolated copy of the JSON store (see conftest.data_path).
"""
import pytest
from fastapi.testclient import TestClient

from api.main import app
from core.data import QuotationStore


@pytest.fixture
def client(data_path):
    return TestClient(app)


def _edits(**overrides):
    body = {
        "client": {"ruc": "20100000001", "razon_social": "Nueva S.A.", "representante": "R", "celular": "9", "correo": "n@s.pe", "asesor_id": "adv-3"},
        "selected_isos": [
            {"iso_id": "iso-9001", "certification": True, "certification_price": 4500.0, "follow_up": True, "follow_up_price": 2500.0},
        ],
        "discount": 1000.0,
        "include_igv": True,
        "implementation": {"enabled": True, "company_size": "grande", "unit_price": 800.0, "quantity": 2},
    }
    body.update(overrides)
    return body


# ═══════════════════════════════════════════════════════════════════════════════
# META
# ═══════════════════════════════════════════════════════════════════════════════

class TestMeta:

    def test_advisors(self, client):
        r = client.get("/meta/advisors")
        assert r.status_code == 200
        assert [a["id"] for a in r.json()["advisors"]] == ["adv-1", "adv-2", "adv-3"]

    def test_iso_standards(self, client):
        r = client.get("/meta/iso-standards")
        assert r.status_code == 200
        assert r.json()["iso_standards"][0]["certification_price"] == 4500.0


# ═══════════════════════════════════════════════════════════════════════════════
# QUOTATIONS
# ═══════════════════════════════════════════════════════════════════════════════

class TestQuotations:

    def test_list(self, client):
        r = client.get("/quotations")
        assert r.status_code == 200
        assert len(r.json()["quotations"]) == 4

    def test_get(self, client):
        r = client.get("/quotations/q-1")
        assert r.status_code == 200
        assert r.json()["code"] == "COT-001"

    def test_get_unknown_404(self, client):
        r = client.get("/quotations/nope")
        assert r.status_code == 404
        assert r.json()["type"] == "QuotationNotFoundError"

    def test_totals_preview(self, client):
        r = client.post("/quotations/q-1/totals", json=_edits())
        assert r.status_code == 200
        body = r.json()
        assert body["subtotal"] == pytest.approx(7000)
        assert body["igv"] == pytest.approx(1080)
        assert body["total_certificacion"] == pytest.approx(7080)
        assert body["implementation_total"] == pytest.approx(1600)
        assert body["total"] == pytest.approx(8680)

    def test_update(self, client, data_path):
        r = client.put("/quotations/q-2", json=_edits())
        assert r.status_code == 200
        body = r.json()
        assert body["title"] == "Cotización actualizada"
        assert body["quotation"]["total"] == pytest.approx(8680)
        stored = QuotationStore(data_path).get_quotation("q-2")
        assert stored.client.asesor_id == "adv-3"
        assert stored.status == "pending"
        assert stored.implementation.company_size == "grande"

    def test_update_unknown_404(self, client):
        assert client.put("/quotations/nope", json=_edits()).status_code == 404

    def test_update_rejects_bad_company_size(self, client):
        body = _edits(implementation={"enabled": True, "company_size": "enorme", "unit_price": 1, "quantity": 1})
        assert client.put("/quotations/q-2", json=body).status_code == 422

    def test_partial_update_keeps_stored_fields(self, client, data_path):
        r = client.put("/quotations/q-1", json={"discount": 0})
        assert r.status_code == 200
        stored = QuotationStore(data_path).get_quotation("q-1")
        assert stored.client.razon_social == "Cliente COT-001"
        assert stored.client.asesor_id == "adv-1"
        assert len(stored.selected_isos) == 1
        assert stored.selected_isos[0].certification is True
        assert stored.total == pytest.approx(4500 * 1.18)

    def test_partial_client_merges_into_stored_client(self, client, data_path):
        r = client.put("/quotations/q-1", json={"client": {"asesor_id": "adv-2"}})
        assert r.status_code == 200
        stored = QuotationStore(data_path).get_quotation("q-1")
        assert stored.client.asesor_id == "adv-2"
        assert stored.client.razon_social == "Cliente COT-001"
        assert stored.client.ruc == "20512345678"

    def test_partial_totals_preview_uses_stored_lines(self, client):
        r = client.post("/quotations/q-1/totals", json={"include_igv": False})
        assert r.status_code == 200
        body = r.json()
        assert body["subtotal"] == pytest.approx(4500)
        assert body["igv"] == 0
        assert body["total"] == pytest.approx(4500)

    def test_store_failure_is_500(self, client, monkeypatch):
        def broken_store():
            raise RuntimeError("boom")

        monkeypatch.setattr("api.main.get_store", broken_store)
        r = client.get("/quotations")
        assert r.status_code == 500
        assert r.json() == {"error": "boom", "type": "RuntimeError"}


# ═══════════════════════════════════════════════════════════════════════════════
# DELETE
# ═══════════════════════════════════════════════════════════════════════════════

class TestDelete:

    def test_wrong_code_403(self, client, data_path):
        r = client.post("/quotations/q-1/delete", json={"code": "bad"})
        assert r.status_code == 403
        assert r.json()["title"] == "Código incorrecto"
        assert len(QuotationStore(data_path).load_quotations()) == 4

    def test_correct_code_deletes(self, client, data_path):
        r = client.post("/quotations/q-1/delete", json={"code": "CcD2027@ok@2"})
        assert r.status_code == 200
        assert [q.id for q in QuotationStore(data_path).load_quotations()] == ["q-2", "q-3", "q-4"]

    def test_correct_code_unknown_id_404(self, client):
        r = client.post("/quotations/nope/delete", json={"code": "CcD2027@ok@2"})
        assert r.status_code == 404


# ═══════════════════════════════════════════════════════════════════════════════
# DASHBOARD PAYLOADS
# ═══════════════════════════════════════════════════════════════════════════════

class TestDashboard:

    def test_performance_all(self, client):
        r = client.post("/performance", json={})
        assert r.status_code == 200
        rows = r.json()["rows"]
        assert rows[0]["advisor_id"] == "adv-1"
        assert rows[0]["sold"] == pytest.approx(5310)
        assert any(row["advisor_id"] == "__unassigned__" for row in rows)
        assert r.json()["chart"] is not None

    def test_performance_filtered(self, client):
        r = client.post("/performance", json={"advisor_filter": "adv-2"})
        rows = r.json()["rows"]
        assert [row["advisor_id"] for row in rows] == ["adv-2"]

    def test_history(self, client):
        r = client.post("/history", json={"status": "approved"})
        assert r.status_code == 200
        assert r.json()["kpis"]["count"] == 2

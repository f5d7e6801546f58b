"""Advisor performance aggregation and chart payload."""
import pytest

from core.metrics_performance import (
    EMPTY_MESSAGE,
    UNASSIGNED_ID,
    UNASSIGNED_NAME,
    advisor_performance_rows,
    compute_advisor_performance,
)
from core.models import Advisor


class TestAdvisorPerformanceRows:

    def test_all_advisors_seeded_and_sorted_by_sold(self, advisors, make_quotation):
        quotations = [
            make_quotation("a", "adv-1", 100.0, "approved"),
            make_quotation("b", "adv-1", 50.0, "pending"),
            make_quotation("c", "adv-2", 300.0, "approved"),
        ]
        rows = advisor_performance_rows(advisors, quotations)
        assert [r["advisor_id"] for r in rows] == ["adv-2", "adv-1", "adv-3"]
        by_id = {r["advisor_id"]: r for r in rows}
        assert by_id["adv-1"]["quoted"] == pytest.approx(150)
        assert by_id["adv-1"]["sold"] == pytest.approx(100)
        assert by_id["adv-3"] == {"advisor_id": "adv-3", "advisor_name": "Lucía Fernández", "quoted": 0.0, "sold": 0.0}

    def test_unassigned_bucket(self, advisors, make_quotation):
        rows = advisor_performance_rows(advisors, [make_quotation("a", "", 70.0, "approved")])
        unassigned = [r for r in rows if r["advisor_id"] == UNASSIGNED_ID]
        assert len(unassigned) == 1
        assert unassigned[0]["advisor_name"] == UNASSIGNED_NAME
        assert unassigned[0]["sold"] == pytest.approx(70)

    def test_unknown_advisor_keeps_id(self, advisors, make_quotation):
        rows = advisor_performance_rows(advisors, [make_quotation("a", "adv-gone", 10.0)])
        row = next(r for r in rows if r["advisor_id"] == "adv-gone")
        assert row["advisor_name"] == UNASSIGNED_NAME
        assert row["quoted"] == pytest.approx(10)

    def test_filter_scopes_advisors_and_quotations(self, advisors, make_quotation):
        quotations = [
            make_quotation("a", "adv-1", 100.0, "approved"),
            make_quotation("b", "adv-2", 300.0, "approved"),
            make_quotation("c", "", 5.0, "approved"),
        ]
        rows = advisor_performance_rows(advisors, quotations, "adv-1")
        assert rows == [{"advisor_id": "adv-1", "advisor_name": "María Quispe", "quoted": 100.0, "sold": 100.0}]

    def test_filter_on_unknown_advisor_is_empty(self, advisors, make_quotation):
        assert advisor_performance_rows(advisors, [make_quotation("a", "adv-1")], "adv-404") == []

    def test_ties_keep_insertion_order(self, make_quotation):
        advisors = [Advisor("x", "X"), Advisor("y", "Y")]
        rows = advisor_performance_rows(advisors, [])
        assert [r["advisor_id"] for r in rows] == ["x", "y"]


class TestComputeAdvisorPerformance:

    def test_empty_payload(self):
        payload = compute_advisor_performance([], [])
        assert payload["empty"] is True
        assert payload["chart"] is None
        assert payload["message"] == EMPTY_MESSAGE
        assert payload["filters"]["advisor_filter"] == "all"

    def test_chart_spec(self, advisors, make_quotation):
        payload = compute_advisor_performance(advisors, [make_quotation("a", "adv-1", 10.0, "approved")])
        assert payload["empty"] is False
        spec = payload["chart"]
        assert spec["mark"]["type"] == "bar"
        assert spec["encoding"]["x"]["field"] == "advisor_name"
        assert spec["encoding"]["y"]["field"] == "amount"
        assert len(payload["rows"]) == 3

    def test_axis_labels_use_compact_units(self, advisors, make_quotation):
        payload = compute_advisor_performance(advisors, [make_quotation("a", "adv-1", 10.0, "approved")])
        expr = payload["chart"]["encoding"]["y"]["axis"]["labelExpr"]
        assert "' B'" in expr and "' M'" in expr and "' mil'" in expr
        assert "mil M" not in expr
        assert ".2~f" not in expr

from __future__ import annotations

from typing import Any, Dict

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

SERIES_LABELS = {
    "quoted": "Total Cotizado",
    "sold": "Total Vendido (Aprobadas)",
}
SERIES_COLORS = {
    "quoted": "#2563eb",
    "sold": "#16a34a",
}

# Vega expression mirroring core.formatting.format_compact_currency; the cut-offs
# are where the one-decimal rounding reaches the next unit.
_COMPACT_LABEL_EXPR = (
    "abs(datum.value) >= 999999950000 ? 'S/. ' + format(datum.value / 1e12, '.1~f') + ' B'"
    " : abs(datum.value) >= 9999999950 ? 'S/. ' + format(datum.value / 1e6, ',.1~f') + ' M'"
    " : abs(datum.value) >= 999950 ? 'S/. ' + format(datum.value / 1e6, '.1~f') + ' M'"
    " : abs(datum.value) >= 999.95 ? 'S/. ' + format(datum.value / 1e3, '.1~f') + ' mil'"
    " : 'S/. ' + format(datum.value, '.1~f')"
)


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def advisor_performance_chart(rows: pd.DataFrame) -> alt.Chart:
    """Grouped bars of quoted vs sold per advisor, ordered as ``rows``."""
    long_df = rows.melt(
        id_vars=["advisor_id", "advisor_name"],
        value_vars=["quoted", "sold"],
        var_name="series",
        value_name="amount",
    )
    long_df["series_label"] = long_df["series"].map(SERIES_LABELS)
    advisor_order = rows["advisor_name"].tolist()
    series_order = [SERIES_LABELS["quoted"], SERIES_LABELS["sold"]]

    return (
        alt.Chart(long_df)
        .mark_bar(cornerRadiusTopLeft=6, cornerRadiusTopRight=6)
        .encode(
            x=alt.X(
                "advisor_name:N",
                title=None,
                sort=advisor_order,
                axis=alt.Axis(labelAngle=-20, labelAlign="right", ticks=False, domain=False, labelOverlap=False),
            ),
            xOffset=alt.XOffset("series_label:N", sort=series_order),
            y=alt.Y(
                "amount:Q",
                title=None,
                axis=alt.Axis(labelExpr=_COMPACT_LABEL_EXPR, gridDash=[3, 3], domain=False, ticks=False),
            ),
            color=alt.Color(
                "series_label:N",
                title=None,
                sort=series_order,
                scale=alt.Scale(domain=series_order, range=[SERIES_COLORS["quoted"], SERIES_COLORS["sold"]]),
                legend=alt.Legend(orient="bottom"),
            ),
            tooltip=[
                alt.Tooltip("advisor_name:N", title="Asesor"),
                alt.Tooltip("series_label:N", title="Serie"),
                alt.Tooltip("amount_label:N", title="Monto"),
            ],
        )
        .transform_calculate(amount_label="'S/. ' + format(datum.amount, ',.2f')")
        .properties(height=340)
    )

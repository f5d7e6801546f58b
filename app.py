import logging
from contextlib import contextmanager
from typing import Dict, List, Optional

import altair as alt
import pandas as pd
import streamlit as st

from core.charts import advisor_performance_chart
from core.confirmation import DeleteConfirmation
from core.data import QuotationNotFoundError, get_store
from core.filters import ALL, HistoryFilters
from core.formatting import format_currency, format_percent
from core.metrics_history import STATUS_LABELS, compute_quotation_history
from core.metrics_performance import EMPTY_MESSAGE, ROW_COLUMNS, advisor_performance_rows
from core.models import COMPANY_SIZES, PRICE_FIELD_FOR, SERVICE_FIELDS, Advisor, ClientData, IsoStandard, Quotation
from core.pricing import (
    QuotationEdits,
    apply_quotation_edits,
    calculate_totals,
    displayed_price,
    edits_from_quotation,
    parse_amount,
    parse_quantity,
    set_iso_price,
    toggle_iso_service,
)

alt.data_transformers.disable_max_rows()
logger = logging.getLogger(__name__)

SERVICE_LABELS = {
    "certification": ("Certificación", "Precio Cert."),
    "follow_up": ("Seguimiento", "Precio Seg."),
    "recertification": ("Recertificación", "Precio Recert."),
}
COMPANY_SIZE_LABELS = {"pequeña": "Pequeña", "mediana": "Mediana", "grande": "Grande"}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .totals-row {display: flex;justify-content: space-between;}
        .totals-row.discount {color: #dc2626;}
        .totals-row.grand {font-weight: 700;font-size: 1.1rem;border-top: 1px solid #e5e7eb;padding-top: 6px;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def render_page_header(title: str, breadcrumb: str, export_df: Optional[pd.DataFrame] = None, export_name: str = "export.csv"):
    inject_base_styles()
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if export_df is not None and not export_df.empty:
            st.download_button(
                "Exportar CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name=export_name,
                mime="text/csv",
            )


def _totals_row(label: str, value: str, css: str = "") -> str:
    return f"<div class='totals-row {css}'><span>{label}</span><span>{value}</span></div>"


# ---------- Dialogs ----------
@st.dialog("Editar Cotización", width="large")
def quotation_edit_dialog(quotation: Quotation, advisors: List[Advisor], iso_standards: List[IsoStandard]):
    state_key = f"edit_state_{quotation.id}"
    if state_key not in st.session_state:
        st.session_state[state_key] = edits_from_quotation(quotation)
    edits: QuotationEdits = st.session_state[state_key]
    qid = quotation.id

    st.subheader(f"Editar Cotización {quotation.code}")

    st.markdown("#### Datos del Cliente")
    c1, c2 = st.columns(2)
    ruc = c1.text_input("RUC", value=edits.client.ruc, key=f"ruc_{qid}")
    razon_social = c2.text_input("Razón Social", value=edits.client.razon_social, key=f"razon_{qid}")
    representante = c1.text_input("Representante", value=edits.client.representante, key=f"rep_{qid}")
    celular = c2.text_input("Celular", value=edits.client.celular, key=f"cel_{qid}")
    correo = c1.text_input("Correo", value=edits.client.correo, key=f"mail_{qid}")
    advisor_ids = [a.id for a in advisors]
    advisor_names = {a.id: a.name for a in advisors}
    asesor_id = c2.selectbox(
        "Asesor",
        options=advisor_ids,
        index=advisor_ids.index(edits.client.asesor_id) if edits.client.asesor_id in advisor_ids else None,
        format_func=lambda a: advisor_names.get(a, a),
        placeholder="Seleccionar asesor",
        key=f"asesor_{qid}",
    )
    edits.client = ClientData(
        ruc=ruc,
        razon_social=razon_social,
        representante=representante,
        celular=celular,
        correo=correo,
        asesor_id=asesor_id or edits.client.asesor_id,
    )

    st.markdown("#### Normas ISO")
    header = st.columns([2, 1, 2, 1, 2, 1, 2])
    header[0].markdown("**Norma**")
    for i, service in enumerate(SERVICE_FIELDS):
        header[1 + 2 * i].markdown(f"**{SERVICE_LABELS[service][0]}**")
        header[2 + 2 * i].markdown(f"**{SERVICE_LABELS[service][1]}**")

    for standard in iso_standards:
        cols = st.columns([2, 1, 2, 1, 2, 1, 2])
        cols[0].markdown(standard.code)
        for i, service in enumerate(SERVICE_FIELDS):
            selected = next((s for s in edits.selected_isos if s.iso_id == standard.id), None)
            checked = bool(getattr(selected, service, False)) if selected is not None else False
            new_checked = cols[1 + 2 * i].checkbox(
                SERVICE_LABELS[service][0],
                value=checked,
                key=f"{service}_{qid}_{standard.id}",
                label_visibility="collapsed",
            )
            if new_checked != checked:
                edits.selected_isos = toggle_iso_service(edits.selected_isos, iso_standards, standard.id, service, new_checked)
                selected = next((s for s in edits.selected_isos if s.iso_id == standard.id), None)

            price_field = PRICE_FIELD_FOR[service]
            shown = displayed_price(selected, standard, price_field)
            new_price = cols[2 + 2 * i].number_input(
                SERVICE_LABELS[service][1],
                value=float(shown),
                step=100.0,
                disabled=not new_checked,
                key=f"{price_field}_{qid}_{standard.id}",
                label_visibility="collapsed",
            )
            if selected is not None and new_price != shown:
                edits.selected_isos = set_iso_price(edits.selected_isos, standard.id, price_field, parse_amount(new_price))

    left, right = st.columns(2)
    with left:
        st.markdown("#### Opciones de Precio")
        edits.include_igv = st.toggle("Incluir IGV (18%)", value=edits.include_igv, key=f"igv_{qid}")
        edits.discount = parse_amount(
            st.number_input("Descuento (S/)", value=float(edits.discount), step=50.0, key=f"discount_{qid}")
        )
    with right:
        impl = edits.implementation
        impl.enabled = st.toggle("Servicio de Implementación", value=impl.enabled, key=f"impl_{qid}")
        if impl.enabled:
            impl.company_size = st.selectbox(
                "Tamaño de Empresa",
                options=COMPANY_SIZES,
                index=COMPANY_SIZES.index(impl.company_size) if impl.company_size in COMPANY_SIZES else 0,
                format_func=lambda s: COMPANY_SIZE_LABELS.get(s, s),
                key=f"size_{qid}",
            )
            ic1, ic2 = st.columns(2)
            impl.unit_price = parse_amount(
                ic1.number_input("Precio Unitario (S/)", value=float(impl.unit_price), step=100.0, key=f"unit_{qid}")
            )
            impl.quantity = parse_quantity(
                ic2.number_input("Cantidad", min_value=1, value=int(impl.quantity), step=1, key=f"qty_{qid}")
            )

    totals = calculate_totals(edits.selected_isos, edits.discount, edits.include_igv, edits.implementation)
    rows = [
        _totals_row("Subtotal Certificación:", format_currency(totals.subtotal)),
        _totals_row("Descuento:", f"-{format_currency(edits.discount)}", "discount"),
    ]
    if edits.include_igv:
        rows.append(_totals_row("IGV (18%):", format_currency(totals.igv)))
    rows.append(_totals_row("<b>Total Certificación:</b>", f"<b>{format_currency(totals.total_certificacion)}</b>"))
    if edits.implementation.enabled:
        rows.append(_totals_row("Total Implementación:", format_currency(totals.implementation_total)))
    rows.append(_totals_row("TOTAL GENERAL:", format_currency(totals.total), "grand"))
    st.markdown("".join(rows), unsafe_allow_html=True)

    b1, b2 = st.columns(2)
    if b1.button("Cancelar", key=f"cancel_{qid}", use_container_width=True):
        del st.session_state[state_key]
        st.rerun()
    if b2.button("Guardar Cambios", key=f"save_{qid}", type="primary", use_container_width=True):
        try:
            with st.spinner("Guardando..."):
                get_store().update_quotation(apply_quotation_edits(quotation, edits))
        except Exception:
            logger.exception("update_quotation failed for %s", quotation.id)
            st.toast("Error: No se pudo actualizar la cotización", icon="❌")
        else:
            del st.session_state[state_key]
            st.session_state["_pending_toast"] = "Cotización actualizada: Los cambios se han guardado correctamente"
            st.rerun()


@st.dialog("Confirmar eliminación")
def delete_with_code_dialog(quotation: Quotation):
    state_key = f"delete_state_{quotation.id}"
    if state_key not in st.session_state:
        st.session_state[state_key] = DeleteConfirmation(open=True)
    confirmation: DeleteConfirmation = st.session_state[state_key]

    st.markdown(f"**{confirmation.title}**")
    st.caption(confirmation.description)
    with st.form(f"delete_form_{quotation.id}", clear_on_submit=True, border=False):
        code = st.text_input(
            "Ingrese el código de verificación para eliminar:",
            type="password",
            placeholder="Código de verificación",
        )
        submitted = st.form_submit_button("Eliminar", type="primary")
    if st.button("Cancelar", key=f"delete_cancel_{quotation.id}"):
        confirmation.set_open(False)
        del st.session_state[state_key]
        st.rerun()

    if submitted:
        confirmation.set_code(code)
        try:
            outcome = confirmation.confirm(lambda: get_store().delete_quotation(quotation.id))
        except QuotationNotFoundError:
            logger.warning("quotation %s was already deleted", quotation.id)
            del st.session_state[state_key]
            st.session_state["_pending_toast"] = f"La cotización {quotation.code} ya no existe"
            st.session_state["_pending_toast_icon"] = "❌"
            st.rerun()
        if outcome.ok:
            del st.session_state[state_key]
            st.session_state["_pending_toast"] = f"Cotización {quotation.code} eliminada"
            st.rerun()
        else:
            st.toast(f"{outcome.toast_title}: {outcome.toast_description}", icon="⚠️")


# ---------- UI setup ----------
st.set_page_config(page_title="Cotizaciones ISO", layout="wide")
inject_base_styles()
st.title("Cotizaciones ISO")
st.caption("Seguimiento de cotizaciones de certificación y desempeño de asesores.")

if "_pending_toast" in st.session_state:
    st.toast(st.session_state.pop("_pending_toast"), icon=st.session_state.pop("_pending_toast_icon", "✅"))

store = get_store()
advisors = store.load_advisors()
iso_standards = store.load_iso_standards()
quotations = store.load_quotations()

# ----- Sidebar: navigation + filters -----
with st.sidebar:
    st.markdown("### Navegación")
    nav_choice = st.radio("Navegación", ["Historial", "Cotizaciones"], index=0, label_visibility="collapsed")

    st.markdown("---")
    st.markdown("### Filtros")
    advisor_options = [ALL] + [a.id for a in advisors]
    advisor_labels: Dict[str, str] = {ALL: "Todos los asesores", **{a.id: a.name for a in advisors}}
    advisor_filter = st.selectbox("Asesor", options=advisor_options, format_func=lambda a: advisor_labels.get(a, a))
    status_options = [ALL] + list(STATUS_LABELS)
    status = st.selectbox("Estado", options=status_options, format_func=lambda s: STATUS_LABELS.get(s, "Todos"))
    query = st.text_input("Buscar (código, RUC o razón social)", "")

filters = HistoryFilters(advisor_filter=advisor_filter, status=status, query=query.strip())
history = compute_quotation_history(advisors, quotations, filters)
history_df = pd.DataFrame(history["rows"])


def render_history_page():
    render_page_header("Historial", "Inicio / Historial", export_df=history_df, export_name="historial.csv")
    kpis = history["kpis"]
    cols = st.columns(4)
    cols[0].metric("Cotizaciones", f"{kpis['count']:,}")
    cols[1].metric("Total Cotizado", format_currency(kpis["quoted"]))
    cols[2].metric("Total Vendido", format_currency(kpis["sold"]))
    cols[3].metric("Tasa de aprobación", format_percent(kpis["approval_rate"]))

    with card("Desempeño por asesor"):
        rows = advisor_performance_rows(advisors, quotations, filters.advisor_filter)
        if not rows:
            st.info(EMPTY_MESSAGE)
        else:
            st.altair_chart(advisor_performance_chart(pd.DataFrame(rows, columns=ROW_COLUMNS)), use_container_width=True)

    with card("Cotizaciones"):
        if history_df.empty:
            st.info("No hay cotizaciones para los filtros seleccionados.")
        else:
            view = history_df[["code", "razon_social", "advisor_name", "status_label", "created_at", "total"]].copy()
            view["total"] = view["total"].apply(format_currency)
            view.columns = ["Código", "Razón Social", "Asesor", "Estado", "Fecha", "Total"]
            st.dataframe(view, hide_index=True, use_container_width=True)


def render_quotations_page():
    render_page_header("Cotizaciones", "Inicio / Cotizaciones")
    if history_df.empty:
        st.info("No hay cotizaciones para los filtros seleccionados.")
        return
    by_id = {q.id: q for q in quotations}
    for record in history["rows"]:
        q = by_id.get(record["id"])
        if q is None:
            continue
        cols = st.columns([2, 4, 2, 2, 2, 1, 1])
        cols[0].markdown(f"**{q.code}**")
        cols[1].markdown(q.client.razon_social or "—")
        cols[2].markdown(record["advisor_name"])
        cols[3].markdown(record["status_label"])
        cols[4].markdown(format_currency(q.total))
        if cols[5].button("Editar", key=f"edit_btn_{q.id}"):
            st.session_state.pop(f"edit_state_{q.id}", None)
            quotation_edit_dialog(q, advisors, iso_standards)
        if cols[6].button("Eliminar", key=f"del_btn_{q.id}"):
            st.session_state.pop(f"delete_state_{q.id}", None)
            delete_with_code_dialog(q)


if nav_choice == "Historial":
    render_history_page()
else:
    render_quotations_page()

# run.py — Dashboard
# =============================================================================
# PREVISÃO: consumo diário por ração, estoque/ruptura e alertas de pedido
# CRESCIMENTO: projeção por tanque (peso, biomassa, ração) em modo comparação
# Datas "DD/MM"
# =============================================================================

from __future__ import annotations

from datetime import date
from typing import List

import pandas as pd
import plotly.graph_objects as go
import plotly.express as px
import streamlit as st

from config.snapshot import FARM_SNAPSHOT_PATH
from aquaforecast.domain.enums import ForecastAlertType
from aquaforecast.domain.use_cases.forecast_feed_consumption_use_case import FeedForecastInput
from aquaforecast.infrastructure.bootstrap import build_use_cases
from aquaforecast.infrastructure.reporting.frames import (
    alerts_to_frame, consumption_to_frame, multi_tank_frame, stock_table,
)

st.set_page_config(page_title="Previsão de Ração", layout="wide")

# =============================================================================
# ROTAS
# =============================================================================
ROUTES = ("forecast", "growth")
if "route" not in st.session_state:
    st.session_state.route = "forecast"

def navigate(to: str):
    st.session_state.route = to
    st.rerun()

# =============================================================================
# SIDEBAR
# =============================================================================
st.sidebar.header("Controles")
snapshot_path = st.sidebar.text_input("Snapshot da fazenda", value=str(FARM_SNAPSHOT_PATH))
forecast_days = st.sidebar.slider("Horizonte (dias)", 7, 120, 30, 1)
lead_time = st.sidebar.slider("Prazo do fornecedor (dias)", 1, 30, 7, 1)
safety_stock = st.sidebar.slider("Estoque de segurança (dias)", 0, 30, 5, 1)
temp_c = st.sidebar.number_input("Temperatura da água (°C)", 0.0, 35.0, 15.0, 0.5)

for label, route in (("Previsão", "forecast"), ("Crescimento", "growth")):
    if st.sidebar.button(label, key=f"nav_{route}", use_container_width=True):
        navigate(route)

# =============================================================================
# DADOS
# =============================================================================
# só a montagem fica em cache; cada previsão/simulação relê o arquivo
@st.cache_resource(show_spinner=False)
def get_use_cases(path: str):
    return build_use_cases(path)

def fmt_day(d: date | None) -> str:
    return d.strftime("%d/%m") if d else "—"

ALERT_STYLE = {
    ForecastAlertType.STOCKOUT_IMMINENT.name: "error",
    ForecastAlertType.REORDER_NOW.name: "warning",
    ForecastAlertType.LOW_STOCK.name: "info",
}

# =============================================================================
# PÁGINA: PREVISÃO
# =============================================================================
def page_forecast():
    uc = get_use_cases(snapshot_path)
    with st.spinner("Simulando tanques…"):
        summary = uc.forecast.execute(FeedForecastInput(
            forecast_days=forecast_days,
            lead_time_days=lead_time,
            safety_stock_days=safety_stock,
            temperature_forecast=[temp_c] * (forecast_days + 1),
        ))

    st.subheader(f"Consumo de ração • {fmt_day(summary.start_date)} → {fmt_day(summary.end_date)}")
    c1, c2, c3 = st.columns(3)
    c1.metric("Tanques simulados", summary.tanks_simulated)
    c2.metric("Consumo previsto (kg)", f"{summary.total_consumption:,.1f}")
    c3.metric("Estoque atual (kg)", f"{summary.total_current_stock:,.1f}")

    if summary.partial:
        st.warning("Previsão parcial: alguns tanques não terminaram a simulação.")
    for w in summary.warnings:
        st.warning(w)

    # alertas (mais urgente primeiro)
    adf = alerts_to_frame(summary)
    for _, a in adf.iterrows():
        getattr(st, ALERT_STYLE.get(a["type"], "info"))(a["message"])

    cdf = consumption_to_frame(summary)
    if cdf.empty:
        st.info("Nenhum consumo previsto (sem tanques com ração atribuída).")
        return

    fig = px.bar(cdf, x="date", y="consumption_kg", color="feed_code",
                 labels={"date": "", "consumption_kg": "kg/dia", "feed_code": "Ração"})
    fig.update_layout(height=320, margin=dict(l=10, r=10, t=10, b=10), barmode="stack")
    st.plotly_chart(fig, use_container_width=True)

    # acumulado x estoque por ração
    fig2 = go.Figure()
    for f in summary.by_feed_type:
        sub = cdf[cdf["feed_code"] == f.feed_code]
        fig2.add_trace(go.Scatter(x=sub["date"], y=sub["cumulative_kg"], mode="lines", name=f"{f.feed_code} acumulado"))
        fig2.add_trace(go.Scatter(x=[sub["date"].min(), sub["date"].max()], y=[f.current_stock] * 2,
                                  mode="lines", line=dict(dash="dash"), name=f"{f.feed_code} estoque"))
    fig2.update_layout(height=320, margin=dict(l=10, r=10, t=10, b=10), yaxis_title="kg")
    st.plotly_chart(fig2, use_container_width=True)

    table = stock_table(summary)
    table["stockout_date"] = table["stockout_date"].map(fmt_day)
    table["reorder_date"] = table["reorder_date"].map(fmt_day)
    st.dataframe(table, use_container_width=True, hide_index=True)

# =============================================================================
# PÁGINA: CRESCIMENTO
# =============================================================================
def page_growth():
    uc = get_use_cases(snapshot_path)
    tanks = uc.growth.get_active_tanks()
    if not tanks:
        st.info("Nenhum tanque com peixe no snapshot.")
        return

    labels = {t.tank_id: t.label for t in tanks}
    chosen: List[str] = st.multiselect("Tanques", options=list(labels), default=list(labels),
                                       format_func=lambda tid: labels[tid])
    if not chosen:
        return

    results = uc.growth.simulate_multi_tank(chosen, forecast_days,
                                            temperature_forecast=[temp_c] * (forecast_days + 1))
    df = multi_tank_frame(results)
    df["tank"] = df["tank_id"].map(labels)

    c1, c2 = st.columns(2)
    fig_w = px.line(df, x="date", y="avg_weight_g", color="tank", labels={"avg_weight_g": "peso médio (g)", "date": ""})
    fig_w.update_layout(height=300, margin=dict(l=10, r=10, t=10, b=10))
    c1.plotly_chart(fig_w, use_container_width=True)
    fig_b = px.line(df, x="date", y="biomass_kg", color="tank", labels={"biomass_kg": "biomassa (kg)", "date": ""})
    fig_b.update_layout(height=300, margin=dict(l=10, r=10, t=10, b=10))
    c2.plotly_chart(fig_b, use_container_width=True)

    resumo = pd.DataFrame([{
        "tanque": labels.get(r.tank_id, r.tank_id),
        "SGR %": r.sgr_percent,
        "peso inicial (g)": r.summary.start_weight,
        "peso final (g)": r.summary.end_weight,
        "ração total (kg)": r.summary.total_feed_kg,
        "FCR": r.summary.avg_fcr,
        "mortalidade": r.summary.total_mortality,
    } for r in results])
    st.dataframe(resumo, use_container_width=True, hide_index=True)

# =============================================================================
# MAIN
# =============================================================================
if st.session_state.route == "growth":
    page_growth()
else:
    page_forecast()

import json
from copy import deepcopy

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from agency_forecast.defaults import DEFAULTS
from agency_forecast.input_metadata import AUTOMATION_LEVEL_LABELS, advisory_warnings, help_with_guidance
from agency_forecast.integrity_checks import run_integrity_checks
from agency_forecast.metrics import cashflow_chart_frame, summarize
from agency_forecast.model import run_model
from agency_forecast.runtime_logging import (
    append_runtime_event,
    count_events_by_level,
    install_global_exception_logging,
    log_projection_diagnostics,
    read_runtime_events,
    runtime_log_path,
)
from agency_forecast.schema import migrate_assumptions


install_global_exception_logging()


DETAIL_DEFAULT_COLUMNS = [
    "Total Agents",
    "Issued Households",
    "Monthly Commission",
    "Residual Income",
    "Total Revenue",
    "Total Cost",
    "Net Profit",
    "CSR Count",
    "Retention Rate",
]

UI_DEFAULTS = {
    "capacity_aware_retention": True,
    "detail_selected_columns": list(DETAIL_DEFAULT_COLUMNS),
}

SUMMARY_TABLE_COLUMNS = {
    "Issued Households": "Policies",
    "Total Premium": "Premium",
    "Total Revenue": "Revenue",
    "Residual Income": "Residuals",
    "Total Cost": "Cost",
    "Net Profit": "Profit",
}

CURRENCY_KEY_TOKENS = ("revenue", "cost", "profit", "premium", "commission", "income", "residual")
PCT_COLUMNS = {"Retention Rate", "Capacity Utilization", "Ramp Multiplier"}


def _init_session_state() -> None:
    for key, value in DEFAULTS.items():
        if key not in st.session_state:
            st.session_state[key] = deepcopy(value)
    for key, value in UI_DEFAULTS.items():
        if key not in st.session_state:
            st.session_state[key] = deepcopy(value)
    if st.session_state.get("automation_level") is None:
        st.session_state["automation_level"] = DEFAULTS["automation_level"]


def _reset_assumptions() -> None:
    for key, value in DEFAULTS.items():
        st.session_state[key] = deepcopy(value)
    for key, value in UI_DEFAULTS.items():
        st.session_state[key] = deepcopy(value)
    append_runtime_event(level="INFO", event="assumptions_reset", message="Assumptions reset to defaults.")


def _assumptions_from_state() -> dict:
    assumptions = {k: deepcopy(st.session_state.get(k, v)) for k, v in DEFAULTS.items()}
    if not st.session_state.get("capacity_aware_retention", True):
        assumptions["automation_level"] = None
    return assumptions


def _serialize_assumptions(assumptions: dict) -> str:
    return json.dumps(assumptions, sort_keys=True, separators=(",", ":"))


@st.cache_data(show_spinner=False)
def _run_model_cached(assumptions_json: str) -> pd.DataFrame:
    assumptions = json.loads(assumptions_json)
    return run_model(assumptions)


def _format_currency_value(x: float) -> str:
    if x < 0:
        return f"-${abs(x):,.0f}"
    return f"${x:,.0f}"


def _format_dataframe_for_display(df: pd.DataFrame) -> pd.DataFrame:
    if not isinstance(df, pd.DataFrame) or df.empty:
        return df
    out = df.copy()
    for col in out.columns:
        if not pd.api.types.is_numeric_dtype(out[col]):
            continue
        col_l = str(col).lower()
        if col in PCT_COLUMNS:
            out[col] = out[col].map(lambda v: "" if pd.isna(v) else f"{100 * float(v):,.1f}%")
        elif any(tok in col_l for tok in CURRENCY_KEY_TOKENS):
            out[col] = out[col].map(lambda v: "" if pd.isna(v) else _format_currency_value(float(v)))
        else:
            out[col] = out[col].map(lambda v: "" if pd.isna(v) else f"{float(v):,.0f}")
    return out


def _summary_table(summary: pd.DataFrame) -> pd.DataFrame:
    table = summary[list(SUMMARY_TABLE_COLUMNS)].rename(columns=SUMMARY_TABLE_COLUMNS)
    return table.reset_index()


def _cashflow_figure(chart_df: pd.DataFrame) -> go.Figure:
    fig = go.Figure()
    colors = {"Revenue": "#3b82f6", "Cost": "#ef4444", "Profit": "#10b981", "Cumulative Profit": "#8b5cf6"}
    for series, color in colors.items():
        fig.add_trace(go.Bar(x=chart_df["Month"], y=chart_df[series].round(0), name=series, marker_color=color))
    fig.update_layout(
        title="Monthly Cashflow - First 24 Months",
        barmode="group",
        yaxis=dict(tickprefix="$", tickformat=",.0f"),
        legend=dict(orientation="h"),
    )
    return fig


def _csr_figure(df: pd.DataFrame) -> go.Figure:
    fig = go.Figure()
    fig.add_trace(go.Bar(x=df["Month_Label"], y=df["CSR Count"], name="CSR Count", marker_color="#14b8a6"))
    fig.add_trace(
        go.Scatter(
            x=df["Month_Label"],
            y=100 * df["Retention Rate"],
            name="Retention Rate %",
            yaxis="y2",
            mode="lines+markers",
        )
    )
    fig.add_trace(
        go.Scatter(
            x=df["Month_Label"],
            y=100 * df["Capacity Utilization"],
            name="Capacity Utilization %",
            yaxis="y2",
            mode="lines",
            line=dict(dash="dot"),
        )
    )
    fig.update_layout(
        title="CSR Staffing, Capacity and Retention",
        yaxis=dict(title="CSRs"),
        yaxis2=dict(title="%", overlaying="y", side="right"),
        legend=dict(orientation="h"),
    )
    return fig


def _render_sidebar() -> None:
    sb = st.sidebar
    sb.header("Assumptions")
    sb.caption("Adjust inputs to see updated cashflow & profit")

    sb.subheader("Core Inputs")
    sb.number_input(
        "Starting Agents (Q1)",
        min_value=0,
        step=1,
        key="starting_agents",
        help=help_with_guidance("starting_agents", "Agents hired in the first quarter."),
    )
    sb.number_input(
        "Additional Agents/Quarter",
        min_value=0,
        step=1,
        key="additional_agents_per_quarter",
        help=help_with_guidance("additional_agents_per_quarter", "Cohort hired at the start of every later quarter."),
    )
    sb.number_input(
        "Calls/Agent/Day",
        min_value=0,
        step=1,
        key="calls_per_day",
        help=help_with_guidance("calls_per_day", "Calls each agent handles per working day."),
    )
    sb.toggle(
        "New-agent ramp-up",
        key="ramp_up",
        help="New cohorts produce 50%, 65% and 80% of full output in their first three months.",
    )

    with sb.expander("Advanced Settings", expanded=False):
        st.markdown("**CSR / Service**")
        st.number_input(
            "Number of CSRs",
            min_value=0,
            step=1,
            key="csr_count",
            help=help_with_guidance("csr_count", "Starting customer service headcount."),
        )
        st.number_input(
            "CSR Hourly Wage ($)",
            min_value=0.0,
            step=0.5,
            key="csr_hourly_wage",
            help=help_with_guidance("csr_hourly_wage", "Hourly pay for each CSR (8 hours per working day)."),
        )
        st.slider(
            "CSR Quality Level",
            min_value=1,
            max_value=5,
            key="csr_quality_level",
            help=help_with_guidance("csr_quality_level", "Service quality on a 1-5 scale."),
        )
        c1, c2 = st.columns(2)
        c1.number_input(
            "CSR Start Month",
            min_value=1,
            max_value=24,
            step=1,
            key="csr_start_month",
            help="First month CSR wages and training are paid.",
        )
        c2.number_input(
            "CSR End Month",
            min_value=1,
            max_value=24,
            step=1,
            key="csr_end_month",
            help="Last month CSR wages and training are paid.",
        )
        st.number_input(
            "Response Time (hours)",
            min_value=0.0,
            step=1.0,
            key="csr_response_time",
            help=help_with_guidance("csr_response_time", "Average hours to respond to a client."),
        )
        st.number_input(
            "Training Investment ($/CSR/year)",
            min_value=0.0,
            step=100.0,
            key="csr_training_investment",
            help=help_with_guidance("csr_training_investment", "Annual training spend per CSR."),
        )

        st.markdown("**Automation & Capacity**")
        st.toggle(
            "Capacity-aware retention",
            key="capacity_aware_retention",
            help="Re-evaluate retention monthly against CSR workload. Off uses one static retention rate.",
        )
        st.selectbox(
            "Automation Level",
            options=sorted(AUTOMATION_LEVEL_LABELS),
            format_func=lambda level: f"{level} - {AUTOMATION_LEVEL_LABELS[level]}",
            key="automation_level",
            help=help_with_guidance("automation_level", "Households one CSR can service."),
        )
        st.checkbox(
            "Auto-hire CSRs when capacity reached",
            key="auto_hire_csrs",
            help="Raise CSR headcount whenever cumulative households exceed CSR capacity. Never reduces headcount.",
        )

        st.markdown("**Lead Mix & Cost**")
        st.number_input(
            "Cost per Inbound Call ($)",
            min_value=0.0,
            step=1.0,
            key="cost_inbound",
            help=help_with_guidance("cost_inbound", "Cost of each inbound call."),
        )
        st.slider(
            "% inbound (vs. transfers)",
            min_value=0.0,
            max_value=100.0,
            step=1.0,
            key="pct_inbound",
            help=help_with_guidance("pct_inbound", "Share of calls that are inbound."),
        )
        st.number_input(
            "Cost per live transfer ($)",
            min_value=0.0,
            step=1.0,
            key="cost_transfer",
            help=help_with_guidance("cost_transfer", "Cost of each live transfer."),
        )
        st.number_input(
            "% inbound conversion rate",
            min_value=0.0,
            max_value=100.0,
            step=0.5,
            key="inbound_conv",
            help=help_with_guidance("inbound_conv", "Inbound calls converting to a household."),
        )
        st.number_input(
            "% transfer conversion rate",
            min_value=0.0,
            max_value=100.0,
            step=0.5,
            key="transfer_conv",
            help=help_with_guidance("transfer_conv", "Live transfers converting to a household."),
        )

        st.markdown("**Commission**")
        st.number_input(
            "Auto Commission %",
            min_value=0.0,
            max_value=100.0,
            step=0.5,
            key="auto_comm",
            help=help_with_guidance("auto_comm", "Commission on auto premium."),
        )
        st.number_input(
            "Home Commission %",
            min_value=0.0,
            max_value=100.0,
            step=0.5,
            key="home_comm",
            help=help_with_guidance("home_comm", "Commission on fire/home premium."),
        )

        st.markdown("**Additional Monthly Costs**")
        st.number_input(
            "E&O Coverage ($)",
            min_value=0.0,
            step=50.0,
            key="eo_coverage_cost",
            help=help_with_guidance("eo_coverage_cost", "Monthly errors and omissions premium."),
        )
        st.number_input(
            "Software Cost ($)",
            min_value=0.0,
            step=50.0,
            key="software_cost",
            help=help_with_guidance("software_cost", "Monthly software subscriptions."),
        )

    sb.button("Reset", on_click=_reset_assumptions, help="Restore every assumption to its default value.")


st.set_page_config(page_title="Agency Growth Projection", layout="wide")
_init_session_state()
_render_sidebar()

st.title("Agency Growth Projection")

assumptions, schema_warnings, unknown_keys = migrate_assumptions(_assumptions_from_state())
input_warnings: list[str] = []
input_warnings.extend(schema_warnings)
if unknown_keys:
    input_warnings.append(f"Ignored unknown keys: {', '.join(unknown_keys)}")
input_warnings.extend(advisory_warnings(assumptions))
input_warnings = list(dict.fromkeys([w for w in input_warnings if str(w).strip()]))

try:
    monthly_df = _run_model_cached(_serialize_assumptions(assumptions))
except ValueError as exc:
    append_runtime_event(
        level="ERROR",
        event="model_validation_failed",
        message="Projection rejected the assumption set.",
        context={"error": str(exc)},
        exc=exc,
    )
    st.error(f"Input validation error: {exc}")
    st.stop()

if input_warnings:
    with st.expander(f"[!] Input Warnings ({len(input_warnings)})", expanded=False):
        st.caption("Projection continues using sanitized values where necessary.")
        for warning in input_warnings:
            st.write(f"- {warning}")

integrity_findings = run_integrity_checks(monthly_df)
log_projection_diagnostics(st.session_state, assumptions, input_warnings, integrity_findings)

if integrity_findings:
    with st.expander(f"[!] Integrity Findings ({len(integrity_findings)})", expanded=False):
        st.dataframe(pd.DataFrame(integrity_findings), width="stretch", hide_index=True)
else:
    st.caption("Projection integrity checks: passed.")

summary = summarize(monthly_df)
kpis = summary["kpis"]

k1, k2, k3, k4, k5 = st.columns(5)
k1.metric("Year 1 Revenue", _format_currency_value(kpis["year1_revenue"]))
k2.metric("Year 1 Costs", _format_currency_value(kpis["year1_cost"]))
k3.metric("Year 1 Profit", _format_currency_value(kpis["year1_profit"]))
k4.metric("Retention Rate", f"{round(100 * kpis['retention_rate'])}%")
k5.metric("Year 2 Residuals", _format_currency_value(kpis["year2_residuals"]))

st.plotly_chart(_cashflow_figure(cashflow_chart_frame(monthly_df)), width="stretch")

profit_col, residual_col = st.columns(2)
with profit_col:
    st.subheader("Profit")
    p1, p2 = st.columns(2)
    p1.metric("Year 1 Profit", _format_currency_value(kpis["year1_profit"]))
    p2.metric("Year 2 Profit", _format_currency_value(kpis["year2_profit"]))
with residual_col:
    st.subheader("Residuals")
    r1, r2 = st.columns(2)
    r1.metric("Year 2 Residuals", _format_currency_value(kpis["year2_residuals"]))
    r2.metric("Year 3 Residuals", _format_currency_value(kpis["year3_residuals"]))
    st.caption("Year 2 residuals are already included in Year 2 profit.")

st.plotly_chart(_csr_figure(monthly_df), width="stretch")

s1, s2 = st.columns(2)
with s1:
    with st.expander("Year 1 Summary", expanded=False):
        st.dataframe(
            _format_dataframe_for_display(_summary_table(summary["year1_summary"])), width="stretch", hide_index=True
        )
with s2:
    with st.expander("Year 2 Summary", expanded=False):
        st.dataframe(
            _format_dataframe_for_display(_summary_table(summary["year2_summary"])), width="stretch", hide_index=True
        )

with st.expander("Monthly Detail", expanded=False):
    all_columns = [c for c in monthly_df.columns if c not in {"Year", "Month", "Month_Label"}]
    selected = st.multiselect(
        "Columns",
        options=all_columns,
        key="detail_selected_columns",
        help="Monthly projection columns to show.",
    )
    detail_df = monthly_df[["Month_Label"] + selected].rename(columns={"Month_Label": "Month"})
    st.dataframe(_format_dataframe_for_display(detail_df), width="stretch", hide_index=True)
    st.download_button(
        "Download Monthly Projection CSV",
        monthly_df.to_csv(index=False),
        file_name="agency_projection.csv",
        mime="text/csv",
        help="Unformatted monthly projection rows.",
    )

with st.expander("Runtime Diagnostics", expanded=False):
    events = read_runtime_events(limit=100)
    st.caption(f"Log file: {runtime_log_path()}")
    if events:
        st.write(count_events_by_level(events))
        runtime_df = pd.DataFrame(events)
        runtime_cols = [c for c in ["timestamp_utc", "level", "event", "message"] if c in runtime_df.columns]
        st.dataframe(runtime_df[runtime_cols].iloc[::-1], width="stretch", hide_index=True)
    else:
        st.caption("No runtime events recorded.")

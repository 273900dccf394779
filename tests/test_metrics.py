from __future__ import annotations

from copy import deepcopy

import pytest

from agency_forecast.metrics import (
    QUARTER_LABELS,
    SUMMARY_COLUMNS,
    cashflow_chart_frame,
    compute_kpis,
    summarize,
    year_summary,
)
from agency_forecast.model import AssumptionSet, project, run_model


def test_year_summaries_add_up_to_their_totals(base_inputs):
    df = run_model(deepcopy(base_inputs))
    for year in (1, 2):
        summary = year_summary(df, year)
        assert list(summary.index) == QUARTER_LABELS + ["Total"]
        for col in SUMMARY_COLUMNS:
            quarters = float(summary.loc[QUARTER_LABELS, col].sum())
            total = float(summary.loc["Total", col])
            assert quarters == pytest.approx(total, rel=1e-9, abs=1e-9)


def test_quarter_rows_sum_their_three_months(base_inputs):
    df = run_model(deepcopy(base_inputs))
    year2 = year_summary(df, 2)
    months_13_to_15 = df[df["Month"].between(13, 15)]
    assert year2.loc["Q1", "Total Revenue"] == pytest.approx(float(months_13_to_15["Total Revenue"].sum()))
    assert year2.loc["Q1", "Residual Income"] > 0
    assert year_summary(df, 1).loc["Total", "Residual Income"] == 0.0


def test_kpis_follow_yearly_totals(base_inputs):
    df = run_model(deepcopy(base_inputs))
    kpis = compute_kpis(df)

    year1 = df[df["Year"] == 1]
    year2 = df[df["Year"] == 2]
    assert kpis["year1_revenue"] == pytest.approx(float(year1["Total Revenue"].sum()))
    assert kpis["year1_profit"] == pytest.approx(kpis["year1_revenue"] - kpis["year1_cost"])
    assert kpis["year2_profit"] == pytest.approx(kpis["year2_revenue"] - kpis["year2_cost"])
    assert kpis["retention_rate"] == pytest.approx(0.88)
    assert kpis["year2_residuals"] == pytest.approx(kpis["year1_revenue"] * 0.88)
    assert kpis["year3_residuals"] == pytest.approx(kpis["year2_revenue"] * 0.88)
    assert kpis["total_profit"] == pytest.approx(float(df["Net Profit"].sum()))
    assert kpis["year1_policies"] == pytest.approx(float(year1["Issued Households"].sum()))
    assert kpis["year2_policies"] == pytest.approx(float(year2["Issued Households"].sum()))
    assert kpis["ending_csr_count"] == float(df["CSR Count"].iloc[-1])


def test_year_two_revenue_already_contains_residuals(base_inputs):
    df = run_model(deepcopy(base_inputs))
    year2 = df[df["Year"] == 2]
    kpis = compute_kpis(df)
    assert kpis["year2_revenue"] == pytest.approx(
        float(year2["Monthly Commission"].sum()) + float(year2["Residual Income"].sum())
    )


def test_residual_kpi_uses_month_one_rate_even_when_retention_erodes(base_inputs):
    inputs = deepcopy(base_inputs)
    inputs["auto_hire_csrs"] = False
    df = run_model(inputs)
    kpis = compute_kpis(df)
    in_model = float(df.loc[df["Year"] == 2, "Residual Income"].sum())
    assert kpis["year2_residuals"] > in_model
    assert kpis["peak_capacity_utilization"] > 1.0


def test_summarize_accepts_month_rows(base_inputs):
    rows = project(AssumptionSet.from_mapping(base_inputs))
    from_rows = summarize(rows)
    from_frame = summarize(run_model(base_inputs))
    assert set(from_rows) == {"year1_summary", "year2_summary", "kpis"}
    assert from_rows["kpis"] == pytest.approx(from_frame["kpis"])
    assert from_rows["year1_summary"].equals(from_frame["year1_summary"])


def test_cashflow_chart_frame_tracks_cumulative_profit(base_inputs):
    df = run_model(deepcopy(base_inputs))
    chart = cashflow_chart_frame(df)
    assert list(chart.columns) == ["Month", "Revenue", "Cost", "Profit", "Cumulative Profit"]
    assert chart["Month"].tolist() == [f"M{m}" for m in range(1, 25)]
    assert chart["Cumulative Profit"].iloc[-1] == pytest.approx(float(df["Net Profit"].sum()))
    assert (chart["Profit"] == chart["Revenue"] - chart["Cost"]).all()

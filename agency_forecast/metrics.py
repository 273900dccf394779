"""Year summaries and KPI rollups for dashboard and summary outputs."""

from __future__ import annotations

import pandas as pd

from agency_forecast.model import rows_to_frame


# Additive per-month lines; stock values (headcounts, rates, running totals) are not summed.
SUMMARY_COLUMNS = [
    "Households",
    "Issued Households",
    "Autos",
    "Multi-line Policies",
    "Auto Premium",
    "Home Premium",
    "Total Premium",
    "Auto Commission",
    "Home Commission",
    "Monthly Commission",
    "Inbound Calls",
    "Transfer Calls",
    "Call Cost",
    "CSR Cost",
    "CSR Training Cost",
    "Sales Agent Commission",
    "E&O Cost",
    "Software Cost",
    "Residual Income",
    "Total Revenue",
    "Total Cost",
    "Net Profit",
]

QUARTER_LABELS = ["Q1", "Q2", "Q3", "Q4"]


def _as_frame(rows) -> pd.DataFrame:
    if isinstance(rows, pd.DataFrame):
        return rows
    return rows_to_frame(rows)


def year_summary(df: pd.DataFrame, year: int) -> pd.DataFrame:
    """Return Q1..Q4 plus Total rows for one projection year."""
    year_df = df[df["Year"] == year]
    quarter_in_year = (year_df["Quarter"] - 1) % 4
    quarters = year_df.groupby(quarter_in_year)[SUMMARY_COLUMNS].sum()
    quarters = quarters.reindex(range(4), fill_value=0.0)
    quarters.index = QUARTER_LABELS
    total = year_df[SUMMARY_COLUMNS].sum().to_frame("Total").T
    out = pd.concat([quarters, total])
    out.index.name = "Period"
    return out


def _year_value(df: pd.DataFrame, year: int, col: str) -> float:
    return float(df.loc[df["Year"] == year, col].sum())


def compute_kpis(df: pd.DataFrame) -> dict:
    year1_revenue = _year_value(df, 1, "Total Revenue")
    year1_cost = _year_value(df, 1, "Total Cost")
    year2_revenue = _year_value(df, 2, "Total Revenue")
    year2_cost = _year_value(df, 2, "Total Cost")

    # Month-1 snapshot; rows 13-24 carry their own month-by-month rate, so these
    # estimates do not reconcile with the residual income already in year 2.
    retention = float(df["Retention Rate"].iloc[0]) if len(df) else 0.0

    return {
        "year1_revenue": year1_revenue,
        "year1_cost": year1_cost,
        "year1_profit": year1_revenue - year1_cost,
        "year2_revenue": year2_revenue,
        "year2_cost": year2_cost,
        "year2_profit": year2_revenue - year2_cost,
        "retention_rate": retention,
        "year2_residuals": year1_revenue * retention,
        "year3_residuals": year2_revenue * retention,
        "total_revenue": float(df["Total Revenue"].sum()),
        "total_profit": float(df["Net Profit"].sum()),
        "year1_policies": _year_value(df, 1, "Issued Households"),
        "year2_policies": _year_value(df, 2, "Issued Households"),
        "ending_csr_count": float(df["CSR Count"].iloc[-1]) if len(df) else 0.0,
        "peak_capacity_utilization": float(df["Capacity Utilization"].max()) if len(df) else 0.0,
    }


def summarize(rows) -> dict:
    df = _as_frame(rows)
    return {
        "year1_summary": year_summary(df, 1),
        "year2_summary": year_summary(df, 2),
        "kpis": compute_kpis(df),
    }


def cashflow_chart_frame(rows) -> pd.DataFrame:
    """Monthly revenue, cost, profit and cumulative profit for the cashflow chart."""
    df = _as_frame(rows)
    return pd.DataFrame(
        {
            "Month": df["Month_Label"].to_numpy(),
            "Revenue": df["Total Revenue"].to_numpy(),
            "Cost": df["Total Cost"].to_numpy(),
            "Profit": df["Net Profit"].to_numpy(),
            "Cumulative Profit": df["Net Profit"].cumsum().to_numpy(),
        }
    )

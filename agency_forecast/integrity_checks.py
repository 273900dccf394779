"""Integrity checks over the 24-month agency projection frame.

Each check compares two monthly series and reports the largest gap:
revenue, commission, cost and profit identities, the cumulative-households
roll-forward, retention staying between the no-contact and top-performer
rates, no residual income in year 1, year-2 residuals carried forward from
year-1 revenue, and a CSR headcount that never drops while auto-hire is on.
"""

from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd

from agency_forecast.retention import NO_CONTACT_RETENTION, TOP_PERFORMER_RETENTION


def _finding(
    check: str,
    max_abs_delta: float,
    month: str,
    lhs_name: str,
    rhs_name: str,
) -> dict[str, Any]:
    return {
        "Check": check,
        "Max Abs Delta": float(max_abs_delta),
        "Month of Max Delta": month,
        "LHS": lhs_name,
        "RHS": rhs_name,
    }


def _month_of_max_delta(df: pd.DataFrame, delta: np.ndarray) -> str:
    if len(delta) == 0:
        return ""
    idx = int(np.argmax(np.abs(delta)))
    if "Month_Label" in df.columns and idx < len(df):
        return str(df.iloc[idx]["Month_Label"])
    return str(idx)


def _check_series_identity(
    findings: list[dict[str, Any]],
    df: pd.DataFrame,
    check_name: str,
    lhs_name: str,
    rhs_name: str,
    lhs: np.ndarray,
    rhs: np.ndarray,
    tol: float,
) -> None:
    delta = np.nan_to_num(np.asarray(lhs, dtype=float) - np.asarray(rhs, dtype=float), nan=0.0)
    if len(delta) == 0:
        return
    max_abs = float(np.max(np.abs(delta)))
    if max_abs > float(tol):
        findings.append(_finding(check_name, max_abs, _month_of_max_delta(df, delta), lhs_name, rhs_name))


def run_integrity_checks(df: pd.DataFrame, tol: float = 1e-6) -> list[dict[str, Any]]:
    """Return integrity findings (empty list means all checks passed)."""
    if not isinstance(df, pd.DataFrame) or df.empty:
        return [{"Check": "Dataframe not available", "Max Abs Delta": np.nan, "Month of Max Delta": "", "LHS": "", "RHS": ""}]

    findings: list[dict[str, Any]] = []

    _check_series_identity(
        findings,
        df,
        "Revenue identity",
        "Total Revenue",
        "Monthly Commission + Residual Income",
        df["Total Revenue"].to_numpy(),
        (df["Monthly Commission"] + df["Residual Income"]).to_numpy(),
        tol,
    )
    _check_series_identity(
        findings,
        df,
        "Commission identity",
        "Monthly Commission",
        "Auto Commission + Home Commission",
        df["Monthly Commission"].to_numpy(),
        (df["Auto Commission"] + df["Home Commission"]).to_numpy(),
        tol,
    )
    _check_series_identity(
        findings,
        df,
        "Cost identity",
        "Total Cost",
        "Call+CSR+Training+Sales Commission+E&O+Software",
        df["Total Cost"].to_numpy(),
        (
            df["Call Cost"]
            + df["CSR Cost"]
            + df["CSR Training Cost"]
            + df["Sales Agent Commission"]
            + df["E&O Cost"]
            + df["Software Cost"]
        ).to_numpy(),
        tol,
    )
    _check_series_identity(
        findings,
        df,
        "Profit identity",
        "Net Profit",
        "Total Revenue - Total Cost",
        df["Net Profit"].to_numpy(),
        (df["Total Revenue"] - df["Total Cost"]).to_numpy(),
        tol,
    )
    _check_series_identity(
        findings,
        df,
        "Cumulative households roll-forward",
        "Cumulative Households",
        "Running sum of Issued Households",
        df["Cumulative Households"].to_numpy(),
        df["Issued Households"].cumsum().to_numpy(),
        tol,
    )

    # Retention must stay within the no-contact floor and top-performer ceiling.
    retention = df["Retention Rate"].to_numpy(dtype=float)
    out_of_bounds = np.maximum(NO_CONTACT_RETENTION - retention, 0.0) + np.maximum(retention - TOP_PERFORMER_RETENTION, 0.0)
    _check_series_identity(
        findings,
        df,
        "Retention bounds",
        "Retention Rate",
        f"[{NO_CONTACT_RETENTION}, {TOP_PERFORMER_RETENTION}]",
        out_of_bounds,
        np.zeros(len(df)),
        tol,
    )

    year1 = df["Year"] == 1
    _check_series_identity(
        findings,
        df[year1].reset_index(drop=True),
        "Year 1 residual gating",
        "Residual Income",
        "0",
        df.loc[year1, "Residual Income"].to_numpy(),
        np.zeros(int(year1.sum())),
        tol,
    )
    later = ~year1
    if later.any():
        year1_revenue = float(df.loc[year1, "Total Revenue"].sum())
        # Carry-forward is proportional to revenue, so compare relative to its scale.
        scale = max(1.0, abs(year1_revenue))
        _check_series_identity(
            findings,
            df[later].reset_index(drop=True),
            "Residual carry-forward",
            "Residual Income",
            "Year 1 Revenue x Retention Rate / 12",
            df.loc[later, "Residual Income"].to_numpy() / scale,
            (year1_revenue * df.loc[later, "Retention Rate"] / 12).to_numpy() / scale,
            tol,
        )

    if df.attrs.get("auto_hire_csrs", False) and len(df) > 1:
        csr = df["CSR Count"].to_numpy(dtype=float)
        drops = np.minimum(np.diff(csr), 0.0)
        _check_series_identity(
            findings,
            df.iloc[1:].reset_index(drop=True),
            "CSR headcount ratchet",
            "CSR Count[t] - CSR Count[t-1]",
            ">= 0",
            drops,
            np.zeros(len(drops)),
            tol,
        )

    return findings

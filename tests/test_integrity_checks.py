from __future__ import annotations

from copy import deepcopy

import pandas as pd

from agency_forecast.integrity_checks import run_integrity_checks
from agency_forecast.model import run_model


def test_integrity_checks_pass_for_base_scenario(base_inputs):
    findings = run_integrity_checks(run_model(deepcopy(base_inputs)), tol=1e-6)
    assert findings == []


def test_integrity_checks_pass_for_representative_scenarios(base_inputs):
    scenarios = [
        {"csr_count": 0},
        {"pct_inbound": 0.0},
        {"pct_inbound": 100.0},
        {"additional_agents_per_quarter": 0},
        {"automation_level": None},
        {"auto_hire_csrs": False, "automation_level": 1},
        {"ramp_up": False, "starting_agents": 10},
        {"csr_start_month": 6, "csr_end_month": 18, "csr_count": 2},
        {"csr_quality_level": 5, "csr_hourly_wage": 45.0, "csr_response_time": 1.0},
    ]
    for updates in scenarios:
        inputs = deepcopy(base_inputs)
        inputs.update(updates)
        findings = run_integrity_checks(run_model(inputs), tol=1e-6)
        assert findings == [], f"Unexpected integrity findings for updates={updates}: {findings}"


def test_integrity_checks_detects_identity_break(base_inputs):
    df = run_model(deepcopy(base_inputs))
    broken = df.copy()
    broken.loc[broken.index[0], "Total Revenue"] += 1.0
    findings = run_integrity_checks(broken, tol=1e-6)
    check_names = {f["Check"] for f in findings}
    assert "Revenue identity" in check_names
    assert "Profit identity" in check_names
    revenue = next(f for f in findings if f["Check"] == "Revenue identity")
    assert revenue["Month of Max Delta"] == "M1"
    assert abs(revenue["Max Abs Delta"] - 1.0) < 1e-9


def test_integrity_checks_detect_residual_and_retention_breaks(base_inputs):
    df = run_model(deepcopy(base_inputs))

    early = df.copy()
    early.loc[early.index[5], "Residual Income"] = 100.0
    assert "Year 1 residual gating" in {f["Check"] for f in run_integrity_checks(early)}

    skewed = df.copy()
    skewed.loc[skewed.index[20], "Retention Rate"] = 0.99
    names = {f["Check"] for f in run_integrity_checks(skewed)}
    assert "Retention bounds" in names
    assert "Residual carry-forward" in names


def test_csr_ratchet_check_only_applies_with_auto_hire(base_inputs):
    df = run_model(deepcopy(base_inputs))
    dropped = df.copy()
    dropped.loc[dropped.index[-1], "CSR Count"] = 0
    assert "CSR headcount ratchet" in {f["Check"] for f in run_integrity_checks(dropped)}

    dropped.attrs["auto_hire_csrs"] = False
    assert "CSR headcount ratchet" not in {f["Check"] for f in run_integrity_checks(dropped)}


def test_integrity_checks_report_missing_dataframe():
    findings = run_integrity_checks(pd.DataFrame())
    assert len(findings) == 1
    assert findings[0]["Check"] == "Dataframe not available"

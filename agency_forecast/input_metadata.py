"""Input guidance metadata and advisory range checks."""

from __future__ import annotations

from typing import Any


INPUT_GUIDANCE: dict[str, dict[str, Any]] = {
    "starting_agents": {"min": 1, "max": 20, "note": "Licensed agents hired in the first quarter."},
    "additional_agents_per_quarter": {"min": 0, "max": 20, "note": "New agents added each quarter after Q1."},
    "calls_per_day": {"min": 5, "max": 30, "note": "Average number of calls each agent makes per day."},
    "cost_inbound": {"min": 0.0, "max": 100.0, "note": "Paid cost of each inbound call."},
    "pct_inbound": {"min": 0.0, "max": 100.0, "note": "Share of calls that are inbound rather than live transfers."},
    "cost_transfer": {"min": 0.0, "max": 100.0, "note": "Paid cost of each live transfer."},
    "inbound_conv": {"min": 1.0, "max": 30.0, "note": "Percent of inbound calls that become a household."},
    "transfer_conv": {"min": 1.0, "max": 25.0, "note": "Percent of live transfers that become a household."},
    "auto_comm": {"min": 5.0, "max": 20.0, "note": "Carrier commission on auto premium."},
    "home_comm": {"min": 5.0, "max": 20.0, "note": "Carrier commission on fire/home premium."},
    "csr_count": {"min": 0, "max": 10, "note": "Customer service reps retaining the book; zero means no client contact."},
    "csr_hourly_wage": {"min": 10.0, "max": 50.0, "note": "Wages above $15/hr lift retention up to 5 points."},
    "csr_quality_level": {"min": 1, "max": 5, "note": "Each quality level adds 2 points of retention."},
    "csr_training_investment": {"min": 0.0, "max": 10000.0, "note": "Annual training spend per CSR, billed monthly."},
    "csr_response_time": {"min": 1.0, "max": 24.0, "note": "Each hour under a 24-hour response adds 0.1 points of retention."},
    "eo_coverage_cost": {"min": 0.0, "max": 5000.0, "note": "Monthly errors and omissions coverage."},
    "software_cost": {"min": 0.0, "max": 5000.0, "note": "Monthly agency management software."},
    "automation_level": {"min": 1, "max": 4, "note": "1 Manual (600/CSR) to 4 Advanced (1,400/CSR) households."},
}

AUTOMATION_LEVEL_LABELS = {
    1: "Manual / Traditional",
    2: "Moderate Automation",
    3: "Automated",
    4: "Advanced Technology",
}


def _fmt(v: float) -> str:
    if abs(v - round(v)) < 1e-9:
        return f"{int(round(v))}"
    return f"{v:.3f}".rstrip("0").rstrip(".")


def help_with_guidance(key: str, base_help: str) -> str:
    g = INPUT_GUIDANCE.get(key)
    if not g:
        return base_help
    return f"{base_help} Reasonable range: {_fmt(g['min'])} to {_fmt(g['max'])}. {g['note']}"


def advisory_warnings(inputs: dict) -> list[str]:
    warnings: list[str] = []
    for key, g in INPUT_GUIDANCE.items():
        if key not in inputs or inputs[key] is None:
            continue
        try:
            v = float(inputs[key])
        except (TypeError, ValueError):
            continue
        if v < g["min"] or v > g["max"]:
            warnings.append(
                f"{key}={v:.3f} is outside the recommended range [{_fmt(g['min'])}, {_fmt(g['max'])}]."
            )
    return warnings

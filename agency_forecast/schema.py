"""Assumption schema helpers: defaults, aliases, coercion and clamping."""

from __future__ import annotations

import math
from copy import deepcopy
from typing import Any

from agency_forecast.defaults import DEFAULTS


HORIZON_MONTHS = 24
AUTOMATION_LEVELS = {1, 2, 3, 4}

# Dashboard field names as they appear in exported calculator payloads.
CAMEL_CASE_ALIASES = {
    "startingAgents": "starting_agents",
    "additionalAgentsPerQuarter": "additional_agents_per_quarter",
    "callsPerDay": "calls_per_day",
    "costInbound": "cost_inbound",
    "pctInbound": "pct_inbound",
    "costTransfer": "cost_transfer",
    "inboundConv": "inbound_conv",
    "transferConv": "transfer_conv",
    "autoComm": "auto_comm",
    "homeComm": "home_comm",
    "csrCount": "csr_count",
    "csrHourlyWage": "csr_hourly_wage",
    "csrStartMonth": "csr_start_month",
    "csrEndMonth": "csr_end_month",
    "csrQualityLevel": "csr_quality_level",
    "csrTrainingInvestment": "csr_training_investment",
    "csrResponseTime": "csr_response_time",
    "eoCoverageCost": "eo_coverage_cost",
    "softwareCost": "software_cost",
    "automationLevel": "automation_level",
    "autoHireCSRs": "auto_hire_csrs",
    "rampUp": "ramp_up",
}

PCT_FIELDS = ["pct_inbound", "inbound_conv", "transfer_conv", "auto_comm", "home_comm"]
MONTH_FIELDS = ["csr_start_month", "csr_end_month"]


def _coerce_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        txt = value.strip().lower()
        if txt in {"1", "true", "yes", "y", "on"}:
            return True
        if txt in {"0", "false", "no", "n", "off"}:
            return False
    return None


def _coerce_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(num):
        return None
    return num


def _clamp(inputs: dict, key: str, lo: float, hi: float, warnings: list[str]) -> None:
    val = inputs[key]
    clamped = min(hi, max(lo, val))
    if clamped != val:
        warnings.append(f"{key} adjusted from {val:g} to {clamped:g}.")
    inputs[key] = int(clamped) if isinstance(DEFAULTS[key], int) else float(clamped)


def migrate_assumptions(raw_inputs: dict) -> tuple[dict, list[str], list[str]]:
    """Return (assumptions, warnings, unknown_keys) for an incoming payload.

    Missing fields fall back to DEFAULTS, camelCase dashboard names are accepted,
    and every value is coerced and clamped into the dashboard's input ranges.
    This never raises; anything it repairs is reported in the warnings list.
    """
    warnings: list[str] = []
    unknown_keys: list[str] = []
    inputs = deepcopy(DEFAULTS)
    payload = raw_inputs if isinstance(raw_inputs, dict) else {}

    for k, v in payload.items():
        key = CAMEL_CASE_ALIASES.get(k, k)
        if key in inputs:
            inputs[key] = v
        else:
            unknown_keys.append(k)

    bool_keys = [k for k, v in DEFAULTS.items() if isinstance(v, bool)]
    for key in bool_keys:
        coerced = _coerce_bool(inputs.get(key))
        if coerced is None:
            inputs[key] = bool(DEFAULTS[key])
            warnings.append(f"{key} invalid and reset to default.")
        else:
            inputs[key] = coerced

    # automation_level may be None to select the plain retention model.
    if inputs.get("automation_level") is not None:
        level = _coerce_number(inputs["automation_level"])
        if level is None:
            inputs["automation_level"] = DEFAULTS["automation_level"]
            warnings.append("automation_level invalid and reset to default.")
        else:
            inputs["automation_level"] = int(round(level))
            if inputs["automation_level"] not in AUTOMATION_LEVELS:
                _clamp(inputs, "automation_level", min(AUTOMATION_LEVELS), max(AUTOMATION_LEVELS), warnings)

    numeric_keys = [
        k
        for k, v in DEFAULTS.items()
        if isinstance(v, (int, float)) and not isinstance(v, bool) and k != "automation_level"
    ]
    for key in numeric_keys:
        num = _coerce_number(inputs.get(key))
        if num is None:
            inputs[key] = deepcopy(DEFAULTS[key])
            warnings.append(f"{key} invalid and reset to default.")
            continue
        if isinstance(DEFAULTS[key], int):
            if num != int(num):
                warnings.append(f"{key} rounded to a whole number.")
            inputs[key] = int(round(num))
        else:
            inputs[key] = num

    # Range clamping.
    for key in PCT_FIELDS:
        _clamp(inputs, key, 0.0, 100.0, warnings)
    for key in MONTH_FIELDS:
        _clamp(inputs, key, 1, HORIZON_MONTHS, warnings)
    _clamp(inputs, "csr_quality_level", 1, 5, warnings)

    already_clamped = set(PCT_FIELDS) | set(MONTH_FIELDS) | {"csr_quality_level"}
    for key in numeric_keys:
        if key in already_clamped:
            continue
        if inputs[key] < 0:
            warnings.append(f"{key} was negative and was reset to 0.")
            inputs[key] = 0 if isinstance(DEFAULTS[key], int) else 0.0

    if inputs["csr_end_month"] < inputs["csr_start_month"]:
        warnings.append("csr_end_month was before csr_start_month and was moved to match.")
        inputs["csr_end_month"] = inputs["csr_start_month"]

    return inputs, warnings, sorted(unknown_keys)

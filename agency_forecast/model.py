"""Core 24-month agency projection engine."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields
from typing import Mapping

import pandas as pd

from agency_forecast.retention import csr_capacity, retention_rate


HORIZON_MONTHS = 24
MONTHS_PER_QUARTER = 3
WORKING_DAYS = 20.83
CSR_HOURS_PER_DAY = 8
ISSUANCE_RATE = 0.75
AUTOS_PER_HOUSEHOLD = 1.5
MULTILINE_PCT = 0.25
AUTO_PREMIUM = 1197.0
HOME_PREMIUM = 1480.0
SALES_AGENT_COMMISSION_PCT = 0.10

# New-cohort productivity by month of tenure within the hiring quarter.
RAMP_UP_MULTIPLIERS = {1: 0.50, 2: 0.65, 3: 0.80}

_BOOL_FIELDS = {"auto_hire_csrs", "ramp_up"}
_OPTIONAL_FIELDS = {"automation_level"}


@dataclass(frozen=True)
class AssumptionSet:
    starting_agents: float
    additional_agents_per_quarter: float
    calls_per_day: float
    cost_inbound: float
    pct_inbound: float
    cost_transfer: float
    inbound_conv: float
    transfer_conv: float
    auto_comm: float
    home_comm: float
    csr_count: float
    csr_hourly_wage: float
    csr_start_month: float
    csr_end_month: float
    csr_quality_level: float
    csr_training_investment: float
    csr_response_time: float
    eo_coverage_cost: float
    software_cost: float
    automation_level: int | None = 3
    auto_hire_csrs: bool = True
    ramp_up: bool = True

    @classmethod
    def from_mapping(cls, data: Mapping) -> "AssumptionSet":
        """Build an assumption set from a plain mapping, rejecting missing or non-numeric fields."""
        values = {}
        for f in fields(cls):
            if f.name not in data:
                if f.name in _BOOL_FIELDS or f.name in _OPTIONAL_FIELDS:
                    continue
                raise ValueError(f"{f.name} is required.")
            raw = data[f.name]
            if f.name in _BOOL_FIELDS:
                values[f.name] = bool(raw)
                continue
            if f.name in _OPTIONAL_FIELDS and raw is None:
                values[f.name] = None
                continue
            if isinstance(raw, bool):
                raise ValueError(f"{f.name} must be numeric.")
            try:
                num = float(raw)
            except (TypeError, ValueError):
                raise ValueError(f"{f.name} must be numeric.") from None
            if not math.isfinite(num):
                raise ValueError(f"{f.name} must be numeric.")
            values[f.name] = int(num) if f.name in _OPTIONAL_FIELDS else num
        return cls(**values)

    @property
    def capacity_aware(self) -> bool:
        return self.automation_level is not None


@dataclass(frozen=True)
class MonthRow:
    month: int
    quarter: int
    experienced_agents: float
    new_agents: float
    total_agents: float
    ramp_multiplier: float
    households: float
    issued_households: float
    autos: float
    multi_line_policies: float
    auto_premium: float
    home_premium: float
    total_premium: float
    auto_commission: float
    home_commission: float
    monthly_commission: float
    inbound_calls: float
    transfer_calls: float
    call_cost: float
    csr_cost: float
    csr_training_cost: float
    sales_agent_commission: float
    eo_cost: float
    software_cost: float
    residual_income: float
    total_revenue: float
    total_cost: float
    net_profit: float
    retention_rate: float
    csr_count: float
    cumulative_households: float
    capacity_utilization: float


@dataclass(frozen=True)
class ProjectionState:
    """Running totals carried from one month to the next."""

    csr_count: float
    cumulative_households: float = 0.0
    year1_revenue: float = 0.0


COLUMN_TITLES = {
    "month": "Month",
    "quarter": "Quarter",
    "experienced_agents": "Experienced Agents",
    "new_agents": "New Agents",
    "total_agents": "Total Agents",
    "ramp_multiplier": "Ramp Multiplier",
    "households": "Households",
    "issued_households": "Issued Households",
    "autos": "Autos",
    "multi_line_policies": "Multi-line Policies",
    "auto_premium": "Auto Premium",
    "home_premium": "Home Premium",
    "total_premium": "Total Premium",
    "auto_commission": "Auto Commission",
    "home_commission": "Home Commission",
    "monthly_commission": "Monthly Commission",
    "inbound_calls": "Inbound Calls",
    "transfer_calls": "Transfer Calls",
    "call_cost": "Call Cost",
    "csr_cost": "CSR Cost",
    "csr_training_cost": "CSR Training Cost",
    "sales_agent_commission": "Sales Agent Commission",
    "eo_cost": "E&O Cost",
    "software_cost": "Software Cost",
    "residual_income": "Residual Income",
    "total_revenue": "Total Revenue",
    "total_cost": "Total Cost",
    "net_profit": "Net Profit",
    "retention_rate": "Retention Rate",
    "csr_count": "CSR Count",
    "cumulative_households": "Cumulative Households",
    "capacity_utilization": "Capacity Utilization",
}


def quarter_of(month: int) -> int:
    return math.ceil(month / MONTHS_PER_QUARTER)


def month_in_quarter(month: int) -> int:
    return ((month - 1) % MONTHS_PER_QUARTER) + 1


def agent_counts(a: AssumptionSet, month: int) -> tuple[float, float]:
    """Return (experienced, new-cohort) agent counts for a month."""
    quarter = quarter_of(month)
    if quarter == 1:
        experienced = 0.0
        new = a.starting_agents
    else:
        experienced = a.starting_agents + (quarter - 2) * a.additional_agents_per_quarter
        new = a.additional_agents_per_quarter
    if not a.ramp_up:
        return experienced + new, 0.0
    return experienced, new


def _csr_active(a: AssumptionSet, month: int) -> bool:
    return a.csr_start_month <= month <= a.csr_end_month


def _project_month(
    a: AssumptionSet, month: int, state: ProjectionState, static_retention: float | None
) -> tuple[MonthRow, ProjectionState]:
    experienced, new = agent_counts(a, month)
    ramp = RAMP_UP_MULTIPLIERS[month_in_quarter(month)] if a.ramp_up else 1.0

    inbound_share = a.pct_inbound / 100
    transfer_share = (100 - a.pct_inbound) / 100
    inbound_conv = a.inbound_conv / 100
    transfer_conv = a.transfer_conv / 100

    experienced_daily_calls = experienced * a.calls_per_day
    new_daily_calls = new * a.calls_per_day
    experienced_daily_inbound = experienced_daily_calls * inbound_share
    experienced_daily_transfer = experienced_daily_calls * transfer_share
    new_daily_inbound = new_daily_calls * inbound_share
    new_daily_transfer = new_daily_calls * transfer_share

    experienced_daily_households = experienced_daily_inbound * inbound_conv + experienced_daily_transfer * transfer_conv
    new_daily_households = (new_daily_inbound * inbound_conv + new_daily_transfer * transfer_conv) * ramp
    daily_households = experienced_daily_households + new_daily_households

    households = daily_households * WORKING_DAYS
    issued = households * ISSUANCE_RATE
    autos = issued * AUTOS_PER_HOUSEHOLD
    multi_line = issued * MULTILINE_PCT

    auto_premium = autos * AUTO_PREMIUM
    home_premium = multi_line * HOME_PREMIUM
    auto_commission = auto_premium * (a.auto_comm / 100)
    home_commission = home_premium * (a.home_comm / 100)
    monthly_commission = auto_commission + home_commission

    cumulative = state.cumulative_households + issued
    csr_count = state.csr_count
    capacity = csr_capacity(a.automation_level)
    # A zero starting headcount means no CSR program, so there is nothing to scale.
    if a.auto_hire_csrs and a.capacity_aware and a.csr_count > 0 and month >= a.csr_start_month:
        required = cumulative / capacity
        # NaN or infinite household counts leave headcount where it is.
        if math.isfinite(required) and math.ceil(required) > csr_count:
            csr_count = math.ceil(required)

    inbound_calls = (experienced_daily_inbound + new_daily_inbound) * WORKING_DAYS
    transfer_calls = (experienced_daily_transfer + new_daily_transfer) * WORKING_DAYS
    call_cost = inbound_calls * a.cost_inbound + transfer_calls * a.cost_transfer

    if _csr_active(a, month):
        csr_cost = csr_count * a.csr_hourly_wage * CSR_HOURS_PER_DAY * WORKING_DAYS
        csr_training_cost = csr_count * a.csr_training_investment / 12
    else:
        csr_cost = 0.0
        csr_training_cost = 0.0

    sales_agent_commission = monthly_commission * SALES_AGENT_COMMISSION_PCT
    total_cost = (
        call_cost
        + csr_cost
        + csr_training_cost
        + sales_agent_commission
        + a.eo_coverage_cost
        + a.software_cost
    )

    if static_retention is not None:
        current_retention = static_retention
    else:
        current_retention = retention_rate(
            csr_count,
            a.csr_quality_level,
            a.csr_hourly_wage,
            a.csr_response_time,
            a.automation_level,
            cumulative,
        )

    if month > 12:
        residual_income = state.year1_revenue * current_retention / 12
    else:
        residual_income = 0.0

    total_revenue = monthly_commission + residual_income
    net_profit = total_revenue - total_cost

    row = MonthRow(
        month=month,
        quarter=quarter_of(month),
        experienced_agents=experienced,
        new_agents=new,
        total_agents=experienced + new,
        ramp_multiplier=ramp,
        households=households,
        issued_households=issued,
        autos=autos,
        multi_line_policies=multi_line,
        auto_premium=auto_premium,
        home_premium=home_premium,
        total_premium=auto_premium + home_premium,
        auto_commission=auto_commission,
        home_commission=home_commission,
        monthly_commission=monthly_commission,
        inbound_calls=inbound_calls,
        transfer_calls=transfer_calls,
        call_cost=call_cost,
        csr_cost=csr_cost,
        csr_training_cost=csr_training_cost,
        sales_agent_commission=sales_agent_commission,
        eo_cost=a.eo_coverage_cost,
        software_cost=a.software_cost,
        residual_income=residual_income,
        total_revenue=total_revenue,
        total_cost=total_cost,
        net_profit=net_profit,
        retention_rate=current_retention,
        csr_count=csr_count,
        cumulative_households=cumulative,
        capacity_utilization=cumulative / (max(1, csr_count) * capacity),
    )
    next_state = ProjectionState(
        csr_count=csr_count,
        cumulative_households=cumulative,
        year1_revenue=state.year1_revenue + total_revenue if month <= 12 else state.year1_revenue,
    )
    return row, next_state


def project(assumptions: AssumptionSet) -> tuple[MonthRow, ...]:
    """Project months 1..24 for one assumption set.

    The plain variant (no automation level) evaluates retention once from the
    static CSR inputs; the capacity-aware variant re-evaluates it every month
    against that month's CSR headcount and cumulative households.
    """
    static_retention = None
    if not assumptions.capacity_aware:
        static_retention = retention_rate(
            assumptions.csr_count,
            assumptions.csr_quality_level,
            assumptions.csr_hourly_wage,
            assumptions.csr_response_time,
        )

    state = ProjectionState(csr_count=assumptions.csr_count)
    rows: list[MonthRow] = []
    for month in range(1, HORIZON_MONTHS + 1):
        row, state = _project_month(assumptions, month, state, static_retention)
        rows.append(row)
    return tuple(rows)


def rows_to_frame(rows) -> pd.DataFrame:
    df = pd.DataFrame([asdict(r) for r in rows], columns=list(COLUMN_TITLES))
    df = df.rename(columns=COLUMN_TITLES)
    df.insert(0, "Year", ((df["Month"] - 1) // 12 + 1).astype(int))
    df.insert(2, "Month_Label", [f"M{int(m)}" for m in df["Month"]])
    return df


def run_model(raw_inputs: Mapping) -> pd.DataFrame:
    assumptions = AssumptionSet.from_mapping(raw_inputs)
    df = rows_to_frame(project(assumptions))
    df.attrs["auto_hire_csrs"] = bool(assumptions.auto_hire_csrs)
    df.attrs["capacity_aware"] = assumptions.capacity_aware
    return df

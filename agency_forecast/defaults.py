"""Default assumption set for the agency projection dashboard."""

from __future__ import annotations


DEFAULTS = {
    # Staffing
    "starting_agents": 4,
    "additional_agents_per_quarter": 4,
    "calls_per_day": 14,
    "ramp_up": True,
    # Lead mix and cost
    "cost_inbound": 20.0,
    "pct_inbound": 50.0,
    "cost_transfer": 7.0,
    "inbound_conv": 15.0,
    "transfer_conv": 10.0,
    # Commission
    "auto_comm": 12.0,
    "home_comm": 15.0,
    # CSR / service
    "csr_count": 1,
    "csr_hourly_wage": 15.0,
    "csr_start_month": 1,
    "csr_end_month": 24,
    "csr_quality_level": 3,
    "csr_training_investment": 2000.0,
    "csr_response_time": 4.0,
    # Additional monthly costs
    "eo_coverage_cost": 500.0,
    "software_cost": 200.0,
    # Automation and capacity
    "automation_level": 3,
    "auto_hire_csrs": True,
}

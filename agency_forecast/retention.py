"""Policy retention model driven by CSR staffing and service quality."""

from __future__ import annotations


NO_CONTACT_RETENTION = 0.35
WITH_CONTACT_RETENTION = 0.80
TOP_PERFORMER_RETENTION = 0.93

QUALITY_BONUS_PER_LEVEL = 0.02
BASE_CSR_WAGE = 15.0
WAGE_BONUS_PER_DOLLAR = 0.002
MAX_WAGE_BONUS = 0.05
RESPONSE_WINDOW_HOURS = 24.0
RESPONSE_BONUS_PER_HOUR = 0.001
MAX_OVERLOAD_PENALTY = 0.15
OVERLOAD_PENALTY_SLOPE = 0.3

# Households one CSR can service, by automation level (manual .. advanced tooling).
CSR_CAPACITY_BY_AUTOMATION = {
    1: 600,
    2: 800,
    3: 1200,
    4: 1400,
}
DEFAULT_CSR_CAPACITY = 1200


def csr_capacity(automation_level: int | None) -> int:
    """Households per CSR for an automation level; unknown levels use the default."""
    if automation_level is None:
        return DEFAULT_CSR_CAPACITY
    try:
        return CSR_CAPACITY_BY_AUTOMATION.get(int(automation_level), DEFAULT_CSR_CAPACITY)
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_CSR_CAPACITY


def overload_penalty(csr_count: float, cumulative_households: float, automation_level: int | None) -> float:
    capacity = csr_capacity(automation_level)
    households_per_csr = float(cumulative_households) / max(1.0, float(csr_count))
    if households_per_csr <= capacity:
        return 0.0
    return min(MAX_OVERLOAD_PENALTY, (households_per_csr - capacity) / capacity * OVERLOAD_PENALTY_SLOPE)


def retention_rate(
    csr_count: float,
    quality: float,
    wage: float,
    response_time_hours: float,
    automation_level: int | None = None,
    cumulative_households: float | None = None,
) -> float:
    """Return the annual policy retention rate implied by CSR coverage.

    With no CSRs, customers never hear from the agency and the no-contact rate
    applies. Otherwise the with-contact base rate is lifted by CSR quality,
    wage above the base wage and response speed. When both an automation level
    and a cumulative household count are supplied, an overload penalty applies
    once each CSR carries more households than the automation level supports.

    The result is always within [NO_CONTACT_RETENTION, TOP_PERFORMER_RETENTION].
    """
    if csr_count == 0:
        return NO_CONTACT_RETENTION

    rate = WITH_CONTACT_RETENTION
    rate += QUALITY_BONUS_PER_LEVEL * float(quality)
    rate += min(MAX_WAGE_BONUS, max(0.0, (float(wage) - BASE_CSR_WAGE) * WAGE_BONUS_PER_DOLLAR))
    rate += max(0.0, (RESPONSE_WINDOW_HOURS - float(response_time_hours)) * RESPONSE_BONUS_PER_HOUR)

    if automation_level is not None and cumulative_households is not None:
        rate -= overload_penalty(csr_count, cumulative_households, automation_level)

    return min(TOP_PERFORMER_RETENTION, max(NO_CONTACT_RETENTION, rate))

from __future__ import annotations

from copy import deepcopy

from agency_forecast.model import run_model


def test_conversion_lift_increases_households_and_total_revenue(base_inputs):
    low = deepcopy(base_inputs)
    high = deepcopy(base_inputs)
    high["inbound_conv"] = float(high["inbound_conv"]) * 1.2
    high["transfer_conv"] = float(high["transfer_conv"]) * 1.2

    low_df = run_model(low)
    high_df = run_model(high)

    assert float(high_df["Issued Households"].sum()) > float(low_df["Issued Households"].sum())
    assert float(high_df["Total Revenue"].sum()) > float(low_df["Total Revenue"].sum())


def test_higher_lead_costs_reduce_total_profit(base_inputs):
    low = deepcopy(base_inputs)
    high = deepcopy(base_inputs)
    high["cost_inbound"] = float(high["cost_inbound"]) * 1.30
    high["cost_transfer"] = float(high["cost_transfer"]) * 1.30

    low_df = run_model(low)
    high_df = run_model(high)

    assert float(high_df["Net Profit"].sum()) < float(low_df["Net Profit"].sum())
    assert float(high_df["Total Revenue"].sum()) == float(low_df["Total Revenue"].sum())


def test_better_service_raises_year_two_residuals(base_inputs):
    basic = deepcopy(base_inputs)
    premium = deepcopy(base_inputs)
    premium["csr_quality_level"] = 5
    premium["csr_response_time"] = 1.0

    basic_df = run_model(basic)
    premium_df = run_model(premium)

    year2 = basic_df["Year"] == 2
    assert float(premium_df.loc[year2, "Residual Income"].sum()) > float(basic_df.loc[year2, "Residual Income"].sum())
    assert float(premium_df["Retention Rate"].iloc[0]) > float(basic_df["Retention Rate"].iloc[0])


def test_removing_csrs_trades_cost_for_retention(base_inputs):
    staffed = deepcopy(base_inputs)
    unstaffed = deepcopy(base_inputs)
    unstaffed["csr_count"] = 0

    staffed_df = run_model(staffed)
    unstaffed_df = run_model(unstaffed)

    assert float(unstaffed_df["CSR Cost"].abs().sum()) == 0.0
    assert float(unstaffed_df["CSR Training Cost"].abs().sum()) == 0.0
    assert float(unstaffed_df["Residual Income"].sum()) < float(staffed_df["Residual Income"].sum())


def test_fixed_monthly_costs_hit_every_month(base_inputs):
    inputs = deepcopy(base_inputs)
    inputs["eo_coverage_cost"] = 750.0
    inputs["software_cost"] = 0.0
    df = run_model(inputs)

    assert (df["E&O Cost"] == 750.0).all()
    assert (df["Software Cost"] == 0.0).all()


def test_zero_commission_leaves_only_costs(base_inputs):
    inputs = deepcopy(base_inputs)
    inputs["auto_comm"] = 0.0
    inputs["home_comm"] = 0.0
    df = run_model(inputs)

    assert float(df["Total Revenue"].abs().sum()) == 0.0
    assert float(df["Sales Agent Commission"].abs().sum()) == 0.0
    assert (df["Net Profit"] == -df["Total Cost"]).all()

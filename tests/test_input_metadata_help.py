from __future__ import annotations

from copy import deepcopy

from agency_forecast.input_metadata import INPUT_GUIDANCE, advisory_warnings, help_with_guidance


def test_help_with_guidance_appends_range_and_note():
    help_text = help_with_guidance("csr_quality_level", "Service quality on a 1-5 scale.")
    assert help_text.startswith("Service quality on a 1-5 scale.")
    assert "Reasonable range: 1 to 5." in help_text
    assert INPUT_GUIDANCE["csr_quality_level"]["note"] in help_text


def test_help_without_guidance_is_unchanged():
    assert help_with_guidance("ramp_up", "Ramp toggle.") == "Ramp toggle."


def test_defaults_raise_no_advisory_warnings(base_inputs):
    assert advisory_warnings(base_inputs) == []


def test_advisory_warnings_flag_out_of_range_values(base_inputs):
    inputs = deepcopy(base_inputs)
    inputs["calls_per_day"] = 45
    inputs["automation_level"] = None
    warnings = advisory_warnings(inputs)
    assert len(warnings) == 1
    assert warnings[0].startswith("calls_per_day=45.000")

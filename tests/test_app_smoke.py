from __future__ import annotations

from pathlib import Path

from streamlit.testing.v1 import AppTest


APP_PATH = str(Path(__file__).resolve().parents[1] / "app.py")


def _widget_by_label(widgets, label: str):
    matches = [w for w in widgets if getattr(w, "label", "") == label]
    assert matches, f"Widget not found for label: {label}"
    return matches[0]


def _assert_no_app_exceptions(at: AppTest) -> None:
    assert len(at.exception) == 0


def test_app_initial_run_has_no_exceptions():
    at = AppTest.from_file(APP_PATH)
    at.run(timeout=180)
    _assert_no_app_exceptions(at)
    assert _widget_by_label(at.metric, "Retention Rate").value == "88%"


def test_zero_csr_scenario_and_reset_flow():
    at = AppTest.from_file(APP_PATH)
    at.run(timeout=180)
    _assert_no_app_exceptions(at)

    at.number_input(key="csr_count").set_value(0)
    at.run(timeout=180)
    _assert_no_app_exceptions(at)
    assert _widget_by_label(at.metric, "Retention Rate").value == "35%"

    _widget_by_label(at.button, "Reset").click()
    at.run(timeout=180)
    _assert_no_app_exceptions(at)
    assert at.number_input(key="csr_count").value == 1
    assert _widget_by_label(at.metric, "Retention Rate").value == "88%"


def test_plain_retention_and_advanced_inputs_rerun_cleanly():
    at = AppTest.from_file(APP_PATH)
    at.run(timeout=180)

    at.toggle(key="capacity_aware_retention").set_value(False)
    at.run(timeout=180)
    _assert_no_app_exceptions(at)

    at.toggle(key="ramp_up").set_value(False)
    at.selectbox(key="automation_level").set_value(1)
    at.checkbox(key="auto_hire_csrs").set_value(False)
    at.slider(key="pct_inbound").set_value(100.0)
    at.number_input(key="csr_start_month").set_value(12)
    at.number_input(key="csr_end_month").set_value(3)
    at.run(timeout=180)
    _assert_no_app_exceptions(at)
    assert len(at.error) == 0


def test_interactive_widgets_expose_help_tooltips():
    at = AppTest.from_file(APP_PATH)
    at.run(timeout=180)
    _assert_no_app_exceptions(at)

    widget_groups = {
        "number_input": at.number_input,
        "slider": at.slider,
        "selectbox": at.selectbox,
        "toggle": at.toggle,
        "checkbox": at.checkbox,
        "multiselect": at.multiselect,
        "button": at.button,
    }
    for widget_type, widgets in widget_groups.items():
        missing = [
            getattr(widget, "label", "<no label>")
            for widget in widgets
            if not isinstance(getattr(widget, "help", None), str) or not str(widget.help).strip()
        ]
        assert not missing, f"{widget_type} widgets missing help: {', '.join(missing[:5])}"


def test_monthly_detail_column_choice_survives_reruns():
    at = AppTest.from_file(APP_PATH)
    at.run(timeout=180)
    assert "Net Profit" in at.multiselect(key="detail_selected_columns").value

    at.multiselect(key="detail_selected_columns").set_value(["Net Profit", "CSR Count"])
    at.run(timeout=180)
    at.number_input(key="calls_per_day").set_value(20)
    at.run(timeout=180)
    _assert_no_app_exceptions(at)
    assert at.multiselect(key="detail_selected_columns").value == ["Net Profit", "CSR Count"]

    at.multiselect(key="detail_selected_columns").set_value([])
    at.run(timeout=180)
    _assert_no_app_exceptions(at)
    assert at.multiselect(key="detail_selected_columns").value == []

from __future__ import annotations

from copy import deepcopy

import pytest

from agency_forecast.defaults import DEFAULTS
from agency_forecast.schema import migrate_assumptions


@pytest.fixture
def base_inputs() -> dict:
    inputs, _, _ = migrate_assumptions(deepcopy(DEFAULTS))
    return inputs

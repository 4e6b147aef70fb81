"""Pytest bootstrap putting the repository root first on sys.path.

The project uses a flat layout of top-level modules and namespace packages,
so the tests import them straight from the checkout.
"""

import os, sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

import pytest

from inputs.parse import PULSE_CHANNELS, TEMPERATURE_CHANNELS, WATT_SECOND_CHANNELS


def build_query(**overrides):
    """Query string for a fully valid device line; `None` overrides drop the key."""
    values = {
        "SN": "01000123",
        "SC": "1000",
        "V": "1205",
        "T": ",".join(f"{20 + i}.5" for i in range(TEMPERATURE_CHANNELS)),
        "PL": ",".join(str(i * 10) for i in range(PULSE_CHANNELS)),
    }
    for channel in range(1, WATT_SECOND_CHANNELS + 1):
        values[f"c{channel}"] = str(channel * 1000)
    values.update(overrides)
    return "&".join(f"{key}={value}" for key, value in values.items() if value is not None)


def build_line(**overrides):
    return f"GET /?{build_query(**overrides)} HTTP/1.1"


@pytest.fixture
def valid_line():
    return build_line()

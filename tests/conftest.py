"""
Pytest configuration and shared fixtures for the listings pipeline tests.
"""
import matplotlib

matplotlib.use("Agg")

import pandas as pd
import pytest
from hypothesis import settings

from helpers import make_raw

# stage functions are cheap but pandas warm-up can blow the default 200ms deadline
settings.register_profile("pipeline", deadline=None, max_examples=60)
settings.load_profile("pipeline")


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: Unit tests for a single stage")
    config.addinivalue_line("markers", "e2e: End-to-end tests through the whole pipeline")


@pytest.fixture
def example_rows() -> list[tuple]:
    """The three listings from the worked example: only the first survives."""
    return [
        ("Yaris", 2015, 9000, "Manual", 30000, "Petrol", 20, 65, 0.5),
        ("Yaris", 2018, 1500, "Automatic", 10000, "Petrol", 20, 55, 1.3),
        ("Supra", 1998, 19990, "Manual", 50000, "Petrol", 150, 25, 3.0),
    ]


@pytest.fixture
def raw_listings() -> pd.DataFrame:
    """A dozen listings mixing padded text, bad engines/mpg and outliers."""
    return make_raw(
        [
            (" Yaris", 2017, 10500, "Manual ", 21000, "Petrol", 145, 55.4, 1.5),
            ("Corolla ", 2019, 17800, " Automatic", 9000, "Hybrid", 135, 78.5, 1.8),
            ("Aygo", 2016, 6200, "Manual", 42000, "Petrol", 0, 69.0, 1.0),
            ("GT86", 2014, 13900, "Manual", 38000, "Petrol", 235, 36.2, 2.0),
            ("Supra", 2019, 47000, "Semi-Auto", 5000, "Petrol", 145, 34.5, 3.0),
            ("Hilux", 2018, 24000, "Automatic", 40000, "Diesel", 260, 2.8, 2.4),
            ("Prius", 2017, 14500, "Automatic", 35000, "Hybrid", 0, 94.1, 1.8),
            ("Auris", 2015, 7800, "Manual", 61000, "Diesel", 20, 70.6, 0.0),
            ("RAV4", 2020, 29000, "Automatic", 3000, "Hybrid", 140, 50.4, 2.5),
            ("Yaris", 2003, 1200, "Manual", 120000, "Petrol", 160, 40.0, 1.0),
            ("Land Cruiser", 2019, 65000, "Automatic", 12000, "Diesel", 145, 32.0, 2.8),
            ("Camry", 2008, 3500, "Other", 210000, "Petrol", 200, 35.0, 2.4),
            ("Mirai", 2017, 19990, "Automatic", 15000, "Other", 0, 60.0, 1.5),
            ("Celica", 1998, 19990, "Manual", 90000, "Petrol", 300, 30.0, 1.8),
        ]
    )

"""Builders for small in-memory listing tables."""
import pandas as pd

RAW_HEADER = ["model", "year", "price", "transmission", "mileage", "fuelType", "tax", "mpg", "engineSize"]


def make_raw(rows: list[tuple]) -> pd.DataFrame:
    return pd.DataFrame(rows, columns=RAW_HEADER)

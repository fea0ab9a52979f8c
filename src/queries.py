from __future__ import annotations

import pandas as pd

from config import KEY_COL, PipelineConfig


"""
Aggregate queries over the keyed tables.

Each one answers a single descriptive question about the listings and returns
a fresh DataFrame (or Series); none of them modify the tables passed in.
"""


def top_priced_cars(cars: pd.DataFrame, pricing: pd.DataFrame, n: int = 15) -> pd.DataFrame:
    # price comes from the Pricing table to exercise the CarID join
    specs_cols = [KEY_COL, "model", "year", "mileage", "fuelType", "transmission"]
    joined = cars[specs_cols].merge(pricing[[KEY_COL, "price"]], on=KEY_COL, how="inner")
    out = joined.sort_values("price", ascending=False, kind="mergesort").head(n)
    return out[["model", "year", "price", "mileage", "fuelType", "transmission"]].reset_index(drop=True)


def avg_price_by_fuel(cars: pd.DataFrame) -> pd.DataFrame:
    return (
        cars.groupby("fuelType", as_index=False)
        .agg(avg_price=("price", "mean"))
        .sort_values("avg_price", ascending=False)
        .reset_index(drop=True)
    )


def avg_mileage_by_model(cars: pd.DataFrame) -> pd.DataFrame:
    return (
        cars.groupby("model", as_index=False)
        .agg(avg_mileage=("mileage", "mean"))
        .sort_values("avg_mileage")
        .reset_index(drop=True)
    )


def largest_engines(cars: pd.DataFrame, n: int = 10) -> pd.DataFrame:
    out = cars.sort_values(["engineSize", "price"], ascending=[False, False], kind="mergesort").head(n)
    return out[["model", "year", "engineSize", "price"]].reset_index(drop=True)


def avg_engine_by_doors(cars: pd.DataFrame) -> pd.DataFrame:
    return (
        cars.groupby("Doors", as_index=False)
        .agg(avg_engineSize=("engineSize", "mean"))
        .sort_values("Doors")
        .reset_index(drop=True)
    )


def price_summary(cars: pd.DataFrame) -> pd.Series:
    """Min, quartiles, mean and max of price."""
    price = cars["price"]
    return pd.Series(
        {
            "min": price.min(),
            "q1": price.quantile(0.25),
            "median": price.median(),
            "mean": price.mean(),
            "q3": price.quantile(0.75),
            "max": price.max(),
        },
        name="price",
    )


def old_low_mileage_cars(cars: pd.DataFrame, min_age: int = 10, max_mileage: float = 50000) -> pd.DataFrame:
    # older cars that have barely been driven, possible good deals
    mask = (cars["Age"] > min_age) & (cars["mileage"] < max_mileage)
    out = cars.loc[mask, ["model", "year", "Age", "mileage", "price"]]
    return out.sort_values("price", ascending=False, kind="mergesort").reset_index(drop=True)


def cheapest_automatics(cars: pd.DataFrame, n: int = 10) -> pd.DataFrame:
    out = cars.loc[cars["Automatic"] == 1, ["model", "year", "mileage", "price"]]
    return out.sort_values("price", kind="mergesort").head(n).reset_index(drop=True)


def most_common_models(cars: pd.DataFrame) -> pd.DataFrame:
    counts = cars.groupby("model").size().rename("count_model").reset_index()
    return counts.sort_values("count_model", ascending=False, kind="mergesort").reset_index(drop=True)


def avg_tax_by_fuel(cars: pd.DataFrame) -> pd.DataFrame:
    return (
        cars.groupby("fuelType", as_index=False)
        .agg(avg_tax=("tax", "mean"))
        .sort_values("avg_tax", ascending=False)
        .reset_index(drop=True)
    )


def model_summary(cars: pd.DataFrame) -> pd.DataFrame:
    return (
        cars.groupby("model", as_index=False)
        .agg(
            avg_price=("price", "mean"),
            avg_age=("Age", "mean"),
            avg_mileage=("mileage", "mean"),
            avg_engineSize=("engineSize", "mean"),
        )
        .sort_values("avg_price", ascending=False)
        .reset_index(drop=True)
    )


def total_inventory_value(cars: pd.DataFrame) -> float:
    return float(cars["price"].sum())


def transmission_category(cars: pd.DataFrame, config: PipelineConfig) -> pd.Series:
    """Two-way transmission label used to facet the price histograms."""
    if config.automatic_policy == "exact":
        auto_label = " / ".join(config.automatic_labels)
        other_label = "Manual"
    else:
        auto_label = "Automatic"
        other_label = "Manual or other"
    return cars["Automatic"].map({1: auto_label, 0: other_label}).rename("TransCategory")


def run_all_queries(cars: pd.DataFrame, pricing: pd.DataFrame) -> dict[str, pd.DataFrame | pd.Series | float]:
    return {
        "top_priced_cars": top_priced_cars(cars, pricing),
        "avg_price_by_fuel": avg_price_by_fuel(cars),
        "avg_mileage_by_model": avg_mileage_by_model(cars),
        "largest_engines": largest_engines(cars),
        "avg_engine_by_doors": avg_engine_by_doors(cars),
        "price_summary": price_summary(cars),
        "old_low_mileage_cars": old_low_mileage_cars(cars),
        "cheapest_automatics": cheapest_automatics(cars),
        "most_common_models": most_common_models(cars),
        "avg_tax_by_fuel": avg_tax_by_fuel(cars),
        "model_summary": model_summary(cars),
        "total_inventory_value": total_inventory_value(cars),
    }

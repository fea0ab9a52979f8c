from __future__ import annotations

from pathlib import Path

import pandas as pd
import matplotlib.pyplot as plt

from config import PipelineConfig
from queries import transmission_category


def _save(out_dir: Path, name: str) -> Path:
    path = out_dir / name
    plt.tight_layout()
    plt.savefig(path, dpi=150)
    plt.close()
    return path


def plot_price_vs_age(cars: pd.DataFrame, out_dir: Path) -> Path:
    # classic depreciation curve, the line is the mean price at each age
    trend = cars.groupby("Age")["price"].mean().sort_index()
    plt.figure(figsize=(8, 5))
    plt.scatter(cars["Age"], cars["price"], alpha=0.3, s=10)
    plt.plot(trend.index, trend.values, color="tab:red", linewidth=2)
    plt.title("Price vs Age of Used Toyota Vehicles")
    plt.xlabel("Age (years)")
    plt.ylabel("Price")
    return _save(out_dir, "price_vs_age.png")


def plot_price_histogram(cars: pd.DataFrame, out_dir: Path) -> Path:
    plt.figure(figsize=(8, 5))
    cars["price"].hist(bins=30)
    plt.title("Distribution of Used Toyota Prices")
    plt.xlabel("Price")
    plt.ylabel("Count")
    return _save(out_dir, "hist_price.png")


def plot_price_by_fuel(cars: pd.DataFrame, out_dir: Path) -> Path:
    cars[["fuelType", "price"]].boxplot(by="fuelType", column="price", figsize=(8, 5))
    plt.title("Price by Fuel Type")
    plt.suptitle("")
    plt.xlabel("Fuel Type")
    plt.ylabel("Price")
    return _save(out_dir, "box_price_by_fuel.png")


def plot_avg_price_by_doors(cars: pd.DataFrame, out_dir: Path) -> Path:
    avg_price = cars.groupby("Doors")["price"].mean()
    plt.figure(figsize=(6, 5))
    avg_price.plot(kind="bar")
    plt.title("Average Price by Number of Doors")
    plt.xlabel("Number of Doors")
    plt.ylabel("Average Price")
    return _save(out_dir, "bar_avg_price_by_doors.png")


def plot_price_vs_distance(cars: pd.DataFrame, out_dir: Path) -> Path:
    # bubble size follows engine size, km is used when the pipeline derived it
    x_col, x_label = ("KM", "Kilometers (KM)") if "KM" in cars.columns else ("mileage", "Mileage (miles)")
    plt.figure(figsize=(9, 6))
    plt.scatter(cars[x_col], cars["price"], s=cars["engineSize"] * 20, alpha=0.4)
    plt.title(f"Price vs {'Kilometers' if x_col == 'KM' else 'Miles'} Driven")
    plt.xlabel(x_label)
    plt.ylabel("Price")
    return _save(out_dir, f"bubble_price_vs_{x_col.lower()}.png")


def plot_price_by_transmission(cars: pd.DataFrame, config: PipelineConfig, out_dir: Path) -> Path:
    category = transmission_category(cars, config)
    groups = sorted(category.dropna().unique())
    fig, axes = plt.subplots(1, len(groups), figsize=(6 * len(groups), 5), sharey=True, squeeze=False)
    for ax, group in zip(axes[0], groups):
        ax.hist(cars.loc[category == group, "price"], bins=30)
        ax.set_title(group)
        ax.set_xlabel("Price")
    axes[0][0].set_ylabel("Count")
    fig.suptitle("Price Distribution by Transmission Type")
    return _save(out_dir, "hist_price_by_transmission.png")


def plot_numeric_relationships(cars: pd.DataFrame, out_dir: Path) -> list[Path]:
    paths = []
    for col in ["engineSize", "mpg"]:
        if col not in cars.columns:
            continue
        plt.figure(figsize=(8, 5))
        plt.scatter(cars[col], cars["price"], alpha=0.3, s=10)
        plt.title(f"Price vs {col}")
        plt.xlabel(col)
        plt.ylabel("Price")
        paths.append(_save(out_dir, f"scatter_price_vs_{col}.png"))
    return paths


def plot_categorical_bars(cars: pd.DataFrame, out_dir: Path) -> list[Path]:
    paths = []
    for col in ["fuelType", "transmission", "model"]:
        if col not in cars.columns:
            continue
        counts = cars[col].value_counts(dropna=False)
        plt.figure(figsize=(10, 6))
        counts.plot(kind="bar")
        plt.title(f"Listings per {col}")
        plt.xlabel(col)
        plt.ylabel("Count")
        paths.append(_save(out_dir, f"bar_{col}.png"))
    return paths


def plot_distributions(cars: pd.DataFrame, out_dir: Path) -> list[Path]:
    # year as plain counts, price and mileage normalised to a density
    paths = []
    plt.figure(figsize=(8, 5))
    cars["year"].plot(kind="hist", bins=range(int(cars["year"].min()), int(cars["year"].max()) + 2))
    plt.title("Listings by Model Year")
    plt.xlabel("Year")
    plt.ylabel("Count")
    paths.append(_save(out_dir, "hist_year.png"))

    for col, label in [("price", "Price"), ("mileage", "Mileage (miles)")]:
        plt.figure(figsize=(8, 5))
        plt.hist(cars[col].dropna(), bins=40, density=True, alpha=0.6)
        plt.title(f"Density of {label}")
        plt.xlabel(label)
        plt.ylabel("Density")
        paths.append(_save(out_dir, f"density_{col}.png"))
    return paths


def plot_price_boxes(cars: pd.DataFrame, out_dir: Path) -> list[Path]:
    paths = []
    for col in ["transmission", "model"]:
        cars[[col, "price"]].boxplot(by=col, column="price", figsize=(10, 6), rot=45)
        plt.title(f"Price by {col}")
        plt.suptitle("")
        plt.xlabel(col)
        plt.ylabel("Price")
        paths.append(_save(out_dir, f"box_price_by_{col}.png"))
    return paths


def make_figures(cars: pd.DataFrame, config: PipelineConfig, out_dir: Path) -> list[Path]:
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    paths = [
        plot_price_vs_age(cars, out_dir),
        plot_price_histogram(cars, out_dir),
        plot_price_by_fuel(cars, out_dir),
        plot_avg_price_by_doors(cars, out_dir),
        plot_price_vs_distance(cars, out_dir),
        plot_price_by_transmission(cars, config, out_dir),
    ]
    paths += plot_numeric_relationships(cars, out_dir)
    paths += plot_categorical_bars(cars, out_dir)
    paths += plot_distributions(cars, out_dir)
    paths += plot_price_boxes(cars, out_dir)
    return paths

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from config import KEY_COL, PRICING_COLS, SORT_COLS
from errors import KeyIntegrityError
from logger import get_logger

logger = get_logger(__name__)


@dataclass
class CarTables:
    specs: pd.DataFrame  # CarSpecs
    pricing: pd.DataFrame  # Pricing
    cars: pd.DataFrame  # CarSpecs joined with Pricing


def assign_car_ids(df: pd.DataFrame) -> pd.DataFrame:
    """
    Sort by (model, year, price) and number the rows 1..N as CarID.

    mergesort is stable, so rows tied on all three keep their input order.
    IDs are only meaningful within one run.
    """
    df = df.sort_values(SORT_COLS, kind="mergesort").reset_index(drop=True)
    df.insert(0, KEY_COL, range(1, len(df) + 1))
    return df


def split_car_tables(cars: pd.DataFrame) -> tuple[pd.DataFrame, pd.DataFrame]:
    spec_cols = [c for c in cars.columns if c not in PRICING_COLS]
    specs = cars[spec_cols].copy()
    pricing = cars[[KEY_COL] + PRICING_COLS].copy()
    return specs, pricing


def join_car_tables(specs: pd.DataFrame, pricing: pd.DataFrame) -> pd.DataFrame:
    for name, table in (("CarSpecs", specs), ("Pricing", pricing)):
        dupes = table[KEY_COL].duplicated()
        if dupes.any():
            raise KeyIntegrityError(f"{name} repeats CarID {table.loc[dupes, KEY_COL].tolist()[:10]}")

    spec_ids = set(specs[KEY_COL])
    price_ids = set(pricing[KEY_COL])
    if spec_ids != price_ids:
        only_specs = sorted(spec_ids - price_ids)[:10]
        only_pricing = sorted(price_ids - spec_ids)[:10]
        raise KeyIntegrityError(
            f"CarSpecs and Pricing disagree on CarID (only in CarSpecs: {only_specs}, only in Pricing: {only_pricing})"
        )

    return specs.merge(pricing, on=KEY_COL, how="inner", validate="one_to_one")


def build_tables(df: pd.DataFrame) -> CarTables:
    keyed = assign_car_ids(df)
    specs, pricing = split_car_tables(keyed)
    cars = join_car_tables(specs, pricing)
    logger.info(f"Built CarSpecs {specs.shape}, Pricing {pricing.shape}, Cars {cars.shape}")
    return CarTables(specs=specs, pricing=pricing, cars=cars)


def export_cars(cars: pd.DataFrame, out_path: Path) -> Path:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    cars.to_csv(out_path, index=False)  # overwrites any earlier run
    logger.info(f"Wrote {len(cars)} cars to {out_path}")
    return out_path

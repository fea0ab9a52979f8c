from __future__ import annotations

from pathlib import Path

import pandas as pd

from config import KM_PER_MILE, NUMERIC_COLS, RAW_COLUMNS, REQUIRED_NONNULL_COLS, TEXT_COLS, PipelineConfig
from errors import EmptyResult, SchemaMismatch, SourceUnavailable
from logger import get_logger

logger = get_logger(__name__)


"""
Cleaning rules, in order:
engineSize
< floor (1.0) → floor, some listings have a 0 litre engine
mpg
> 60 → 60, prius and friends report inflated figures
< 7 → 28, hilux rows typed as 2.8
Filters
2000 < price < 60000
0 <= mileage < 200000
(year, price) == (1998, 19990) dropped, single typo that wrecks the price vs age plot
"""


def load_raw(source: str | Path) -> pd.DataFrame:
    try:
        df = pd.read_csv(source)
    except (OSError, ValueError) as exc:  # URLError/HTTPError are OSErrors, parser errors are ValueErrors
        raise SourceUnavailable(str(source), f"{type(exc).__name__}: {exc}") from exc
    logger.info(f"Loaded {len(df)} rows from {source}")
    return df


def trim_column_names(df: pd.DataFrame) -> pd.DataFrame:
    return df.rename(columns=lambda c: c.strip() if isinstance(c, str) else c)


def assert_required_columns(df: pd.DataFrame, required_cols: list[str]) -> None:
    missing = sorted(set(required_cols) - set(df.columns))
    if missing:
        raise SchemaMismatch(missing, "Missing required columns")


def drop_rows_missing_required(df: pd.DataFrame, required_nonnull_cols: list[str]) -> pd.DataFrame:
    before = len(df)
    df = df.dropna(subset=required_nonnull_cols)
    if len(df) < before:
        logger.info(f"Dropped {before - len(df)} rows due to missing required values.")
    return df


def coerce_numeric(df: pd.DataFrame, cols: list[str]) -> pd.DataFrame:
    # a cell that was filled in but does not parse means the column is not the one we expect
    bad_cols = []
    for col in cols:
        if pd.api.types.is_numeric_dtype(df[col]):
            continue
        coerced = pd.to_numeric(df[col], errors="coerce")
        if (coerced.isna() & df[col].notna()).any():
            bad_cols.append(col)
        else:
            df[col] = coerced
    if bad_cols:
        raise SchemaMismatch(bad_cols, "Non-numeric values in numeric columns")
    return df


def validate_schema(df: pd.DataFrame) -> pd.DataFrame:
    """
    Check the loaded table before any cleaning runs.

    Column names are compared after trimming. Extra columns are dropped,
    numeric columns must parse as numbers, text columns become pandas strings.
    Rows with a blank year, price or mileage are dropped; year is then an int.
    """
    df = trim_column_names(df)
    assert_required_columns(df, RAW_COLUMNS)

    extra = [c for c in df.columns if c not in RAW_COLUMNS]
    if extra:
        logger.info(f"Ignoring unexpected columns: {extra}")
    df = df[RAW_COLUMNS].copy()

    df = coerce_numeric(df, NUMERIC_COLS)
    df = drop_rows_missing_required(df, REQUIRED_NONNULL_COLS)
    df["year"] = df["year"].astype("int64")
    for col in TEXT_COLS:
        df[col] = df[col].astype("string")
    return df


def is_text_column(s: pd.Series) -> bool:
    return pd.api.types.is_object_dtype(s) or pd.api.types.is_string_dtype(s)


def normalize_strings(df: pd.DataFrame) -> pd.DataFrame:
    for c in df.columns:
        if is_text_column(df[c]):
            df[c] = df[c].astype("string").str.strip()
    return df


def impute_engine_size(df: pd.DataFrame, floor: float | None) -> pd.DataFrame:
    if floor is None:
        return df
    mask = df["engineSize"] < floor
    if not mask.any():
        logger.debug(f"engineSize floor {floor} matched no rows")
        return df
    df["engineSize"] = df["engineSize"].mask(mask, floor)
    logger.info(f"Raised engineSize to {floor} on {int(mask.sum())} rows")
    return df


def impute_mpg(df: pd.DataFrame, config: PipelineConfig) -> pd.DataFrame:
    # masks are taken before either rule writes so the two corrections stay independent
    high = df["mpg"] > config.mpg_ceiling
    low = df["mpg"] < config.mpg_floor
    df["mpg"] = df["mpg"].mask(high, config.mpg_ceiling).mask(low, config.mpg_fallback)
    if not (high.any() or low.any()):
        logger.debug("mpg band matched no rows")
    else:
        logger.info(
            f"Capped mpg at {config.mpg_ceiling} on {int(high.sum())} rows, "
            f"replaced mpg below {config.mpg_floor} with {config.mpg_fallback} on {int(low.sum())} rows"
        )
    return df


def clean(df: pd.DataFrame, config: PipelineConfig) -> pd.DataFrame:
    df = trim_column_names(df).copy()
    df = normalize_strings(df)
    df = impute_engine_size(df, config.engine_size_floor)
    if config.impute_mpg:
        df = impute_mpg(df, config)
    return df


def classify_automatic(transmission: pd.Series, config: PipelineConfig) -> pd.Series:
    """
    1 for automatic gearboxes, 0 otherwise (manual, unseen labels, missing).

    exact:     transmission in automatic_labels ("Automatic", "Semi-Auto")
    substring: "auto" anywhere in the text, any case
    """
    s = transmission.astype("string")
    if config.automatic_policy == "exact":
        auto_mask = s.isin(list(config.automatic_labels))
    else:
        auto_mask = s.str.contains(config.automatic_substring, case=False, regex=False, na=False)
    return pd.Series(auto_mask, index=transmission.index).fillna(False).astype(int)


def assign_doors(model: pd.Series, config: PipelineConfig) -> pd.Series:
    # door count isn't in the dataset, it is approximated from the model name
    doors = model.astype("object").map(config.door_lookup)
    return doors.fillna(config.default_doors).astype(int)


def derive_features(df: pd.DataFrame, config: PipelineConfig) -> pd.DataFrame:
    df = df.copy()
    df["Age"] = config.reference_year - df["year"]
    df["Automatic"] = classify_automatic(df["transmission"], config)
    df["Doors"] = assign_doors(df["model"], config)
    if config.include_km:
        df["KM"] = df["mileage"] * KM_PER_MILE  # unrounded, round when presenting
    return df


def apply_outlier_filters(df: pd.DataFrame, config: PipelineConfig) -> pd.DataFrame:
    """
    Drop implausible listings. Not a statistical outlier test, just fixed
    bounds plus a literal list of (year, price) typos.
    """
    before = len(df)

    price_ok = (df["price"] > config.price_min) & (df["price"] < config.price_max)
    mileage_ok = (df["mileage"] >= config.mileage_min) & (df["mileage"] < config.mileage_max)
    excluded = pd.Series(False, index=df.index)
    for year, price in config.excluded_points:
        excluded |= (df["year"] == year) & (df["price"] == price)

    keep = price_ok & mileage_ok & ~excluded
    logger.info(
        f"Outside price bounds: {int((~price_ok).sum())}, outside mileage bounds: {int((~mileage_ok).sum())}, "
        f"excluded points: {int(excluded.sum())}"
    )

    df = df[keep].copy()
    logger.info(f"Dropped {before - len(df)} rows due to outlier filters.")
    if df.empty:
        raise EmptyResult(before)
    return df


def preprocess(df: pd.DataFrame, config: PipelineConfig) -> pd.DataFrame:
    df = validate_schema(df)
    df = clean(df, config)
    df = derive_features(df, config)
    df = apply_outlier_filters(df, config)
    return df

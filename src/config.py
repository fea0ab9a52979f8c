from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator


"""
Columns of the Toyota listings file and how they get split:

Target:
- price

CarSpecs (descriptive / feature columns, keyed by CarID):
- model, year, Age, mileage, KM (optional), engineSize, fuelType,
  transmission, Automatic, Doors, mpg

Pricing (keyed by CarID):
- price
- tax  (lots of 0 values, kept for the tax-by-fuel report only)

"""


DEFAULT_SOURCE_URL = (
    "https://raw.githubusercontent.com/colwroy/Data-Mining-Project-BUAN-314/"
    "refs/heads/main/toyota.csv"
)

TARGET_COLS = ["price"]
TEXT_COLS = ["model", "transmission", "fuelType"]
NUMERIC_COLS = ["year", "price", "mileage", "tax", "mpg", "engineSize"]
RAW_COLUMNS = ["model", "year", "price", "transmission", "mileage", "fuelType", "tax", "mpg", "engineSize"]
KEY_COL = "CarID"
SORT_COLS = ["model", "year", "price"]
PRICING_COLS = ["price", "tax"]
REQUIRED_NONNULL_COLS = ["year", "price", "mileage"]

KM_PER_MILE = 1.60934

FOUR_DOOR_MODELS = [
    "Aygo", "Yaris", "Auris", "Avensis", "Prius",
    "Corolla", "Verso", "C-HR", "PROACE VERSO",
    "RAV4", "Land Cruiser", "Hilux", "Camry",
]
FIVE_DOOR_MODELS = [m for m in FOUR_DOOR_MODELS if m != "Aygo"]  # Aygo counted as a 3-door hatch here


class PipelineConfig(BaseModel):
    """Every constant the cleaning / keying pipeline depends on.

    reference_year is a literal so reruns give the same Age column.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    reference_year: int = 2025

    # price_min < price < price_max, mileage_min <= mileage < mileage_max
    price_min: float = 2000
    price_max: float = 60000
    mileage_min: float = 0
    mileage_max: float = 200000

    engine_size_floor: float | None = 1.0  # zero litre engines are data errors
    impute_mpg: bool = True
    mpg_floor: float = 7
    mpg_ceiling: float = 60
    mpg_fallback: float = 28  # hilux rows listed at 2.8 mpg

    automatic_policy: Literal["exact", "substring"] = "exact"
    automatic_labels: tuple[str, ...] = ("Automatic", "Semi-Auto")
    automatic_substring: str = "Auto"

    door_groups: dict[int, list[str]] = Field(
        default_factory=lambda: {2: ["GT86", "Supra"], 4: list(FOUR_DOOR_MODELS)}
    )
    default_doors: int = 4

    include_km: bool = False
    excluded_points: list[tuple[int, float]] = Field(default_factory=lambda: [(1998, 19990)])
    regression_features: list[str] = Field(
        default_factory=lambda: ["Age", "mileage", "engineSize", "Automatic"]
    )

    @model_validator(mode="after")
    def check_ranges(self) -> "PipelineConfig":
        if self.price_min >= self.price_max:
            raise ValueError(f"price_min ({self.price_min}) must be below price_max ({self.price_max})")
        if self.mileage_min >= self.mileage_max:
            raise ValueError(f"mileage_min ({self.mileage_min}) must be below mileage_max ({self.mileage_max})")
        if self.mpg_floor >= self.mpg_ceiling:
            raise ValueError(f"mpg_floor ({self.mpg_floor}) must be below mpg_ceiling ({self.mpg_ceiling})")
        if not self.mpg_floor <= self.mpg_fallback <= self.mpg_ceiling:
            # a fallback outside the band would be rewritten again on a second clean()
            raise ValueError(
                f"mpg_fallback ({self.mpg_fallback}) must lie between mpg_floor ({self.mpg_floor}) "
                f"and mpg_ceiling ({self.mpg_ceiling})"
            )
        if self.default_doors <= 0 or any(d <= 0 for d in self.door_groups):
            raise ValueError("door counts must be positive")
        return self

    @model_validator(mode="after")
    def check_door_groups(self) -> "PipelineConfig":
        seen: dict[str, int] = {}
        for doors, models in self.door_groups.items():
            for model in models:
                if model in seen and seen[model] != doors:
                    raise ValueError(f"model {model!r} is listed as both {seen[model]}-door and {doors}-door")
                seen[model] = doors
        return self

    @model_validator(mode="after")
    def check_regression_features(self) -> "PipelineConfig":
        known = (set(NUMERIC_COLS) - set(TARGET_COLS)) | {"Age", "Automatic", "Doors"}
        if self.include_km:
            known.add("KM")
        unknown = [f for f in self.regression_features if f not in known]
        if unknown:
            raise ValueError(f"Unknown model features: {unknown}")
        if not self.regression_features:
            raise ValueError("regression_features must not be empty")
        return self

    @property
    def door_lookup(self) -> dict[str, int]:
        return {model: doors for doors, models in self.door_groups.items() for model in models}

    @property
    def door_values(self) -> set[int]:
        return set(self.door_groups) | {self.default_doors}


PRESETS: dict[str, PipelineConfig] = {
    # 2/4 door split, Automatic + Semi-Auto grouped, engine and mpg fixes
    "default": PipelineConfig(),
    # 3/5 door split, substring "auto" rule, mileage converted to km, no point exclusion
    "three_five_door": PipelineConfig(
        automatic_policy="substring",
        door_groups={3: ["Aygo", "GT86", "Supra"], 5: list(FIVE_DOOR_MODELS)},
        default_doors=5,
        include_km=True,
        excluded_points=[],
        regression_features=["Age", "KM", "engineSize", "Automatic"],
    ),
    # only the engine / mpg imputation, every listing kept
    "imputation_only": PipelineConfig(
        price_min=0,
        price_max=float("inf"),
        mileage_min=0,
        mileage_max=float("inf"),
        excluded_points=[],
    ),
}


def get_preset(name: str) -> PipelineConfig:
    try:
        return PRESETS[name]
    except KeyError:
        raise ValueError(f"Unknown preset {name!r}, expected one of {sorted(PRESETS)}") from None


def load_config(path: str | Path) -> PipelineConfig:
    """
    Build a PipelineConfig from a YAML file.

    An optional ``preset`` key picks the base preset (default: "default"),
    every other key overrides a field of it:

    ```yaml
    preset: three_five_door
    reference_year: 2024
    excluded_points:
      - [1998, 19990]
    ```
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Config file {path} must contain a mapping at the top level")

    base = get_preset(raw.pop("preset", "default"))
    merged = {**base.model_dump(), **raw}
    try:
        return PipelineConfig(**merged)
    except ValidationError as exc:
        raise ValueError(f"Invalid config in {path}: {exc}") from exc

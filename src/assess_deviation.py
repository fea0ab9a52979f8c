from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from logger import get_logger

logger = get_logger(__name__)

bands = [0, 5000, 10000, 15000, 20000, 30000, float("inf")]
band_labels = ["<5k", "5-10k", "10-15k", "15-20k", "20-30k", "30k+"]


"""
residual = listed price - predicted price, so
residual <= -threshold → underpriced (listed below what the model expects)
residual >=  threshold → overpriced
otherwise fair
The threshold is a quantile of |residual| within the car's price band, bands
that come out empty fall back to the quantile over all cars.
"""


def price_band(prices: pd.Series) -> pd.Series:
    return pd.Series(
        pd.cut(prices, bins=bands, labels=band_labels, include_lowest=True),
        index=prices.index,
        name="price_band",
    )


def compute_band_thresholds(
    prices: pd.Series,
    residuals: pd.Series,
    quantile: float = 0.8,
) -> tuple[pd.Series, dict[str, float], float]:
    band = price_band(prices)
    abs_resid = residuals.abs()
    band_thresholds = (
        pd.DataFrame({"band": band, "abs_resid": abs_resid})
        .groupby("band", observed=False)["abs_resid"]
        .quantile(quantile)
    )
    band_thresholds_dict = {str(k): float(v) for k, v in band_thresholds.dropna().items()}
    fallback = float(abs_resid.quantile(quantile))  # skips cars without a prediction
    thresholds = (
        band.astype("string")
        .map(band_thresholds_dict)
        .astype(float)
        .fillna(fallback)
    )
    return thresholds, band_thresholds_dict, fallback


def label_from_thresholds(residuals: pd.Series, thresholds: pd.Series) -> pd.Series:
    labels = np.where(
        residuals <= -thresholds,
        "underpriced",
        np.where(residuals >= thresholds, "overpriced", "fair"),
    )
    # no residual, no label
    return pd.Series(labels, index=residuals.index, name="label").where(residuals.notna())


def label_deviations(scored: pd.DataFrame, quantile: float = 0.8) -> pd.DataFrame:
    """Add price_band, threshold and label columns to a table with pred_price/residual."""
    if "residual" not in scored.columns:
        raise ValueError("label_deviations needs a scored table (run train_model first)")
    thresholds, band_thresholds_dict, fallback = compute_band_thresholds(
        scored["price"], scored["residual"], quantile=quantile
    )
    out = scored.copy()
    out["price_band"] = price_band(scored["price"]).astype("string")
    out["threshold"] = thresholds
    out["label"] = label_from_thresholds(scored["residual"], thresholds)

    logger.info(f"Band thresholds ({int(quantile * 100)}th percentile |residual|):")
    for name in band_labels:
        logger.info(f"  {name}: {band_thresholds_dict.get(name, fallback):,.0f}")
    return out


def residual_distribution(scored: pd.DataFrame, out_dir: Path) -> list[Path]:
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    scored = scored.dropna(subset=["residual"])
    band = price_band(scored["price"])

    summary = (
        pd.DataFrame({"band": band, "abs_resid": scored["residual"].abs()})
        .groupby("band", observed=False)
        .agg(mean_abs_resid=("abs_resid", "mean"), count=("abs_resid", "size"))
    )

    # Bar chart: mean absolute residual by price band
    summary["mean_abs_resid"].plot(
        kind="bar",
        figsize=(8, 4),
        title="Mean |residual| by price band",
    )
    plt.ylabel("Mean |residual|")
    plt.tight_layout()
    bar_path = out_dir / "residuals_mean_by_price_band.png"
    plt.savefig(bar_path, dpi=150)
    plt.close()

    # Boxplot: residual distribution by price band
    pd.DataFrame({"band": band.astype("string"), "resid": scored["residual"]}).boxplot(
        by="band",
        column="resid",
        figsize=(8, 4),
    )
    plt.title("Residuals by price band")
    plt.suptitle("")
    plt.ylabel("Residual")
    plt.tight_layout()
    box_path = out_dir / "residuals_box_by_price_band.png"
    plt.savefig(box_path, dpi=150)
    plt.close("all")

    return [bar_path, box_path]

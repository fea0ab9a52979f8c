from __future__ import annotations

import math

import numpy as np
import pandas as pd
from sklearn.linear_model import LinearRegression
from sklearn.metrics import mean_absolute_error, r2_score, root_mean_squared_error
from sklearn.model_selection import train_test_split

from config import KEY_COL, TARGET_COLS
from errors import ModelError
from logger import get_logger

logger = get_logger(__name__)

CORRELATION_COLS = ["price", "Age", "KM", "mileage", "tax", "engineSize", "Automatic"]


def correlation_matrix(cars: pd.DataFrame) -> pd.DataFrame:
    cols = [c for c in CORRELATION_COLS if c in cars.columns]
    return cars[cols].corr()


def drop_rows_missing_features(cars: pd.DataFrame, features: list[str]) -> pd.DataFrame:
    # absent columns are reported by split_features_target
    cols = [c for c in features + TARGET_COLS if c in cars.columns]
    before = len(cars)
    cars = cars.dropna(subset=cols)
    if len(cars) < before:
        logger.debug(f"Dropped {before - len(cars)} rows with missing model features.")
    return cars


def split_features_target(cars: pd.DataFrame, features: list[str]) -> tuple[pd.DataFrame, pd.Series]:
    missing = [c for c in features + TARGET_COLS if c not in cars.columns]
    if missing:
        raise ModelError(f"Cars table is missing model columns: {missing}")
    X = cars[features].astype(float)
    y = cars[TARGET_COLS[0]].astype(float)
    return X, y


def fit_price_model(cars: pd.DataFrame, features: list[str]) -> LinearRegression:
    """price ~ features by ordinary least squares, fitted on every complete row."""
    X, y = split_features_target(drop_rows_missing_features(cars, features), features)
    if len(X) <= len(features):
        raise ModelError(f"Need more than {len(features)} complete rows to fit {len(features)} features, got {len(X)}")
    model = LinearRegression()
    model.fit(X, y)
    return model


def summarize_model(model: LinearRegression, cars: pd.DataFrame, features: list[str]) -> dict[str, float]:
    X, y = split_features_target(drop_rows_missing_features(cars, features), features)
    n, p = X.shape
    r2 = r2_score(y, model.predict(X))
    summary = {"intercept": float(model.intercept_)}
    summary.update({f"coef_{name}": float(coef) for name, coef in zip(features, model.coef_)})
    summary["r2"] = float(r2)
    summary["adj_r2"] = float(1 - (1 - r2) * (n - 1) / (n - p - 1))
    summary["n"] = float(n)
    return summary


def add_predictions(cars: pd.DataFrame, model: LinearRegression, features: list[str]) -> pd.DataFrame:
    """
    Append pred_price and residual (price - pred_price).

    Predictions are built as their own CarID-keyed frame and merged back, so
    the result does not depend on the row order of cars. Cars with a missing
    feature get no prediction.
    """
    complete = drop_rows_missing_features(cars, features)
    X, y = split_features_target(complete, features)
    preds = pd.DataFrame(
        {
            KEY_COL: complete[KEY_COL].to_numpy(),
            "pred_price": model.predict(X),
        }
    )
    preds["residual"] = y.to_numpy() - preds["pred_price"].to_numpy()
    scored = cars.drop(columns=["pred_price", "residual"], errors="ignore")
    return scored.merge(preds, on=KEY_COL, how="left", validate="one_to_one")


def evaluate_holdout(
    cars: pd.DataFrame,
    features: list[str],
    test_size: float = 0.2,
    seed: int = 42,
) -> dict[str, float] | None:
    """
    Fit on 80% of the complete rows and score the other 20%.

    Returns None (and logs why) when there are too few cars to leave a
    training set larger than the feature count plus a validation set.
    """
    X, y = split_features_target(drop_rows_missing_features(cars, features), features)
    n_val = math.ceil(len(X) * test_size)
    if n_val < 1 or len(X) - n_val <= len(features):
        logger.warning(f"Skipping holdout evaluation, only {len(X)} complete rows for {len(features)} features")
        return None

    X_train, X_val, y_train, y_val = train_test_split(
        X, y, test_size=test_size, random_state=seed
    ) # standard 80/20 split

    model = LinearRegression()
    model.fit(X_train, y_train)
    preds = model.predict(X_val)

    metrics = {
        "mae": float(mean_absolute_error(y_val, preds)),
        "rmse": float(root_mean_squared_error(y_val, preds)),
        "r2": float(r2_score(y_val, preds)) if len(y_val) > 1 else float(np.nan),
    }
    logger.info(f"Validation MAE: {metrics['mae']:,.0f}")
    logger.info(f"Validation RMSE: {metrics['rmse']:,.0f}")
    return metrics


def train_model(cars: pd.DataFrame, features: list[str]) -> tuple[LinearRegression, pd.DataFrame]:
    model = fit_price_model(cars, features)
    summary = summarize_model(model, cars, features)
    logger.info(
        f"Fitted price ~ {' + '.join(features)} on {int(summary['n'])} cars, "
        f"R2={summary['r2']:.3f}, adj R2={summary['adj_r2']:.3f}",
        extra={"model_summary": summary},
    )
    return model, add_predictions(cars, model, features)

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import pandas as pd

from assess_deviation import label_deviations, residual_distribution
from config import DEFAULT_SOURCE_URL, PRESETS, PipelineConfig, get_preset, load_config
from eda import make_figures
from errors import PipelineError
from logger import get_logger, log_operation, setup_logger
from preprocess import load_raw, preprocess
from queries import run_all_queries
from split_tables import CarTables, build_tables, export_cars
from train_model import correlation_matrix, evaluate_holdout, train_model

logger = get_logger(__name__)

repo_root = Path(__file__).resolve().parents[1]


def run_pipeline(source: str | Path, config: PipelineConfig) -> CarTables:
    with log_operation("load", logger, source=str(source)):
        raw = load_raw(source)
    with log_operation("preprocess", logger, rows=len(raw)):
        df = preprocess(raw, config)
    with log_operation("build_tables", logger, rows=len(df)):
        return build_tables(df)


def report(tables: CarTables, config: PipelineConfig, figures_dir: Path) -> None:
    with pd.option_context("display.width", 120, "display.max_columns", 20):
        for name, result in run_all_queries(tables.cars, tables.pricing).items():
            body = result.head(10).to_string() if hasattr(result, "head") else f"{result:,.0f}"
            print(f"\n=== {name} ===\n{body}")
    paths = make_figures(tables.cars, config, figures_dir)
    logger.info(f"Wrote {len(paths)} EDA plots to {figures_dir}")


def fit_and_score(tables: CarTables, config: PipelineConfig, out_dir: Path, figures_dir: Path) -> pd.DataFrame:
    print("\n=== correlation matrix ===")
    print(correlation_matrix(tables.cars).round(3).to_string())

    features = list(config.regression_features)
    evaluate_holdout(tables.cars, features)
    _, scored = train_model(tables.cars, features)
    scored = label_deviations(scored)
    residual_distribution(scored, figures_dir)

    print("\n=== actual vs predicted ===")
    print(scored[["model", "year", "price", "pred_price", "residual", "label"]].head().to_string(index=False))
    scored_path = export_cars(scored, out_dir / "toyota_cars_scored.csv")
    logger.info(f"Wrote scored cars to {scored_path}")
    return scored


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Clean, key and analyse the used Toyota listings.")
    parser.add_argument("--source", default=DEFAULT_SOURCE_URL, help="CSV path or URL of the raw listings")
    parser.add_argument("--out-dir", type=Path, default=repo_root / "data" / "processed")
    parser.add_argument("--figures-dir", type=Path, default=repo_root / "reports" / "figures")
    parser.add_argument("--config", type=Path, help="YAML file overriding a preset")
    parser.add_argument("--preset", choices=sorted(PRESETS), default="default")
    parser.add_argument("--skip-report", action="store_true", help="no queries or plots")
    parser.add_argument("--skip-model", action="store_true", help="no regression")
    parser.add_argument("--log-level", default=None)
    parser.add_argument("--log-format", choices=["json", "text"], default="text")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logger(level=args.log_level, format_type=args.log_format)

    try:
        config = load_config(args.config) if args.config else get_preset(args.preset)
    except (FileNotFoundError, ValueError) as exc:
        logger.error(f"Bad configuration: {exc}")
        return 2

    try:
        tables = run_pipeline(args.source, config)
        export_cars(tables.cars, args.out_dir / "toyota_cars.csv")
        if not args.skip_report:
            report(tables, config, args.figures_dir)
        if not args.skip_model:
            fit_and_score(tables, config, args.out_dir, args.figures_dir)
    except PipelineError as exc:
        logger.error(f"Pipeline failed: {exc}", extra={"error_type": type(exc).__name__})
        return 1
    return 0


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()

"""
End-to-end tests: raw CSV in, keyed/scored CSVs and figures out.
"""
import pandas as pd
import pytest

from config import PipelineConfig
from helpers import make_raw
from main import main, run_pipeline

pytestmark = pytest.mark.e2e


def test_worked_example(tmp_path, example_rows):
    """Three raw listings, one survives with every correction applied"""
    source = tmp_path / "toyota.csv"
    make_raw(example_rows).to_csv(source, index=False)

    tables = run_pipeline(source, PipelineConfig())

    assert len(tables.cars) == 1
    car = tables.cars.iloc[0]
    assert car["CarID"] == 1
    assert car["model"] == "Yaris"
    assert car["engineSize"] == 1.0
    assert car["mpg"] == 60
    assert car["Age"] == 10
    assert car["Automatic"] == 0
    assert car["Doors"] == 4
    assert car["price"] == 9000
    assert tables.pricing["CarID"].tolist() == tables.specs["CarID"].tolist() == [1]


def test_cli_writes_keyed_table(tmp_path, raw_listings):
    source = tmp_path / "toyota.csv"
    raw_listings.to_csv(source, index=False)
    out_dir = tmp_path / "processed"

    status = main(["--source", str(source), "--out-dir", str(out_dir), "--skip-report", "--skip-model"])

    assert status == 0
    written = pd.read_csv(out_dir / "toyota_cars.csv")
    assert written["CarID"].tolist() == list(range(1, 11))
    assert written.columns[0] == "CarID"
    assert {"Age", "Automatic", "Doors", "price", "tax"} <= set(written.columns)
    assert not (out_dir / "toyota_cars_scored.csv").exists()


def test_cli_full_run(tmp_path, raw_listings):
    source = tmp_path / "toyota.csv"
    raw_listings.to_csv(source, index=False)
    out_dir = tmp_path / "processed"
    figures_dir = tmp_path / "figures"

    status = main(
        [
            "--source", str(source),
            "--out-dir", str(out_dir),
            "--figures-dir", str(figures_dir),
            "--preset", "three_five_door",
        ]
    )

    assert status == 0
    scored = pd.read_csv(out_dir / "toyota_cars_scored.csv")
    assert {"KM", "pred_price", "residual", "label"} <= set(scored.columns)
    assert (scored["residual"] - (scored["price"] - scored["pred_price"])).abs().max() < 1e-6
    assert (figures_dir / "residuals_box_by_price_band.png").exists()
    assert (figures_dir / "bubble_price_vs_km.png").exists()


def test_cli_reports_empty_result(tmp_path, raw_listings):
    source = tmp_path / "toyota.csv"
    raw_listings.to_csv(source, index=False)
    config_path = tmp_path / "strict.yaml"
    config_path.write_text("price_min: 500000\nprice_max: 600000\n")

    status = main(["--source", str(source), "--out-dir", str(tmp_path), "--config", str(config_path)])

    assert status == 1
    assert not (tmp_path / "toyota_cars.csv").exists()


def test_cli_reports_missing_source(tmp_path):
    status = main(["--source", str(tmp_path / "missing.csv"), "--out-dir", str(tmp_path)])
    assert status == 1


def test_cli_rejects_bad_config(tmp_path):
    config_path = tmp_path / "bad.yaml"
    config_path.write_text("automatic_policy: sometimes\n")
    assert main(["--config", str(config_path), "--out-dir", str(tmp_path)]) == 2


def test_cli_model_on_worked_example_fails_cleanly(tmp_path, example_rows):
    """One surviving car cannot carry a four-feature regression"""
    source = tmp_path / "toyota.csv"
    make_raw(example_rows).to_csv(source, index=False)
    out_dir = tmp_path / "processed"

    status = main(["--source", str(source), "--out-dir", str(out_dir), "--skip-report"])

    assert status == 1
    assert (out_dir / "toyota_cars.csv").exists()
    assert not (out_dir / "toyota_cars_scored.csv").exists()


def test_cli_full_run_with_blank_cells(tmp_path, raw_listings):
    df = raw_listings.astype({"year": float, "engineSize": float})
    df.loc[0, "year"] = None  # Yaris 2017, dropped at load
    df.loc[1, "engineSize"] = None  # Corolla 2019, kept but not scored
    source = tmp_path / "toyota.csv"
    df.to_csv(source, index=False)
    out_dir = tmp_path / "processed"

    status = main(
        [
            "--source", str(source),
            "--out-dir", str(out_dir),
            "--figures-dir", str(tmp_path / "figures"),
            "--skip-report",
        ]
    )

    assert status == 0
    scored = pd.read_csv(out_dir / "toyota_cars_scored.csv")
    assert len(scored) == 9
    assert pd.api.types.is_integer_dtype(scored["Age"])
    corolla = scored["model"].str.strip() == "Corolla"
    assert scored.loc[corolla, "pred_price"].isna().all()
    assert scored.loc[~corolla, "pred_price"].notna().all()

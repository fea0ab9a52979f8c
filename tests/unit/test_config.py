"""
Unit tests for PipelineConfig, the presets and the YAML loader.
"""
import pytest
from pydantic import ValidationError

from config import PRESETS, PipelineConfig, get_preset, load_config

pytestmark = pytest.mark.unit


class TestPipelineConfig:
    """Tests for PipelineConfig validation"""

    def test_defaults(self):
        cfg = PipelineConfig()
        assert cfg.reference_year == 2025
        assert (cfg.price_min, cfg.price_max) == (2000, 60000)
        assert (cfg.mileage_min, cfg.mileage_max) == (0, 200000)
        assert cfg.engine_size_floor == 1.0
        assert (cfg.mpg_floor, cfg.mpg_ceiling, cfg.mpg_fallback) == (7, 60, 28)
        assert cfg.automatic_policy == "exact"
        assert cfg.excluded_points == [(1998, 19990)]
        assert cfg.door_lookup["Supra"] == 2
        assert cfg.door_lookup["Yaris"] == 4
        assert cfg.door_values == {2, 4}

    def test_frozen(self):
        cfg = PipelineConfig()
        with pytest.raises(ValidationError):
            cfg.reference_year = 2030

    def test_inverted_price_bounds_rejected(self):
        with pytest.raises(ValidationError, match="price_min"):
            PipelineConfig(price_min=60000, price_max=2000)

    def test_inverted_mpg_band_rejected(self):
        with pytest.raises(ValidationError, match="mpg_floor"):
            PipelineConfig(mpg_floor=70)

    @pytest.mark.parametrize("fallback", [70, 5])
    def test_mpg_fallback_outside_band_rejected(self, fallback):
        with pytest.raises(ValidationError, match="mpg_fallback"):
            PipelineConfig(mpg_fallback=fallback)

    def test_mpg_fallback_on_band_edge_accepted(self):
        assert PipelineConfig(mpg_fallback=60).mpg_fallback == 60

    def test_model_in_two_door_groups_rejected(self):
        with pytest.raises(ValidationError, match="Supra"):
            PipelineConfig(door_groups={2: ["Supra"], 4: ["Supra", "Yaris"]})

    def test_unknown_policy_rejected(self):
        with pytest.raises(ValidationError):
            PipelineConfig(automatic_policy="regex")

    def test_km_feature_needs_km_column(self):
        with pytest.raises(ValidationError, match="KM"):
            PipelineConfig(regression_features=["Age", "KM"])
        assert PipelineConfig(include_km=True, regression_features=["Age", "KM"]).regression_features == ["Age", "KM"]

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            PipelineConfig(refrence_year=2024)


class TestPresets:
    """Tests for the named presets"""

    def test_all_presets_valid(self):
        assert set(PRESETS) == {"default", "three_five_door", "imputation_only"}

    def test_three_five_door(self):
        cfg = get_preset("three_five_door")
        assert cfg.automatic_policy == "substring"
        assert cfg.door_values == {3, 5}
        assert cfg.include_km
        assert cfg.excluded_points == []
        assert "KM" in cfg.regression_features

    def test_unknown_preset(self):
        with pytest.raises(ValueError, match="Unknown preset"):
            get_preset("levkoff")


class TestLoadConfig:
    """Tests for load_config"""

    def test_overrides_preset(self, tmp_path):
        path = tmp_path / "pipeline.yaml"
        path.write_text(
            "preset: three_five_door\n"
            "reference_year: 2024\n"
            "excluded_points:\n"
            "  - [1998, 19990]\n"
        )
        cfg = load_config(path)
        assert cfg.reference_year == 2024
        assert cfg.excluded_points == [(1998, 19990)]
        assert cfg.default_doors == 5

    def test_door_groups_from_yaml(self, tmp_path):
        path = tmp_path / "pipeline.yaml"
        path.write_text("door_groups:\n  2: [GT86]\n  4: [Yaris]\ndefault_doors: 4\n")
        cfg = load_config(path)
        assert cfg.door_lookup == {"GT86": 2, "Yaris": 4}

    def test_empty_file_gives_default(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == PipelineConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("price_min: 90000\n")
        with pytest.raises(ValueError, match="Invalid config"):
            load_config(path)

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config(path)

    def test_example_file_loads(self):
        from pathlib import Path

        example = Path(__file__).resolve().parents[2] / "config" / "pipeline.example.yaml"
        cfg = load_config(example)
        assert cfg.price_min == 2500
        assert cfg.door_lookup["Aygo"] == 3

"""Tests for analysis configuration."""

import logging

import pytest

from mdhist.config import AnalysisConfig, load_config, save_config


class TestAnalysisConfig:
    """Tests for AnalysisConfig."""

    def test_defaults(self):
        """Test default options."""
        config = AnalysisConfig()
        assert config.tunit == "step"
        assert config.tsmear is None
        assert config.n_temperatures == 1000
        assert config.make_backend().name == "serial"

    def test_threads_backend(self):
        """Test building the configured backend."""
        backend = AnalysisConfig(backend="threads", n_workers=3).make_backend()
        assert backend.name == "threads"
        assert backend.n_workers == 3

    @pytest.mark.parametrize(
        "kwargs, match",
        [
            ({"tsmear": -1.0}, "tsmear needs to be positive"),
            ({"omega_max": 0.0}, "omega_max"),
            ({"n_temperatures": 0}, "n_temperatures"),
            ({"backend": "mpi"}, "Unknown backend"),
            ({"n_workers": 0}, "n_workers"),
        ],
    )
    def test_invalid_values(self, kwargs, match):
        """Test value validation."""
        with pytest.raises(ValueError, match=match):
            AnalysisConfig(**kwargs)

    def test_from_dict_unknown_key(self):
        """Test that unknown keys are rejected."""
        with pytest.raises(ValueError, match="Unknown configuration keys: smearing"):
            AnalysisConfig.from_dict({"smearing": 3.0})


class TestLoadConfig:
    """Tests for YAML configuration files."""

    def test_load(self, tmp_path):
        """Test reading a YAML file."""
        path = tmp_path / "analysis.yaml"
        path.write_text("tunit: fs\ntsmear: 12.5\nbackend: threads\nn_workers: 2\n")
        config = load_config(path)
        assert config.tunit == "fs"
        assert config.tsmear == 12.5
        assert config.n_workers == 2

    def test_empty_file(self, tmp_path):
        """Test that an empty file gives the defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == AnalysisConfig()

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_not_a_mapping(self, tmp_path):
        """Test that the file must hold a mapping."""
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config(path)

    def test_round_trip(self, tmp_path):
        """Test that a saved configuration loads back unchanged."""
        config = AnalysisConfig(tunit="fs", omega_max=30.0, output="out.dat")
        path = tmp_path / "sub" / "config.yaml"
        save_config(config, path)
        assert load_config(path) == config

    def test_load_and_save_are_logged(self, tmp_path, caplog):
        """Test that loading and saving report the file path."""
        path = tmp_path / "logged.yaml"
        with caplog.at_level(logging.INFO, logger="mdhist.config"):
            save_config(AnalysisConfig(), path)
            load_config(path)
        assert f"Saved configuration to {path}" in caplog.text
        assert f"Loading configuration from {path}" in caplog.text

"""
Tests for YAML configuration loading.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from barberslots.config import AppConfig, StoreConfig
from barberslots.domain.capacity import AnyBarberPolicy


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestDefaults:

    def test_defaults(self):
        config = AppConfig()

        assert config.timezone == "America/Sao_Paulo"
        assert config.slot_step_minutes == 30
        assert config.any_barber_policy == AnyBarberPolicy.headcount
        assert config.store.backend == "json"

    def test_default_template_closes_sunday(self):
        template = AppConfig().working_hours_template()

        assert len(template) == 7
        assert not template[0].is_open
        assert all(window.is_open for window in template[1:])


class TestValidation:

    @pytest.mark.parametrize("step", [0, 10, 45, 120])
    def test_step_grid(self, step):
        with pytest.raises(ValidationError):
            AppConfig(slot_step_minutes=step)

    def test_log_level_is_normalized(self):
        assert AppConfig(log_level="debug").log_level == "DEBUG"

        with pytest.raises(ValidationError):
            AppConfig(log_level="chatty")

    def test_unknown_policy(self):
        with pytest.raises(ValidationError):
            AppConfig(any_barber_policy="first-come")

    def test_rest_backend_needs_credentials(self):
        with pytest.raises(ValidationError):
            StoreConfig(backend="rest", base_url="https://demo.supabase.co")

        store = StoreConfig(backend="rest", base_url="https://demo.supabase.co", api_key="k")
        assert store.api_key == "k"

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            StoreConfig(timeout_seconds=0)

    def test_template_rejects_bad_entries(self):
        with pytest.raises(ValidationError):
            AppConfig(default_working_hours=[{"dayOfWeek": 1, "isOpen": True, "start": "18:00", "end": "09:00"}])

        with pytest.raises(ValidationError):
            AppConfig(
                default_working_hours=[
                    {"dayOfWeek": 1, "isOpen": False},
                    {"dayOfWeek": 1, "isOpen": False},
                ]
            )


class TestLoadFromYaml:

    def test_load(self, tmp_path):
        path = _write(
            tmp_path,
            "timezone: America/Recife\n"
            "slot_step_minutes: 15\n"
            "any_barber_policy: matching\n"
            "store:\n"
            "  data_file: data/store.json\n",
        )

        config = AppConfig.load_from_yaml(path)

        assert config.timezone == "America/Recife"
        assert config.slot_step_minutes == 15
        assert config.any_barber_policy == AnyBarberPolicy.matching
        assert config.store.data_file == tmp_path / "data" / "store.json"

    def test_absolute_data_file_is_kept(self, tmp_path):
        target = tmp_path / "elsewhere.json"
        path = _write(tmp_path, f"store:\n  data_file: {target}\n")

        assert AppConfig.load_from_yaml(path).store.data_file == target

    def test_empty_file_gives_defaults(self, tmp_path):
        config = AppConfig.load_from_yaml(_write(tmp_path, ""))

        assert config.slot_step_minutes == 30

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AppConfig.load_from_yaml(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ValueError):
            AppConfig.load_from_yaml(_write(tmp_path, "store: [unclosed\n"))

    def test_root_must_be_mapping(self, tmp_path):
        with pytest.raises(ValueError):
            AppConfig.load_from_yaml(_write(tmp_path, "- a\n- b\n"))

    def test_explicit_missing_path_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AppConfig.load(tmp_path / "missing.yaml")

"""
Tests for the Typer command line interface.
"""

import json
import shutil

import pytest
from typer.testing import CliRunner

from barberslots import __version__
from barberslots.adapters.json_store import SAMPLE_DATA_FILE
from barberslots.cli.app import app

runner = CliRunner()

MONDAY = "2030-01-07"


@pytest.fixture
def config_file(tmp_path):
    """A config pointing at a writable copy of the demo data."""
    shutil.copy(SAMPLE_DATA_FILE, tmp_path / "store.json")
    path = tmp_path / "config.yaml"
    path.write_text("store:\n  data_file: store.json\n", encoding="utf-8")
    return path


def _json_slots(output: str):
    return json.loads(output[output.index("["):])


class TestSlots:

    def test_any_barber(self):
        result = runner.invoke(app, ["slots", "admin1", "--date", MONDAY, "--duration", "30", "--mock", "--json"])

        assert result.exit_code == 0, result.output
        slots = _json_slots(result.output)
        assert "10:00" in slots
        assert slots[0] == "09:00"

    def test_specific_barber(self):
        result = runner.invoke(
            app,
            ["slots", "admin1", "-d", MONDAY, "--duration", "30", "--barber", "barber1_admin1", "--mock", "--json"],
        )

        assert result.exit_code == 0, result.output
        slots = _json_slots(result.output)
        assert "10:00" not in slots
        assert "09:30" in slots

    def test_duration_from_services(self):
        result = runner.invoke(
            app,
            ["slots", "admin1", "-d", MONDAY, "-s", "service3", "-b", "barber1_admin1", "--mock", "--json"],
        )

        assert result.exit_code == 0, result.output
        slots = _json_slots(result.output)
        assert "09:30" not in slots
        assert slots[-1] == "17:00"

    def test_table_output(self):
        result = runner.invoke(app, ["slots", "admin3", "-d", MONDAY, "--duration", "30", "--mock"])

        assert result.exit_code == 0, result.output
        assert "08:00" in result.output
        assert "11:30" in result.output

    def test_closed_day(self):
        result = runner.invoke(app, ["slots", "admin1", "-d", "2030-01-06", "--duration", "30", "--mock"])

        assert result.exit_code == 0, result.output
        assert "No available slots" in result.output

    def test_service_of_another_shop(self):
        result = runner.invoke(app, ["slots", "admin1", "-d", MONDAY, "-s", "service5", "--mock"])

        assert result.exit_code == 1
        assert "service5" in result.output

    def test_needs_duration_or_service(self):
        result = runner.invoke(app, ["slots", "admin1", "-d", MONDAY, "--mock"])

        assert result.exit_code == 1

    def test_unknown_barbershop(self):
        result = runner.invoke(app, ["slots", "nope", "-d", MONDAY, "--duration", "30", "--mock"])

        assert result.exit_code == 1
        assert "Barbershop not found" in result.output

    def test_invalid_date(self):
        result = runner.invoke(app, ["slots", "admin1", "-d", "07/01/2030", "--duration", "30", "--mock"])

        assert result.exit_code == 1
        assert "Invalid date" in result.output


class TestBarbers:

    def test_lists_barbers(self):
        result = runner.invoke(app, ["barbers", "admin1", "--mock"])

        assert result.exit_code == 0, result.output
        assert "Zé da Navalha" in result.output
        assert "Sun closed" in result.output

    def test_shop_without_barbers(self):
        result = runner.invoke(app, ["barbers", "admin3", "--mock"])

        assert result.exit_code == 0, result.output
        assert "No barbers registered" in result.output


class TestBookingCommands:

    def test_book_then_conflict(self, config_file):
        args = [
            "book", "admin1",
            "--client", "client7",
            "-s", "service1",
            "-d", MONDAY,
            "-t", "11:00",
            "-b", "barber1_admin1",
            "--config", str(config_file),
        ]

        first = runner.invoke(app, args)
        second = runner.invoke(app, args)

        assert first.exit_code == 0, first.output
        assert "Booked" in first.output
        assert second.exit_code == 1
        assert "no longer available" in second.output

    def test_cancel_and_complete(self, config_file):
        cancelled = runner.invoke(app, ["cancel", "appt1", "--by", "admin", "--config", str(config_file)])
        completed = runner.invoke(app, ["complete", "appt1", "--config", str(config_file)])

        assert cancelled.exit_code == 0, cancelled.output
        assert "cancelled_by_admin" in cancelled.output
        assert completed.exit_code == 0, completed.output
        assert "completed" in completed.output

    def test_cancel_unknown(self, config_file):
        result = runner.invoke(app, ["cancel", "nope", "--config", str(config_file)])

        assert result.exit_code == 1


class TestInitStore:

    def test_creates_store_and_shop(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("store:\n  data_file: data/store.json\n", encoding="utf-8")

        first = runner.invoke(
            app, ["init-store", "--barbershop", "shop9", "--name", "Nova", "--config", str(config_path)]
        )
        second = runner.invoke(app, ["init-store", "--config", str(config_path)])

        assert first.exit_code == 0, first.output
        assert second.exit_code == 0, second.output
        assert "Created" in first.output
        assert "Created" not in second.output
        data = json.loads((tmp_path / "data" / "store.json").read_text(encoding="utf-8"))
        assert data["barbershops"][0]["id"] == "shop9"
        assert len(data["barbershops"][0]["workingHours"]) == 7

    def test_missing_config(self, tmp_path):
        result = runner.invoke(app, ["init-store", "--config", str(tmp_path / "missing.yaml")])

        assert result.exit_code == 1


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output

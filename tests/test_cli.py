"""Tests for the typer CLI."""

import json

import pytest
from typer.testing import CliRunner

from randplace.cli import app

from test_store import GEONAMES_LINE

runner = CliRunner()

WEIGHTS = "{ base_population: 50000, country: { KR: 2 }, city: { Lyon: 3 } }"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ("DB_PATH", "CACHE_PATH", "CACHE_TTL", "WEIGHTS_URL", "FALLBACK", "HOST", "PORT", "BASE_PATH"):
        monkeypatch.delenv(f"RANDPLACE_{name}", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def weights_file(tmp_path):
    path = tmp_path / "weights.hjson"
    path.write_text(WEIGHTS)
    return path


def test_list_strategies():
    result = runner.invoke(app, ["list-strategies"])
    assert result.exit_code == 0
    assert "population" in result.stdout
    assert "uniform" in result.stdout


def test_import_geonames(tmp_path):
    dump = tmp_path / "cities15000.txt"
    dump.write_text(GEONAMES_LINE + "\n")
    result = runner.invoke(app, ["--db", str(tmp_path / "g.db"), "import-geonames", str(dump)])
    assert result.exit_code == 0
    assert "Imported 1 locations" in result.stdout


def test_pick_json(db_path, weights_file):
    result = runner.invoke(app, [
        "--log-level", "ERROR", "--db", str(db_path), "--weights", str(weights_file),
        "pick", "--json", "--seed", "5",
    ])
    assert result.exit_code == 0, result.output
    (loc,) = json.loads(result.stdout)
    assert loc["geonameid"] in (2, 3)


def test_pick_uniform_table(db_path, weights_file):
    result = runner.invoke(app, ["--db", str(db_path), "--weights", str(weights_file), "pick", "-s", "uniform"])
    assert result.exit_code == 0
    assert "geonameid" in result.stdout


def test_pick_unknown_strategy(db_path, weights_file):
    result = runner.invoke(app, ["--db", str(db_path), "--weights", str(weights_file), "pick", "-s", "nearest"])
    assert result.exit_code == 1


def test_table_and_invalidate(db_path, weights_file, tmp_path):
    common = ["--db", str(db_path), "--weights", str(weights_file), "--cache-path", str(tmp_path / "c.db")]
    result = runner.invoke(app, [*common, "table"])
    assert result.exit_code == 0, result.output
    assert "2 entries" in result.stdout

    result = runner.invoke(app, [*common, "invalidate"])
    assert result.exit_code == 0
    assert "city-pop-pair" in result.stdout


def test_weights(weights_file):
    result = runner.invoke(app, ["--weights", str(weights_file), "weights"])
    assert result.exit_code == 0
    assert "50000" in result.stdout
    assert "Lyon" in result.stdout


def test_config_error_exit_code(db_path, tmp_path):
    bad = tmp_path / "bad.hjson"
    bad.write_text("{ country: { US: -1 } }")
    result = runner.invoke(app, ["--db", str(db_path), "--weights", str(bad), "pick"])
    assert result.exit_code == 1


def test_pick_reports_draw_errors_not_as_unknown_strategy(db_path, weights_file, monkeypatch):
    from randplace.service import LocationService

    def broken(self, mode="population"):
        raise KeyError("geonameid")

    monkeypatch.setattr(LocationService, "random_location_sync", broken)
    result = runner.invoke(app, ["--db", str(db_path), "--weights", str(weights_file), "pick"])
    assert isinstance(result.exception, KeyError)
    assert "no sampling mode" not in result.output


def test_options_read_environment():
    import typer.main

    root = typer.main.get_command(app)
    assert {p.name: p.envvar for p in root.params if p.envvar} == {
        "db": "RANDPLACE_DB_PATH",
        "cache_path": "RANDPLACE_CACHE_PATH",
        "cache_ttl": "RANDPLACE_CACHE_TTL",
        "weights_url": "RANDPLACE_WEIGHTS_URL",
        "fallback": "RANDPLACE_FALLBACK",
    }
    serve = root.commands["serve"]
    assert {p.name: p.envvar for p in serve.params if p.envvar} == {
        "host": "RANDPLACE_HOST",
        "port": "RANDPLACE_PORT",
        "base_path": "RANDPLACE_BASE_PATH",
    }


def test_weights_from_environment(weights_file):
    result = runner.invoke(app, ["weights"], env={"RANDPLACE_WEIGHTS_URL": str(weights_file)})
    assert result.exit_code == 0, result.output
    assert "KR" in result.stdout


def test_bad_fallback_in_environment_is_a_usage_error():
    result = runner.invoke(app, ["weights"], env={"RANDPLACE_FALLBACK": "nearest"})
    assert result.exit_code == 2

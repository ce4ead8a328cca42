"""Tests for the shipform CLI commands."""

import json

import pytest
from typer.testing import CliRunner

from shipform.cli.main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep config discovery away from the developer's files."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "shipform" in result.output


def test_countries_json():
    result = runner.invoke(app, ["countries", "--json"])
    assert result.exit_code == 0
    names = [c["name"] for c in json.loads(result.output)]
    assert "Saudi Arabia" in names


def test_classify():
    result = runner.invoke(app, ["classify", "Kuwait", "Oman", "--json"])
    assert result.exit_code == 0
    assert json.loads(result.output)["shipment_type"] == "IntraGulf"


def test_classify_table():
    result = runner.invoke(app, ["classify", "Jordan", "Jordan"])
    assert result.exit_code == 0
    assert "Domestic" in result.output


def test_rules_json():
    data = json.dumps({"sender_country": "Kuwait", "receiver_country": "Jordan"})
    result = runner.invoke(app, ["rules", "options", "--data", data, "--json"])
    assert result.exit_code == 0
    rules = json.loads(result.output)
    assert rules["fields"]["signature_required"]["checked"] is True


def test_rules_unknown_stage():
    result = runner.invoke(app, ["rules", "payment"])
    assert result.exit_code == 1


def test_rules_bad_json():
    result = runner.invoke(app, ["rules", "sender", "--data", "{not json"])
    assert result.exit_code != 0


def test_quote_json():
    result = runner.invoke(
        app,
        [
            "quote",
            "--service", "domestic_standard",
            "--weight", "10",
            "--from", "X",
            "--to", "X",
            "--json",
        ],
    )
    assert result.exit_code == 0
    quote = json.loads(result.output)
    assert quote["total_price"] == 25.0


def test_quote_add_ons_and_pickup():
    result = runner.invoke(
        app,
        [
            "quote",
            "--service", "domestic_standard",
            "--weight", "10",
            "--from", "Saudi Arabia",
            "--to", "Saudi Arabia",
            "--pickup", "postal_office",
            "--insurance",
            "--json",
        ],
    )
    assert result.exit_code == 0
    # 15 + 5 + 3 + 15
    assert json.loads(result.output)["total_price"] == 38.0


def test_quote_panel():
    result = runner.invoke(
        app,
        ["quote", "-s", "domestic_standard", "-w", "10", "--from", "X", "--to", "X"],
    )
    assert result.exit_code == 0
    assert "$25.00" in result.output


def test_quote_over_weight_fails():
    result = runner.invoke(
        app,
        ["quote", "-s", "gulf_express", "-w", "30", "--from", "Kuwait", "--to", "Oman"],
    )
    assert result.exit_code == 1


def test_validate_draft_ok():
    result = runner.invoke(app, ["validate", "--data", '{"weight": "3"}', "--draft", "--json"])
    assert result.exit_code == 0
    assert json.loads(result.output)["is_valid"] is True


def test_validate_complete_fails():
    result = runner.invoke(app, ["validate", "--data", "{}", "--json"])
    assert result.exit_code == 1
    assert "sender_name" in json.loads(result.output)["errors"]


def test_validate_complete_ok(complete_form):
    result = runner.invoke(app, ["validate", "--data", json.dumps(complete_form)])
    assert result.exit_code == 0
    assert "Valid" in result.output


def test_config_show_defaults():
    result = runner.invoke(app, ["config", "show"])
    assert result.exit_code == 0
    assert "port: 8000" in result.output


def test_missing_config_file():
    result = runner.invoke(app, ["--config", "missing.yaml", "version"])
    assert result.exit_code == 1

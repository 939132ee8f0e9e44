"""Tests for the `python -m metaops` command line."""

import json

import pytest

import metaops.__main__ as cli
from metaops.config import MetaConfig
from metaops.errors import ConfigError
from metaops.tools.common import open_context


@pytest.fixture
def fake_env(monkeypatch, graph):
    monkeypatch.setattr(cli, "load_config", lambda: MetaConfig(access_token="tok", ad_account_id="act_123"))
    monkeypatch.setattr(cli, "open_context", lambda cfg: open_context(cfg, transport=graph.transport()))
    return graph


def test_tool_prints_json(fake_env, capsys):
    row = {
        "spend": "300",
        "actions": [{"action_type": "purchase", "value": "3"}],
        "action_values": [{"action_type": "purchase", "value": "600"}],
    }
    fake_env.insights("act_123", [row])
    code = cli.main(["tool", "calculate-advanced-attribution", "--since", "2024-01-01", "--until", "2024-01-31", "--cac-target", "50"])
    assert code == 0
    out = json.loads(capsys.readouterr().out)
    assert out["meta"] == {"account_id": "act_123"}
    assert out["recommendations"]["cac_ok"] is False


def test_tool_name_aliases(fake_env, capsys):
    fake_env.add("GET", "/me", {"id": "1"})
    fake_env.add("GET", "/me/adaccounts", {"data": []})
    assert cli.main(["tool", "list.accounts"]) == 0
    assert json.loads(capsys.readouterr().out)["raw_data"]["accounts"] == []


def test_unknown_tool_exits():
    with pytest.raises(SystemExit):
        cli.main(["tool", "nope"])


def test_dates_required():
    with pytest.raises(SystemExit):
        cli.main(["tool", "analyze_conversion_funnel"])


def test_errors_go_to_stderr(fake_env, capsys):
    code = cli.main(["tool", "get_spend_allocation_insights", "--since", "2024-01-01", "--until", "2024-01-31", "--level", "account"])
    assert code == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "level must be one of" in captured.err


def test_invalid_date_is_reported(fake_env, capsys):
    code = cli.main(["tool", "analyze_conversion_funnel", "--since", "2024-02-30", "--until", "2024-03-01"])
    assert code == 1
    assert capsys.readouterr().err


def test_serve_without_token(monkeypatch, capsys):
    def missing():
        raise ConfigError("Missing required env var: META_ACCESS_TOKEN")

    monkeypatch.setattr(cli, "load_config", missing)
    assert cli.main(["serve"]) == 1
    assert "META_ACCESS_TOKEN" in capsys.readouterr().err

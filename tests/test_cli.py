"""Tests for the command-line interface."""
import asyncio
import json

import pytest

from clickerengine import cli
from clickerengine.state import GameState
from clickerengine.store import JsonFileStateStore


@pytest.fixture(autouse=True)
def _no_global_logging(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda **_kwargs: None)


@pytest.fixture
def save(tmp_path):
    return tmp_path / "save.json"


def _seed(path, state: GameState) -> None:
    asyncio.run(JsonFileStateStore.open(path).put(state))


def _main(save, *args):
    cli.main(["--save", str(save), *args])


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main([])
    assert exc.value.code == 0
    assert "usage" in capsys.readouterr().out.lower()


def test_status_on_new_save(save, capsys):
    _main(save, "status")
    out = capsys.readouterr().out
    assert "Clicker Status" in out
    assert "Points: 0" in out


def test_tap_persists_and_unlocks(save, capsys):
    _main(save, "tap", "--count", "5")
    assert "Tapped 5 time(s) for 5 point(s)" in capsys.readouterr().out

    data = json.loads(save.read_text())
    assert data["state"]["points"] == 5
    assert data["state"]["total_taps"] == 5
    assert [a["id"] for a in data["achievements"]] == ["first_tap"]


def test_tap_count_must_be_positive(save, capsys):
    with pytest.raises(SystemExit) as exc:
        _main(save, "tap", "--count", "0")
    assert exc.value.code == 1
    assert "error" in capsys.readouterr().err


def test_buy(save, capsys):
    _seed(save, GameState(points=100))
    _main(save, "buy", "tap_power")
    assert "Bought tap_power; 85 point(s) left" in capsys.readouterr().out


def test_buy_cannot_afford(save, capsys):
    with pytest.raises(SystemExit) as exc:
        _main(save, "buy", "tap_power")
    assert exc.value.code == 1
    assert "Cannot afford tap_power (cost 15)" in capsys.readouterr().out


def test_buy_unknown_upgrade_rejected_by_parser(save):
    with pytest.raises(SystemExit) as exc:
        _main(save, "buy", "warp_drive")
    assert exc.value.code == 2


def test_upgrades_table(save, capsys):
    _main(save, "upgrades")
    out = capsys.readouterr().out
    assert "tap_power" in out
    assert "mining_power" in out


def test_sell_crypto(save, capsys):
    _seed(save, GameState(crypto_amount=3))
    _main(save, "sell-crypto")
    assert "Sold crypto for 300 point(s)" in capsys.readouterr().out


def test_prestige(save, capsys):
    _seed(save, GameState(points=2_500_000))
    _main(save, "prestige")
    assert "earned 2 prestige point(s)" in capsys.readouterr().out

    with pytest.raises(SystemExit) as exc:
        _main(save, "prestige")
    assert exc.value.code == 1


def test_boost_invalid_multiplier(save, capsys):
    with pytest.raises(SystemExit) as exc:
        _main(save, "boost", "0", "5")
    assert exc.value.code == 1
    assert "error: Boost multiplier" in capsys.readouterr().err


def test_event(save, capsys):
    _main(save, "event", "double_day", "10")
    assert "Event double_day active for 10 minute(s)" in capsys.readouterr().out
    data = json.loads(save.read_text())
    assert data["state"]["active_event_type"] == "double_day"


def test_quest(save, capsys):
    cli.main(["--save", str(save), "--seed", "1", "quest"])
    assert "New quest:" in capsys.readouterr().out
    _main(save, "quest")
    assert "already active" in capsys.readouterr().out


def test_pause_and_resume(save, capsys):
    _main(save, "pause")
    _main(save, "resume")
    out = capsys.readouterr().out
    assert "Last-seen time recorded" in out
    assert "Offline income: 0 point(s)" in out


def test_simulated_run(save, capsys):
    _seed(save, GameState(auto_clickers=1, fridge_level=1, mining_power=1))
    _main(save, "run", "--seconds", "10")
    out = capsys.readouterr().out
    assert "auto_clicker: 10 tick(s)" in out
    assert "equipment: 5 tick(s)" in out
    assert "mining: 10 tick(s)" in out

    data = json.loads(save.read_text())
    assert data["state"]["points"] == 60
    assert data["state"]["crypto_amount"] == 10


def test_achievements_listing(save, capsys):
    _main(save, "tap")
    capsys.readouterr()
    _main(save, "achievements")
    out = capsys.readouterr().out
    assert "[x] first_tap" in out
    assert "1/66 unlocked" in out


def test_corrupt_save(save, capsys):
    save.write_text("not json")
    with pytest.raises(SystemExit) as exc:
        _main(save, "status")
    assert exc.value.code == 1
    assert "Cannot load save file" in capsys.readouterr().err


def test_invalid_log_level(save, capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--save", str(save), "--log-level", "LOUD", "status"])
    assert exc.value.code == 1
    assert "Unknown log level" in capsys.readouterr().err

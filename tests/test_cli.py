"""End-to-end tests of the command-line interface."""

from __future__ import annotations

import csv
import json

import pytest

from conftest import make_session_node
from emf_analyze.cli import main


@pytest.fixture
def snapshot(tmp_path, two_session_tree):
    p = tmp_path / "snapshot.json"
    p.write_text(json.dumps(two_session_tree), encoding="utf-8")
    return str(p)


def test_sessions(snapshot, capsys):
    assert main(["sessions", "--snapshot", snapshot]) == 0
    out = capsys.readouterr().out
    assert out.index("matched") < out.index("unmatched")


def test_sessions_json(snapshot, capsys):
    assert main(["sessions", "--snapshot", snapshot, "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert [m["session_id"] for m in payload] == ["matched", "unmatched"]


def test_inspect(snapshot, capsys):
    assert main(["inspect", "--snapshot", snapshot, "--session", "matched"]) == 0
    assert "locations=1" in capsys.readouterr().out


def test_live_exports(snapshot, tmp_path):
    out = tmp_path / "view.json"
    zones = tmp_path / "zones.csv"
    assert main(["live", "--snapshot", snapshot, "--session", "matched", "--out", str(out), "--zones-csv", str(zones)]) == 0
    view = json.loads(out.read_text(encoding="utf-8"))
    assert view["field_mapped"] == 1
    assert view["mapped_percent"] == 100.0
    with zones.open(encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f))
    assert rows[0]["band"] == "medium"


def test_heat(snapshot, tmp_path):
    out = tmp_path / "heat.csv"
    assert main(["heat", "--snapshot", snapshot, "--out", str(out)]) == 0
    with out.open(encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 1
    assert float(rows[0]["weight"]) == pytest.approx(0.5)


def test_zones(snapshot, tmp_path, capsys):
    out = tmp_path / "zones.csv"
    assert main(["zones", "--snapshot", snapshot, "--out", str(out), "--workers", "2", "--json"]) == 0
    with out.open(encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 1
    assert rows[0]["band"] == "medium"
    assert rows[0]["sample_count"] == "1"


def test_unknown_session(snapshot, capsys):
    assert main(["live", "--snapshot", snapshot, "--session", "nope"]) == 2
    assert "nope" in capsys.readouterr().err


def test_missing_snapshot(tmp_path):
    assert main(["sessions", "--snapshot", str(tmp_path / "missing.json")]) == 2


def test_live_prints_weather_heart_rate_and_center(tmp_path, capsys):
    node = make_session_node(
        locations=[{"seconds": 0, "latitude": 53.34, "longitude": -6.26}, {"seconds": 4, "latitude": 53.36, "longitude": -6.24}],
        weather=[{"ts": "2025-03-01T09:00:00Z", "lat": 53.35, "lon": -6.26, "temp": 9.5, "cond": "Rain"}],
        heart=[{"seconds": 1, "bpm": 70}, {"seconds": 2, "bpm": 90}],
    )
    p = tmp_path / "snapshot.json"
    p.write_text(json.dumps({"users": {"u1": {"sessions": {"s1": node}}}}), encoding="utf-8")
    out_json = tmp_path / "view.json"

    assert main(["live", "--snapshot", str(p), "--session", "s1", "--weather", "--out", str(out_json)]) == 0
    out = capsys.readouterr().out
    assert "心率 min=70, max=90, mean=80.0" in out
    assert "轨迹中心：53.350000, -6.250000" in out
    assert "Temp: 9.5°C" in out
    assert "Rain" in out

    view = json.loads(out_json.read_text(encoding="utf-8"))
    assert view["heart_rate_summary"]["mean_bpm"] == pytest.approx(80.0)
    assert view["center"] == pytest.approx([53.35, -6.25])

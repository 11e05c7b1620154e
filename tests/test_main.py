"""Tests for the headless runner."""

import json

import main
from approach import Direction


def test_runs_canned_results(tmp_path, capsys, sample_payload):
    ambulance = dict(sample_payload, ambulance_present=True)
    path = tmp_path / "results.json"
    path.write_text(json.dumps({"west": ambulance, "North": sample_payload}))

    assert main.main(["--results", str(path), "--ticks", "2"]) == 0

    out = capsys.readouterr().out
    lines = [line for line in out.splitlines() if line.startswith("t=")]
    assert len(lines) == 2
    # Intersection is clear, so West gets its emergency green straight away
    assert "W:G 59*" in lines[0]


def test_bad_results_file(tmp_path, capsys):
    path = tmp_path / "results.json"
    path.write_text(json.dumps({"North": {"summary": "incomplete"}}))
    assert main.main(["--results", str(path), "--ticks", "1"]) == 1
    assert "Could not load analyses" in capsys.readouterr().out


def test_load_results_keys_by_direction(tmp_path, sample_payload):
    path = tmp_path / "results.json"
    path.write_text(json.dumps({"EAST": sample_payload}))
    results = main.load_results(str(path))
    assert list(results) == [Direction.EAST]


def test_no_inputs_just_cycles(capsys):
    assert main.main(["--ticks", "1"]) == 0
    assert "N:G 15" in capsys.readouterr().out

import json

import pytest

from flightdrill.__main__ import format_state, main
from flightdrill.scenarios import SCENARIOS
from flightdrill.state import create_initial_state


def test_list(capsys):
    assert main(["list"]) == 0
    out = capsys.readouterr().out
    for name in SCENARIOS:
        assert name in out


def test_run_builtin(capsys):
    assert main(["run", "flank-and-rear"]) == 0
    out = capsys.readouterr().out
    assert "[success] RIGHT FLANK" in out
    assert "heading=0 motion=marching" in out
    assert "guidon-bearer" in out


def test_run_json(capsys):
    assert main(["--json", "run", "basic-forward-halt"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["scenario"] == "basic-forward-halt"
    assert payload["state"]["motion"] == "halted"
    assert len(payload["simulation"]["cadets"]) == 10


def test_run_file(tmp_path, capsys):
    path = tmp_path / "drill.json"
    path.write_text(json.dumps({"name": "file-drill", "script": ["Right, FACE"]}), encoding="utf-8")
    assert main(["--json", "run", "--file", str(path)]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["state"]["formation_type"] == "column"


def test_exec_phrases(capsys):
    argv = ["--json", "exec", "Forward, MARCH", "Flight, HALT", "As you were", "--cadets", "5", "--elements", "2"]
    assert main(argv) == 0
    payload = json.loads(capsys.readouterr().out)
    assert [e["status"] for e in payload["log"]] == ["success", "success", "as-you-were"]
    assert len(payload["simulation"]["cadets"]) == 5
    assert payload["state"]["motion"] == "halted"


def test_exec_reports_bad_phrases(capsys):
    assert main(["exec", "Parade, REST"]) == 0
    assert "[error] Parade, REST (Unrecognized command: Parade, REST)" in capsys.readouterr().out


@pytest.mark.parametrize(
    "argv",
    [
        ["run"],
        ["run", "no-such-scenario"],
        ["exec", "halt", "--cadence", "slow march"],
        [],
    ],
)
def test_usage_errors_exit_2(argv, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    assert excinfo.value.code == 2


def test_format_state():
    line = format_state(create_initial_state(heading_deg=90, interval="close"))
    assert line == "formation=line heading=90 motion=halted interval=close guide=left elements=3 ranks=4"

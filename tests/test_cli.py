import json
import logging

import pytest

import sketch_solver.__main__ as cli


def _write(tmp_path, payload, name="sketch.json"):
    path = tmp_path / name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def _triangle():
    return {
        "entities": [
            {"id": "A", "kind": "point", "position": [0, 0, 0]},
            {"id": "B", "kind": "point", "position": [3, 4, 0]},
        ],
        "constraints": [{"id": "d", "type": "distance", "entities": ["A", "B"], "value": 5}],
    }


def test_main_solves_gradient_sketch_and_writes_output(tmp_path, capsys):
    sketch = _write(tmp_path, _triangle())
    output = tmp_path / "out" / "solution.json"

    cli.main([str(sketch), "--output", str(output)])

    printed = capsys.readouterr().out
    assert "Success: True" in printed
    assert "A (point):" in printed
    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["success"] is True
    assert [e["id"] for e in data["entities"]] == ["A", "B"]


def test_main_picks_2d_engine_for_point_sketches(tmp_path, capsys):
    sketch = _write(
        tmp_path,
        {
            "points": [{"id": "p1", "x": 0, "y": 5}, {"id": "p2", "x": 10, "y": 3}],
            "constraints": [{"id": "h", "type": "horizontal", "entities": ["p1", "p2"]}],
        },
    )

    cli.main([str(sketch)])

    printed = capsys.readouterr().out
    assert "Variables:" in printed
    assert "p1.y: 3.000000" in printed


def test_main_warns_that_verbose_does_not_apply_to_2d(tmp_path, caplog):
    sketch = _write(
        tmp_path,
        {
            "points": [{"id": "p1", "x": 0, "y": 5}, {"id": "p2", "x": 10, "y": 3}],
            "constraints": [{"id": "h", "type": "horizontal", "entities": ["p1", "p2"]}],
        },
    )

    with caplog.at_level(logging.WARNING, logger="sketch_solver.__main__"):
        cli.main([str(sketch), "--verbose"])

    warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert any("--verbose" in message for message in warnings)


def test_main_exits_with_one_when_not_converged(tmp_path, capsys):
    payload = _triangle()
    payload["constraints"].append({"id": "far", "type": "distance", "entities": ["A", "B"], "value": 10})
    sketch = _write(tmp_path, payload)

    with pytest.raises(SystemExit) as exc:
        cli.main([str(sketch), "--engine", "gradient", "--max-iterations", "5"])

    assert exc.value.code == 1
    printed = capsys.readouterr().out
    assert "Iterations: 5" in printed
    assert "  - far" in printed


def test_main_cli_overrides_file_options(tmp_path, monkeypatch):
    payload = _triangle()
    payload["options"] = {"max_iterations": 500, "tolerance": 1e-3}
    sketch = _write(tmp_path, payload)
    seen = {}

    real_load = cli.load_sketch

    def _load(data, options=None):
        seen["options"] = options
        return real_load(data, options)

    monkeypatch.setattr(cli, "load_sketch", _load)

    cli.main([str(sketch), "--max-iterations", "7", "--damping", "0.5", "--verbose"])

    opts = seen["options"]
    assert (opts.max_iterations, opts.tolerance, opts.damping, opts.verbose) == (7, 1e-3, 0.5, True)


@pytest.mark.parametrize(
    "content",
    ["{not json", json.dumps([1, 2]), json.dumps({"entities": [{"id": "A", "kind": "blob"}]})],
)
def test_main_exits_with_two_on_bad_input(tmp_path, content):
    sketch = tmp_path / "bad.json"
    sketch.write_text(content, encoding="utf-8")

    with pytest.raises(SystemExit) as exc:
        cli.main([str(sketch)])

    assert exc.value.code == 2


def test_main_exits_with_two_on_missing_file(tmp_path):
    with pytest.raises(SystemExit) as exc:
        cli.main([str(tmp_path / "missing.json")])

    assert exc.value.code == 2

import json
import logging

from config import CoreConfig
from visual_qc import main


def _payload(chart_type="swot"):
    return {
        "framework_id": "swot_analysis",
        "viz": {
            "type": chart_type,
            "title": "Vendor switch",
            "vizSchemaVersion": 2,
            "data": {
                "kind": "swot_analysis",
                "strengths": ["Strong support team"],
                "weaknesses": ["Limited training budget"],
                "opportunities": ["Enterprise market demand"],
                "threats": ["Competitor price cuts"],
            },
        },
    }


def _write(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_valid_payload_exits_zero(tmp_path, capsys):
    target = _write(tmp_path / "swot.json", _payload())
    assert main([str(target)]) == 0
    assert "swot_analysis: Visual contract OK" in capsys.readouterr().out


def test_contract_failure_exits_nonzero(tmp_path, capsys):
    target = _write(tmp_path / "swot.json", _payload(chart_type="bar"))
    assert main([str(target)]) == 1
    assert 'Expected viz type "swot"' in capsys.readouterr().out


def test_list_files_and_directories(tmp_path, capsys):
    _write(tmp_path / "batch.json", [_payload(), {"framework_id": "johari_window", "viz": {"type": "radar"}}])
    assert main([str(tmp_path), "--scores"]) == 0
    out = capsys.readouterr().out
    assert "batch.json[1]: johari_window: Visual contract OK (non-canonical, not checked)" in out
    assert "rubric score 1.000" in out


def test_unreadable_inputs_fail(tmp_path, capsys):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    shapeless = _write(tmp_path / "shapeless.json", {"viz": {}})
    missing = tmp_path / "missing.json"

    assert main([str(broken)]) == 1
    assert main([str(shapeless)]) == 1
    assert main([str(missing)]) == 1
    out = capsys.readouterr().out
    assert "could not parse JSON" in out
    assert "expected an object with framework_id and viz" in out
    assert "file not found" in out


def test_log_dir_writes_debug_log(tmp_path, monkeypatch, capsys):
    log_dir = tmp_path / "logs"
    monkeypatch.setattr(CoreConfig, "LOG_DIR", str(log_dir))
    target = _write(tmp_path / "swot.json", _payload(chart_type="bar"))
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    try:
        assert main([str(target), "--log-dir"]) == 1
        for handler in root.handlers:
            handler.flush()
        log_files = list(log_dir.glob("core_log_*.log"))
        assert len(log_files) == 1
        assert "Visualization for swot_analysis failed with 1 issues" in log_files[0].read_text(encoding="utf-8")
        assert "Visualization for swot_analysis failed" not in capsys.readouterr().out
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)

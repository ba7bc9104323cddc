"""Tests for the scripted update loop."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from progress_tracking.core.ledger import TaskProgress
from progress_tracking.core.registry import ProgressRegistry, ProgressTrackingError
from progress_tracking.core.simulation import (
    CycleReport,
    CycleSimulation,
    ScriptError,
    load_script,
    validate_script
)


@pytest.fixture
def sample_script():
    """Two domains, one with a persisted baseline."""
    return {
        "domains": {
            "assets": {
                "persist": {"tasks": 3, "done": 1, "done_tasks": 3},
                "cycles": [{}, {}]
            },
            "world": {
                "cycles": [
                    {"track": [[4, 1]], "tasks": ["done", "in_progress"]},
                    {"track": [[4, 4]]},
                    {"tasks": ["done"]}
                ]
            }
        }
    }


@pytest.fixture
def script_file(tmp_path, sample_script):
    path = tmp_path / "script.json"
    path.write_text(json.dumps(sample_script))
    return path


class TestValidation:
    """Test script validation."""

    def test_valid_script(self, sample_script):
        validate_script(sample_script)

    def test_missing_domains(self):
        with pytest.raises(ScriptError, match="domains"):
            validate_script({})

    def test_negative_count_rejected(self):
        script = {"domains": {"a": {"cycles": [{"track": [[-1, 0]]}]}}}

        with pytest.raises(ScriptError, match="domains/a/cycles/0/track/0/0"):
            validate_script(script)

    def test_unknown_task_state_rejected(self):
        script = {"domains": {"a": {"cycles": [{"tasks": ["finished"]}]}}}

        with pytest.raises(ScriptError):
            validate_script(script)

    def test_track_entry_needs_pair(self):
        script = {"domains": {"a": {"cycles": [{"track": [[1]]}]}}}

        with pytest.raises(ScriptError):
            validate_script(script)

    def test_persisted_done_above_tasks_rejected(self):
        script = {"domains": {"a": {"persist": {"done": 1}, "cycles": [{}]}}}

        with pytest.raises(ScriptError, match="domains/a/persist: 1 done tasks but only 0 tasks"):
            validate_script(script)

    def test_persisted_done_tasks_count_on_both_sides(self):
        validate_script({"domains": {"a": {"persist": {"tasks": 1, "done": 1, "done_tasks": 5}}}})

        with pytest.raises(ScriptError, match="7 done tasks but only 6 tasks"):
            validate_script({"domains": {"a": {"persist": {"tasks": 1, "done": 2, "done_tasks": 5}}}})

    def test_simulation_rejects_persisted_done_above_tasks(self):
        with pytest.raises(ScriptError):
            CycleSimulation({"domains": {"a": {"persist": {"done": 1}}}})

    def test_script_error_is_tracking_error(self):
        assert issubclass(ScriptError, ProgressTrackingError)


class TestLoadScript:
    """Test loading scripts from disk."""

    def test_load(self, script_file, sample_script):
        assert load_script(script_file) == sample_script

    def test_missing_file(self, tmp_path):
        with pytest.raises(ScriptError, match="not found"):
            load_script(tmp_path / "missing.json")

    def test_non_utf8_file(self, tmp_path):
        path = tmp_path / "latin1.json"
        path.write_bytes(b"\xff\xfe{")

        with pytest.raises(ScriptError, match="not UTF-8"):
            load_script(path)

    def test_utf8_domain_names(self, tmp_path):
        path = tmp_path / "unicode.json"
        path.write_bytes(json.dumps({"domains": {"résumé": {}}}, ensure_ascii=False).encode("utf-8"))

        assert list(load_script(path)["domains"]) == ["résumé"]

    def test_directory_instead_of_file(self, tmp_path):
        with pytest.raises(ScriptError, match="Cannot read script"):
            load_script(tmp_path)

    def test_os_error_while_reading(self, tmp_path):
        path = tmp_path / "locked.json"
        path.write_text("{}")

        with patch.object(Path, "read_text", side_effect=PermissionError(13, "Permission denied")):
            with pytest.raises(ScriptError, match="Permission denied"):
                load_script(path)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(ScriptError, match="not valid JSON"):
            load_script(path)


class TestCycleSimulation:
    """Test running scripted cycles."""

    def test_persisted_baseline_installed(self, sample_script):
        simulation = CycleSimulation(sample_script)

        assert simulation.registry.get("assets").persisted == TaskProgress(tasks=6, done=4)
        assert simulation.registry.get("world").persisted == TaskProgress()

    def test_run_reports_every_domain_every_cycle(self, sample_script):
        simulation = CycleSimulation(sample_script)
        reports = simulation.run()

        assert simulation.cycle_count == 3
        assert len(reports) == 6
        assert [(r.cycle, r.tag) for r in reports[:2]] == [(1, "assets"), (1, "world")]
        assert all(isinstance(r, CycleReport) for r in reports)

    def test_run_progress_values(self, sample_script):
        reports = CycleSimulation(sample_script).run()
        by_key = {(r.cycle, r.tag): r for r in reports}

        # persisted baseline re-applies even after the domain's script ends
        for cycle in (1, 2, 3):
            assert by_key[(cycle, "assets")].progress == pytest.approx(4 / 6)
            assert by_key[(cycle, "assets")].snapshot.previous == TaskProgress(tasks=6, done=4)

        assert by_key[(1, "world")].snapshot.previous == TaskProgress(tasks=6, done=2)
        assert by_key[(2, "world")].progress == 1.0
        assert by_key[(3, "world")].progress == 1.0

    def test_run_limited_cycles(self, sample_script):
        reports = CycleSimulation(sample_script).run(cycles=1)

        assert {r.cycle for r in reports} == {1}

    def test_run_extra_cycles_without_registrations(self, sample_script):
        reports = CycleSimulation(sample_script).run(cycles=4)
        last_world = [r for r in reports if r.cycle == 4 and r.tag == "world"][0]

        assert last_world.snapshot.previous == TaskProgress()
        assert last_world.progress == 0.0

    def test_on_cycle_callback(self, sample_script):
        seen = []
        CycleSimulation(sample_script).run(on_cycle=seen.append)

        assert len(seen) == 3
        assert [r.tag for r in seen[0]] == ["assets", "world"]

    def test_tag_filter(self, sample_script):
        simulation = CycleSimulation(sample_script, tags=["world"])

        assert list(simulation.domains) == ["world"]
        assert "assets" not in simulation.registry

    def test_unknown_tag_filter(self, sample_script):
        with pytest.raises(ScriptError, match="Unknown domains: nope"):
            CycleSimulation(sample_script, tags=["nope"])

    def test_uses_given_registry(self, sample_script):
        registry = ProgressRegistry()
        simulation = CycleSimulation(sample_script, registry=registry)

        assert simulation.registry is registry
        assert registry.tags() == ["assets", "world"]

    def test_report_to_dict(self, sample_script):
        report = CycleSimulation(sample_script).run(cycles=1)[0]
        data = report.to_dict()

        assert data["cycle"] == 1
        assert data["tag"] == "assets"
        assert data["previous"] == {"tasks": 6, "done": 4}
        assert data["current"] == {"tasks": 0, "done": 0}

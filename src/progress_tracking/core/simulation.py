"""
Scripted update loop.

Drives one or more progress ledgers cycle by cycle from a JSON script,
the way a game loop would register work each frame and then finish it.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from .ledger import LedgerSnapshot, Task
from .registry import ProgressRegistry, ProgressTracker, ProgressTrackingError

logger = logging.getLogger(__name__)

_COUNT = {"type": "integer", "minimum": 0}

SCRIPT_SCHEMA = {
    "type": "object",
    "properties": {
        "domains": {
            "type": "object",
            "minProperties": 1,
            "additionalProperties": {
                "type": "object",
                "properties": {
                    "persist": {
                        "type": "object",
                        "properties": {
                            "tasks": _COUNT,
                            "done": _COUNT,
                            "done_tasks": _COUNT
                        },
                        "additionalProperties": False
                    },
                    "cycles": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "track": {
                                    "type": "array",
                                    "items": {
                                        "type": "array",
                                        "items": _COUNT,
                                        "minItems": 2,
                                        "maxItems": 2
                                    }
                                },
                                "tasks": {
                                    "type": "array",
                                    "items": {
                                        "type": "string",
                                        "enum": [task.value for task in Task]
                                    }
                                }
                            },
                            "additionalProperties": False
                        }
                    }
                },
                "additionalProperties": False
            }
        }
    },
    "required": ["domains"],
    "additionalProperties": False
}


class ScriptError(ProgressTrackingError):
    """Raised when a simulation script cannot be loaded or is invalid."""
    pass


@dataclass
class CycleReport:
    """State of one domain after a finished cycle."""
    cycle: int
    tag: str
    snapshot: LedgerSnapshot

    @property
    def progress(self) -> float:
        return self.snapshot.progress

    def to_dict(self) -> Dict[str, Any]:
        return {"cycle": self.cycle, "tag": self.tag, **self.snapshot.to_dict()}


def validate_script(script: Any) -> None:
    """Validate a simulation script against the schema.

    Args:
        script: Parsed script

    Raises:
        ScriptError: If the script does not match the schema or a
            persisted baseline has more done tasks than tasks
    """
    import jsonschema

    try:
        jsonschema.validate(instance=script, schema=SCRIPT_SCHEMA)
    except jsonschema.ValidationError as e:
        location = "/".join(str(part) for part in e.absolute_path) or "<root>"
        raise ScriptError(f"Invalid script at {location}: {e.message}") from e

    for tag, domain in script["domains"].items():
        persist = domain.get("persist", {})
        tasks = persist.get("tasks", 0) + persist.get("done_tasks", 0)
        done = persist.get("done", 0) + persist.get("done_tasks", 0)
        if done > tasks:
            raise ScriptError(
                f"Invalid script at domains/{tag}/persist: "
                f"{done} done tasks but only {tasks} tasks persisted"
            )


def load_script(path: Union[str, Path]) -> Dict[str, Any]:
    """Load and validate a simulation script from a JSON file.

    Args:
        path: Path to the script

    Returns:
        Parsed script

    Raises:
        ScriptError: If the file cannot be read, is not JSON or is invalid
    """
    path = Path(path)
    try:
        script = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ScriptError(f"Script not found: {path}") from e
    except UnicodeDecodeError as e:
        raise ScriptError(f"Script is not UTF-8 text: {path}") from e
    except OSError as e:
        raise ScriptError(f"Cannot read script {path}: {e.strerror or e}") from e
    except json.JSONDecodeError as e:
        raise ScriptError(f"Script is not valid JSON: {e}") from e

    validate_script(script)
    return script


class CycleSimulation:
    """Runs a script against a progress registry."""

    def __init__(
        self,
        script: Dict[str, Any],
        registry: Optional[ProgressRegistry] = None,
        tags: Optional[List[str]] = None
    ):
        """Initialize the simulation.

        Args:
            script: Validated simulation script
            registry: Registry to install ledgers on (a new one by default)
            tags: Only simulate these domains (all by default)

        Raises:
            ScriptError: If a requested tag is not defined by the script
        """
        validate_script(script)
        self.registry = registry if registry is not None else ProgressRegistry()

        domains = script["domains"]
        if tags:
            missing = [tag for tag in tags if tag not in domains]
            if missing:
                raise ScriptError(f"Unknown domains: {', '.join(missing)}")
            domains = {tag: domains[tag] for tag in tags}
        self.domains: Dict[str, Dict[str, Any]] = domains

        for tag, domain in self.domains.items():
            ledger = ProgressTracker(tag).build(self.registry)
            persist = domain.get("persist", {})
            if persist.get("tasks"):
                ledger.persist_tasks(persist["tasks"])
            if persist.get("done"):
                ledger.persist_done(persist["done"])
            if persist.get("done_tasks"):
                ledger.persist_done_tasks(persist["done_tasks"])

    @property
    def cycle_count(self) -> int:
        return max((len(d.get("cycles", [])) for d in self.domains.values()), default=0)

    def run(
        self,
        cycles: Optional[int] = None,
        on_cycle: Optional[Callable[[List[CycleReport]], None]] = None
    ) -> List[CycleReport]:
        """Run the scripted cycles.

        Args:
            cycles: Number of cycles to run (the longest domain script by default)
            on_cycle: Called with the reports of each finished cycle

        Returns:
            Reports for every domain and cycle, in order
        """
        total = self.cycle_count if cycles is None else cycles
        reports: List[CycleReport] = []

        for index in range(total):
            for tag, domain in self.domains.items():
                scripted = domain.get("cycles", [])
                if index < len(scripted):
                    self._apply(tag, scripted[index])

            self.registry.finish_cycle()

            cycle_reports = [
                CycleReport(cycle=index + 1, tag=tag, snapshot=self.registry.get(tag).snapshot())
                for tag in self.domains
            ]
            for report in cycle_reports:
                logger.info(f"Cycle {report.cycle} [{report.tag}]: {report.progress:.1%}")

            if on_cycle:
                on_cycle(cycle_reports)
            reports.extend(cycle_reports)

        return reports

    def _apply(self, tag: str, cycle: Dict[str, Any]) -> None:
        ledger = self.registry.get(tag)
        for tasks, done in cycle.get("track", []):
            ledger.track(tasks, done)
        for state in cycle.get("tasks", []):
            ledger.task(Task(state))

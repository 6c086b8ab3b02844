"""On-disk output for a batch of simulation runs.

Layout::

    {output_dir}/{run_name}/
    ├── config.yaml
    ├── simulation_log.json
    ├── summary.json
    └── runs/
        └── run_000/
            ├── run_log.json
            ├── trades.json       (only when the run traded)
            ├── prices.json
            ├── news.json
            └── analysis.json     (only when the run was analysed)
"""

from __future__ import annotations

import itertools
import json
import logging
import shutil
from collections.abc import Callable
from pathlib import Path
from typing import Any

from models.config import SimulationConfig
from models.log import RunLog, SimulationLog

logger = logging.getLogger(__name__)

# Per-run convenience files: name -> payload builder (None means skip the file).
_RUN_FILES: dict[str, Callable[[RunLog], Any]] = {
    "trades.json": lambda run: [t.model_dump(mode="json") for t in run.trades] or None,
    "prices.json": lambda run: run.price_history,
    "news.json": lambda run: [n.model_dump(mode="json") for n in run.news],
    "analysis.json": lambda run: run.analysis.model_dump(mode="json") if run.analysis else None,
}


def run_name_from_config_path(config_path: str | Path) -> str:
    """``config/example.yaml`` -> ``example``."""
    return Path(config_path).stem


def next_free_dir(parent: Path, name: str) -> Path:
    """First of ``name``, ``name_001``, ``name_002``, ... not present under *parent*."""
    candidates = itertools.chain(
        [parent / name],
        (parent / f"{name}_{n:03d}" for n in itertools.count(1)),
    )
    return next(path for path in candidates if not path.exists())


class SimulationLogger:
    """Collects run logs for one batch and writes them under a fresh directory.

    ``open`` before the first run, ``write_run`` after each run, ``close`` last.
    """

    def __init__(self, output_dir: str | Path, config: SimulationConfig, run_name: str) -> None:
        self.run_dir = next_free_dir(Path(output_dir), run_name)
        self.simulation_log = SimulationLog(run_name=self.run_dir.name, config=config)

    @property
    def runs_dir(self) -> Path:
        return self.run_dir / "runs"

    def open(self, config_yaml_path: str | Path | None = None) -> None:
        self.runs_dir.mkdir(parents=True, exist_ok=True)
        if config_yaml_path is not None:
            shutil.copy2(config_yaml_path, self.run_dir / "config.yaml")
        logger.info("Writing simulation output to %s", self.run_dir)

    def write_run(self, run_log: RunLog) -> None:
        target = self.runs_dir / run_log.run_id
        target.mkdir(exist_ok=True)
        _dump(target / "run_log.json", run_log.model_dump(mode="json"))
        for filename, build in _RUN_FILES.items():
            payload = build(run_log)
            if payload is not None:
                _dump(target / filename, payload)
        self.simulation_log.run_logs.append(run_log)
        logger.info("Run '%s' written to %s", run_log.run_id, target)

    def record_error(self, message: str) -> None:
        self.simulation_log.errors.append(message)
        logger.error("Simulation error: %s", message)

    def close(self, summary: dict[str, Any] | None = None) -> None:
        """Write the batch log and, when given, the summary."""
        _dump(self.run_dir / "simulation_log.json", self.simulation_log.model_dump(mode="json"))
        if summary is not None:
            _dump(self.run_dir / "summary.json", summary)
        logger.info(
            "Closed output for '%s': %d run(s), %d error(s).",
            self.simulation_log.run_name,
            len(self.simulation_log.run_logs),
            len(self.simulation_log.errors),
        )


def _dump(path: Path, payload: Any) -> None:
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from serial_worker.config import get_settings
from serial_worker.executor import SerialWorker
from serial_worker.job import Job, JobDefinitionError, Target
from serial_worker.probes import command_action, command_probe, http_probe


class PlanError(ValueError):
    pass


def _entry_int(entry: dict[str, Any], key: str, default: int) -> int:
    value = entry.get(key, default)
    if isinstance(value, bool):
        raise PlanError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    raise PlanError(f"{key} must be an integer")


def _entry_target(entry: dict[str, Any], index: int) -> Target:
    check = entry.get("check")
    if isinstance(check, str) and check.strip():
        return command_probe(check)
    if isinstance(check, dict):
        url = check.get("url")
        if not isinstance(url, str) or not url.strip():
            raise PlanError(f"jobs[{index}].check.url must be a non-empty string")
        expected_status = _entry_int(check, "status", 200)
        return http_probe(url, expected_status=expected_status)
    raise PlanError(f"jobs[{index}].check must be a command string or an object with a url")


def parse_plan(document: Any) -> list[Job]:
    if not isinstance(document, dict):
        raise PlanError("plan must be a JSON object")
    entries = document.get("jobs")
    if not isinstance(entries, list):
        raise PlanError("plan.jobs must be a list")

    settings = get_settings()
    jobs: list[Job] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise PlanError(f"jobs[{index}] must be an object")
        run = entry.get("run")
        if not isinstance(run, str) or not run.strip():
            raise PlanError(f"jobs[{index}].run must be a non-empty command string")
        title = entry.get("title")
        if title is not None and not isinstance(title, str):
            raise PlanError(f"jobs[{index}].title must be a string")

        try:
            job = (
                Job.builder()
                .set_title(title if title is not None else f"job-{index}")
                .with_task(command_action(run))
                .with_target(_entry_target(entry, index))
                .set_faith(_entry_int(entry, "faith_ms", settings.faith_ms))
                .set_patience(_entry_int(entry, "patience_ms", settings.patience_ms))
                .build()
            )
        except JobDefinitionError as exc:
            raise PlanError(f"jobs[{index}]: {exc}") from exc
        jobs.append(job)

    return jobs


def load_plan(path: Path) -> list[Job]:
    try:
        document = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise PlanError(f"cannot read plan {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise PlanError(f"plan {path} is not valid JSON: {exc}") from exc
    return parse_plan(document)


def build_worker(jobs: list[Job]) -> SerialWorker:
    worker = SerialWorker()
    for job in jobs:
        worker.add_job(job)
    return worker

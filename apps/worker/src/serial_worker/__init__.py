from serial_worker.executor import SerialWorker
from serial_worker.job import (
    FAITH_DEFAULT_MS,
    PATIENCE_DEFAULT_MS,
    Job,
    JobBuilder,
    JobDefinitionError,
)
from serial_worker.monitor import JobCompletionMonitor, confirm_job

__all__ = [
    "FAITH_DEFAULT_MS",
    "PATIENCE_DEFAULT_MS",
    "Job",
    "JobBuilder",
    "JobCompletionMonitor",
    "JobDefinitionError",
    "SerialWorker",
    "confirm_job",
]

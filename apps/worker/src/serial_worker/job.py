from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Awaitable, Callable

FAITH_DEFAULT_MS = 3000
PATIENCE_DEFAULT_MS = 400

Action = Callable[[], Awaitable[None]]
Target = Callable[[], Awaitable[bool]]


class JobDefinitionError(ValueError):
    pass


@dataclass(frozen=True)
class Job:
    """A unit of work plus an independent check that it actually happened.

    `action` is awaited once per attempt. `is_satisfied` is awaited repeatedly:
    once per position probe, and every `patience_ms` after the action returned
    until it reports true or `faith_ms` has elapsed.
    """

    action: Action
    is_satisfied: Target
    title: str | None = None
    faith_ms: int = FAITH_DEFAULT_MS
    patience_ms: int = PATIENCE_DEFAULT_MS

    def __post_init__(self) -> None:
        if not callable(self.action):
            raise JobDefinitionError(f"job {self.title!r} has no action")
        if not callable(self.is_satisfied):
            raise JobDefinitionError(f"job {self.title!r} has no completion target")
        if isinstance(self.faith_ms, bool) or not isinstance(self.faith_ms, int) or self.faith_ms <= 0:
            raise JobDefinitionError(f"faith_ms must be a positive integer, got {self.faith_ms!r}")
        if (
            isinstance(self.patience_ms, bool)
            or not isinstance(self.patience_ms, int)
            or self.patience_ms < 0
        ):
            raise JobDefinitionError(
                f"patience_ms must be a non-negative integer, got {self.patience_ms!r}"
            )

    @property
    def faith_seconds(self) -> float:
        return self.faith_ms / 1000

    @property
    def patience_seconds(self) -> float:
        return self.patience_ms / 1000

    def copy(self) -> Job:
        return replace(self)

    @staticmethod
    def builder() -> JobBuilder:
        return JobBuilder()


class JobBuilder:
    def __init__(self) -> None:
        self._title: str | None = None
        self._action: Action | None = None
        self._target: Target | None = None
        self._faith_ms: int | None = None
        self._patience_ms: int | None = None

    def set_title(self, title: str) -> JobBuilder:
        self._title = title
        return self

    def with_task(self, action: Action) -> JobBuilder:
        self._action = action
        return self

    def with_target(self, is_satisfied: Target) -> JobBuilder:
        self._target = is_satisfied
        return self

    def set_faith(self, faith_ms: int) -> JobBuilder:
        self._faith_ms = faith_ms
        return self

    def set_patience(self, patience_ms: int) -> JobBuilder:
        self._patience_ms = patience_ms
        return self

    def build(self) -> Job:
        if self._action is None:
            raise JobDefinitionError(f"job {self._title!r} has no action; call with_task() first")
        if self._target is None:
            raise JobDefinitionError(
                f"job {self._title!r} has no completion target; call with_target() first"
            )

        return Job(
            action=self._action,
            is_satisfied=self._target,
            title=self._title,
            faith_ms=FAITH_DEFAULT_MS if self._faith_ms is None else self._faith_ms,
            patience_ms=PATIENCE_DEFAULT_MS if self._patience_ms is None else self._patience_ms,
        )

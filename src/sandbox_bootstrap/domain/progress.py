"""Install steps and the append-only progress snapshot broadcast to observers."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import IntEnum


class InstallStep(IntEnum):
    """Ordered installation steps. Values strictly increase during a successful run."""

    INIT = 0
    CHECK_DIRECTORY = 1
    CHECK_STAGING_DIRECTORY = 2
    GET_ARCHIVE = 3
    UNZIP_ARCHIVE = 4
    CREATE_SYMLINKS = 5
    COMMIT_RENAME = 6
    DONE = 7


@dataclass(frozen=True, slots=True)
class ProgressState:
    """Immutable snapshot of step outcomes in first-recorded order.

    ``True`` means the step succeeded (or, for ``INIT``, that work is needed);
    ``False`` is an explicit failure. Recording a step that is already present
    replaces its value in place.
    """

    steps: tuple[tuple[InstallStep, bool], ...] = ()

    def record(self, step: InstallStep, outcome: bool) -> ProgressState:
        updated = dict(self.steps)
        updated[InstallStep(step)] = bool(outcome)
        return ProgressState(steps=tuple(updated.items()))

    def get(self, step: InstallStep, default: bool | None = None) -> bool | None:
        for recorded, outcome in self.steps:
            if recorded == step:
                return outcome
        return default

    def items(self) -> tuple[tuple[InstallStep, bool], ...]:
        return self.steps

    def __contains__(self, step: object) -> bool:
        return any(recorded == step for recorded, _ in self.steps)

    def __iter__(self) -> Iterator[InstallStep]:
        return (recorded for recorded, _ in self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    @property
    def finished(self) -> bool:
        """``True`` once ``DONE`` has been recorded; says nothing about success."""
        return InstallStep.DONE in self

    @property
    def failed_steps(self) -> tuple[InstallStep, ...]:
        return tuple(
            step for step, outcome in self.steps if not outcome and step is not InstallStep.INIT
        )

    @property
    def succeeded(self) -> bool:
        """``True`` when the run committed the prefix and recorded no failure."""
        return (
            self.finished
            and self.get(InstallStep.COMMIT_RENAME) is True
            and not self.failed_steps
        )

    def to_dict(self) -> dict[str, bool]:
        return {step.name.lower(): outcome for step, outcome in self.steps}

    @classmethod
    def from_mapping(cls, payload: Mapping[InstallStep | int, bool]) -> ProgressState:
        state = cls()
        for step, outcome in payload.items():
            state = state.record(InstallStep(step), outcome)
        return state


__all__ = ["InstallStep", "ProgressState"]

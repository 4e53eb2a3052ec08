"""Verification steps and their place in a verification plan."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

StepProvider = Callable[[str, str, "str | None"], str]


class UnknownStepError(LookupError):
    """Raised when a verification step name is not known."""

    def __init__(self, name: str) -> None:
        super().__init__(f'Unknown verification step "{name}"')
        self.name = name


@dataclass(frozen=True)
class Step:
    """A named verification step with the provider of its container command."""

    name: str
    step_provider: StepProvider = field(compare=False)
    flags: str | None = None

    def __post_init__(self) -> None:
        if not self.flags:
            object.__setattr__(self, "flags", None)


@dataclass
class VerificationStepsCollection:
    """Steps available to a verification runtime, by name."""

    steps: Mapping[str, Step]

    def step(self, name: str) -> Step:
        try:
            return self.steps[name]
        except KeyError:
            raise UnknownStepError(name) from None


@dataclass(frozen=True)
class StepInVerificationPlan:
    """A step applied to a given project."""

    project_id: str
    step: Step


@dataclass(frozen=True)
class VerificationTarget:
    """The step to run and the project to run it against."""

    step: str
    project_id: str


def change_case(step: str) -> str:
    """Turn a kebab-case step name into snake case."""
    return step.replace("-", "_")


def which_step(
    steps: Mapping[str, Step], step_param: str, project_id: str
) -> StepInVerificationPlan:
    """Select a step by (possibly kebab-case) name for a project."""
    name = change_case(step_param)
    try:
        step = steps[name]
    except KeyError:
        raise UnknownStepError(name) from None
    return StepInVerificationPlan(project_id, step)
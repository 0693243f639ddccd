"""
Multi-step wizard engine shared by the booking and provider-application flows.

A wizard holds a 1-indexed current step and a draft of accumulated fields.
Each step owns a completion predicate over the draft; advancing is only
possible when the current step's predicate holds, and submission is only
possible from the terminal step.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional


class WizardError(Exception):
    """Operation not allowed in the wizard's current state"""


class SubmissionFailed(Exception):
    """Persisting the assembled record failed; the wizard state is unchanged"""

    def __init__(self, message: str = "Something went wrong. Please try again."):
        self.message = message
        super().__init__(message)


StepPredicate = Callable[[dict], bool]


def always(_draft: dict) -> bool:
    return True


@dataclass(frozen=True)
class WizardStep:
    name: str
    is_complete: StepPredicate = always


@dataclass(frozen=True)
class WizardFlow:
    """Static description of a flow: ordered steps plus the record builder used on submit"""

    name: str
    steps: tuple
    build_record: Callable[..., dict]

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    def step(self, number: int) -> WizardStep:
        return self.steps[number - 1]


@dataclass
class Wizard:
    flow: WizardFlow
    current_step: int = 1
    draft: dict = field(default_factory=dict)

    def __post_init__(self):
        if not 1 <= self.current_step <= self.flow.total_steps:
            raise WizardError(f"Step {self.current_step} out of range for {self.flow.name}")

    @property
    def step(self) -> WizardStep:
        return self.flow.step(self.current_step)

    @property
    def is_terminal(self) -> bool:
        return self.current_step == self.flow.total_steps

    def can_advance(self) -> bool:
        return not self.is_terminal and self.step.is_complete(self.draft)

    def update(self, fields: dict) -> None:
        """Merge fields into the draft without moving"""
        self.draft.update(fields)

    def advance(self) -> bool:
        if not self.can_advance():
            return False
        self.current_step += 1
        return True

    def retreat(self) -> bool:
        if self.current_step <= 1:
            return False
        self.current_step -= 1
        return True

    def reset(self) -> None:
        self.current_step = 1
        self.draft = {}

    def incomplete_steps(self) -> list[str]:
        return [step.name for step in self.flow.steps if not step.is_complete(self.draft)]

    def submit(self, persist: Callable[[dict], Any], **context) -> Any:
        """
        Assemble the draft into a record and hand it to persist.

        On success the wizard resets and the persist result (the new document
        id) is returned. Any persist failure surfaces as SubmissionFailed and
        leaves the step and draft as they were, so the caller can retry.
        """
        if not self.is_terminal:
            raise WizardError(f"{self.flow.name} can only be submitted from the final step")

        incomplete = self.incomplete_steps()
        if incomplete:
            raise WizardError(f"Incomplete steps: {', '.join(incomplete)}")

        record = self.flow.build_record(dict(self.draft), **context)
        try:
            result = persist(record)
        except Exception as e:
            raise SubmissionFailed() from e

        self.reset()
        return result

    def snapshot(self) -> dict:
        return {
            "flow": self.flow.name,
            "currentStep": self.current_step,
            "totalSteps": self.flow.total_steps,
            "stepName": self.step.name,
            "canAdvance": self.can_advance(),
            "isTerminal": self.is_terminal,
            "draft": self.draft,
        }

    def to_dict(self) -> dict:
        return {"flow": self.flow.name, "currentStep": self.current_step, "draft": self.draft}

    @classmethod
    def from_dict(cls, flow: WizardFlow, data: Optional[dict]) -> "Wizard":
        if not data or data.get("flow") != flow.name:
            return cls(flow)
        step = data.get("currentStep", 1)
        if not isinstance(step, int) or not 1 <= step <= flow.total_steps:
            step = 1
        return cls(flow, current_step=step, draft=dict(data.get("draft") or {}))

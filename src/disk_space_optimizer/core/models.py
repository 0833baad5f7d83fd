"""Domain models for disk-space-optimizer.

Candidate and output models are **frozen** dataclasses — immutable value
objects with no behaviour beyond data access.  :class:`RunSummary` is
the single mutable record of one invocation and is only ever appended
to by the dispatcher.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


# ---------------------------------------------------------------------------
# Candidate item
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class CandidateItem:
    """An entity eligible for a destructive action."""

    name: str
    """Display name: package name, kernel version or log file path."""

    target: str | None = None
    """Argument handed to the removal command, when it differs from ``name``."""

    age_days: int | None = None
    """Age in whole days, or ``None`` when not meaningful."""

    size: int | None = None
    """Size in bytes, or ``None`` if unknown."""

    @property
    def argument(self) -> str:
        """The value passed to the removal command."""
        return self.target if self.target is not None else self.name


# ---------------------------------------------------------------------------
# Confirmation decision
# ---------------------------------------------------------------------------

class DecisionKind(Enum):
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    INVALID = "invalid"


@dataclass(frozen=True, slots=True)
class Decision:
    """Tri-state result of parsing one user answer.

    ``indices`` holds zero-based positions for a confirmed selection and
    is empty for yes/no answers.  ``reason`` explains an invalid answer.
    """

    kind: DecisionKind
    indices: tuple[int, ...] = ()
    reason: str | None = None

    @classmethod
    def confirmed(cls, indices: tuple[int, ...] = ()) -> Decision:
        return cls(DecisionKind.CONFIRMED, indices)

    @classmethod
    def declined(cls) -> Decision:
        return cls(DecisionKind.DECLINED)

    @classmethod
    def invalid(cls, reason: str) -> Decision:
        return cls(DecisionKind.INVALID, reason=reason)


# ---------------------------------------------------------------------------
# Command execution results
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class CommandOutput:
    """Captured result of one external program run."""

    program: str
    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def command_line(self) -> str:
        return " ".join((self.program, *self.args))


class OutcomeStatus(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class ItemOutcome:
    """What happened to one candidate item."""

    item: CandidateItem
    status: OutcomeStatus
    output: CommandOutput | None = None
    error: str | None = None


@dataclass(slots=True)
class RunSummary:
    """Per-invocation aggregate of item outcomes."""

    command: str
    outcomes: list[ItemOutcome] = field(default_factory=list)
    declined: bool = False
    """True when the user declined (or input was unavailable)."""

    def record(self, outcome: ItemOutcome) -> None:
        self.outcomes.append(outcome)

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is status)

    @property
    def succeeded(self) -> int:
        return self._count(OutcomeStatus.SUCCEEDED)

    @property
    def failed(self) -> int:
        return self._count(OutcomeStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(OutcomeStatus.SKIPPED)

    @property
    def ok(self) -> bool:
        return self.failed == 0

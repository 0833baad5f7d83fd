"""Core / service layer — pure decision logic and orchestration.

Rules
-----
* No ``print()`` and no terminal access.
* No filesystem or subprocess I/O.
* No imports from ``cli`` or ``infra``.
* External systems are reached only through :mod:`.protocols`.
"""

from disk_space_optimizer.core.dispatcher import Dispatcher
from disk_space_optimizer.core.models import (
    CandidateItem,
    CommandOutput,
    Decision,
    DecisionKind,
    ItemOutcome,
    OutcomeStatus,
    RunSummary,
)
from disk_space_optimizer.core.protocols import (
    CommandRunner,
    Gate,
    KernelSource,
    LogFileSource,
    LogScan,
    PackageManager,
    Reporter,
)

__all__: list[str] = [
    "CandidateItem",
    "CommandOutput",
    "CommandRunner",
    "Decision",
    "DecisionKind",
    "Dispatcher",
    "Gate",
    "ItemOutcome",
    "KernelSource",
    "LogFileSource",
    "LogScan",
    "OutcomeStatus",
    "PackageManager",
    "Reporter",
    "RunSummary",
]

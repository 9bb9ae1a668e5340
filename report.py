#!/usr/bin/env python3
"""Collect per-repository outcomes into an ordered migration report."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from config import ActionKind
from models import Outcome, OutcomeKind, RepositoryRef

EXIT_SUCCESS = 0
EXIT_FAILURES = 1


@dataclass(frozen=True)
class ReportSummary:
    applied: int = 0
    already_satisfied: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.applied + self.already_satisfied + self.failed


@dataclass(frozen=True)
class ReportEntry:
    ref: RepositoryRef
    outcome: Outcome

    def describe(self, action: ActionKind) -> str:
        """One human-readable line for this repository."""
        outcome = self.outcome
        if outcome.kind == OutcomeKind.FAILED:
            return f"{_FAILED_VERBS[action]} {self.ref.full_name} failed: {outcome.message}"
        if outcome.kind == OutcomeKind.ALREADY_SATISFIED:
            return f"{_SATISFIED_TEXT[action]} for repo {self.ref.name}"
        line = f"{_APPLIED_VERBS[action]} for repo {self.ref.name}"
        if outcome.resource_id is not None:
            line += f" with id: {outcome.resource_id}"
        return line


_APPLIED_VERBS: Dict[ActionKind, str] = {
    ActionKind.PROTECT_BRANCH: "Configured branch protection",
    ActionKind.CREATE_WEBHOOK: "Created webhook",
    ActionKind.SET_DEFAULT_BRANCH: "Updated default branch",
    ActionKind.AUTO_DELETE_HEAD_BRANCHES: "Enabled auto delete of head branches",
    ActionKind.ARCHIVE_PROJECT: "Archived project",
    ActionKind.COPY_CONTENT: "Copied content",
}

_SATISFIED_TEXT: Dict[ActionKind, str] = {
    ActionKind.PROTECT_BRANCH: "Branch protection already configured",
    ActionKind.CREATE_WEBHOOK: "Webhook already exists",
    ActionKind.SET_DEFAULT_BRANCH: "Default branch already set",
    ActionKind.AUTO_DELETE_HEAD_BRANCHES: "Auto delete of head branches already enabled",
    ActionKind.ARCHIVE_PROJECT: "Project already archived",
    ActionKind.COPY_CONTENT: "Repository already exists",
}

_FAILED_VERBS: Dict[ActionKind, str] = {
    ActionKind.PROTECT_BRANCH: "Configuring branch protection for",
    ActionKind.CREATE_WEBHOOK: "Creating webhook for",
    ActionKind.SET_DEFAULT_BRANCH: "Updating default branch for",
    ActionKind.AUTO_DELETE_HEAD_BRANCHES: "Updating auto delete of head branches for",
    ActionKind.ARCHIVE_PROJECT: "Archiving",
    ActionKind.COPY_CONTENT: "Copying content of",
}


@dataclass(frozen=True)
class MigrationReport:
    """Immutable, input-ordered record of one batch run."""
    action: ActionKind
    entries: Tuple[ReportEntry, ...]
    summary: ReportSummary

    @property
    def exit_code(self) -> int:
        return EXIT_FAILURES if self.summary.failed > 0 else EXIT_SUCCESS

    def failures(self) -> List[ReportEntry]:
        return [entry for entry in self.entries if entry.outcome.is_failure]

    def lines(self) -> List[str]:
        return [entry.describe(self.action) for entry in self.entries]


class ReportAggregator:
    """Buffers outcomes by original index so completion order never leaks into the report."""

    def __init__(self, action: ActionKind, refs: Tuple[RepositoryRef, ...]) -> None:
        self.action = action
        self._refs = refs
        self._outcomes: Dict[int, Outcome] = {}
        self._report = None

    def record(self, index: int, outcome: Outcome) -> None:
        if self._report is not None:
            raise RuntimeError("report already finalized")
        if not 0 <= index < len(self._refs):
            raise IndexError(f"no repository at index {index}")
        if index in self._outcomes:
            raise ValueError(f"outcome for {self._refs[index]} already recorded")
        self._outcomes[index] = outcome

    def pending(self) -> List[int]:
        return [i for i in range(len(self._refs)) if i not in self._outcomes]

    def finalize(self) -> MigrationReport:
        if self._report is not None:
            return self._report
        missing = self.pending()
        if missing:
            names = ", ".join(self._refs[i].full_name for i in missing)
            raise RuntimeError(f"no outcome recorded for: {names}")

        entries = tuple(
            ReportEntry(ref, self._outcomes[i]) for i, ref in enumerate(self._refs)
        )
        counts = {kind: 0 for kind in OutcomeKind}
        for entry in entries:
            counts[entry.outcome.kind] += 1
        self._report = MigrationReport(
            action=self.action,
            entries=entries,
            summary=ReportSummary(
                applied=counts[OutcomeKind.APPLIED],
                already_satisfied=counts[OutcomeKind.ALREADY_SATISFIED],
                failed=counts[OutcomeKind.FAILED],
            ),
        )
        return self._report

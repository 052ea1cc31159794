"""Commit authoring as a state machine.

The wizard does no I/O. A front end asks the user for the draft fields,
hands them over with :meth:`CommitWizard.submit` and advances with
:meth:`CommitWizard.step`. An invalid draft sends the wizard back to
``PROMPTING`` with the draft and the failure kept, so the user can fix the
message instead of retyping it.

    wizard = CommitWizard(config).submit(draft).step()
    if wizard.state is WizardState.CONFIRMED:
        ...  # wizard.message is ready for ``git commit -m``
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING

from changebump.core.commits import ConventionalCommit, ParseFailure, validate
from changebump.exceptions import WizardStateError

if TYPE_CHECKING:
    from changebump.config.models import ChangebumpConfig


class WizardState(str, Enum):
    PROMPTING = "prompting"
    VALIDATING = "validating"
    CONFIRMED = "confirmed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class CommitDraft:
    """The answers collected from the user."""

    type: str
    description: str
    scope: str = ""
    body: str = ""
    breaking_change: str = ""
    breaking: bool = False
    issues: str = ""

    def to_message(self) -> str:
        header = self.type.strip()
        if self.scope.strip():
            header += f"({self.scope.strip()})"
        if self.breaking or self.breaking_change.strip():
            header += "!"
        header += f": {self.description.strip()}"

        paragraphs = [header]
        if self.body.strip():
            paragraphs.append(self.body.strip())
        if self.breaking_change.strip():
            paragraphs.append(f"BREAKING CHANGE: {self.breaking_change.strip()}")
        if self.issues.strip():
            paragraphs.append(f"Refs: {self.issues.strip()}")
        return "\n\n".join(paragraphs)


@dataclass(frozen=True)
class CommitWizard:
    config: ChangebumpConfig
    state: WizardState = WizardState.PROMPTING
    draft: CommitDraft | None = None
    failure: ParseFailure | None = None
    commit: ConventionalCommit | None = None

    @property
    def message(self) -> str | None:
        return self.draft.to_message() if self.draft else None

    @property
    def is_finished(self) -> bool:
        return self.state in (WizardState.CONFIRMED, WizardState.ABORTED)

    def _require(self, *states: WizardState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise WizardStateError(f"Cannot do that while {self.state.value} (expected {allowed})")

    def submit(self, draft: CommitDraft) -> CommitWizard:
        self._require(WizardState.PROMPTING)
        return replace(self, state=WizardState.VALIDATING, draft=draft)

    def step(self) -> CommitWizard:
        """Validate the submitted draft."""
        self._require(WizardState.VALIDATING)
        if self.draft is None:
            raise WizardStateError("Cannot validate without a submitted draft")
        result = validate(self.draft.to_message(), self.config)
        if isinstance(result, ParseFailure):
            return replace(self, state=WizardState.PROMPTING, failure=result, commit=None)
        return replace(self, state=WizardState.CONFIRMED, failure=None, commit=result)

    def abort(self) -> CommitWizard:
        self._require(WizardState.PROMPTING, WizardState.VALIDATING)
        return replace(self, state=WizardState.ABORTED)

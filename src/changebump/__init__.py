"""changebump: conventional commits to semantic versions and changelogs."""

from __future__ import annotations

__version__ = "0.1.0"

from changebump.wizard import CommitDraft, CommitWizard, WizardState  # noqa: E402

__all__ = ["CommitDraft", "CommitWizard", "WizardState", "__version__"]

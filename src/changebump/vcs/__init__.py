"""Version control access (git only)."""

from __future__ import annotations

from changebump.vcs.git import GitRepository, VersionTag

__all__ = ["GitRepository", "VersionTag"]

from __future__ import annotations

import os
from pathlib import Path

from .heuristics import resolve_profile
from .profile import DockerConfig, PackageManager, RepositoryProfile


def analyze(repo_root: str | Path) -> RepositoryProfile:
    """
    Perform static analysis on repo_root and return a RepositoryProfile.
    Never executes repository code. A missing file is simply an absent signal.

    Raises:
        OSError: repo_root is not a readable directory
    """
    root = Path(repo_root)
    if not root.is_dir():
        raise NotADirectoryError(f"Repository root is not a directory: {root}")
    if not os.access(root, os.R_OK | os.X_OK):
        raise PermissionError(f"Repository root is not readable: {root}")
    return resolve_profile(root)


__all__ = ["analyze", "DockerConfig", "PackageManager", "RepositoryProfile"]

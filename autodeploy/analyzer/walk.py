from __future__ import annotations

import fnmatch
import os
from pathlib import Path
from typing import Generator, Iterable, List, Optional, Tuple


IGNORE_DIRS = {
    ".git",
    "node_modules",
    ".venv",
    "venv",
    "__pycache__",
    ".mypy_cache",
    ".next",
    ".DS_Store",
}

# Depth counts the root's own entries as 1, so depth 2 is "root plus one directory below".
MANIFEST_DEPTH = 2
SOURCE_DEPTH = 3


def _should_include(path: Path, patterns: Optional[Iterable[str]]) -> bool:
    if patterns is None:
        return True
    name = path.name
    for pat in patterns:
        if fnmatch.fnmatch(name, pat):
            return True
    return False


def iter_files(
    root: str | Path,
    patterns: Optional[Iterable[str]] = None,
    max_depth: Optional[int] = None,
) -> Generator[Tuple[Path, Path], None, None]:
    root_path = Path(root).resolve()
    patterns = list(patterns) if patterns is not None else None
    for dirpath, dirnames, filenames in os.walk(root_path):
        current = Path(dirpath)
        depth = len(current.relative_to(root_path).parts) + 1
        # prune ignored dirs
        dirnames[:] = sorted(d for d in dirnames if d not in IGNORE_DIRS)
        if max_depth is not None and depth >= max_depth:
            dirnames[:] = []
        if max_depth is not None and depth > max_depth:
            continue
        for filename in sorted(filenames):
            p = current / filename
            if _should_include(p, patterns):
                yield p, p.relative_to(root_path)


def read_text(path: str | Path, limit_bytes: int = 1_000_000) -> str:
    p = Path(path)
    try:
        if p.stat().st_size > limit_bytes:
            return ""  # too large, skip content
    except OSError:
        return ""

    try:
        with open(p, "r", encoding="utf-8", errors="ignore") as f:
            return f.read()
    except OSError:
        return ""


def file_names(root: str | Path, max_depth: int = MANIFEST_DEPTH) -> List[str]:
    return [p.name for p, _ in iter_files(root, max_depth=max_depth)]


def find_file(root: str | Path, name: str, max_depth: int = MANIFEST_DEPTH) -> Optional[Path]:
    """Locate ``name`` in the root, or failing that one directory below it."""
    direct = Path(root) / name
    if direct.is_file():
        return direct
    for p, _ in iter_files(root, patterns=[name], max_depth=max_depth):
        return p
    return None

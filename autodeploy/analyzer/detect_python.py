from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional

from ..nlp.schema import AppType
from .walk import MANIFEST_DEPTH, file_names, find_file, iter_files, read_text


PY_MANIFESTS = ["requirements.txt", "Pipfile", "pyproject.toml"]

# Checked in priority order; the first framework with any hit wins.
FRAMEWORK_TOKENS = [
    (AppType.FLASK, "Flask"),
    (AppType.DJANGO, "Django"),
    (AppType.FASTAPI, "FastAPI"),
]

REQUIREMENT_OPERATORS = [">=", "<=", "~=", "==", ">", "<"]


def is_python_repo(root: str | Path) -> bool:
    names = file_names(root)
    return any(m in names for m in PY_MANIFESTS) or any(n.endswith(".py") for n in names)


def detect_python_framework(root: str | Path) -> Optional[AppType]:
    """
    Look for Flask, Django or FastAPI in source files and manifests.

    Source files must contain the literal framework token; manifests also
    match case-insensitively (``flask==2.0`` counts for Flask).
    """
    if not is_python_repo(root):
        return None

    sources: List[str] = []
    manifests: List[str] = []
    for p, _ in iter_files(root, patterns=["*.py"] + PY_MANIFESTS, max_depth=MANIFEST_DEPTH):
        text = read_text(p)
        if not text:
            continue
        if p.name in PY_MANIFESTS:
            manifests.append(text)
        else:
            sources.append(text)

    for app_type, token in FRAMEWORK_TOKENS:
        if any(token in text for text in sources + manifests):
            return app_type
        if any(token.lower() in text.lower() for text in manifests):
            return app_type
    return None


def parse_requirement(line: str) -> Optional[str]:
    """Reduce one requirements.txt line to a bare distribution name."""
    line = line.strip()
    if not line or line.startswith("#") or line.startswith("-"):
        return None
    line = line.split(";", 1)[0]
    for op in REQUIREMENT_OPERATORS:
        if op in line:
            line = line.split(op, 1)[0]
            break
    line = re.sub(r"\[.*?\]", "", line).strip()
    return line or None


def pip_dependencies(root: str | Path) -> List[str]:
    req = find_file(root, "requirements.txt")
    if req is None:
        return []
    deps: List[str] = []
    for raw in read_text(req).splitlines():
        name = parse_requirement(raw)
        if name and name not in deps:
            deps.append(name)
    return deps

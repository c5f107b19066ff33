from __future__ import annotations

import re
from pathlib import Path
from typing import List

from .profile import PackageManager
from .walk import SOURCE_DEPTH, file_names, iter_files, read_text


# First present wins.
PACKAGE_MANAGER_MARKERS = [
    (("requirements.txt", "Pipfile", "pyproject.toml"), PackageManager.PIP),
    (("yarn.lock",), PackageManager.YARN),
    (("package.json",), PackageManager.NPM),
    (("pom.xml",), PackageManager.MAVEN),
    (("build.gradle", "build.gradle.kts"), PackageManager.GRADLE),
    (("Gemfile",), PackageManager.BUNDLER),
    (("composer.json",), PackageManager.COMPOSER),
]

ENV_FILES = [".env", ".env.example", ".env.template"]

PORT_RE = re.compile(r"(?i)port[:=\s]*(\d+)")
PORT_SOURCES = ["*.py", "*.js", "*.ts"]


def detect_package_manager(root: str | Path) -> PackageManager:
    names = set(file_names(root))
    for markers, manager in PACKAGE_MANAGER_MARKERS:
        if any(m in names for m in markers):
            return manager
    return PackageManager.UNKNOWN


def parse_env_names(text: str) -> List[str]:
    keys: List[str] = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export "):]
        key = line.split("=", 1)[0].strip()
        if key and key not in keys:
            keys.append(key)
    return keys


def parse_env_requirements(root: str | Path) -> List[str]:
    """Variable names declared in .env-style files; values are never kept."""
    keys: List[str] = []
    for fname in ENV_FILES:
        p = Path(root) / fname
        if p.is_file():
            keys.extend(k for k in parse_env_names(read_text(p)) if k not in keys)
    return keys


def detect_ports(root: str | Path) -> List[int]:
    ports = set()
    for fp, _ in iter_files(root, patterns=PORT_SOURCES, max_depth=SOURCE_DEPTH):
        for m in PORT_RE.finditer(read_text(fp)):
            port = int(m.group(1))
            if 1000 < port < 65535:
                ports.add(port)
    return sorted(ports)

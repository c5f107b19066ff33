from __future__ import annotations

from pathlib import Path
from typing import Optional


STATIC_DIRS = ["static", "public", "assets", "dist", "build"]
MIGRATION_DIRS = ["migrations", "migrate", "alembic", "db/migrate"]


def detect_static_dir(root: str | Path) -> Optional[str]:
    root_path = Path(root)
    for name in STATIC_DIRS:
        if (root_path / name).is_dir():
            return name
    return None


def detect_migrations(root: str | Path) -> bool:
    root_path = Path(root)
    return any((root_path / name).exists() for name in MIGRATION_DIRS)

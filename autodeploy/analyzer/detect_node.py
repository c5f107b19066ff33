from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from ..nlp.schema import AppType
from .walk import find_file, read_text

logger = logging.getLogger(__name__)


def load_package_json(root: str | Path) -> Optional[Dict]:
    pkg = find_file(root, "package.json")
    if pkg is None:
        return None
    try:
        data = json.loads(read_text(pkg) or "{}")
    except json.JSONDecodeError as e:
        logger.warning("Could not parse %s: %s", pkg, e)
        return {}
    return data if isinstance(data, dict) else {}


def _dep_keys(pkg: Dict) -> List[str]:
    keys: List[str] = []
    for section in ("dependencies", "devDependencies"):
        deps = pkg.get(section)
        if isinstance(deps, dict):
            keys.extend(k for k in deps.keys() if k not in keys)
    return keys


def detect_node_framework(root: str | Path) -> Optional[AppType]:
    """Classify a package.json project; None when there is no package.json."""
    pkg = load_package_json(root)
    if pkg is None:
        return None
    deps = _dep_keys(pkg)
    if "react" in deps:
        return AppType.REACT
    if "next" in deps:
        return AppType.NEXTJS
    if "express" in deps:
        return AppType.EXPRESS
    return AppType.NODEJS


def node_dependencies(root: str | Path) -> List[str]:
    pkg = load_package_json(root)
    return _dep_keys(pkg) if pkg else []

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path

from ..errors import FetchError
from .walk import IGNORE_DIRS

logger = logging.getLogger(__name__)

MAX_FILES = 50_000
MAX_TOTAL_BYTES = 200 * 1024 * 1024  # 200 MB


def is_remote(source: str) -> bool:
    return source.startswith(("http://", "https://", "git@", "ssh://"))


def _safe_copy_tree(src: Path, dst: Path) -> None:
    dst.mkdir(parents=True, exist_ok=True)
    total_files = 0
    total_bytes = 0

    for root, dirs, files in os.walk(src):
        # prune
        dirs[:] = [d for d in dirs if d not in IGNORE_DIRS]

        rel = Path(root).relative_to(src)
        (dst / rel).mkdir(parents=True, exist_ok=True)

        for f in files:
            sp = Path(root) / f
            try:
                size = sp.stat().st_size
            except OSError:
                continue

            total_files += 1
            total_bytes += size
            if total_files > MAX_FILES or total_bytes > MAX_TOTAL_BYTES:
                logger.warning("Copy of %s truncated at %d files", src, total_files)
                return

            try:
                shutil.copy2(sp, dst / rel / f)
            except OSError as e:
                logger.debug("Skipping %s: %s", sp, e)


def fetch_repository(source: str, workspace_root: str | Path) -> Path:
    """
    Materialize ``source`` under ``workspace_root/checkout``.

    Remote sources get a shallow ``git clone --depth 1``; a local directory
    is copied (ignoring .git, node_modules, virtualenvs and caches).

    Raises:
        FetchError: the clone failed or the source does not exist
    """
    workspace = Path(workspace_root).resolve()
    workspace.mkdir(parents=True, exist_ok=True)
    checkout = workspace / "checkout"
    if checkout.exists():
        shutil.rmtree(checkout)

    if is_remote(source):
        logger.info("Cloning %s", source)
        try:
            subprocess.run(
                ["git", "clone", "--depth", "1", source, str(checkout)],
                check=True, capture_output=True, text=True,
            )
        except FileNotFoundError:
            raise FetchError("git is not installed or not on PATH")
        except subprocess.CalledProcessError as e:
            raise FetchError(f"git clone failed: {(e.stderr or '').strip()}")
        return checkout

    src_path = Path(source).expanduser().resolve()
    if not src_path.is_dir():
        raise FetchError(f"Unsupported source (not a URL or directory): {source}")
    logger.info("Copying local repository %s", src_path)
    _safe_copy_tree(src_path, checkout)
    return checkout

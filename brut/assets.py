"""Static asset copying for Brut.

Everything under the public directory is copied verbatim into the output
directory, preserving the folder structure.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def copy_public(public_dir: Path, out_dir: Path) -> int:
    """Copy the public directory tree into the output directory.

    Args:
        public_dir: Directory of static files.
        out_dir: Build output directory.

    Returns:
        Number of files copied. Zero if public_dir does not exist.
    """
    if not public_dir.is_dir():
        logger.info("No public directory at %s; skipping static files.", public_dir)
        return 0
    shutil.copytree(public_dir, out_dir, dirs_exist_ok=True)
    count = sum(1 for p in public_dir.rglob("*") if p.is_file())
    logger.info("Copied %d static files.", count)
    return count

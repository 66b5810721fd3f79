"""Filesystem helpers for replacing materialized directories."""

import os
import shutil
from pathlib import Path
from uuid import uuid4

from capsync.sources.content_hash import VCS_METADATA_NAMES


def replace_directory_with_copy(source_dir: Path, target_dir: Path) -> None:
    """Replace target_dir with a copy of source_dir.

    The copy is staged next to the target and swapped in with os.replace, so
    an interrupted copy never leaves a half-written target behind. VCS
    metadata directories are not copied.
    """
    target_dir.parent.mkdir(parents=True, exist_ok=True)
    staged_dir = target_dir.parent / f".{target_dir.name}.staged-{uuid4().hex}"
    shutil.copytree(source_dir, staged_dir, ignore=shutil.ignore_patterns(*VCS_METADATA_NAMES))
    if not target_dir.exists():
        os.replace(staged_dir, target_dir)
        return

    backup_dir = target_dir.parent / f".{target_dir.name}.backup-{uuid4().hex}"
    os.replace(target_dir, backup_dir)
    try:
        os.replace(staged_dir, target_dir)
    except OSError:
        os.replace(backup_dir, target_dir)
        shutil.rmtree(staged_dir, ignore_errors=True)
        raise
    shutil.rmtree(backup_dir)

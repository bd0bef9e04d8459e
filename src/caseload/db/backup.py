"""Database file backups using SQLite's online backup API."""

from __future__ import annotations

import re
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import structlog

from caseload.db.database import get_db_path

logger = structlog.get_logger(__name__)

BACKUP_PREFIX = "slp-caseload-backup"
_BACKUP_NAME = re.compile(r"^[A-Za-z0-9_.-]+\.db$")


class BackupError(Exception):
    """Error creating, restoring or deleting a backup."""

    pass


class BackupNotFoundError(BackupError):
    """The named backup does not exist."""

    pass


@dataclass
class BackupInfo:
    """A backup file on disk."""

    name: str
    size: int
    created_at: str


def _copy_database(source: Path, target: Path) -> None:
    """Copy one SQLite file to another consistently, even while in use."""
    src = sqlite3.connect(source)
    dst = sqlite3.connect(target)
    try:
        src.backup(dst)
    finally:
        dst.close()
        src.close()


def _info(path: Path) -> BackupInfo:
    stat = path.stat()
    created = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
    return BackupInfo(
        name=path.name,
        size=stat.st_size,
        created_at=created.isoformat(timespec="seconds").replace("+00:00", "Z"),
    )


def resolve_backup(backups_dir: Path, name: str) -> Path:
    """Resolve a backup name to a path inside ``backups_dir``.

    Raises:
        BackupError: If the name is not a plain ``*.db`` file name or the
            backup does not exist
    """
    if not _BACKUP_NAME.match(name) or name.startswith("."):
        raise BackupError(f"Invalid backup name: {name}")
    path = backups_dir / name
    if not path.is_file():
        raise BackupNotFoundError(f"Backup not found: {name}")
    return path


def create_backup(backups_dir: Path, label: str | None = None) -> BackupInfo:
    """Snapshot the active database into ``backups_dir``.

    Args:
        backups_dir: Directory holding backups
        label: Optional suffix such as ``pre-restore``

    Returns:
        Info about the new backup file
    """
    db_path = get_db_path()
    if not db_path.exists():
        raise BackupError(f"Database file does not exist: {db_path}")

    backups_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S-%f")
    suffix = f"-{label}" if label else ""
    target = backups_dir / f"{BACKUP_PREFIX}-{stamp}{suffix}.db"

    _copy_database(db_path, target)
    logger.info("backup.created", path=str(target))
    return _info(target)


def list_backups(backups_dir: Path) -> list[BackupInfo]:
    """List backups newest first."""
    if not backups_dir.exists():
        return []
    paths = sorted(backups_dir.glob("*.db"), key=lambda p: p.stat().st_mtime, reverse=True)
    return [_info(p) for p in paths]


def restore_backup(backups_dir: Path, name: str) -> BackupInfo:
    """Replace the active database with a backup.

    A ``pre-restore`` backup of the current database is taken first.

    Returns:
        Info about the safety backup taken before restoring
    """
    source = resolve_backup(backups_dir, name)
    safety = create_backup(backups_dir, label="pre-restore")
    _copy_database(source, get_db_path())
    logger.info("backup.restored", name=name, safety_backup=safety.name)
    return safety


def delete_backup(backups_dir: Path, name: str) -> None:
    """Delete one backup file."""
    path = resolve_backup(backups_dir, name)
    path.unlink()
    logger.info("backup.deleted", name=name)

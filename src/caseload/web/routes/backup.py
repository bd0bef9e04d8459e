"""Database backup endpoints."""

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import FileResponse

from caseload.config import load_app_config
from caseload.db.backup import (
    BackupError,
    BackupInfo,
    BackupNotFoundError,
    create_backup,
    delete_backup,
    list_backups,
    resolve_backup,
    restore_backup,
)
from caseload.web.schemas import BackupResponse, RestoreResponse

router = APIRouter(prefix="/api/backup", tags=["backup"])


def _backup_http_error(error: BackupError) -> HTTPException:
    code = (
        status.HTTP_404_NOT_FOUND
        if isinstance(error, BackupNotFoundError)
        else status.HTTP_400_BAD_REQUEST
    )
    return HTTPException(status_code=code, detail=str(error))


@router.get("", response_model=list[BackupResponse])
async def list_all_backups() -> list[BackupInfo]:
    """List backups newest first."""
    return list_backups(load_app_config().backups_dir)


@router.post("", response_model=BackupResponse, status_code=status.HTTP_201_CREATED)
def create_new_backup() -> BackupInfo:
    """Snapshot the database."""
    try:
        return create_backup(load_app_config().backups_dir)
    except BackupError as e:
        raise _backup_http_error(e) from e


@router.get("/{name}")
async def download_backup(name: str) -> FileResponse:
    """Download a backup file."""
    try:
        path = resolve_backup(load_app_config().backups_dir, name)
    except BackupError as e:
        raise _backup_http_error(e) from e
    return FileResponse(path, media_type="application/octet-stream", filename=name)


@router.post("/{name}/restore", response_model=RestoreResponse)
def restore_named_backup(name: str) -> RestoreResponse:
    """Restore a backup after taking a safety backup of the current data."""
    try:
        safety = restore_backup(load_app_config().backups_dir, name)
    except BackupError as e:
        raise _backup_http_error(e) from e
    return RestoreResponse(restored=name, safety_backup=safety.name)


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_named_backup(name: str) -> None:
    try:
        delete_backup(load_app_config().backups_dir, name)
    except BackupError as e:
        raise _backup_http_error(e) from e

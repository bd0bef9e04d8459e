"""Database module for SQLite persistence.

Provides:
- Database connection management and schema initialization
- One repository module per table
- Whole-database export, legacy JSON import and file backups
"""

from caseload.db.database import get_db, get_db_path, init_db

__all__ = ["get_db", "get_db_path", "init_db"]

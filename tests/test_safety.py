"""Safety tests to ensure the test suite doesn't touch real caseload data.

These tests verify that running the test suite does NOT touch:
- ./data directory (the caseload database, backups and auth file)

All tests MUST use temporary directories via the isolated_data_dir fixture.
"""

import hashlib
import os
from pathlib import Path

import pytest

from caseload.config import load_app_config

# Captured at import time, before the autouse fixture changes directory.
PROJECT_DATA_DIR = Path("data").resolve()
TESTS_DIR = Path(__file__).parent


def _hash_directory(path: Path) -> str | None:
    """Create a hash of directory structure, file sizes and mtimes.

    Returns None if directory doesn't exist.
    """
    if not path.exists():
        return None

    hasher = hashlib.sha256()

    for root, dirs, files in os.walk(path):
        dirs.sort()
        files.sort()

        for filename in files:
            filepath = Path(root) / filename
            hasher.update(str(filepath.relative_to(path)).encode())
            stat = filepath.stat()
            hasher.update(str(stat.st_size).encode())
            hasher.update(str(int(stat.st_mtime)).encode())

    return hasher.hexdigest()


PROJECT_DATA_STATE = {
    "exists": PROJECT_DATA_DIR.exists(),
    "hash": _hash_directory(PROJECT_DATA_DIR),
}


class TestDataDirectorySafety:
    """Tests ensuring ./data is never modified by the test suite."""

    def test_config_points_at_temp_dir(self, isolated_data_dir):
        config = load_app_config()

        assert config.data_dir == isolated_data_dir
        assert config.db_path.parent == isolated_data_dir
        assert PROJECT_DATA_DIR not in config.db_path.parents

    def test_data_directory_not_created(self):
        """Test suite should not create ./data if it didn't exist."""
        if not PROJECT_DATA_STATE["exists"] and PROJECT_DATA_DIR.exists():
            pytest.fail(
                "./data directory was created during test run. "
                "All tests MUST use temporary directories."
            )

    def test_data_directory_not_modified(self):
        """Test suite should not modify ./data if it existed."""
        if PROJECT_DATA_STATE["exists"]:
            if _hash_directory(PROJECT_DATA_DIR) != PROJECT_DATA_STATE["hash"]:
                pytest.fail(
                    "./data directory was modified during test run. "
                    "Never create, import into, or back up ./data in tests."
                )


class TestTestIsolation:
    """Meta-tests ensuring test modules don't hardcode the real data paths."""

    def test_no_hardcoded_database_paths(self):
        violations = []

        for test_file in sorted(TESTS_DIR.rglob("test_*.py")):
            if test_file.name == Path(__file__).name:
                continue
            content = test_file.read_text(encoding="utf-8")

            if 'Path("data")' in content or "Path('data')" in content:
                violations.append(f"{test_file.name}: uses Path('data')")
            if '"data/slp-caseload.db"' in content:
                violations.append(f"{test_file.name}: uses the default database path")

        if violations:
            pytest.fail(
                "Test files may not be properly isolated:\n"
                + "\n".join(f"  - {v}" for v in violations)
            )

"""Tests for the caseload CLI."""

import json

from typer.testing import CliRunner

from caseload.cli.commands import app
from caseload.db.backup import list_backups
from caseload.db.students_repository import get_student

runner = CliRunner()

LEGACY_EXPORT = {
    "students": [
        {
            "id": "student-9",
            "name": "Leo Park",
            "school": "Pine Elementary",
            "dateAdded": "2024-09-01T00:00:00Z",
            "progressReportFrequency": "annual",
            "annualReviewDate": "2099-03-01",
        }
    ],
    "goals": [
        {
            "id": "goal-9",
            "studentId": "student-9",
            "description": "Use /s/ blends in sentences",
            "dateCreated": "2024-09-02T00:00:00Z",
        }
    ],
}


def _write_export(tmp_path, data=None):
    path = tmp_path / "export.json"
    path.write_text(json.dumps(data if data is not None else LEGACY_EXPORT), encoding="utf-8")
    return path


class TestInitAndImport:
    """Tests for init-db, import-legacy and export."""

    def test_init_db(self, isolated_data_dir):
        result = runner.invoke(app, ["init-db"])

        assert result.exit_code == 0
        assert "Database ready" in result.stdout
        assert (isolated_data_dir / "slp-caseload.db").exists()

    def test_import_legacy(self, tmp_path):
        result = runner.invoke(app, ["import-legacy", str(_write_export(tmp_path))])

        assert result.exit_code == 0
        assert "Imported 2 records" in result.stdout
        assert get_student("student-9").name == "Leo Park"

    def test_import_missing_file(self, tmp_path):
        result = runner.invoke(app, ["import-legacy", str(tmp_path / "nope.json")])

        assert result.exit_code == 1
        assert "File not found" in result.stdout

    def test_import_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        result = runner.invoke(app, ["import-legacy", str(path)])

        assert result.exit_code == 1
        assert "Invalid JSON" in result.stdout

    def test_import_rejects_bad_shape(self, tmp_path):
        path = _write_export(tmp_path, {"students": {"id": "x"}})

        result = runner.invoke(app, ["import-legacy", str(path)])

        assert result.exit_code == 1
        assert "'students' must be an array" in result.stdout

    def test_export(self, tmp_path, student):
        output = tmp_path / "out" / "export.json"

        result = runner.invoke(app, ["export", str(output)])

        assert result.exit_code == 0
        data = json.loads(output.read_text(encoding="utf-8"))
        assert [s["id"] for s in data["students"]] == [student.id]
        assert "exportDate" in data


class TestScheduleAndReminders:
    """Tests for schedule-reports and reminders."""

    def test_needs_a_target(self):
        result = runner.invoke(app, ["schedule-reports"])

        assert result.exit_code == 1
        assert "--student or --school" in result.stdout

    def test_schedule_for_student(self, tmp_path):
        runner.invoke(app, ["import-legacy", str(_write_export(tmp_path))])

        result = runner.invoke(app, ["schedule-reports", "--student", "student-9"])

        assert result.exit_code == 0
        assert "Scheduled 1 report(s)" in result.stdout
        assert "due 2099-02-08" in result.stdout

    def test_schedule_unknown_student(self):
        result = runner.invoke(app, ["schedule-reports", "-s", "ghost"])

        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_reminders_empty(self):
        result = runner.invoke(app, ["reminders"])

        assert result.exit_code == 0
        assert "Nothing needs attention" in result.stdout

    def test_reminders_table(self, student):
        result = runner.invoke(app, ["reminders"])

        assert result.exit_code == 0
        assert "Emma Carter" in result.stdout


class TestBackupCommands:
    """Tests for the backup sub-commands."""

    def test_list_empty(self):
        result = runner.invoke(app, ["backup", "list"])

        assert result.exit_code == 0
        assert "No backups yet" in result.stdout

    def test_create_and_restore(self, isolated_data_dir, student):
        created = runner.invoke(app, ["backup", "create"])
        assert created.exit_code == 0

        name = list_backups(isolated_data_dir / "backups")[0].name
        result = runner.invoke(app, ["backup", "restore", name, "--yes"])

        assert result.exit_code == 0
        assert f"Restored {name}" in result.stdout
        assert len(list_backups(isolated_data_dir / "backups")) == 2

    def test_restore_declined(self, isolated_data_dir, student):
        runner.invoke(app, ["backup", "create"])
        name = list_backups(isolated_data_dir / "backups")[0].name

        result = runner.invoke(app, ["backup", "restore", name], input="n\n")

        assert result.exit_code == 1
        assert len(list_backups(isolated_data_dir / "backups")) == 1

    def test_restore_unknown(self):
        result = runner.invoke(app, ["backup", "restore", "slp-caseload-backup-x.db", "-y"])

        assert result.exit_code == 1
        assert "Backup not found" in result.stdout

"""CLI commands for the caseload service.

- serve: Run the HTTP API with uvicorn
- init-db: Create the database schema
- import-legacy / export: Move data in and out as legacy JSON
- schedule-reports: Auto-schedule progress reports
- reminders: Show what needs attention
- backup create|list|restore: Manage database backups
"""

import json
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from caseload.config import AppConfig, configure_logging, load_app_config
from caseload.core.reminders import get_reminders
from caseload.core.report_scheduler import (
    ReportSchedulingError,
    schedule_reports_for_school,
    schedule_reports_for_student,
)
from caseload.db import init_db
from caseload.db.backup import BackupError, create_backup, list_backups, restore_backup
from caseload.db.portability import LegacyImportError, export_all, import_legacy_data

app = typer.Typer(
    name="caseload",
    help="Caseload management service for speech-language pathologists.",
    no_args_is_help=True,
)
backup_app = typer.Typer(help="Create, list and restore database backups.", no_args_is_help=True)
app.add_typer(backup_app, name="backup")

console = Console()

_PRIORITY_STYLES = {"high": "red", "medium": "yellow", "low": "dim"}


@app.callback()
def main() -> None:
    """Load .env before any command runs."""
    load_dotenv()


def _prepare() -> AppConfig:
    """Load config, set up logging and make sure the schema exists."""
    config = load_app_config()
    configure_logging(config.server.env)
    init_db(config.db_path)
    return config


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address (default from config)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port (default from config)"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the HTTP API."""
    import uvicorn

    config = load_app_config()
    uvicorn.run(
        "caseload.web.api:app",
        host=host or config.server.host,
        port=port or config.server.port,
        reload=reload,
    )


@app.command(name="init-db")
def init_database() -> None:
    """Create the database and its tables."""
    config = _prepare()
    console.print(f"[green]✓ Database ready[/green] [dim]{config.db_path}[/dim]")


@app.command(name="import-legacy")
def import_legacy(
    file: Path = typer.Argument(..., help="JSON export from the browser app"),
    append: bool = typer.Option(
        False, "--append", help="Upsert into existing data instead of replacing it"
    ),
) -> None:
    """Import a legacy JSON export."""
    _prepare()
    if not file.is_file():
        console.print(f"[red]✗ File not found: {file}[/red]")
        raise typer.Exit(code=1)

    try:
        data = json.loads(file.read_text(encoding="utf-8"))
        counts = import_legacy_data(data, replace=not append)
    except json.JSONDecodeError as e:
        console.print(f"[red]✗ Invalid JSON: {e}[/red]")
        raise typer.Exit(code=1)
    except LegacyImportError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Imported {sum(counts.values())} records[/green]")
    for key, count in counts.items():
        console.print(f"  [dim]{key}:[/dim] {count}")


@app.command()
def export(
    output: Path = typer.Argument(..., help="Where to write the JSON export"),
) -> None:
    """Export every table as legacy-compatible JSON."""
    _prepare()
    data = export_all()
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(data, indent=2), encoding="utf-8")
    console.print(f"[green]✓ Exported to {output}[/green]")


@app.command(name="schedule-reports")
def schedule_reports(
    student: str | None = typer.Option(None, "--student", "-s", help="Student ID"),
    school: str | None = typer.Option(None, "--school", help="School name"),
) -> None:
    """Auto-schedule progress reports for a student or a whole school."""
    if not student and not school:
        console.print("[red]✗ Pass --student or --school[/red]")
        raise typer.Exit(code=1)

    _prepare()
    try:
        created = (
            schedule_reports_for_student(student)
            if student
            else schedule_reports_for_school(school or "")
        )
    except ReportSchedulingError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Scheduled {len(created)} report(s)[/green]")
    for report in created:
        console.print(
            f"  {report.student_id} [dim]{report.report_type}[/dim] due {report.due_date}"
        )


@app.command()
def reminders(
    school: str | None = typer.Option(None, "--school", help="Only this school"),
) -> None:
    """Show reminders sorted by priority."""
    _prepare()
    items = get_reminders(school=school)
    if not items:
        console.print("[green]Nothing needs attention.[/green]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Priority")
    table.add_column("Student")
    table.add_column("Reminder")
    table.add_column("Due")
    for item in items:
        style = _PRIORITY_STYLES.get(item.priority, "")
        table.add_row(
            f"[{style}]{item.priority}[/{style}]",
            item.student_name,
            item.title,
            item.due_date or "",
        )
    console.print(table)


@backup_app.command("create")
def backup_create() -> None:
    """Snapshot the database."""
    config = _prepare()
    try:
        info = create_backup(config.backups_dir)
    except BackupError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]✓ Backup created:[/green] {info.name}")


@backup_app.command("list")
def backup_list() -> None:
    """List backups newest first."""
    config = _prepare()
    backups = list_backups(config.backups_dir)
    if not backups:
        console.print("[dim]No backups yet.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("Size", justify="right")
    table.add_column("Created")
    for info in backups:
        table.add_row(info.name, f"{info.size:,}", info.created_at)
    console.print(table)


@backup_app.command("restore")
def backup_restore(
    name: str = typer.Argument(..., help="Backup file name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Replace the database with a backup (a safety backup is taken first)."""
    config = _prepare()
    if not yes and not typer.confirm(f"Replace the current database with {name}?"):
        raise typer.Exit(code=1)

    try:
        safety = restore_backup(config.backups_dir, name)
    except BackupError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]✓ Restored {name}[/green] [dim](safety backup: {safety.name})[/dim]")

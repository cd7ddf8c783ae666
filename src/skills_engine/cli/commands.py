"""CLI commands for the skills engine.

Commands:
- init-db: create the SQLite schema
- load-graph: seed skills, competencies and career paths from YAML
- process-exam: run an exam record (JSON or YAML file) through the pipeline
- profile: print a user's profile snapshot
- gaps: print a user's missing MGS per career-path competency
- baseline-mapping: print the MGS of a user's owned leaf competencies
"""

from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from skills_engine.config.app_config import load_app_config
from skills_engine.coordinator.client import create_coordinator_client
from skills_engine.core.baseline_skills import build_competency_mgs_mapping
from skills_engine.core.engine import Engine, build_engine
from skills_engine.core.errors import InvalidPayloadError
from skills_engine.core.exam_normalizer import ExamPayload, normalize_payload
from skills_engine.db.database import init_db
from skills_engine.db.graph_loader import GraphLoadError, load_graph_file
from skills_engine.utils.validators import is_valid_uuid

app = typer.Typer(
    name="skills",
    help="Per-user competency coverage from exam results.",
    no_args_is_help=True,
)

console = Console()

DbOption = typer.Option(None, "--db", help="SQLite database file (defaults to config)")


def _open_db(db: Optional[Path]) -> Path:
    path = db or load_app_config().db_path
    init_db(path)
    return path


def _engine_or_exit(db: Optional[Path], user_id: Optional[str] = None) -> Engine:
    if user_id is not None and not is_valid_uuid(user_id):
        console.print(f"[red]✗ Invalid user_id format: {user_id}[/red]")
        raise typer.Exit(code=1)
    return build_engine(db_path=_open_db(db))


@app.command(name="init-db")
def init_db_command(db: Optional[Path] = DbOption) -> None:
    """Create the database schema."""
    path = _open_db(db)
    console.print(f"[green]✓ Database ready[/green]: {path}")


@app.command(name="load-graph")
def load_graph_command(
    file: Path = typer.Argument(..., help="YAML graph document"),
    db: Optional[Path] = DbOption,
) -> None:
    """Seed skills, competencies, links and career paths."""
    path = _open_db(db)
    try:
        result = load_graph_file(file, db_path=path)
    except GraphLoadError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Graph loaded[/green] from {file}")
    console.print(f"  [dim]skills:[/dim]           {result.skills}")
    console.print(f"  [dim]competencies:[/dim]     {result.competencies}")
    console.print(f"  [dim]skill links:[/dim]      {result.skill_links}")
    console.print(f"  [dim]sub-competencies:[/dim] {result.sub_competency_links}")
    console.print(f"  [dim]career paths:[/dim]     {result.career_paths}")


@app.command(name="process-exam")
def process_exam_command(
    file: Path = typer.Argument(..., help="Exam record (JSON or YAML)"),
    db: Optional[Path] = DbOption,
    deliver: bool = typer.Option(True, "--deliver/--no-deliver", help="Send outbound payloads"),
) -> None:
    """Process one exam record and show what changed."""
    if not file.exists():
        console.print(f"[red]✗ File not found: {file}[/red]")
        raise typer.Exit(code=1)

    raw = yaml.safe_load(file.read_text(encoding="utf-8"))
    try:
        payload = normalize_payload(raw)
    except InvalidPayloadError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    sink = create_coordinator_client(load_app_config().coordinator) if deliver else None
    try:
        engine = build_engine(db_path=_open_db(db), sink=sink)
        _process_and_report(engine, payload, deliver)
    finally:
        if sink is not None:
            sink.close()


def _process_and_report(engine: Engine, payload: ExamPayload, deliver: bool) -> None:
    result = engine.processor.process(payload)

    console.print(
        f"[green]✓ {payload.exam_type.value} exam processed[/green] for {payload.user_id}"
    )
    console.print(f"  [dim]acquired skills:[/dim] {len(result.acquired_skills)}")
    console.print(f"  [dim]updated:[/dim]         {', '.join(result.updated_competencies) or '-'}")
    console.print(f"  [dim]propagated:[/dim]      {', '.join(result.propagation.updated) or '-'}")
    for competency_id, error in result.write_failures.items():
        console.print(f"  [yellow]⚠ {competency_id}: {error}[/yellow]")

    if result.gap_analysis is not None:
        console.print(
            f"  [dim]gap analysis:[/dim]    {result.gap_analysis.analysis_type.value} "
            f"({len(result.gap_analysis.gaps)} competencies with gaps)"
        )

    if deliver:
        report = engine.processor.deliver(result)
        console.print(f"  [dim]delivery:[/dim]        {report.to_dict()}")


@app.command()
def profile(user_id: str = typer.Argument(...), db: Optional[Path] = DbOption) -> None:
    """Print the profile snapshot of a user."""
    engine = _engine_or_exit(db, user_id)
    console.print_json(data=engine.snapshot_builder.build(user_id))


@app.command()
def gaps(user_id: str = typer.Argument(...), db: Optional[Path] = DbOption) -> None:
    """Show missing MGS per career-path competency."""
    engine = _engine_or_exit(db, user_id)
    scope = engine.gap_selector.career_path_competencies(user_id)
    if not scope:
        console.print("[yellow]No career path for this user[/yellow]")
        return

    found = engine.gap_selector.find_gaps(user_id, scope)
    if not found:
        console.print("[green]✓ No gaps[/green]")
        return

    table = Table(title=f"Gaps for {user_id}")
    table.add_column("Competency")
    table.add_column("Missing MGS")
    for competency_name, missing in found.items():
        table.add_row(competency_name, ", ".join(s["skill_name"] for s in missing))
    console.print(table)


@app.command(name="baseline-mapping")
def baseline_mapping(user_id: str = typer.Argument(...), db: Optional[Path] = DbOption) -> None:
    """Print the MGS of every owned leaf competency."""
    engine = _engine_or_exit(db, user_id)
    mapping = build_competency_mgs_mapping(
        user_id, engine.competency_graph, engine.user_competencies
    )
    console.print_json(data=mapping)


if __name__ == "__main__":
    app()

"""Command-line inspection of the local encounter store."""

import argparse
import sys

from rich.console import Console
from rich.table import Table

from openmrs_records.config import DB_PATH, configure_logging
from openmrs_records.clinical_data.database import (
    Database,
    Encounter,
    EncounterRepository,
    RecordsError,
    init_database,
)
from openmrs_records.tasks import shutdown_executor

console = Console()


def encounter_table(encounter: Encounter) -> Table:
    """Render an encounter's observations as a table."""
    table = Table(title=f"{encounter.display or encounter.encounter_type} ({encounter.encounter_datetime})")
    table.add_column("Observation")
    table.add_column("Value", justify="right")
    table.add_column("Type", style="dim")
    for obs in encounter.observations:
        table.add_row(obs.display or obs.concept_uuid, obs.value or "", obs.value_type)
    return table


def show_vitals(repo: EncounterRepository, patient_uuid: str) -> int:
    encounter = repo.get_last_vitals_encounter(patient_uuid).result(timeout=30)
    if encounter is None:
        console.print(f"[yellow]No vitals recorded for {patient_uuid}[/yellow]")
        return 1
    console.print(encounter_table(encounter))
    return 0


def show_visit(repo: EncounterRepository, visit_id: int) -> int:
    encounters = repo.find_by_visit(visit_id)
    if not encounters:
        console.print(f"[yellow]No encounters for visit {visit_id}[/yellow]")
        return 1
    for encounter in encounters:
        console.print(encounter_table(encounter))
    return 0


def show_types(db: Database) -> int:
    table = Table(title="Encounter types")
    table.add_column("Form")
    table.add_column("Display")
    table.add_column("UUID", style="dim")
    with db.connection() as conn:
        for row in conn.execute("SELECT * FROM encounter_types ORDER BY form_name"):
            table.add_row(row["form_name"], row["display"], row["uuid"])
    console.print(table)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="openmrs-records", description=__doc__)
    parser.add_argument("--db", default=str(DB_PATH), help="SQLite database file")
    parser.add_argument("--log-level", default=None, help="Logging level (default from OPENMRS_LOG_LEVEL)")
    commands = parser.add_subparsers(dest="command", required=True)

    vitals = commands.add_parser("vitals", help="Show a patient's last vitals")
    vitals.add_argument("patient_uuid")

    visit = commands.add_parser("visit", help="Show encounters recorded under a visit")
    visit.add_argument("visit_id", type=int)

    commands.add_parser("types", help="List registered encounter types")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the openmrs-records command."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        with Database(args.db) as db:
            init_database(db)
            repo = EncounterRepository(db)
            if args.command == "vitals":
                return show_vitals(repo, args.patient_uuid)
            if args.command == "visit":
                return show_visit(repo, args.visit_id)
            return show_types(db)
    except RecordsError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        return 2
    finally:
        shutdown_executor()


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
Lead Seeding Script

Creates leads for one company, either from a CSV file or as generated sample
data, through the same bulk-create path the API uses:
- At most 50 leads per run
- One created event per lead in the audit trail
- Per-row outcome report; a failing row never stops the run

CSV columns (header row required): name, email, phone, source, notes.
Only name is required.

Usage:
    python seed_leads.py --company-id <uuid> --actor-id <uuid> --count 25
    python seed_leads.py --company-id <uuid> --actor-id <uuid> --csv leads.csv --dry-run
"""

from __future__ import annotations

import argparse
import csv
import random
import sys
from pathlib import Path
from typing import Any

# Add parent directory to path to import modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.errors import ValidationError
from domain.lead import LeadSource, validate_new_lead
from domain.profile import Actor
from repositories.client import create_supabase_client, load_settings
from repositories.lead_event_repository import LeadEventLedger
from repositories.lead_repository import LeadStore
from repositories.property_repository import PropertyDirectory
from services.automation_service import AutomationEngine
from services.bulk_operation_service import MAX_BULK_CREATE, BulkOperationCoordinator, BulkReport
from services.notification_service import LoggingNotificationDispatcher

_FIRST_NAMES = ["Sara", "Omar", "Nour", "Karim", "Lina", "Hadi", "Maya", "Rami", "Yara", "Ziad"]
_LAST_NAMES = ["Haddad", "Khoury", "Saleh", "Nasser", "Aziz", "Farah", "Mansour", "Rahal"]
_NOTES = [
    "Looking for a 2BR near the marina",
    "Budget flexible, wants to view this week",
    "Investor, interested in off-plan",
    "",
]

CSV_COLUMNS = ("name", "email", "phone", "source", "notes")


def generate_sample_leads(count: int, seed: int | None = None) -> list[dict[str, Any]]:
    """Generate `count` plausible lead templates."""
    rng = random.Random(seed)
    templates = []
    for _ in range(count):
        first = rng.choice(_FIRST_NAMES)
        last = rng.choice(_LAST_NAMES)
        templates.append({
            "name": f"{first} {last}",
            "email": f"{first.lower()}.{last.lower()}{rng.randint(1, 999)}@example.com",
            "phone": f"+9715{rng.randint(10000000, 99999999)}",
            "source": rng.choice(list(LeadSource)).value,
            "notes": rng.choice(_NOTES),
        })
    return templates


def read_csv_leads(csv_path: str) -> list[dict[str, Any]]:
    """
    Read lead templates from a CSV file.

    Empty cells are left out of the template so the usual defaults apply.

    Raises:
        FileNotFoundError: If the CSV file doesn't exist
        ValueError: If the CSV has no name column
    """
    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    with open(csv_file, "r", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        if not reader.fieldnames or "name" not in reader.fieldnames:
            raise ValueError("CSV missing required column: name")

        templates = []
        for row in reader:
            templates.append({
                key: row[key].strip()
                for key in CSV_COLUMNS
                if row.get(key) and row[key].strip()
            })
    return templates


def dry_run_report(templates: list[dict[str, Any]]) -> BulkReport:
    """Validate templates without touching the database."""
    report = BulkReport()
    for index, template in enumerate(templates[:MAX_BULK_CREATE], start=1):
        label = str(template.get("name") or f"#{index}")
        try:
            validate_new_lead(template)
        except ValidationError as e:
            report.failed(index, label, e)
            continue
        report.succeeded(index, label)
    return report


def print_report(report: BulkReport, requested: int) -> None:
    """Print the per-row outcome table and totals."""
    print()
    print("=" * 60)
    print("SEED SUMMARY")
    print("=" * 60)
    for item in report.outcomes:
        status = "created" if item.success else f"failed: {item.reason}"
        print(f"  {item.index:>3}. {item.label:<30} {status}")
    print()
    print(f"Requested:        {requested}")
    print(f"Processed:        {len(report.outcomes)}")
    print(f"Created:          {report.success_count}")
    print(f"Failed:           {report.failure_count}")
    if requested > MAX_BULK_CREATE:
        print(f"Skipped:          {requested - MAX_BULK_CREATE} (limit is {MAX_BULK_CREATE} per run)")
    print("=" * 60)


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Seed leads for a company",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # 25 generated leads
  python seed_leads.py --company-id <uuid> --actor-id <uuid>

  # Leads from a CSV, validate only
  python seed_leads.py --company-id <uuid> --actor-id <uuid> --csv leads.csv --dry-run
        """
    )

    parser.add_argument(
        "--company-id",
        required=True,
        help="Company (tenant) that owns the new leads"
    )

    parser.add_argument(
        "--actor-id",
        required=True,
        help="User recorded as the creator in the audit trail"
    )

    parser.add_argument(
        "--csv",
        dest="csv_path",
        help="CSV file with lead rows (default: generate sample leads)"
    )

    parser.add_argument(
        "--count",
        type=int,
        default=25,
        help=f"Number of sample leads to generate (default: 25, max: {MAX_BULK_CREATE})"
    )

    parser.add_argument(
        "--seed",
        type=int,
        help="Random seed for reproducible sample data"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate the leads without inserting them"
    )

    args = parser.parse_args()

    try:
        if args.csv_path:
            templates = read_csv_leads(args.csv_path)
        else:
            templates = generate_sample_leads(min(args.count, MAX_BULK_CREATE), seed=args.seed)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Company: {args.company_id}")
    print(f"Leads:   {len(templates)}")
    print(f"Dry run: {args.dry_run}")

    if args.dry_run:
        report = dry_run_report(templates)
    else:
        try:
            settings = load_settings()
        except RuntimeError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        client = create_supabase_client(settings)
        store = LeadStore(client)
        engine = AutomationEngine(
            store,
            LeadEventLedger(client),
            PropertyDirectory(client),
            LoggingNotificationDispatcher(),
        )
        actor = Actor(user_id=args.actor_id, company_id=args.company_id)
        report = BulkOperationCoordinator(store, engine).bulk_create(templates, actor)

    print_report(report, len(templates))
    return 0 if report.failure_count == 0 else 1


if __name__ == "__main__":
    sys.exit(main())

"""
Event Journal Audit Tool — independent chain integrity verification.

Connects directly to the journal database and recomputes every hash in
the chain, verifying that no notification has been altered after the fact.

Usage:
    python -m attestation_registry.ledger.audit
    python -m attestation_registry.ledger.audit --database-url sqlite:///journal.db
    python -m attestation_registry.ledger.audit --verbose
"""

from __future__ import annotations

import argparse
import sys
import time

from rich.console import Console
from rich.table import Table

from attestation_registry.config import settings
from attestation_registry.ledger.service import EventJournal

console = Console()


def run_audit(database_url: str, verbose: bool = False) -> bool:
    """
    Run a full hash chain integrity audit.

    Args:
        database_url: SQLAlchemy connection string.
        verbose: Print every journal entry if True.

    Returns:
        True if the chain is valid, False otherwise.
    """
    console.print("\n[bold blue]═══ Attestation Journal Integrity Audit ═══[/bold blue]\n")

    journal = EventJournal(database_url)

    count = journal.get_entry_count()
    console.print(f"  Entries in journal: [bold]{count}[/bold]")

    if count == 0:
        console.print("[red]✗ Journal is empty: no genesis entry to verify[/red]")
        return False

    console.print("  Verifying hash chain...", end=" ")
    start_time = time.time()

    is_valid, entries_verified, message = journal.verify_chain()

    elapsed = time.time() - start_time

    if is_valid:
        console.print("[bold green]✓ VALID[/bold green]")
        console.print(f"  Entries verified: [bold]{entries_verified}[/bold]")
        console.print(f"  Verification time: {elapsed:.3f}s")
    else:
        console.print("[bold red]✗ INVALID[/bold red]")
        console.print(f"  Failure at entry: {entries_verified}")
        console.print(f"  Reason: {message}")

    if verbose:
        console.print("\n[bold]Detailed Entry Listing:[/bold]")
        table = Table(show_lines=True)
        table.add_column("Seq", style="cyan", width=6)
        table.add_column("Event", style="green", width=24)
        table.add_column("Caller", style="yellow", width=22)
        table.add_column("Subject / Agency", width=22)
        table.add_column("Hash (first 16)", style="dim", width=18)
        table.add_column("Timestamp", width=22)

        entries = journal.get_latest_entries(limit=count)
        for entry in reversed(entries):
            table.add_row(
                str(entry.sequence_number),
                entry.event_type,
                entry.caller,
                entry.subject_id or entry.agency_address or "—",
                entry.entry_hash[:16] + "...",
                str(entry.timestamp)[:19],
            )
        console.print(table)

    console.print("\n[bold blue]═══ Audit Complete ═══[/bold blue]\n")
    return is_valid


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="Attestation Registry event journal integrity auditor"
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy connection string (defaults to .env settings)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show detailed entry listing",
    )
    args = parser.parse_args(argv)

    db_url = args.database_url or settings.database_url
    is_valid = run_audit(db_url, verbose=args.verbose)
    sys.exit(0 if is_valid else 1)


if __name__ == "__main__":
    main()

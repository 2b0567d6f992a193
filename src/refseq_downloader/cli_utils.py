"""Console output helpers for the command-line interface."""

from typing import Any, Dict, FrozenSet, Optional

import click

from .models import FetchRange, InputMode, RecordType, RunSummary

# Global flag for quiet mode
_quiet_mode = False


def set_quiet_mode(quiet: bool) -> None:
    """Set the global quiet mode flag."""
    global _quiet_mode
    _quiet_mode = quiet


def echo(message: str = "", err: bool = False, **kwargs) -> None:
    """Echo wrapper that respects quiet mode."""
    if _quiet_mode and not err:
        return
    click.echo(message, err=err, **kwargs)


def secho(message: str = "", err: bool = False, **kwargs) -> None:
    """Styled echo wrapper that respects quiet mode."""
    if _quiet_mode and not err:
        return
    click.secho(message, err=err, **kwargs)


def format_record_types(record_types: FrozenSet[RecordType]) -> str:
    return ", ".join(t.value for t in RecordType if t in record_types)


def echo_run_header(mode: InputMode, record_types: FrozenSet[RecordType],
                    tax_id: str, fetch_range: Optional[FetchRange]) -> None:
    """Print the settings a run is about to use."""
    if mode is InputMode.ACCESSIONS:
        echo("Input mode: ACCESSIONS (ACC.V or NCBI URLs)")
    else:
        echo("Input mode: GENES (symbols)")
        echo(f"TaxID: {tax_id}")
    echo(f"Download types: [{format_record_types(record_types)}]")
    if RecordType.NG in record_types and fetch_range is not None:
        echo(f"NG_ range: {fetch_range} (1-based, inclusive)")


def echo_summary(summary: RunSummary, errors: Optional[Dict[str, Any]] = None) -> None:
    """Print the end-of-run summary."""
    echo("")
    echo("=" * 60)
    echo(f"Files written: {len(summary.fetched)}")
    if summary.unresolved:
        secho(f"GeneID not found: {', '.join(summary.unresolved)}", fg='yellow')
    if summary.failed_items:
        secho(f"Failed: {', '.join(summary.failed_items)}", fg='red')
    if errors and errors.get('total_errors'):
        by_type = ", ".join(f"{name}={count}" for name, count in sorted(errors['by_type'].items()))
        echo(f"Errors: {errors['total_errors']} ({by_type})")

# ruff: noqa: I001
"""``folio-ledger`` command line.

``check-duplicates`` compares a fresh statement export with one uploaded
earlier and prints which rows are new. ``xirr`` values one or more ledger
exports (one account per file) and prints the return and investment totals.
Settings such as excluded voucher types come from ``FOLIO_LEDGER_*``
variables, read from a ``.env`` in the working directory when present.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .duplicates import RecordKind
from .logging_setup import configure_logging

# CLI spelling of each record kind.
KIND_CHOICES: dict[str, RecordKind] = {
    "ledger": RecordKind.FUND_TRANSACTION,
    "pnl": RecordKind.PNL,
    "dividend": RecordKind.DIVIDEND,
}


# ---- Command handlers ---------------------------------------------------------


def cmd_check_duplicates(
    csv_path: str,
    existing_path: str,
    *,
    kind: str = "ledger",
    account_id: int | None = None,
) -> int:
    """Reconcile a new statement against a previously uploaded one.

    Both files must be of the same ``kind``. Prints the duplicate-check
    response as JSON (camelCase keys) to stdout and returns ``0``. Errors are
    written to stderr and the function returns ``1``.
    """

    import csv
    import sys

    from .api import check_ledger_duplicates, check_statement_duplicates
    from .ingest.utils import check_ledger_header, load_statement, read_text

    record_kind = KIND_CHOICES.get(kind.strip().lower())
    if record_kind is None:
        print(
            f"Error: unknown kind {kind!r}; expected one of {', '.join(KIND_CHOICES)}",
            file=sys.stderr,
        )
        return 1

    try:
        existing = load_statement(existing_path, record_kind, account_id=account_id)
        if record_kind is RecordKind.FUND_TRANSACTION:
            text = read_text(csv_path)
            check_ledger_header(text, csv_path)
            response = check_ledger_duplicates(text, account_id=account_id, existing=existing)
        else:
            records = load_statement(csv_path, record_kind, account_id=account_id)
            response = check_statement_duplicates(records, kind=record_kind, existing=existing)
    except FileNotFoundError as e:
        print(f"Error: File not found: {e.filename}", file=sys.stderr)
        return 1
    except PermissionError as e:
        print(f"Error: Permission denied: {e.filename}", file=sys.stderr)
        return 1
    except csv.Error as e:
        print(f"Error: Failed to parse CSV: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(response.model_dump_json(by_alias=True, indent=2))
    return 0


def cmd_xirr(
    csv_paths: list[str],
    current_value: str,
    *,
    as_of: str | None = None,
) -> int:
    """Compute the money-weighted return over one or more ledger exports.

    Each file is treated as a separate account; with more than one file the
    result is the family view over all of them. Prints the XIRR response as
    JSON to stdout and returns ``0``; errors go to stderr with a return of
    ``1``.
    """

    import csv
    import sys

    from .api import calculate_xirr
    from .ingest.utils import load_statement

    if not csv_paths:
        print("Error: at least one --csv-path is required.", file=sys.stderr)
        return 1

    try:
        value = Decimal(current_value.strip().replace(",", ""))
    except InvalidOperation:
        print(f"Error: invalid --current-value: {current_value!r}", file=sys.stderr)
        return 1
    if not value.is_finite():
        print(f"Error: invalid --current-value: {current_value!r}", file=sys.stderr)
        return 1

    valuation_day: date | None = None
    if as_of:
        try:
            valuation_day = date.fromisoformat(as_of.strip())
        except ValueError:
            print(f"Error: invalid --as-of date (expected YYYY-MM-DD): {as_of!r}", file=sys.stderr)
            return 1

    # Every parsed row counts; repeated same-day deposits are distinct flows.
    transactions = []
    try:
        for account_id, path in enumerate(csv_paths, start=1):
            transactions.extend(
                load_statement(path, RecordKind.FUND_TRANSACTION, account_id=account_id)
            )
    except FileNotFoundError as e:
        print(f"Error: File not found: {e.filename}", file=sys.stderr)
        return 1
    except PermissionError as e:
        print(f"Error: Permission denied: {e.filename}", file=sys.stderr)
        return 1
    except csv.Error as e:
        print(f"Error: Failed to parse CSV: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    result = calculate_xirr(transactions, value, as_of=valuation_day)

    print(result.to_response().model_dump_json(by_alias=True, indent=2))
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Reconcile broker statement uploads and compute money-weighted returns. "
        "Loads FOLIO_LEDGER_* settings from a local .env before running."
    ),
)


# Shared path options, declared once so commands don't call typer.Option in defaults.
CSV_PATH_OPTION: OptionInfo = typer.Option(
    ...,
    "--csv-path",
    help="Path to the statement CSV to check",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)

EXISTING_OPTION: OptionInfo = typer.Option(
    ...,
    "--existing",
    help="Path to a previously uploaded statement of the same kind",
    dir_okay=False,
    file_okay=True,
    exists=False,
)

LEDGER_PATHS_OPTION: OptionInfo = typer.Option(
    ...,
    "--csv-path",
    help="Ledger CSV export; repeat for a family view over several accounts",
    dir_okay=False,
    file_okay=True,
    exists=False,
)


@app.command("check-duplicates")
def check_duplicates_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    existing: Annotated[Path, EXISTING_OPTION],
    *,
    kind: str = typer.Option("ledger", help="Statement kind: ledger, pnl or dividend."),
    account_id: int | None = typer.Option(
        None, help="Account id stamped on parsed ledger transactions."
    ),
) -> None:
    """Report which records of a new statement were already uploaded."""

    rc = cmd_check_duplicates(str(csv_path), str(existing), kind=kind, account_id=account_id)
    if rc:
        raise typer.Exit(rc)


@app.command("xirr")
def xirr_cmd(
    csv_path: Annotated[list[Path], LEDGER_PATHS_OPTION],
    *,
    current_value: str = typer.Option(..., help="Current market value of the holdings."),
    as_of: str | None = typer.Option(
        None, help="Valuation date (YYYY-MM-DD); defaults to today."
    ),
) -> None:
    """Compute XIRR and investment totals from ledger exports."""

    rc = cmd_xirr([str(p) for p in csv_path], current_value, as_of=as_of)
    if rc:
        raise typer.Exit(rc)


@app.callback(invoke_without_command=True)
def _root(ctx: typer.Context) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging()

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m folio_ledger.cli`
    app()

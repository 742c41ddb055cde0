# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/fixtrack/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Ledger inspection:
# - python -m flask ledger verify [--kind orders]
#   Compare stored totals, paid amounts and payment status with their source rows.
#
# Cash sessions:
# - python -m flask sessions current
#   Show the open session, if any.
# - python -m flask sessions open --opening-balance 100
# - python -m flask sessions close <session_id> --counted 250 --withdrawal 200

import click
from flask.cli import with_appcontext
from sqlalchemy import func

from .extensions import db
from .services import cash_session_service
from .services.errors import LedgerError
from .services.kinds import KINDS, get_kind
from .services.payment_service import derive_payment_status


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Schema ready.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('ledger')
def ledger_group():
    """Ledger consistency inspection."""


def _sum_by_document(model, column):
    rows = (
        db.session.query(model.document_id, func.coalesce(func.sum(column), 0.0))
        .group_by(model.document_id)
        .all()
    )
    return {document_id: round(total, 2) for document_id, total in rows}


@ledger_group.command('verify')
@click.option('--kind', 'kind_code', type=click.Choice(sorted(KINDS)), default=None, help='Only check one document kind')
@with_appcontext
def verify_ledger(kind_code):
    """
    Report documents whose derived values drifted from their rows.

    Exits with status 1 when any drift is found.
    """
    kinds = [get_kind(kind_code)] if kind_code else list(KINDS.values())
    problems = 0

    for kind in kinds:
        item_totals = _sum_by_document(kind.item_model, kind.item_model.total_price)
        paid_totals = _sum_by_document(kind.payment_model, kind.payment_model.amount)

        for document in db.session.query(kind.document_model).all():
            expected_total = item_totals.get(document.id, 0.0)
            expected_paid = paid_totals.get(document.id, 0.0)
            expected_status = derive_payment_status(expected_paid, expected_total)

            issues = []
            if abs((document.total_amount or 0.0) - expected_total) > 0.005:
                issues.append(f"total {document.total_amount:.2f} != items {expected_total:.2f}")
            if abs((document.paid_amount or 0.0) - expected_paid) > 0.005:
                issues.append(f"paid {document.paid_amount:.2f} != payments {expected_paid:.2f}")
            if document.payment_status != expected_status:
                issues.append(f"payment_status {document.payment_status.value} != {expected_status.value}")

            if issues:
                problems += 1
                click.echo(f"FAIL {kind.label} {document.number}: " + "; ".join(issues))

    if problems:
        click.echo(f"FAIL {problems} document(s) inconsistent")
        raise SystemExit(1)
    click.echo("PASS All documents consistent")


@click.group('sessions')
def sessions_group():
    """Cash session inspection and control."""


@sessions_group.command('current')
@with_appcontext
def current_session():
    """Show the open cash session."""
    session = cash_session_service.get_current_session()
    if not session:
        click.echo("No open session.")
        click.echo(f"Last closing balance: {cash_session_service.get_last_closing_balance():.2f}")
        return
    click.echo(f"Session {session.id} opened {session.start_time:%Y-%m-%d %H:%M} with {session.opening_balance:.2f}")


@sessions_group.command('open')
@click.option('--opening-balance', type=float, default=None, help='Defaults to the last closing balance')
@click.option('--notes', default=None)
@with_appcontext
def open_session(opening_balance, notes):
    """Open a cash session."""
    if opening_balance is None:
        opening_balance = cash_session_service.get_last_closing_balance()
    try:
        session = cash_session_service.start_session(opening_balance=opening_balance, notes=notes)
    except LedgerError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Session {session.id} opened with {session.opening_balance:.2f}")


@sessions_group.command('close')
@click.argument('session_id')
@click.option('--counted', type=float, required=True, help='Cash counted in the drawer')
@click.option('--withdrawal', type=float, default=0.0, help='Cash taken out at close')
@click.option('--notes', default=None)
@with_appcontext
def close_session(session_id, counted, withdrawal, notes):
    """Close a cash session."""
    try:
        session = cash_session_service.close_session(session_id, counted, withdrawal, notes)
    except LedgerError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Session {session.id} closed at {session.closing_balance:.2f}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(ledger_group)
    app.cli.add_command(sessions_group)

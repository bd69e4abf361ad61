"""CLI tools for helpdesk administration."""

from uuid import UUID

import click

from helpdesk.core.errors import HelpdeskError
from helpdesk.core.structured_logging import configure_logging
from helpdesk.db.base import Base
from helpdesk.db.session import SessionLocal, engine
from helpdesk.services import merge_service


@click.group()
def cli():
    """Helpdesk CLI tools."""
    configure_logging()


@cli.command()
def init_db():
    """
    Create all tables directly from the models.

    Intended for local SQLite runs; PostgreSQL deployments use
    `alembic upgrade head` instead.
    """
    import helpdesk.db.models  # noqa: F401  (registers tables)

    Base.metadata.create_all(bind=engine)
    click.echo(f"✓ Schema created on {engine.url.render_as_string(hide_password=True)}")


@cli.command()
@click.option("--primary", "primary_id", required=True, type=click.UUID, help="Customer to keep")
@click.option("--secondary", "secondary_id", required=True, type=click.UUID, help="Customer to fold in and delete")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt")
def merge_customers(primary_id: UUID, secondary_id: UUID, yes: bool):
    """
    Merge two customer records. Irreversible.

    Example:
        helpdesk merge-customers --primary <uuid> --secondary <uuid>
    """
    if not yes:
        click.confirm(f"Merge {secondary_id} into {primary_id} and delete {secondary_id}?", abort=True)

    db = SessionLocal()
    try:
        result = merge_service.merge_customers(db, primary_id, secondary_id)
        click.echo(f"✓ Merged {result.secondary.email} into {result.primary.email}")
        click.echo(f"  Tickets moved: {result.tickets_moved}")
        click.echo(f"  Ticket count: {result.primary.ticket_count}")
    except HelpdeskError as e:
        click.echo(f"❌ Error: {e}")
        raise click.exceptions.Exit(1)
    finally:
        db.close()


@cli.command()
def list_duplicates():
    """List customers flagged as possible duplicates."""
    db = SessionLocal()
    try:
        pairs = merge_service.list_possible_duplicates(db)
        if not pairs:
            click.echo("No possible duplicates pending review")
            return
        for pair in pairs:
            click.echo(
                f"{pair.customer.id}  {pair.customer.name} <{pair.customer.email}>"
                f"  ~  {pair.candidate.id}  {pair.candidate.name} <{pair.candidate.email}>"
            )
    finally:
        db.close()


if __name__ == "__main__":
    cli()

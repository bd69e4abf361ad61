"""Tests for the helpdesk admin CLI."""

import uuid

import pytest
from click.testing import CliRunner
from sqlalchemy.orm import sessionmaker

from helpdesk import cli as cli_module
from helpdesk.db.models import Customer


@pytest.fixture
def runner(engine, monkeypatch):
    monkeypatch.setattr(
        cli_module, "SessionLocal", sessionmaker(autocommit=False, autoflush=False, bind=engine)
    )
    return CliRunner()


def test_list_duplicates_empty(runner):
    result = runner.invoke(cli_module.cli, ["list-duplicates"])
    assert result.exit_code == 0
    assert "No possible duplicates" in result.output


def test_list_duplicates_shows_pairs(runner, make_customer, db):
    original = make_customer("John Smith", "john@example.com")
    flagged = make_customer("Jon Smith", "jon@example.com")
    flagged.possible_duplicate_of = original.id
    db.commit()

    result = runner.invoke(cli_module.cli, ["list-duplicates"])
    assert result.exit_code == 0
    assert "jon@example.com" in result.output
    assert "john@example.com" in result.output


def test_merge_customers_command(runner, make_customer, db):
    primary = make_customer("Jane Doe", "jane@example.com")
    secondary = make_customer("Janet Roe", "janet@example.com")
    primary_id, secondary_id = primary.id, secondary.id
    # Release the shared in-memory connection before the CLI session uses it
    db.rollback()

    result = runner.invoke(
        cli_module.cli,
        ["merge-customers", "--primary", str(primary_id), "--secondary", str(secondary_id), "--yes"],
    )

    assert result.exit_code == 0, result.output
    assert "Merged janet@example.com into jane@example.com" in result.output
    db.expire_all()
    assert db.get(Customer, secondary_id) is None


def test_merge_customers_unknown_id_fails(runner, make_customer, db):
    primary_id = make_customer("Jane Doe", "jane@example.com").id
    db.rollback()

    result = runner.invoke(
        cli_module.cli,
        ["merge-customers", "--primary", str(primary_id), "--secondary", str(uuid.uuid4()), "--yes"],
    )

    assert result.exit_code == 1
    assert "Error" in result.output

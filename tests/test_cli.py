"""Admin CLI commands."""

import pytest
from typer.testing import CliRunner

from pawrefer import cli
from pawrefer.rewards.service import DEFAULT_REWARD_TEMPLATES, RewardService
from pawrefer.users.service import UserService

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_database(monkeypatch, database, provider):
    monkeypatch.setattr(cli, "db", database)
    monkeypatch.setattr(cli, "identity_provider", provider)


def test_seed_templates(database):
    result = runner.invoke(cli.app, ["seed-templates"])

    assert result.exit_code == 0
    assert f"Added {len(DEFAULT_REWARD_TEMPLATES)} reward templates" in result.output
    assert len(RewardService(database).list_templates()) == len(DEFAULT_REWARD_TEMPLATES)

    again = runner.invoke(cli.app, ["seed-templates"])
    assert "already exist" in again.output


def test_make_admin(database, make_user):
    make_user("u1", email="u1@example.com")

    result = runner.invoke(cli.app, ["make-admin", "u1@example.com"])

    assert result.exit_code == 0
    assert UserService(database).get_role("u1") == "admin"


def test_make_admin_unknown_email():
    result = runner.invoke(cli.app, ["make-admin", "nobody@example.com"])

    assert result.exit_code == 1
    assert "User not found" in result.output


def test_users_table(make_user):
    make_user("u1", email="u1@example.com", referral_count=12)

    result = runner.invoke(cli.app, ["users"])

    assert result.exit_code == 0
    assert "U1" in result.output

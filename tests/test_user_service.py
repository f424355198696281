"""Account provisioning and admin promotion."""

import pytest

from pawrefer.errors import NotFoundError, ValidationError
from pawrefer.users.service import UserService


@pytest.fixture
def users(database):
    return UserService(database)


def test_ensure_user_creates_account_with_zero_counters(users, provider):
    identity = provider.add_account("u1", email="u1@example.com", display_name="Uma")

    user = users.ensure_user(identity)

    assert user.role == "user"
    assert user.referral_count == 0
    assert user.rewards_claimed == 0
    assert user.display_name == "Uma"
    assert user.last_login_at is not None


def test_ensure_user_keeps_stored_values(users, provider, make_user):
    make_user("u1", display_name="Chosen Name", role="admin", referral_count=4)
    identity = provider.add_account("u1", display_name="Provider Name")

    user = users.ensure_user(identity)

    assert user.display_name == "Chosen Name"
    assert user.role == "admin"
    assert user.referral_count == 4


def test_get_role_reads_stored_role(users, make_user):
    make_user("u1", role="admin")

    assert users.get_role("u1") == "admin"
    assert users.get_role("ghost") is None


def test_update_profile(users, make_user):
    make_user("u1")

    assert users.update_profile("u1", "  New Name ").display_name == "New Name"
    with pytest.raises(ValidationError):
        users.update_profile("u1", " ")


class TestPromotion:
    def test_sets_role_and_merges_claims(self, users, provider, make_user):
        make_user("u1", email="u1@example.com")
        provider.add_account("u1", email="u1@example.com", claims={"beta": True})

        result = users.promote_to_admin("u1@example.com", provider)

        assert result.user_id == "u1"
        assert result.requires_relogin
        assert "sign out" in result.message
        assert users.get_role("u1") == "admin"
        assert provider.accounts["u1"].claims == {"beta": True, "role": "admin"}

    def test_creates_missing_row_for_provider_account(self, users, provider):
        provider.add_account("u2", email="u2@example.com")

        users.promote_to_admin("u2@example.com", provider)

        assert users.get_user("u2").role == "admin"

    def test_falls_back_to_stored_email(self, users, provider, make_user):
        make_user("u3", email="legacy@example.com")

        users.promote_to_admin("legacy@example.com", provider)

        assert users.get_role("u3") == "admin"
        assert provider.claim_updates == [("u3", {"role": "admin"})]

    def test_unknown_email(self, users, provider):
        with pytest.raises(NotFoundError):
            users.promote_to_admin("nobody@example.com", provider)
        assert provider.claim_updates == []

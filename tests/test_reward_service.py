"""Reward claims, claim review and templates."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import select

from pawrefer.errors import NoRewardsAvailableError, NotFoundError, ValidationError
from pawrefer.rewards import service as service_module
from pawrefer.rewards.service import (
    DEFAULT_REWARD_TEMPLATES,
    MAX_CLAIM_ATTEMPTS,
    ClaimConflictError,
    RewardService,
)
from pawrefer.storage.models import Reward, RewardClaim, TemplateStatus
from pawrefer.users.service import UserService


@pytest.fixture
def rewards(database):
    return RewardService(database)


def claimed_counter(database, uid):
    return UserService(database).get_user(uid).rewards_claimed


class TestClaimReward:
    def test_claim_creates_pending_claim_and_bumps_counter(self, database, rewards, make_user):
        make_user("u1", referral_count=23, rewards_claimed=1)

        claim = rewards.claim_reward("u1")

        assert claim.status == "pending"
        assert claim.user_id == "u1"
        assert claim.template_id is None
        assert claimed_counter(database, "u1") == 2

        status, claims = rewards.get_user_rewards("u1")
        assert status.pending_rewards == 0
        assert [c.id for c in claims] == [claim.id]

    def test_nothing_to_claim_is_rejected_without_changes(self, database, rewards, make_user):
        make_user("u1", referral_count=9)

        with pytest.raises(NoRewardsAvailableError) as exc_info:
            rewards.claim_reward("u1")

        assert exc_info.value.status_code == 400
        assert str(exc_info.value) == "No rewards available to claim"
        assert claimed_counter(database, "u1") == 0
        assert rewards.count_claims() == 0

    def test_claimed_above_earned_cannot_claim(self, rewards, make_user):
        make_user("u1", referral_count=5, rewards_claimed=2)

        with pytest.raises(NoRewardsAvailableError):
            rewards.claim_reward("u1")

    def test_unknown_user(self, rewards):
        with pytest.raises(NotFoundError):
            rewards.claim_reward("ghost")

    def test_claims_stop_at_earned_count(self, database, rewards, make_user):
        make_user("u1", referral_count=20)

        rewards.claim_reward("u1")
        rewards.claim_reward("u1")
        with pytest.raises(NoRewardsAvailableError):
            rewards.claim_reward("u1")

        assert claimed_counter(database, "u1") == 2
        assert rewards.count_claims() == 2

    def test_retries_after_losing_counter_race(self, database, rewards, make_user, monkeypatch):
        make_user("u1", referral_count=30, rewards_claimed=1)
        real = service_module.compute_reward_status
        calls = []

        def stale_once(referral_count, rewards_claimed, per_reward=None):
            calls.append(rewards_claimed)
            if len(calls) == 1:
                # Looks like the read happened before another claim committed
                return real(referral_count, rewards_claimed - 1, per_reward)
            return real(referral_count, rewards_claimed, per_reward)

        monkeypatch.setattr(service_module, "compute_reward_status", stale_once)

        rewards.claim_reward("u1")

        assert len(calls) == 2
        assert claimed_counter(database, "u1") == 2
        assert rewards.count_claims() == 1

    def test_gives_up_after_repeated_conflicts(self, database, rewards, make_user, monkeypatch):
        make_user("u1", referral_count=30, rewards_claimed=1)
        real = service_module.compute_reward_status
        calls = []

        def always_stale(referral_count, rewards_claimed, per_reward=None):
            calls.append(rewards_claimed)
            return real(referral_count, rewards_claimed - 1, per_reward)

        monkeypatch.setattr(service_module, "compute_reward_status", always_stale)

        with pytest.raises(ClaimConflictError):
            rewards.claim_reward("u1")

        assert len(calls) == MAX_CLAIM_ATTEMPTS
        assert claimed_counter(database, "u1") == 1
        assert rewards.count_claims() == 0

    def test_concurrent_claims_consume_one_reward(self, database, rewards, make_user):
        make_user("u1", referral_count=10)
        workers = 8
        barrier = threading.Barrier(workers)

        def claim():
            service = RewardService(database)
            barrier.wait()
            try:
                return service.claim_reward("u1")
            except (NoRewardsAvailableError, ClaimConflictError):
                return None

        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(lambda _: claim(), range(workers)))

        assert len([r for r in results if r is not None]) == 1
        assert claimed_counter(database, "u1") == 1
        assert rewards.count_claims() == 1


class TestClaimTemplates:
    def test_claim_copies_template_fields(self, rewards, make_user):
        make_user("u1", referral_count=10)
        template = rewards.create_template("Movie Ticket", "A free movie ticket", 250)

        claim = rewards.claim_reward("u1", template_id=template.id)

        assert claim.template_id == template.id
        assert claim.name == "Movie Ticket"
        assert claim.description == "A free movie ticket"
        assert claim.points_required == 250

    def test_default_id_means_no_template(self, rewards, make_user):
        make_user("u1", referral_count=10)

        claim = rewards.claim_reward("u1", template_id="default")

        assert claim.template_id is None
        assert claim.name is None

    def test_unknown_template_is_not_found(self, database, rewards, make_user):
        make_user("u1", referral_count=10)

        with pytest.raises(NotFoundError):
            rewards.claim_reward("u1", template_id="missing")
        assert claimed_counter(database, "u1") == 0

    def test_inactive_template_is_rejected(self, database, rewards, make_user):
        make_user("u1", referral_count=10)
        template = rewards.create_template(
            "Old Perk", None, 100, status=TemplateStatus.INACTIVE
        )

        with pytest.raises(ValidationError):
            rewards.claim_reward("u1", template_id=template.id)
        assert claimed_counter(database, "u1") == 0

    def test_claim_id_cannot_be_used_as_template(self, rewards, make_user):
        make_user("u1", referral_count=20)
        first = rewards.claim_reward("u1")

        with pytest.raises(NotFoundError):
            rewards.claim_reward("u1", template_id=first.id)


class TestClaimReview:
    def test_approve_sets_processed_at(self, rewards, make_user):
        make_user("u1", referral_count=10)
        claim = rewards.claim_reward("u1")

        approved = rewards.approve_claim(claim.id)

        assert approved.status == "approved"
        assert approved.processed_at is not None

    def test_reject_keeps_claimed_counter(self, database, rewards, make_user):
        make_user("u1", referral_count=10)
        claim = rewards.claim_reward("u1")

        rejected = rewards.reject_claim(claim.id)

        assert rejected.status == "rejected"
        assert claimed_counter(database, "u1") == 1

    def test_only_pending_claims_can_be_processed(self, rewards, make_user):
        make_user("u1", referral_count=10)
        claim = rewards.claim_reward("u1")
        rewards.approve_claim(claim.id)

        with pytest.raises(ValidationError):
            rewards.reject_claim(claim.id)

    def test_unknown_claim(self, rewards):
        with pytest.raises(NotFoundError):
            rewards.approve_claim("missing")

    def test_list_claims_joins_user_name(self, rewards, make_user):
        make_user("u1", display_name="Dana", referral_count=10)
        rewards.claim_reward("u1")
        rewards.create_template("Coffee Gift Card", None, 100)

        rows = rewards.list_claims()

        assert len(rows) == 1
        claim, name = rows[0]
        assert isinstance(claim, RewardClaim)
        assert name == "Dana"
        assert rewards.list_claims(status="approved") == []


class TestTemplates:
    def test_seed_is_idempotent(self, rewards):
        added = rewards.seed_default_templates()
        again = rewards.seed_default_templates()

        assert sorted(t.name for t in added) == sorted(t["name"] for t in DEFAULT_REWARD_TEMPLATES)
        assert again == []
        assert len(rewards.list_templates()) == len(DEFAULT_REWARD_TEMPLATES)

    def test_seed_only_adds_missing_names(self, rewards):
        rewards.create_template("Movie Ticket", "custom text", 300)

        added = rewards.seed_default_templates()

        assert len(added) == len(DEFAULT_REWARD_TEMPLATES) - 1
        assert "Movie Ticket" not in {t.name for t in added}

    def test_templates_and_claims_never_mix(self, database, rewards, make_user):
        make_user("u1", referral_count=10)
        rewards.seed_default_templates()
        rewards.claim_reward("u1")

        templates = rewards.list_templates()
        claims = rewards.list_claims()

        assert len(templates) == len(DEFAULT_REWARD_TEMPLATES)
        assert len(claims) == 1
        with database.session() as session:
            assert len(list(session.scalars(select(Reward)))) == len(DEFAULT_REWARD_TEMPLATES) + 1

    def test_active_only_filter(self, rewards):
        rewards.create_template("Active", None, 100)
        rewards.create_template("Hidden", None, 100, status=TemplateStatus.INACTIVE)

        assert [t.name for t in rewards.list_templates(active_only=True)] == ["Active"]

    def test_update_and_delete(self, rewards):
        template = rewards.create_template("Draft", None, 100)

        updated = rewards.update_template(template.id, points_required=150, status="inactive")
        assert updated.points_required == 150
        assert updated.status == "inactive"

        rewards.delete_template(template.id)
        assert rewards.list_templates() == []

    def test_update_rejects_null_required_fields(self, rewards):
        template = rewards.create_template("Draft", None, 100)

        with pytest.raises(ValidationError):
            rewards.update_template(template.id, name=None)
        with pytest.raises(ValidationError):
            rewards.update_template(template.id, status="archived")

        assert rewards.list_templates()[0].name == "Draft"

    def test_update_rejects_unknown_fields(self, rewards):
        template = rewards.create_template("Draft", None, 100)

        with pytest.raises(ValidationError):
            rewards.update_template(template.id, user_id="u1")

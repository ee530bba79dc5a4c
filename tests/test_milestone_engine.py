"""
Tests for the Milestone Engine

Tests cover:
- Claimable amount (incremental slices, thresholds, ordering)
- Claiming milestones and the payout effect
- Double-claim protection and the 7-day claim interval
- Claimer roles and medical-authority co-signing
- Monotonic total_claimed bounded by current_funds
"""

import pytest

from aidpod.errors import (
    AlreadyClaimed,
    CampaignNotClaimable,
    IntervalNotElapsed,
    MilestoneNotFound,
    MilestoneOutOfOrder,
    ThresholdNotMet,
    UnauthorizedClaimer,
)
from aidpod.milestone_engine import (
    claim_milestone,
    claimable_amount,
    claimable_milestones,
    next_claimable_milestone,
)
from aidpod.milestones import find_milestone
from aidpod.models import SECONDS_PER_DAY, CampaignStatus, EffectKind, Role
from aidpod.refunds import max_refund

DAY = SECONDS_PER_DAY


class TestClaimableAmount:
    """Test suite for claimable_amount."""

    def test_first_milestone_releases_threshold(self, campaign, fund):
        record = fund(campaign, 30_000)

        assert claimable_amount(record, 25) == 25_000

    def test_threshold_not_met(self, campaign, fund):
        record = fund(campaign, 24_999)

        with pytest.raises(ThresholdNotMet, match="needs 25000"):
            claimable_amount(record, 25)

    def test_unknown_milestone(self, campaign):
        with pytest.raises(MilestoneNotFound):
            claimable_amount(campaign, 30)

    def test_higher_milestone_requires_lower_claims(self, campaign, fund):
        record = fund(campaign, 60_000)

        with pytest.raises(MilestoneOutOfOrder, match="Claim the 25% milestone"):
            claimable_amount(record, 50)

    def test_second_milestone_releases_only_the_increment(self, campaign, fund, now):
        # Arrange
        record = fund(campaign, 60_000)
        record, _ = claim_milestone(record, 25, Role.CREATOR, now=now + DAY)

        # Act
        amount = claimable_amount(record, 50)

        # Assert
        assert amount == 25_000


class TestClaimMilestone:
    """Test suite for claim_milestone."""

    def test_scenario_first_claim(self, campaign, fund, now):
        """Goal 100,000 funded with 30,000: the 25% milestone pays 25,000."""
        # Arrange
        record = fund(campaign, 30_000)
        claim_time = now + 2 * DAY

        # Act
        record, effect = claim_milestone(record, 25, Role.CREATOR, now=claim_time)

        # Assert
        assert record.total_claimed == 25_000
        milestone = find_milestone(record.milestones, 25)
        assert milestone.claimed
        assert milestone.claim_date == claim_time
        assert milestone.amount_claimed == 25_000
        assert record.last_updated == claim_time
        assert effect.kind == EffectKind.PAYOUT
        assert effect.destination == "BENEFICIARY"
        assert effect.amount == 25_000

    def test_requires_medical_authority_when_verification_required(self, campaign, fund, now):
        record = fund(campaign, 30_000)

        _, effect = claim_milestone(record, 25, Role.BENEFICIARY, now=now + DAY)

        assert effect.required_authorizers == ("BENEFICIARY", "HOSPITAL")

    def test_no_co_signer_without_verification(self, campaign, fund, now):
        record = fund(campaign.with_changes(now, verification_required=False), 30_000)

        _, effect = claim_milestone(record, 25, Role.CREATOR, now=now + DAY)

        assert effect.required_authorizers == ("CREATOR",)

    @pytest.mark.parametrize("role", [Role.MEDICAL_AUTHORITY, Role.EMERGENCY_CONTACT])
    def test_only_creator_or_beneficiary_can_claim(self, campaign, fund, now, role):
        record = fund(campaign, 30_000)

        with pytest.raises(UnauthorizedClaimer):
            claim_milestone(record, 25, role, now=now + DAY)

    def test_second_claim_of_same_milestone_fails(self, campaign, fund, now):
        # Arrange
        record = fund(campaign, 30_000)
        record, _ = claim_milestone(record, 25, Role.CREATOR, now=now + DAY)

        # Act & Assert
        with pytest.raises(AlreadyClaimed):
            claim_milestone(record, 25, Role.CREATOR, now=now + 30 * DAY)

    def test_next_claim_within_interval_fails(self, campaign, fund, now):
        """Funds cover 50% but the next claim comes too soon after the first."""
        # Arrange
        record = fund(campaign, 60_000)
        record, _ = claim_milestone(record, 25, Role.CREATOR, now=now + DAY)

        # Act & Assert
        with pytest.raises(IntervalNotElapsed):
            claim_milestone(record, 50, Role.CREATOR, now=now + 7 * DAY)

    def test_next_claim_after_interval(self, campaign, fund, now):
        # Arrange
        record = fund(campaign, 60_000)
        record, _ = claim_milestone(record, 25, Role.CREATOR, now=now + DAY)

        # Act
        record, effect = claim_milestone(record, 50, Role.BENEFICIARY, now=now + 8 * DAY)

        # Assert
        assert effect.amount == 25_000
        assert record.total_claimed == 50_000

    @pytest.mark.parametrize("status", [
        CampaignStatus.PAUSED, CampaignStatus.CANCELLED, CampaignStatus.COMPLETED,
    ])
    def test_inactive_campaign_cannot_claim(self, campaign, fund, now, status):
        record = fund(campaign, 30_000).with_changes(now, status=status)

        with pytest.raises(CampaignNotClaimable):
            claim_milestone(record, 25, Role.CREATOR, now=now + DAY)

    def test_underfunded_campaign_cannot_claim_after_deadline(self, campaign, fund, now):
        """Past the deadline below goal, the escrow stays available for refunds."""
        # Arrange
        record = fund(campaign, 30_000)
        late = campaign.deadline + 31 * DAY
        before = max_refund(record, 30_000, now=late)

        # Act & Assert
        with pytest.raises(CampaignNotClaimable, match="missed its goal"):
            claim_milestone(record, 25, Role.CREATOR, now=late)

        assert before == 30_000
        assert claimable_milestones(record, now=late) == []
        assert max_refund(record, 30_000, now=late) == 30_000

    def test_underfunded_campaign_can_claim_until_deadline(self, campaign, fund, now):
        record = fund(campaign, 30_000)

        record, effect = claim_milestone(record, 25, Role.CREATOR, now=campaign.deadline)

        assert effect.amount == 25_000

    def test_funded_campaign_can_claim_after_deadline(self, campaign, fund, now):
        record = fund(campaign, 100_000)

        record, effect = claim_milestone(
            record, 25, Role.CREATOR, now=campaign.deadline + 31 * DAY
        )

        assert effect.amount == 25_000
        assert record.total_claimed == 25_000

    def test_total_claimed_is_monotonic_and_bounded(self, campaign, fund, now):
        """Claim every milestone a week apart and check the invariants."""
        # Arrange
        record = fund(campaign, 110_000)
        claim_time = now + DAY
        history = [record.total_claimed]

        # Act
        for percentage in (25, 50, 75, 100):
            record, _ = claim_milestone(record, percentage, Role.CREATOR, now=claim_time)
            history.append(record.total_claimed)
            claim_time += 7 * DAY

        # Assert
        assert history == [0, 25_000, 50_000, 75_000, 100_000]
        assert all(total <= record.current_funds for total in history)
        assert sum(m.amount_claimed for m in record.milestones) == record.total_claimed

    def test_rejected_claim_leaves_record_untouched(self, campaign, fund, now):
        record = fund(campaign, 10_000)

        with pytest.raises(ThresholdNotMet):
            claim_milestone(record, 25, Role.CREATOR, now=now + DAY)

        assert record.total_claimed == 0
        assert not find_milestone(record.milestones, 25).claimed


class TestClaimableMilestones:
    """Test suite for claimable milestone queries."""

    def test_nothing_claimable_without_funds(self, campaign, now):
        assert claimable_milestones(campaign, now=now) == []
        assert next_claimable_milestone(campaign, now=now) is None

    def test_only_next_in_order_is_claimable(self, campaign, fund, now):
        record = fund(campaign, 80_000)

        claimable = claimable_milestones(record, now=now + DAY)

        assert [m.percentage for m in claimable] == [25]
        assert next_claimable_milestone(record, now=now + DAY).percentage == 25

    def test_interval_blocks_claimable_list(self, campaign, fund, now):
        record = fund(campaign, 80_000)
        record, _ = claim_milestone(record, 25, Role.CREATOR, now=now + DAY)

        assert claimable_milestones(record, now=now + 2 * DAY) == []
        assert [m.percentage for m in claimable_milestones(record, now=now + 8 * DAY)] == [50]

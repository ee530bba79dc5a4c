"""
Milestone Engine

Decides which milestones are claimable and how much each one releases.

A milestone at P% unlocks once the campaign holds floor(goal * P / 100).
Claiming it pays the beneficiary only the slice above what lower
milestones already released, so funds are never paid out twice.
Claims go in ascending order and at least a week apart. Once the deadline
passes without the goal being reached, nothing more is released.
"""

import logging
from typing import List, Optional

from aidpod.config import DEFAULT_POLICY, CampaignPolicy
from aidpod.contributions import check_amount
from aidpod.errors import (
    AlreadyClaimed,
    CampaignNotClaimable,
    ClaimError,
    IntervalNotElapsed,
    MilestoneNotFound,
    MilestoneOutOfOrder,
    NothingToClaim,
    ThresholdNotMet,
    UnauthorizedClaimer,
)
from aidpod.milestones import claimed_below, find_milestone, last_claim_time, mark_claimed
from aidpod.models import (
    CampaignRecord,
    CampaignStatus,
    Effect,
    EffectKind,
    Milestone,
    Outcome,
    Role,
    resolve_now,
)

logger = logging.getLogger(__name__)

CLAIMER_ROLES = (Role.CREATOR, Role.BENEFICIARY)


def _claimable_milestone(record: CampaignRecord, percentage: int) -> Milestone:
    milestone = find_milestone(record.milestones, percentage)
    if milestone is None:
        raise MilestoneNotFound(
            f"Campaign {record.campaign_id} has no {percentage}% milestone"
        )
    if milestone.claimed:
        raise AlreadyClaimed(f"The {percentage}% milestone was already claimed")
    return milestone


def claimable_amount(record: CampaignRecord, percentage: int) -> int:
    """
    Amount the given milestone would release right now.

    Args:
        record: Current campaign record
        percentage: Milestone to evaluate

    Returns:
        Incremental amount above previously released milestones

    Raises:
        ClaimError subclass when the milestone cannot release funds
    """
    milestone = _claimable_milestone(record, percentage)

    pending = [
        m.percentage for m in record.milestones
        if m.percentage < percentage and not m.claimed
    ]
    if pending:
        raise MilestoneOutOfOrder(
            f"Claim the {pending[0]}% milestone before the {percentage}% milestone"
        )

    threshold = milestone.threshold(record.total_goal)
    if record.current_funds < threshold:
        raise ThresholdNotMet(
            f"The {percentage}% milestone needs {threshold}, campaign holds {record.current_funds}"
        )

    amount = min(record.current_funds, threshold) - claimed_below(record.milestones, percentage)
    if amount <= 0:
        raise NothingToClaim(f"The {percentage}% milestone has nothing left to release")
    return amount


def claim_milestone(
    record: CampaignRecord,
    percentage: int,
    claimer: Role,
    now: Optional[int] = None,
    policy: CampaignPolicy = DEFAULT_POLICY,
) -> Outcome:
    """
    Claim a milestone and release its slice to the beneficiary.

    Args:
        record: Current campaign record
        percentage: Milestone to claim
        claimer: Role requesting the claim (creator or beneficiary)
        now: Current Unix timestamp
        policy: Limits to apply

    Returns:
        Outcome with the updated record and a PAYOUT effect

    Raises:
        ClaimError subclass when the claim is not allowed
    """
    now = resolve_now(now)
    amount = _check_claim(record, percentage, claimer, now, policy)
    new_claimed = record.total_claimed + amount
    check_amount(new_claimed, "Total claimed")

    authorizers = [record.address_of(claimer)]
    if record.verification_required:
        authorizers.append(record.medical_authority)

    logger.info(
        "Campaign %s released %s for the %s%% milestone",
        record.campaign_id, amount, percentage,
    )
    updated = record.with_changes(
        now,
        total_claimed=new_claimed,
        milestones=mark_claimed(record.milestones, percentage, now, amount),
    )
    effect = Effect.create(
        EffectKind.PAYOUT, record.beneficiary, amount, authorizers=authorizers
    )
    return Outcome(updated, effect)


def _check_claim(record, percentage, claimer, now, policy):
    if record.status != CampaignStatus.ACTIVE:
        raise CampaignNotClaimable(
            f"Campaign {record.campaign_id} is {record.status.name}, milestones cannot be claimed"
        )
    if now > record.deadline and record.current_funds < record.total_goal:
        raise CampaignNotClaimable(
            f"Campaign {record.campaign_id} missed its goal by the deadline, "
            "escrow is held for refunds"
        )
    _claimable_milestone(record, percentage)

    if claimer not in CLAIMER_ROLES:
        raise UnauthorizedClaimer(f"{claimer.value} cannot claim milestones")

    last_claim = last_claim_time(record.milestones)
    if last_claim and now < last_claim + policy.min_claim_interval:
        raise IntervalNotElapsed(
            f"Next claim allowed at {last_claim + policy.min_claim_interval}"
        )

    return claimable_amount(record, percentage)


def claimable_milestones(record: CampaignRecord, now: Optional[int] = None,
                         policy: CampaignPolicy = DEFAULT_POLICY) -> List[Milestone]:
    """Milestones the creator could successfully claim at ``now``."""
    now = resolve_now(now)
    result = []
    for milestone in record.milestones:
        try:
            _check_claim(record, milestone.percentage, Role.CREATOR, now, policy)
        except ClaimError:
            continue
        result.append(milestone)
    return result


def next_claimable_milestone(record: CampaignRecord, now: Optional[int] = None,
                             policy: CampaignPolicy = DEFAULT_POLICY) -> Optional[Milestone]:
    candidates = claimable_milestones(record, now, policy)
    return candidates[0] if candidates else None

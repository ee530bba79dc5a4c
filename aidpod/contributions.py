"""
Contribution Ledger

Accounts for funds flowing into a campaign escrow.

Limits enforced on every contribution:
- Campaign must be active and before its deadline
- At least the campaign's minimum contribution
- At most 50% of the goal in a single contribution
- Raised funds never exceed 110% of the goal (funding cap)
"""

import logging
from typing import NamedTuple, Optional

from aidpod.config import DEFAULT_POLICY, CampaignPolicy
from aidpod.errors import (
    AmountOverflow,
    BelowMinimumContribution,
    CampaignNotActive,
    ContributionWindowClosed,
    ExceedsContributionCap,
    ExceedsFundingCap,
)
from aidpod.models import (
    CAMPAIGN_CUSTODY,
    MAX_UINT64,
    CampaignRecord,
    CampaignStatus,
    Effect,
    EffectKind,
    Outcome,
    resolve_now,
)

logger = logging.getLogger(__name__)


class FundingProgress(NamedTuple):
    percentage: float
    raised: int
    goal: int
    remaining: int
    is_complete: bool


def funding_cap(total_goal: int, policy: CampaignPolicy = DEFAULT_POLICY) -> int:
    """Most a campaign may ever hold."""
    return total_goal * policy.funding_cap_percent // 100


def max_single_contribution(total_goal: int, policy: CampaignPolicy = DEFAULT_POLICY) -> int:
    return total_goal * policy.max_contribution_percent // 100


def remaining_capacity(record: CampaignRecord, policy: CampaignPolicy = DEFAULT_POLICY) -> int:
    """How much more the campaign can accept before hitting the funding cap."""
    return max(0, funding_cap(record.total_goal, policy) - record.current_funds)


def check_amount(amount: int, label: str = "Amount") -> None:
    """Reject negative amounts and anything outside the ledger's uint64 range."""
    if amount < 0 or amount > MAX_UINT64:
        raise AmountOverflow(f"{label} {amount} is outside the ledger range")


def accept_contribution(
    record: CampaignRecord,
    amount: int,
    contributor: Optional[str] = None,
    now: Optional[int] = None,
    policy: CampaignPolicy = DEFAULT_POLICY,
) -> Outcome:
    """
    Accept a contribution into the campaign escrow.

    Args:
        record: Current campaign record
        amount: Contribution in the smallest currency unit
        contributor: Account sending the funds, required to sign the deposit
        now: Current Unix timestamp
        policy: Limits to apply

    Returns:
        Outcome with the updated record and a DEPOSIT effect

    Raises:
        ValidationError subclass when any limit is violated
    """
    now = resolve_now(now)

    if record.status != CampaignStatus.ACTIVE:
        raise CampaignNotActive(
            f"Campaign {record.campaign_id} is {record.status.name}, not accepting contributions"
        )
    if now >= record.deadline:
        raise ContributionWindowClosed(f"Campaign {record.campaign_id} ended")
    if amount < record.min_contribution:
        raise BelowMinimumContribution(
            f"Contribution {amount} is below the minimum of {record.min_contribution}"
        )
    if amount * 100 > record.total_goal * policy.max_contribution_percent:
        raise ExceedsContributionCap(
            f"Contribution {amount} exceeds {policy.max_contribution_percent}% of the goal"
        )

    check_amount(amount, "Contribution")
    new_funds = record.current_funds + amount
    check_amount(new_funds, "Campaign funds")

    cap = funding_cap(record.total_goal, policy)
    if new_funds > cap:
        raise ExceedsFundingCap(
            f"Contribution would raise funds to {new_funds}, above the cap of {cap}"
        )

    logger.info(
        "Campaign %s accepted contribution of %s (funds %s -> %s)",
        record.campaign_id, amount, record.current_funds, new_funds,
    )
    effect = Effect.create(
        EffectKind.DEPOSIT, CAMPAIGN_CUSTODY, amount, authorizers=(contributor,)
    )
    return Outcome(record.with_changes(now, current_funds=new_funds), effect)


contribute = accept_contribution


def funding_progress(record: CampaignRecord) -> FundingProgress:
    """Raised-versus-goal summary for display."""
    goal = record.total_goal
    raised = record.current_funds
    if goal <= 0:
        return FundingProgress(0.0, raised, goal, 0, False)

    percentage = min(100.0, raised / goal * 100)
    return FundingProgress(
        percentage=round(percentage, 2),
        raised=raised,
        goal=goal,
        remaining=max(0, goal - raised),
        is_complete=raised >= goal,
    )

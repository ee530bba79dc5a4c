"""
Refund Policy

Contributors can take their money back when:
- the campaign was cancelled, or
- the deadline plus a 30-day grace period has passed and the goal was
  never reached.

A refund is bounded by what the contributor put in (tracked outside the
record) and by what is still held in escrow.
"""

import logging
from typing import Optional

from aidpod.config import DEFAULT_POLICY, CampaignPolicy
from aidpod.errors import (
    ExceedsContribution,
    InsufficientEscrow,
    InvalidRefundAmount,
    NotRefundable,
)
from aidpod.models import (
    CampaignRecord,
    CampaignStatus,
    Effect,
    EffectKind,
    Outcome,
    resolve_now,
)

logger = logging.getLogger(__name__)


def refund_window_opens(record: CampaignRecord, policy: CampaignPolicy = DEFAULT_POLICY) -> int:
    """Timestamp after which an under-funded campaign becomes refundable."""
    return record.deadline + policy.grace_period


def is_refundable(
    record: CampaignRecord,
    now: Optional[int] = None,
    policy: CampaignPolicy = DEFAULT_POLICY,
) -> bool:
    if record.status == CampaignStatus.CANCELLED:
        return True
    now = resolve_now(now)
    return (
        now > refund_window_opens(record, policy)
        and record.current_funds < record.total_goal
    )


def max_refund(
    record: CampaignRecord,
    contributor_total: int,
    now: Optional[int] = None,
    policy: CampaignPolicy = DEFAULT_POLICY,
) -> int:
    """
    Largest refund a contributor can currently request.

    Args:
        record: Current campaign record
        contributor_total: Amount this contributor has contributed in total
        now: Current Unix timestamp
        policy: Limits to apply

    Returns:
        0 when refunds are closed, otherwise the smaller of the
        contributor's total and the funds still held in escrow
    """
    if not is_refundable(record, now, policy):
        return 0
    return max(0, min(contributor_total, record.escrow_balance))


def request_refund(
    record: CampaignRecord,
    contributor_total: int,
    amount: int,
    contributor: Optional[str] = None,
    now: Optional[int] = None,
    policy: CampaignPolicy = DEFAULT_POLICY,
) -> Outcome:
    """
    Refund part or all of a contribution.

    Args:
        record: Current campaign record
        contributor_total: Amount this contributor has contributed in total
        amount: Refund requested
        contributor: Account receiving the refund
        now: Current Unix timestamp
        policy: Limits to apply

    Returns:
        Outcome with the updated record and a REFUND effect

    Raises:
        RefundError subclass when the refund is not allowed
    """
    now = resolve_now(now)

    if not is_refundable(record, now, policy):
        raise NotRefundable(f"Campaign {record.campaign_id} is not eligible for refunds")
    if amount <= 0:
        raise InvalidRefundAmount(f"Refund amount must be positive, got {amount}")
    if amount > contributor_total:
        raise ExceedsContribution(
            f"Refund {amount} exceeds the contributed total of {contributor_total}"
        )
    if amount > record.escrow_balance:
        raise InsufficientEscrow(
            f"Refund {amount} exceeds the {record.escrow_balance} still held in escrow"
        )

    new_funds = max(0, record.current_funds - amount)
    logger.info(
        "Campaign %s refunded %s (funds %s -> %s)",
        record.campaign_id, amount, record.current_funds, new_funds,
    )
    effect = Effect.create(
        EffectKind.REFUND, contributor, amount, authorizers=(contributor,)
    )
    return Outcome(record.with_changes(now, current_funds=new_funds), effect)

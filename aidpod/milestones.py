"""
Milestone Set Validation and Queries

A campaign releases funds through an ordered list of milestones, each a
percentage of the goal. The shape of that list is fixed when the campaign
is created and checked here.

Rules:
- Between 1 and 10 milestones
- Every percentage in [1, 100]
- Strictly ascending, adjacent gaps between 5 and 50 points
- Exactly one final milestone at 100%
"""

import logging
from typing import NamedTuple, Optional, Sequence

from aidpod.config import DEFAULT_POLICY, CampaignPolicy
from aidpod.errors import (
    GapTooLarge,
    GapTooSmall,
    InvalidGoal,
    InvalidPercentage,
    MissingFinalMilestone,
    TooFewMilestones,
    TooManyMilestones,
)
from aidpod.models import Milestone

logger = logging.getLogger(__name__)

FINAL_PERCENTAGE = 100
DEFAULT_PERCENTAGES = (25, 50, 75, 100)


class MilestoneProgress(NamedTuple):
    completed: int
    total: int
    percentage: float


def validate_milestones(
    milestones: Sequence[Milestone],
    policy: CampaignPolicy = DEFAULT_POLICY,
) -> None:
    """
    Check that a milestone list is a valid release schedule.

    Args:
        milestones: Milestones in the order they will be stored
        policy: Limits to apply

    Raises:
        ValidationError subclass naming the first rule that failed
    """
    count = len(milestones)
    if count < policy.min_milestones:
        raise TooFewMilestones(
            f"At least {policy.min_milestones} milestone required, got {count}"
        )
    if count > policy.max_milestones:
        raise TooManyMilestones(
            f"At most {policy.max_milestones} milestones allowed, got {count}"
        )

    for milestone in milestones:
        if not 1 <= milestone.percentage <= FINAL_PERCENTAGE:
            raise InvalidPercentage(
                f"Milestone percentage must be between 1 and 100, got {milestone.percentage}"
            )

    for previous, current in zip(milestones, milestones[1:]):
        gap = current.percentage - previous.percentage
        if gap < policy.min_milestone_gap:
            raise GapTooSmall(
                f"Milestones {previous.percentage}% and {current.percentage}% "
                f"must be at least {policy.min_milestone_gap}% apart"
            )
        if gap > policy.max_milestone_gap:
            raise GapTooLarge(
                f"Milestones {previous.percentage}% and {current.percentage}% "
                f"cannot be more than {policy.max_milestone_gap}% apart"
            )

    finals = [m for m in milestones if m.percentage == FINAL_PERCENTAGE]
    if len(finals) != 1:
        raise MissingFinalMilestone("Milestones must include exactly one 100% milestone")


def check_thresholds(milestones: Sequence[Milestone], total_goal: int) -> None:
    """
    Check that every milestone unlocks a positive slice of the goal.

    With a small goal, floor(goal * P / 100) can land on the previous
    threshold, leaving a milestone that can never release anything.

    Raises:
        InvalidGoal: when two thresholds coincide or the first one is zero
    """
    previous = 0
    for milestone in milestones:
        threshold = milestone.threshold(total_goal)
        if threshold <= previous:
            raise InvalidGoal(
                f"Goal {total_goal} is too small for a {milestone.percentage}% milestone, "
                f"its threshold {threshold} does not exceed the previous one"
            )
        previous = threshold


def build_milestones(percentages: Sequence[int]) -> tuple:
    """Create unclaimed milestones for the given percentages, in order."""
    return tuple(Milestone(percentage=p) for p in percentages)


def default_milestones() -> tuple:
    """The 25/50/75/100 schedule used when a campaign does not specify one."""
    return build_milestones(DEFAULT_PERCENTAGES)


def find_milestone(milestones: Sequence[Milestone], percentage: int) -> Optional[Milestone]:
    for milestone in milestones:
        if milestone.percentage == percentage:
            return milestone
    return None


def next_unclaimed(milestones: Sequence[Milestone]) -> Optional[Milestone]:
    """Lowest milestone that has not been paid out yet."""
    return next((m for m in milestones if not m.claimed), None)


def claimed_below(milestones: Sequence[Milestone], percentage: int) -> int:
    """Total already paid out by milestones below the given percentage."""
    return sum(
        m.amount_claimed for m in milestones
        if m.claimed and m.percentage < percentage
    )


def last_claim_time(milestones: Sequence[Milestone]) -> int:
    """Most recent claim date across all milestones, 0 if none was claimed."""
    dates = [m.claim_date for m in milestones if m.claimed and m.claim_date > 0]
    return max(dates, default=0)


def milestone_progress(milestones: Sequence[Milestone]) -> MilestoneProgress:
    total = len(milestones)
    completed = sum(1 for m in milestones if m.claimed)
    percentage = (completed / total) * 100 if total else 0.0
    return MilestoneProgress(completed=completed, total=total, percentage=percentage)


def mark_claimed(
    milestones: Sequence[Milestone],
    percentage: int,
    claim_date: int,
    amount: int,
) -> tuple:
    """Return a new milestone tuple with one milestone marked as paid out."""
    logger.debug("Marking %s%% milestone claimed for %s", percentage, amount)
    return tuple(
        Milestone(
            percentage=m.percentage,
            claimed=True,
            claim_date=claim_date,
            amount_claimed=amount,
        )
        if m.percentage == percentage
        else m
        for m in milestones
    )

"""
Typed errors raised by the campaign ledger.

Every rejected action raises a subclass of CampaignError and leaves the
input record untouched. Each class carries a stable ``code`` so callers
can map failures to user-facing messages without parsing text.
"""


class CampaignError(Exception):
    """Base class for every rejected ledger action."""

    code = "campaign_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


# Validation: milestone shape, contribution limits, creation parameters

class ValidationError(CampaignError):
    code = "validation_error"


class TooFewMilestones(ValidationError):
    code = "too_few_milestones"


class TooManyMilestones(ValidationError):
    code = "too_many_milestones"


class InvalidPercentage(ValidationError):
    code = "invalid_percentage"


class MissingFinalMilestone(ValidationError):
    code = "missing_final_milestone"


class GapTooSmall(ValidationError):
    code = "gap_too_small"


class GapTooLarge(ValidationError):
    code = "gap_too_large"


class CampaignNotActive(ValidationError):
    code = "campaign_not_active"


class ContributionWindowClosed(ValidationError):
    code = "contribution_window_closed"


class BelowMinimumContribution(ValidationError):
    code = "below_minimum_contribution"


class ExceedsContributionCap(ValidationError):
    code = "exceeds_contribution_cap"


class ExceedsFundingCap(ValidationError):
    code = "exceeds_funding_cap"


class AmountOverflow(ValidationError):
    code = "amount_overflow"


class InvalidGoal(ValidationError):
    code = "invalid_goal"


class InvalidMinimumContribution(ValidationError):
    code = "invalid_minimum_contribution"


class InvalidDuration(ValidationError):
    code = "invalid_duration"


class MissingParticipant(ValidationError):
    code = "missing_participant"


# Milestone claims

class ClaimError(CampaignError):
    code = "claim_error"


class CampaignNotClaimable(ClaimError):
    code = "campaign_not_claimable"


class MilestoneNotFound(ClaimError):
    code = "milestone_not_found"


class AlreadyClaimed(ClaimError):
    code = "already_claimed"


class MilestoneOutOfOrder(ClaimError):
    code = "milestone_out_of_order"


class ThresholdNotMet(ClaimError):
    code = "threshold_not_met"


class NothingToClaim(ClaimError):
    code = "nothing_to_claim"


class UnauthorizedClaimer(ClaimError):
    code = "unauthorized_claimer"


class IntervalNotElapsed(ClaimError):
    code = "interval_not_elapsed"


# Status transitions

class LifecycleError(CampaignError):
    code = "lifecycle_error"


class InvalidTransition(LifecycleError):
    code = "invalid_transition"


class UnauthorizedAction(LifecycleError):
    code = "unauthorized_action"


class IncompleteMilestones(LifecycleError):
    code = "incomplete_milestones"


# Refunds

class RefundError(CampaignError):
    code = "refund_error"


class NotRefundable(RefundError):
    code = "not_refundable"


class InvalidRefundAmount(RefundError):
    code = "invalid_refund_amount"


class ExceedsContribution(RefundError):
    code = "exceeds_contribution"


class InsufficientEscrow(RefundError):
    code = "insufficient_escrow"

"""
Campaign Lifecycle Manager

Entry point for every campaign action. Creates campaigns, drives the
status state machine and dispatches actions to the contribution,
milestone and refund rules.

State graph:
    ACTIVE <-> PAUSED
    ACTIVE -> COMPLETED      (every milestone claimed)
    ACTIVE | PAUSED -> CANCELLED
COMPLETED and CANCELLED are terminal.

Every operation is a pure function: it takes a record, returns an
Outcome(record, effect) and never keeps state between calls. Committing
the new record is the caller's job (see aidpod.store).
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from aidpod.config import DEFAULT_POLICY, CampaignPolicy
from aidpod.contributions import accept_contribution, check_amount, max_single_contribution
from aidpod.errors import (
    CampaignError,
    IncompleteMilestones,
    InvalidDuration,
    InvalidGoal,
    InvalidMinimumContribution,
    InvalidTransition,
    MissingParticipant,
    UnauthorizedAction,
)
from aidpod.milestone_engine import claim_milestone
from aidpod.milestones import (
    build_milestones,
    check_thresholds,
    default_milestones,
    validate_milestones,
)
from aidpod.models import (
    SECONDS_PER_DAY,
    CampaignRecord,
    CampaignStatus,
    Effect,
    EffectKind,
    Outcome,
    Role,
    resolve_now,
)
from aidpod.refunds import request_refund

logger = logging.getLogger(__name__)

PAUSE_ROLES = (Role.CREATOR, Role.MEDICAL_AUTHORITY, Role.EMERGENCY_CONTACT)


@dataclass(frozen=True)
class CampaignParams:
    """Everything needed to open a new campaign."""

    campaign_id: int
    title: str
    description: str
    creator: str
    beneficiary: str
    medical_authority: str
    total_goal: int
    deadline: int
    min_contribution: int = 1_000_000
    verification_required: bool = True
    emergency_contact: Optional[str] = None
    milestone_percentages: Optional[Sequence[int]] = None


# Actions accepted by apply()

@dataclass(frozen=True)
class Contribute:
    amount: int
    contributor: Optional[str] = None


@dataclass(frozen=True)
class ClaimMilestone:
    percentage: int
    claimer: Role


@dataclass(frozen=True)
class Pause:
    authorizer: Role


@dataclass(frozen=True)
class Resume:
    authorizer: Role


@dataclass(frozen=True)
class Cancel:
    authorizer: Role


@dataclass(frozen=True)
class Complete:
    pass


@dataclass(frozen=True)
class RequestRefund:
    contributor_total: int
    amount: int
    contributor: Optional[str] = None


@dataclass(frozen=True)
class UpdateEmergencyContact:
    contact: str
    authorizer: Role


def create_campaign(
    params: CampaignParams,
    now: Optional[int] = None,
    policy: CampaignPolicy = DEFAULT_POLICY,
) -> CampaignRecord:
    """
    Validate campaign parameters and open an active campaign.

    Args:
        params: Campaign parameters
        now: Creation Unix timestamp
        policy: Limits to apply

    Returns:
        New CampaignRecord with status ACTIVE and no funds

    Raises:
        ValidationError subclass when a parameter is out of range
    """
    now = resolve_now(now)

    for name in ("creator", "beneficiary", "medical_authority"):
        if not getattr(params, name):
            raise MissingParticipant(f"Campaign {name} is required")

    if params.total_goal <= 0:
        raise InvalidGoal(f"Goal must be positive, got {params.total_goal}")
    check_amount(params.total_goal, "Goal")

    max_minimum = max_single_contribution(params.total_goal, policy)
    if not 0 < params.min_contribution <= max_minimum:
        raise InvalidMinimumContribution(
            f"Minimum contribution must be between 1 and {max_minimum}, "
            f"got {params.min_contribution}"
        )

    duration = params.deadline - now
    if not policy.min_duration <= duration <= policy.max_duration:
        raise InvalidDuration(
            f"Campaign must run between {policy.min_duration // SECONDS_PER_DAY} and "
            f"{policy.max_duration // SECONDS_PER_DAY} days"
        )

    if params.milestone_percentages is None:
        milestones = default_milestones()
    else:
        milestones = build_milestones(params.milestone_percentages)
    validate_milestones(milestones, policy)
    check_thresholds(milestones, params.total_goal)

    record = CampaignRecord(
        campaign_id=params.campaign_id,
        title=params.title,
        description=params.description,
        creator=params.creator,
        beneficiary=params.beneficiary,
        medical_authority=params.medical_authority,
        emergency_contact=params.emergency_contact or params.creator,
        total_goal=params.total_goal,
        deadline=params.deadline,
        min_contribution=params.min_contribution,
        verification_required=params.verification_required,
        status=CampaignStatus.ACTIVE,
        created_at=now,
        last_updated=now,
        milestones=milestones,
    )
    logger.info(
        "Created campaign %s with goal %s and %d milestones",
        record.campaign_id, record.total_goal, len(milestones),
    )
    return record


def _require_status(record: CampaignRecord, allowed, target: CampaignStatus) -> None:
    if record.status not in allowed:
        raise InvalidTransition(
            f"Campaign {record.campaign_id} cannot move from {record.status.name} to {target.name}"
        )


def _require_role(authorizer: Role, allowed, action: str) -> None:
    if authorizer not in allowed:
        raise UnauthorizedAction(f"{authorizer.value} cannot {action} a campaign")


def _transition(record, status, now, authorizers=()) -> Outcome:
    logger.info(
        "Campaign %s moved from %s to %s",
        record.campaign_id, record.status.name, status.name,
    )
    effect = Effect.create(EffectKind.AUTHORIZATION, None, 0, authorizers=authorizers)
    return Outcome(record.with_changes(now, status=status), effect)


def pause(record: CampaignRecord, authorizer: Role, now: Optional[int] = None) -> Outcome:
    """Pause an active campaign. Creator, medical authority or emergency contact."""
    _require_status(record, (CampaignStatus.ACTIVE,), CampaignStatus.PAUSED)
    _require_role(authorizer, PAUSE_ROLES, "pause")
    return _transition(
        record, CampaignStatus.PAUSED, resolve_now(now), (record.address_of(authorizer),)
    )


def resume(record: CampaignRecord, authorizer: Role, now: Optional[int] = None) -> Outcome:
    _require_status(record, (CampaignStatus.PAUSED,), CampaignStatus.ACTIVE)
    _require_role(authorizer, PAUSE_ROLES, "resume")
    return _transition(
        record, CampaignStatus.ACTIVE, resolve_now(now), (record.address_of(authorizer),)
    )


def cancel(record: CampaignRecord, authorizer: Role, now: Optional[int] = None) -> Outcome:
    """
    Cancel a campaign and open refunds.

    Only the creator may cancel. Campaigns that require verification also
    need the medical authority to co-sign. No funds move here.
    """
    _require_status(
        record, (CampaignStatus.ACTIVE, CampaignStatus.PAUSED), CampaignStatus.CANCELLED
    )
    _require_role(authorizer, (Role.CREATOR,), "cancel")

    authorizers = [record.creator]
    if record.verification_required:
        authorizers.append(record.medical_authority)
    return _transition(record, CampaignStatus.CANCELLED, resolve_now(now), authorizers)


def complete(record: CampaignRecord, now: Optional[int] = None) -> Outcome:
    _require_status(record, (CampaignStatus.ACTIVE,), CampaignStatus.COMPLETED)

    pending = [m.percentage for m in record.milestones if not m.claimed]
    if pending:
        raise IncompleteMilestones(
            f"Campaign {record.campaign_id} still has unclaimed milestones: {pending}"
        )
    return _transition(record, CampaignStatus.COMPLETED, resolve_now(now))


def update_emergency_contact(
    record: CampaignRecord,
    contact: str,
    authorizer: Role,
    now: Optional[int] = None,
) -> Outcome:
    """Replace the emergency contact. Creator only, non-terminal campaigns only."""
    if record.status.is_terminal:
        raise InvalidTransition(
            f"Campaign {record.campaign_id} is {record.status.name}, contacts are frozen"
        )
    _require_role(authorizer, (Role.CREATOR,), "update the emergency contact of")
    if not contact:
        raise MissingParticipant("Emergency contact is required")

    now = resolve_now(now)
    logger.info("Campaign %s emergency contact updated", record.campaign_id)
    effect = Effect.create(
        EffectKind.AUTHORIZATION, None, 0, authorizers=(record.creator,)
    )
    return Outcome(record.with_changes(now, emergency_contact=contact), effect)


def apply(
    record: CampaignRecord,
    action,
    now: Optional[int] = None,
    policy: CampaignPolicy = DEFAULT_POLICY,
) -> Outcome:
    """
    Apply one action to a campaign record.

    Args:
        record: Current campaign record
        action: One of the action dataclasses defined in this module
        now: Current Unix timestamp
        policy: Limits to apply

    Returns:
        Outcome with the proposed next record and its effect

    Raises:
        CampaignError subclass when the action is rejected
        TypeError for unknown actions
    """
    now = resolve_now(now)

    try:
        if isinstance(action, Contribute):
            return accept_contribution(record, action.amount, action.contributor, now, policy)
        if isinstance(action, ClaimMilestone):
            return claim_milestone(record, action.percentage, action.claimer, now, policy)
        if isinstance(action, Pause):
            return pause(record, action.authorizer, now)
        if isinstance(action, Resume):
            return resume(record, action.authorizer, now)
        if isinstance(action, Cancel):
            return cancel(record, action.authorizer, now)
        if isinstance(action, Complete):
            return complete(record, now)
        if isinstance(action, RequestRefund):
            return request_refund(
                record, action.contributor_total, action.amount,
                action.contributor, now, policy,
            )
        if isinstance(action, UpdateEmergencyContact):
            return update_emergency_contact(record, action.contact, action.authorizer, now)
    except CampaignError as e:
        logger.debug(
            "Campaign %s rejected %s: %s", record.campaign_id, type(action).__name__, e
        )
        raise

    raise TypeError(f"Unknown campaign action: {action!r}")

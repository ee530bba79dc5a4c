"""
Campaign Ledger Data Model for AidPod

Immutable value objects describing a medical fundraising campaign.
Every ledger operation takes a record and returns a new one; nothing
here is ever mutated in place.

Contents:
- CampaignStatus / Role enums
- Milestone and CampaignRecord (frozen dataclasses)
- Effect: value movement to be executed by an external ledger writer
- Outcome: (record, effect) pair returned by every accepted action
"""

import time
from dataclasses import asdict, dataclass, field, replace
from enum import Enum, IntEnum
from typing import NamedTuple, Optional


# Largest amount the ledger accepts (AVM word size)
MAX_UINT64 = 2**64 - 1

# Destination used for deposits into the campaign escrow
CAMPAIGN_CUSTODY = "campaign-custody"

SECONDS_PER_DAY = 24 * 60 * 60


def resolve_now(now: Optional[int] = None) -> int:
    """Return the given timestamp, or the current Unix time when omitted."""
    return int(time.time()) if now is None else now


class CampaignStatus(IntEnum):
    """Campaign status. Values match the on-ledger status constructors."""

    ACTIVE = 0
    PAUSED = 1
    COMPLETED = 2
    CANCELLED = 3

    @property
    def is_terminal(self) -> bool:
        return self in (CampaignStatus.COMPLETED, CampaignStatus.CANCELLED)


class Role(Enum):
    """Participants that can authorize campaign actions."""

    CREATOR = "creator"
    BENEFICIARY = "beneficiary"
    MEDICAL_AUTHORITY = "medical_authority"
    EMERGENCY_CONTACT = "emergency_contact"


class EffectKind(Enum):
    DEPOSIT = "deposit"
    PAYOUT = "payout"
    REFUND = "refund"
    AUTHORIZATION = "authorization"


@dataclass(frozen=True)
class Milestone:
    """
    A funding checkpoint expressed as a percentage of the campaign goal.

    Attributes:
        percentage: Share of the goal (1-100) that unlocks this milestone
        claimed: Whether the milestone has been paid out
        claim_date: Unix timestamp of the payout, 0 until claimed
        amount_claimed: Amount paid out, 0 until claimed
    """

    percentage: int
    claimed: bool = False
    claim_date: int = 0
    amount_claimed: int = 0

    def threshold(self, total_goal: int) -> int:
        """Funds the campaign must hold before this milestone unlocks."""
        return total_goal * self.percentage // 100


@dataclass(frozen=True)
class CampaignRecord:
    """
    Authoritative state of one campaign.

    Amounts are integers in the smallest currency unit and timestamps are
    Unix seconds. Identity fields hold ledger account identifiers.
    """

    campaign_id: int
    title: str
    description: str
    creator: str
    beneficiary: str
    medical_authority: str
    emergency_contact: str
    total_goal: int
    deadline: int
    min_contribution: int
    verification_required: bool = True
    current_funds: int = 0
    total_claimed: int = 0
    status: CampaignStatus = CampaignStatus.ACTIVE
    created_at: int = 0
    last_updated: int = 0
    milestones: tuple = field(default_factory=tuple)

    def address_of(self, role: Role) -> str:
        """Account identifier that holds the given role on this campaign."""
        return {
            Role.CREATOR: self.creator,
            Role.BENEFICIARY: self.beneficiary,
            Role.MEDICAL_AUTHORITY: self.medical_authority,
            Role.EMERGENCY_CONTACT: self.emergency_contact,
        }[role]

    @property
    def escrow_balance(self) -> int:
        """Funds still held in custody (raised minus paid out)."""
        return self.current_funds - self.total_claimed

    def with_changes(self, now: int, **changes) -> "CampaignRecord":
        """Return a copy with the given fields replaced and last_updated set."""
        return replace(self, last_updated=now, **changes)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.name
        data["milestones"] = [asdict(m) for m in self.milestones]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "CampaignRecord":
        """
        Build a record from a plain mapping (e.g. parsed JSON).

        Args:
            data: Mapping using the same field names as the dataclass.
                  ``status`` may be the enum name or its integer value.

        Returns:
            CampaignRecord
        """
        values = dict(data)
        status = values.get("status", CampaignStatus.ACTIVE)
        if isinstance(status, str):
            values["status"] = CampaignStatus[status.upper()]
        else:
            values["status"] = CampaignStatus(status)
        values["milestones"] = tuple(
            Milestone(**m) for m in values.get("milestones", ())
        )
        return cls(**values)


@dataclass(frozen=True)
class Effect:
    """
    Value movement requested by an accepted action.

    The core never executes an Effect. An external transaction builder
    turns it into a ledger write signed by every required authorizer.
    """

    kind: EffectKind
    destination: Optional[str]
    amount: int = 0
    required_authorizers: tuple = ()

    @classmethod
    def create(cls, kind, destination, amount=0, authorizers=()):
        """Build an Effect, dropping empty and duplicate authorizers."""
        unique = tuple(dict.fromkeys(a for a in authorizers if a))
        return cls(
            kind=kind,
            destination=destination,
            amount=amount,
            required_authorizers=unique,
        )

    @property
    def moves_value(self) -> bool:
        return self.amount > 0


class Outcome(NamedTuple):
    """Result of an accepted action: the proposed next record and its effect."""

    record: CampaignRecord
    effect: Effect

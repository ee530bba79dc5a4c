"""
Ledger policy configuration.

The rule constants live in a frozen CampaignPolicy so tests and callers
can pass an explicit policy. ``CampaignPolicy.from_env()`` reads overrides
from the environment (and a local .env file), like the deployment scripts.

Environment variables (all optional):
- AIDPOD_FUNDING_CAP_PERCENT: cap on raised funds, percent of goal
- AIDPOD_MAX_CONTRIBUTION_PERCENT: cap on one contribution, percent of goal
- AIDPOD_MIN_CLAIM_INTERVAL_DAYS: days between two milestone claims
- AIDPOD_GRACE_PERIOD_DAYS: days after the deadline before refunds open
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from aidpod.models import SECONDS_PER_DAY


@dataclass(frozen=True)
class CampaignPolicy:
    """Tunable limits applied by every ledger operation."""

    funding_cap_percent: int = 110
    max_contribution_percent: int = 50
    min_claim_interval: int = 7 * SECONDS_PER_DAY
    grace_period: int = 30 * SECONDS_PER_DAY
    min_duration: int = 7 * SECONDS_PER_DAY
    max_duration: int = 365 * SECONDS_PER_DAY
    min_milestones: int = 1
    max_milestones: int = 10
    min_milestone_gap: int = 5
    max_milestone_gap: int = 50

    @classmethod
    def from_env(cls) -> "CampaignPolicy":
        """Create a policy from environment variables, falling back to defaults."""
        load_dotenv()
        defaults = cls()

        def days(name: str, default_seconds: int) -> int:
            value = os.getenv(name)
            if value is None:
                return default_seconds
            return int(value) * SECONDS_PER_DAY

        return cls(
            funding_cap_percent=int(
                os.getenv("AIDPOD_FUNDING_CAP_PERCENT", defaults.funding_cap_percent)
            ),
            max_contribution_percent=int(
                os.getenv("AIDPOD_MAX_CONTRIBUTION_PERCENT", defaults.max_contribution_percent)
            ),
            min_claim_interval=days(
                "AIDPOD_MIN_CLAIM_INTERVAL_DAYS", defaults.min_claim_interval
            ),
            grace_period=days("AIDPOD_GRACE_PERIOD_DAYS", defaults.grace_period),
        )


DEFAULT_POLICY = CampaignPolicy()

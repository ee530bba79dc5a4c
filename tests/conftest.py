"""Shared fixtures for campaign ledger tests."""

import pytest

from aidpod.contributions import accept_contribution
from aidpod.lifecycle import CampaignParams, create_campaign
from aidpod.models import SECONDS_PER_DAY

START = 1_700_000_000


@pytest.fixture
def now() -> int:
    """Campaign creation time used across tests."""
    return START


@pytest.fixture
def params() -> CampaignParams:
    return CampaignParams(
        campaign_id=1,
        title="Kidney Transplant Fund",
        description="Help cover surgery and recovery costs",
        creator="CREATOR",
        beneficiary="BENEFICIARY",
        medical_authority="HOSPITAL",
        emergency_contact="CONTACT",
        total_goal=100_000,
        deadline=START + 30 * SECONDS_PER_DAY,
        min_contribution=1_000,
    )


@pytest.fixture
def campaign(params, now):
    """Fresh active campaign with the default 25/50/75/100 milestones."""
    return create_campaign(params, now=now)


@pytest.fixture
def fund():
    """Return a helper that contributes ``total`` in cap-sized chunks."""

    def _fund(record, total, now=START + SECONDS_PER_DAY):
        chunk = record.total_goal // 2
        while total > 0:
            amount = min(chunk, total)
            record, _ = accept_contribution(record, amount, contributor="DONOR", now=now)
            total -= amount
        return record

    return _fund

"""
Single-writer campaign record slot.

Models the ledger's read-validate-write discipline: a writer reads the
current record with its version, computes the next record through the
lifecycle rules and commits it with a compare-and-swap. If another write
landed in between, the commit is rejected and the whole computation is
retried against the fresh record.
"""

import logging
import threading
from typing import Callable, NamedTuple

from aidpod.models import CampaignRecord, Outcome

logger = logging.getLogger(__name__)

DEFAULT_RETRY_ATTEMPTS = 3


class StaleRecordError(Exception):
    """Raised when a commit is based on a record that is no longer current."""

    def __init__(self, expected_version: int, current_version: int):
        super().__init__(
            f"Record changed since it was read (expected version "
            f"{expected_version}, current {current_version})"
        )
        self.expected_version = expected_version
        self.current_version = current_version


class Snapshot(NamedTuple):
    version: int
    record: CampaignRecord


class CampaignSlot:
    """Holds the current record of one campaign."""

    def __init__(self, record: CampaignRecord):
        self._lock = threading.Lock()
        self._version = 0
        self._record = record

    def read(self) -> Snapshot:
        with self._lock:
            return Snapshot(self._version, self._record)

    def compare_and_swap(self, expected_version: int, record: CampaignRecord) -> Snapshot:
        """
        Replace the record if nobody wrote since ``expected_version``.

        Returns:
            Snapshot of the committed record

        Raises:
            StaleRecordError: the slot moved on since it was read
        """
        with self._lock:
            if self._version != expected_version:
                raise StaleRecordError(expected_version, self._version)
            self._version += 1
            self._record = record
            return Snapshot(self._version, self._record)


def submit_with_retry(
    slot: CampaignSlot,
    compute: Callable[[CampaignRecord], Outcome],
    attempts: int = DEFAULT_RETRY_ATTEMPTS,
) -> Outcome:
    """
    Read, compute and commit, retrying on concurrent writes.

    Args:
        slot: Record slot to update
        compute: Function from the current record to an Outcome, usually
                 a lifecycle operation bound to its arguments
        attempts: Maximum number of read-compute-commit rounds

    Returns:
        The committed Outcome

    Raises:
        StaleRecordError: every attempt lost the race
        CampaignError: the action was rejected (never retried)
    """
    for attempt in range(1, attempts + 1):
        snapshot = slot.read()
        outcome = compute(snapshot.record)
        try:
            slot.compare_and_swap(snapshot.version, outcome.record)
            return outcome
        except StaleRecordError:
            if attempt == attempts:
                raise
            logger.warning(
                "Campaign %s changed during write, retrying (%d/%d)",
                snapshot.record.campaign_id, attempt, attempts,
            )
    raise ValueError("attempts must be at least 1")

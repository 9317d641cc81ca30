"""
Job queue for one run.

Records are kept in insertion order for the dashboard; pending ids flow
through an asyncio.Queue so the worker blocks instead of polling. ``claim``
is the only way a job becomes APPLYING and contains no await, so selecting
and marking a job cannot interleave with another claim.
"""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from .exceptions import InvalidTransition
from .models import JobStatus, ListingRecord

logger = logging.getLogger(__name__)

# Queue item that ends the current run's stream of job ids
END_OF_RUN = None


class JobQueue:
    """Ordered job records plus a single-consumer queue of pending ids."""

    def __init__(self):
        self._records: Dict[str, ListingRecord] = {}
        self._pending: asyncio.Queue = asyncio.Queue()

    def add(self, records: Iterable[ListingRecord]) -> int:
        """Track ``records``; PENDING ones are queued. Returns how many were queued."""
        queued = 0
        for record in records:
            if record.id in self._records:
                logger.warning(f"Duplicate job id {record.id} ignored")
                continue
            self._records[record.id] = record
            if record.status == JobStatus.PENDING:
                self._pending.put_nowait(record.id)
                queued += 1
        return queued

    def close(self):
        """No more jobs for this run; wakes a blocked consumer."""
        self._pending.put_nowait(END_OF_RUN)

    def claim(self, job_id: str) -> Optional[ListingRecord]:
        """PENDING -> APPLYING for ``job_id``; None if the job is gone or no longer pending."""
        record = self._records.get(job_id)
        if record is None or record.status != JobStatus.PENDING:
            return None
        if self.applying():
            raise InvalidTransition(f"Cannot claim {job_id}: another job is already APPLYING")
        record.transition(JobStatus.APPLYING)
        return record

    async def next_job(self, stop_event: Optional[asyncio.Event] = None) -> Optional[ListingRecord]:
        """
        Block until a job can be claimed.

        Returns None at the end of the run, or when ``stop_event`` is set by
        the time an id is dequeued (that job stays PENDING).
        """
        while True:
            job_id = await self._pending.get()
            if job_id is END_OF_RUN:
                return None
            if stop_event is not None and stop_event.is_set():
                return None
            record = self.claim(job_id)
            if record is not None:
                return record

    def complete(self, job_id: str, success: bool) -> ListingRecord:
        record = self._records[job_id]
        record.transition(JobStatus.APPLIED if success else JobStatus.FAILED)
        return record

    def has_pending(self) -> bool:
        return any(r.status == JobStatus.PENDING for r in self._records.values())

    def applying(self) -> List[ListingRecord]:
        return [r for r in self._records.values() if r.status == JobStatus.APPLYING]

    def get(self, job_id: str) -> Optional[ListingRecord]:
        return self._records.get(job_id)

    def jobs(self) -> List[ListingRecord]:
        return list(self._records.values())

    def stats(self) -> Dict[str, int]:
        counts = {status: 0 for status in JobStatus}
        for record in self._records.values():
            counts[record.status] += 1
        return {
            "total": len(self._records),
            "pending": counts[JobStatus.PENDING],
            "applying": counts[JobStatus.APPLYING],
            "applied": counts[JobStatus.APPLIED],
            "failed": counts[JobStatus.FAILED],
            "skipped": counts[JobStatus.SKIPPED],
        }

    def reset(self):
        self._records.clear()
        self._pending = asyncio.Queue()

    def __len__(self) -> int:
        return len(self._records)

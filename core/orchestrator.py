"""
Job Queue Orchestrator - Drives one run over the listings of a search.

Usage:
    orchestrator = JobOrchestrator(session, extractor, submitter)
    await orchestrator.start_run(RunConfiguration(keywords="python"), answers)
    ...
    await orchestrator.stop_run()   # in-flight application still finishes
    await orchestrator.wait_idle()
"""

import asyncio
import logging
from typing import Optional, Dict, List, Sequence

from api.config import AppConfig, get_config
from .browser import BrowserSessionManager
from .event_log import EventLog
from .exceptions import AutomationError, RunAlreadyActive, Unauthenticated
from .extractor import ListingExtractor
from .job_queue import JobQueue
from .models import AnswerTemplate, ApplyResult, ApplyStatus, ListingRecord, RunConfiguration
from .submitter import ApplicationSubmitter

logger = logging.getLogger(__name__)


class JobOrchestrator:
    """
    Serializes applications for one run.

    One producer step fills the queue from a single search pass; one worker
    task claims jobs one at a time, so at most one job is ever APPLYING.
    """

    def __init__(
        self,
        session: BrowserSessionManager,
        extractor: ListingExtractor,
        submitter: ApplicationSubmitter,
        event_log: Optional[EventLog] = None,
        config: Optional[AppConfig] = None,
        job_queue: Optional[JobQueue] = None,
    ):
        self.session = session
        self.extractor = extractor
        self.submitter = submitter
        self.event_log = event_log or EventLog()
        self.config = config or get_config()
        self.job_queue = job_queue or JobQueue()

        self._run_config: Optional[RunConfiguration] = None
        self._answers: List[AnswerTemplate] = []
        self._stop_event = asyncio.Event()
        self._producer: Optional[asyncio.Task] = None
        self._worker: Optional[asyncio.Task] = None

    # === State ===

    @property
    def is_running(self) -> bool:
        return any(task is not None and not task.done() for task in (self._producer, self._worker))

    @property
    def run_config(self) -> Optional[RunConfiguration]:
        return self._run_config

    def jobs(self) -> List[ListingRecord]:
        return self.job_queue.jobs()

    def stats(self) -> Dict[str, int]:
        """Dashboard tiles."""
        return self.job_queue.stats()

    # === Control ===

    async def start_run(self, run_config: RunConfiguration, answers: Sequence[AnswerTemplate] = ()):
        """
        Start a run on a snapshot of ``run_config`` and ``answers``.

        Raises:
            Unauthenticated: the shared session is not logged in.
            RunAlreadyActive: a run is still in progress.
        """
        self.session.require_authenticated()
        if self.is_running:
            raise RunAlreadyActive("A run is already in progress")

        self._run_config = run_config
        self._answers = [AnswerTemplate(a.question, a.answer) for a in answers]
        self._stop_event = asyncio.Event()
        self.job_queue.reset()

        self.event_log.info(f"Starting automation for '{run_config.keywords or 'all internships'}'")
        self._producer = asyncio.create_task(self._produce())
        self._worker = asyncio.create_task(self._work())

    async def stop_run(self):
        """Stop selecting new jobs. Does not wait; see wait_idle()."""
        if not self.is_running:
            return
        if not self._stop_event.is_set():
            self._stop_event.set()
            self.job_queue.close()
            self.event_log.warning("Stopping automation after the current application")

    async def wait_idle(self):
        tasks = [task for task in (self._producer, self._worker) if task is not None]
        if tasks:
            await asyncio.gather(*tasks)

    def reset(self):
        """Forget all jobs. Raises RunAlreadyActive while a run is in progress."""
        if self.is_running:
            raise RunAlreadyActive("Cannot reset jobs while a run is in progress")
        self.job_queue.reset()
        self._run_config = None

    # === Tasks ===

    async def _produce(self):
        run_config = self._run_config
        try:
            self.event_log.info("Searching for internships...")
            result = await self.extractor.search(
                run_config.keywords,
                location=run_config.effective_location,
                remote_only=run_config.remote_only,
                min_stipend=run_config.min_stipend,
            )
            if not result.success:
                self.event_log.error(result.message or "Search failed")
                return

            self.job_queue.add(result.listings + result.skipped)
            if result.skipped:
                self.event_log.info(f"Skipped {len(result.skipped)} internships below the minimum stipend")
            self.event_log.success(f"Found {result.count} internships")
        except AutomationError as e:
            self.event_log.error(f"Search failed: {e}")
        except Exception as e:
            logger.error(f"Search step crashed: {e}", exc_info=True)
            self.event_log.error(f"Search failed: {e}")
        finally:
            # The worker always gets an end marker, even when searching failed
            self.job_queue.close()

    async def _work(self):
        logger.info("Worker started")
        try:
            while not self._stop_event.is_set():
                record = await self.job_queue.next_job(self._stop_event)
                if record is None:
                    break

                keep_going = await self._apply_to_job(record)
                if not keep_going:
                    break

                if self.job_queue.has_pending() and not self._stop_event.is_set():
                    await self._pace()
        finally:
            if self._stop_event.is_set():
                self.event_log.info("Automation stopped")
            else:
                stats = self.stats()
                self.event_log.success(
                    f"Automation finished: {stats['applied']} applied, {stats['failed']} failed"
                )
            logger.info("Worker stopped")

    async def _apply_to_job(self, record: ListingRecord) -> bool:
        """Apply to one claimed job. Returns False when the run cannot continue."""
        label = f"{record.title} @ {record.company}"
        self.event_log.info(f"Applying to {label}")

        if record.link == "#":
            self.job_queue.complete(record.id, success=False)
            self.event_log.error(f"No detail link for {label}")
            return True

        try:
            result = await self.submitter.apply(record.link, self._answers)
        except Unauthenticated as e:
            self.job_queue.complete(record.id, success=False)
            self.event_log.error(f"Session lost while applying to {label}: {e}")
            self._stop_event.set()
            return False
        except Exception as e:
            logger.error(f"Error applying to {record.link}: {e}", exc_info=True)
            self.job_queue.complete(record.id, success=False)
            self.event_log.error(f"Failed: {label} ({e})")
            return True

        self.job_queue.complete(record.id, success=result.success)
        self._log_result(label, result)
        return True

    def _log_result(self, label: str, result: ApplyResult):
        if result.success and result.verified:
            self.event_log.success(f"Applied: {label}")
        elif result.success:
            self.event_log.warning(f"Applied (unconfirmed): {label}")
        elif result.status == ApplyStatus.ALREADY_APPLIED:
            self.event_log.warning(f"Already applied: {label}")
        else:
            self.event_log.error(f"Failed: {label} ({result.message})")

    async def _pace(self):
        """Wait between applications; returns early when the run is stopped."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self.config.RUN_JOB_DELAY_SECONDS)
        except asyncio.TimeoutError:
            pass

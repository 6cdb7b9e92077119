"""Sequential runner for a queue of synchronization jobs."""

import asyncio
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Deque, Iterable, List, Optional

from ..utils.events import Event
from ..utils.logging import get_logger, log_async_execution_time, log_execution_time
from .job import Job
from .models import FileCounterResult, FileProceededEvent, JobEvent

# Job events the worker passes on unchanged
RELAYED_EVENTS = (
    "creating_file",
    "created_file",
    "modifying_file",
    "modified_file",
    "deleting_file",
    "deleted_file",
    "creating_directory",
    "created_directory",
    "deleting_directory",
    "deleted_directory",
    "file_copy_error",
    "file_deletion_error",
    "directory_deletion_error",
    "file_copy_progress_changed",
)


class JobWorker:
    """Runs jobs one after another and aggregates their progress.

    The worker counts the files of all queued jobs up front, then starts the
    jobs in submission order. The ``finished`` notification of a job is what
    starts the next one, so jobs that complete on another thread are
    supported as well. Only one job runs at any time.

    Besides the job events listed in ``RELAYED_EVENTS`` (and
    ``proceeded_file``) the worker emits:
        files_counted: FileCounterResult
        job_started: JobEvent
        job_finished: JobEvent
        finished: no arguments
    """

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

        self.proceeded_file = Event("proceeded_file")
        self.creating_file = Event("creating_file")
        self.created_file = Event("created_file")
        self.modifying_file = Event("modifying_file")
        self.modified_file = Event("modified_file")
        self.deleting_file = Event("deleting_file")
        self.deleted_file = Event("deleted_file")
        self.creating_directory = Event("creating_directory")
        self.created_directory = Event("created_directory")
        self.deleting_directory = Event("deleting_directory")
        self.deleted_directory = Event("deleted_directory")
        self.file_copy_error = Event("file_copy_error")
        self.file_deletion_error = Event("file_deletion_error")
        self.directory_deletion_error = Event("directory_deletion_error")
        self.file_copy_progress_changed = Event("file_copy_progress_changed")

        self.files_counted = Event("files_counted")
        self.job_started = Event("job_started")
        self.job_finished = Event("job_finished")
        self.finished = Event("finished")

        self._queue: Deque[Job] = deque()
        self._current_job: Optional[Job] = None
        self._total_written_bytes = 0
        self._proceeded_files = 0
        self._file_counter_result = FileCounterResult()
        self._preview = False

        self._lock = threading.RLock()
        self._running = False
        self._stop_requested = False
        # Set while start() or the dispatch loop is on some thread's stack
        self._starting = False
        self._dispatching = False
        self._advance_requested = False

    @property
    def total_written_bytes(self) -> int:
        """Bytes written by all jobs of the current run that have finished."""
        return self._total_written_bytes

    @property
    def proceeded_files(self) -> int:
        return self._proceeded_files

    @property
    def file_counter_result(self) -> FileCounterResult:
        return self._file_counter_result

    @property
    def is_paused(self) -> bool:
        job = self._current_job
        return job is not None and job.is_paused

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def current_job(self) -> Optional[Job]:
        return self._current_job

    @property
    def pending_jobs(self) -> int:
        """Number of queued jobs that have not been started yet."""
        with self._lock:
            return len(self._queue)

    @log_execution_time
    def start(self, jobs: Iterable[Job], preview: bool = False) -> None:
        """Run ``jobs`` in order on the calling thread.

        Args:
            jobs: Jobs to run, in the order they should run
            preview: Let the jobs report what they would do without doing it

        Raises:
            JobWorkerBusyError: If a run is already in progress
        """
        jobs = list(jobs)

        with self._lock:
            if self._running:
                raise JobWorkerBusyError("Job worker is already running")

            self._running = True
            self._starting = True
            self._stop_requested = False
            self._current_job = None
            self._total_written_bytes = 0
            self._proceeded_files = 0
            self._file_counter_result = FileCounterResult()
            self._preview = preview
            self._queue.clear()
            self._queue.extend(jobs)

        self.logger.info("Starting jobs", job_count=len(jobs), preview=preview)

        try:
            self._file_counter_result = self._count_files(jobs)
            if not self._stop_requested:
                self.logger.info(
                    "Files counted",
                    counted_files=self._file_counter_result.counted_files,
                    counted_bytes=self._file_counter_result.counted_bytes
                )
                self.files_counted.emit(self._file_counter_result)

                self._advance()
        except Exception:
            with self._lock:
                self._starting = False
            self._end_run()
            raise

        self._leave("_starting")

    def start_async(self, jobs: Iterable[Job], preview: bool = False) -> "Future[None]":
        """Run ``start`` on a new background thread.

        Returns:
            Future that completes when ``start`` returns or raises
        """
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="job-worker")
        try:
            return executor.submit(self.start, list(jobs), preview)
        finally:
            executor.shutdown(wait=False)

    @log_async_execution_time
    async def run_async(self, jobs: Iterable[Job], preview: bool = False) -> None:
        """Await a background run of ``jobs``."""
        await asyncio.wrap_future(self.start_async(jobs, preview))

    def pause(self) -> None:
        """Pause the running job; does nothing when no job is running."""
        job = self._current_job
        if job is not None:
            job.pause()
            self.logger.info("Paused job", job=job.name)

    def resume(self) -> None:
        """Continue a paused job; does nothing when no job is running."""
        job = self._current_job
        if job is not None:
            job.resume()
            self.logger.info("Resumed job", job=job.name)

    def stop(self) -> None:
        """Stop the running job and drop every job that has not started.

        The running job halts at its next checkpoint. No ``finished``
        notification follows a stop.
        """
        with self._lock:
            if not self._running:
                return

            job = self._current_job
            self._stop_requested = True
            dropped = len(self._queue)
            self._queue.clear()
            # Nothing else will end a run whose job works off the stack
            end_now = not (self._starting or self._dispatching)

        self.logger.info(
            "Stopping jobs",
            current_job=job.name if job is not None else None,
            dropped_jobs=dropped
        )

        if job is not None:
            job.stop()

        if end_now:
            self._end_run()

    def _count_files(self, jobs: List[Job]) -> FileCounterResult:
        result = FileCounterResult()
        for job in jobs:
            if self._stop_requested:
                break
            result += job.count_files()
        return result

    def _advance(self) -> None:
        # Runs queued jobs in a loop instead of recursing from each job's
        # finished handler; a finish during dispatch only sets a flag.
        with self._lock:
            if self._dispatching:
                self._advance_requested = True
                return
            self._dispatching = True

        while True:
            with self._lock:
                self._advance_requested = False

            try:
                self._start_next_job()
            except BaseException:
                with self._lock:
                    self._dispatching = False
                raise

            with self._lock:
                if not self._advance_requested:
                    break

        self._leave("_dispatching")

    def _leave(self, flag: str) -> None:
        # The last of start() and the dispatch loop to leave ends a stopped run
        with self._lock:
            setattr(self, flag, False)
            end = (
                self._stop_requested
                and self._running
                and not (self._starting or self._dispatching)
            )

        if end:
            self._end_run()

    def _start_next_job(self) -> None:
        with self._lock:
            if self._stop_requested:
                return
            if self._queue:
                job = self._queue.popleft()
                self._current_job = job
            else:
                job = None

        if job is None:
            self.logger.info(
                "All jobs finished",
                total_written_bytes=self._total_written_bytes,
                proceeded_files=self._proceeded_files
            )
            self._end_run()
            self.finished.emit()
            return

        self._attach(job)
        self.logger.info("Job started", job=job.name, pending_jobs=self.pending_jobs)
        self.job_started.emit(JobEvent(job))
        job.run(self._preview)

    def _end_run(self) -> None:
        with self._lock:
            job = self._current_job
            self._running = False
            self._current_job = None
            self._queue.clear()

        # A stopped or failed job never finished, so it is still attached
        if job is not None:
            self._detach(job)

    def _attach(self, job: Job) -> None:
        for name in RELAYED_EVENTS:
            getattr(job, name).connect(getattr(self, name).emit)
        job.proceeded_file.connect(self._on_proceeded_file)
        job.finished.connect(self._on_job_finished)

    def _detach(self, job: Job) -> None:
        for name in RELAYED_EVENTS:
            getattr(job, name).disconnect(getattr(self, name).emit)
        job.proceeded_file.disconnect(self._on_proceeded_file)
        job.finished.disconnect(self._on_job_finished)

    def _on_proceeded_file(self, event: FileProceededEvent) -> None:
        # Subscribers see the notification before the counter moves
        self.proceeded_file.emit(event)
        self._proceeded_files += 1

    def _on_job_finished(self, event: JobEvent) -> None:
        job = event.job
        self._detach(job)

        self.logger.info("Job finished", job=job.name, written_bytes=job.written_bytes)
        self.job_finished.emit(JobEvent(job))
        self._total_written_bytes += job.written_bytes

        self._advance()


class JobWorkerError(Exception):
    """Base exception for job worker errors."""
    pass


class JobWorkerBusyError(JobWorkerError):
    """Raised when a run is started while another run is in progress."""
    pass

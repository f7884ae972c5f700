"""
Helper utilities for HCX operations.
Includes job/task polling, backoff calculation and cancellable waits.
"""

import random
import threading
import time
from typing import Optional, Union

from hcx_executor import config
from . import endpoints
from .errors import OperationCancelled, OperationFailed
from .models import JobStatus, OperationOutcome, TaskStatus


OperationStatus = Union[JobStatus, TaskStatus]


def calculate_backoff(attempt: int, base: float = config.VMC_BACKOFF_BASE, max_backoff: float = config.VMC_BACKOFF_MAX) -> float:
    """
    Exponential backoff with jitter.

    ``min(base * 2**attempt, max_backoff)`` plus a random extra of up to half
    of that value, so a capped result stays in ``[max_backoff, 1.5 * max_backoff)``.
    """
    backoff = min(base * (2 ** attempt), max_backoff)
    jitter = random.random() * (backoff / 2)
    return backoff + jitter


def wait_or_cancel(seconds: float, cancel_event: Optional[threading.Event] = None, what: str = "operation"):
    """Sleep ``seconds``, returning early with OperationCancelled if the event is set."""
    if cancel_event is None:
        time.sleep(seconds)
        return
    if cancel_event.is_set() or cancel_event.wait(seconds):
        raise OperationCancelled(f"Cancelled while waiting for {what}")


class AsyncOperationPoller:
    """Polls HCX jobs and interconnect tasks until they reach a terminal state"""

    def __init__(self, session):
        """
        Args:
            session: HcxSession used for the status calls
        """
        self.session = session
        self.logger = session.logger

    def job_status(self, job_id: str) -> JobStatus:
        response = self.session.get(endpoints.JOB.format(job_id=job_id))
        return JobStatus.from_response(job_id, response or {})

    def task_status(self, task_id: str) -> TaskStatus:
        response = self.session.get(endpoints.TASK.format(task_id=task_id))
        return TaskStatus.from_response(task_id, response or {})

    def _await(self, fetch, operation_id: str, label: str, poll_interval: float, max_polls: Optional[int]) -> Optional[OperationStatus]:
        polls = 0
        while True:
            status = fetch(operation_id)
            polls += 1
            outcome = status.outcome

            if outcome is OperationOutcome.SUCCEEDED:
                self.logger.info(f"{label} {operation_id} completed successfully")
                return status
            if outcome is OperationOutcome.FAILED:
                self.logger.error(f"{label} {operation_id} failed")
                raise OperationFailed(f"{label} {operation_id} failed", operation_id=operation_id)

            if max_polls is not None and polls >= max_polls:
                self.logger.warning(f"{label} {operation_id} still running after {polls} polls")
                return None

            self.logger.debug(f"{label} {operation_id} still running, next poll in {poll_interval}s")
            time.sleep(poll_interval)

    def wait_for_job(
        self,
        job_id: str,
        poll_interval: float = config.JOB_POLL_INTERVAL,
        max_polls: Optional[int] = None,
    ) -> Optional[JobStatus]:
        """
        Poll /hybridity/api/jobs/{id} until the job is done or failed.

        Args:
            job_id: HCX job id
            poll_interval: Seconds between polls
            max_polls: Stop after this many polls (None: poll until terminal)

        Returns:
            JobStatus of the finished job, or None if max_polls ran out first

        Raises:
            OperationFailed: If the job reports didFail
        """
        return self._await(self.job_status, job_id, "Job", poll_interval, max_polls)

    def wait_for_task(
        self,
        task_id: str,
        poll_interval: float = config.TASK_POLL_INTERVAL,
        max_polls: Optional[int] = None,
    ) -> Optional[TaskStatus]:
        """
        Poll /hybridity/api/interconnect/tasks/{id} until SUCCESS or FAILED.

        Same contract as wait_for_job, for the interconnect task vocabulary.
        """
        return self._await(self.task_status, task_id, "Task", poll_interval, max_polls)

"""Bookkeeping for the jobs started by the shell."""

from __future__ import annotations

import enum
import os
import signal
from dataclasses import dataclass, field
from typing import List, Optional

MAX_JOBS = 16


class JobState(enum.Enum):
    """Where a job runs."""

    UNKNOWN = 0
    FOREGROUND = 1
    BACKGROUND = 2
    STOPPED = 3


@dataclass(eq=False)
class Job:
    """One command line: a process group of one or more processes."""

    job_id: int
    state: JobState
    pgid: int = 0
    pids: List[int] = field(default_factory=list)
    total_num: int = 0
    curr_num: int = 0


class JobManager:
    """Tracks running jobs and background jobs that have finished."""

    def __init__(self) -> None:
        self._jobs: List[Job] = []
        self._done: List[Job] = []

    def __len__(self) -> int:
        return len(self._jobs)

    def add_job(self, state: JobState) -> int:
        """Register a new job and return its id."""
        job = Job(job_id=len(self._jobs) + 1, state=state)
        self._jobs.append(job)
        return job.job_id

    def find_job_by_jid(self, job_id: int) -> Optional[Job]:
        """Return the first running job with the given id, if any."""
        return next((job for job in self._jobs if job.job_id == job_id), None)

    def find_job_fg(self) -> Optional[Job]:
        """Return the first foreground job, if any."""
        return next(
            (job for job in self._jobs if job.state is JobState.FOREGROUND), None
        )

    def record_exit(self, pid: int) -> Optional[Job]:
        """Note that a process has ended.

        Return the job if this was its last process, otherwise None. A
        finished background job is kept until take_done_background().
        """
        job = next((job for job in self._jobs if pid in job.pids), None)
        if job is None:
            return None
        job.curr_num -= 1
        if job.curr_num != 0:
            return None
        self._jobs.remove(job)
        if job.state is JobState.BACKGROUND:
            self._done.insert(0, job)
        return job

    def take_done_background(self) -> List[Job]:
        """Return finished background jobs, newest first, and forget them."""
        done, self._done = self._done, []
        return done

    def terminate_all(self) -> None:
        """Kill every running job's process group and drop all jobs."""
        for job in self._jobs:
            if job.pgid:
                try:
                    os.killpg(job.pgid, signal.SIGKILL)
                except OSError:
                    pass
        self._jobs.clear()
        self._done.clear()
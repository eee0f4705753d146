import os
import time
from dataclasses import dataclass, field
from typing import List

import psutil

from PipeShell.logger import get_logger

log = get_logger(__name__)


@dataclass
class Job:
    pid: int
    command_line: str
    started_at: float
    # Popen handles for every stage; empty when only the pid is known
    processes: List = field(default_factory=list)

    def elapsed(self, now=None):
        return int((now if now is not None else time.time()) - self.started_at)

    def live_status(self):
        """Ask the OS what the process is doing right now."""
        try:
            if not psutil.pid_exists(self.pid):
                return "terminated"
            return psutil.Process(self.pid).status()
        except psutil.NoSuchProcess:
            return "terminated"
        except psutil.Error:
            return "unknown"


class JobTable:
    """
    Background jobs started by this shell: pid -> Job.

    Only the shell's own (single) thread touches the table. An entry is
    removed exactly once, by reap_finished(), when its process has exited.
    """

    def __init__(self):
        self._jobs = {}

    def __len__(self):
        return len(self._jobs)

    def __contains__(self, pid):
        return pid in self._jobs

    def __iter__(self):
        return iter(list(self._jobs.values()))

    def register(self, pid, command_line, processes=()):
        """Thêm job vào danh sách background"""
        job = Job(pid, command_line, time.time(), list(processes))
        self._jobs[pid] = job
        log.debug("registered job %d (%d stage(s)): %s", pid, len(job.processes), command_line)
        return job

    def _poll(self, job):
        """
        Non-blocking exit check.
        Returns: (finished: bool, exit_status or None)
        """
        if job.processes:
            codes = [p.poll() for p in job.processes]
            if any(code is None for code in codes):
                return False, None
            return True, codes[-1]

        try:
            pid, status = os.waitpid(job.pid, os.WNOHANG)
        except ChildProcessError:
            # Not our child (or already collected): all we can tell is whether it is gone
            return not psutil.pid_exists(job.pid), None
        if pid == 0:
            return False, None
        return True, os.waitstatus_to_exitcode(status)

    def reap_finished(self):
        """Report and forget every job whose process has exited."""
        finished = []
        now = time.time()

        for job in list(self._jobs.values()):
            done, status = self._poll(job)
            if not done:
                continue

            del self._jobs[job.pid]
            finished.append(job)
            shown = "unknown" if status is None else status
            print(f"PID: {job.pid} | Command: {job.command_line} | "
                  f"time running: {job.elapsed(now)} seconds | Exit status: {shown}")
            log.debug("reaped job %d with status %s", job.pid, shown)

        return finished

    def show_jobs(self):
        """Hiển thị danh sách tiến trình nền"""
        if not self._jobs:
            print("No background processes running")
            return

        now = time.time()
        for job in self._jobs.values():
            print(f"PID: {job.pid} | Command: {job.command_line} | "
                  f"time running: {job.elapsed(now)} seconds | Status: {job.live_status()}")

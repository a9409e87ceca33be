"""Running builtins, external commands and pipelines."""

from __future__ import annotations

import os
import signal
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, NoReturn, Optional, Sequence, TextIO, Tuple

from snush.job import JobManager, JobState
from snush.lexsyn import MAX_ARGS_CNT
from snush.tokens import Token, TokenType
from snush.util import BuiltinType, ErrorPrinter

_POLL_INTERVAL = 0.001
_REDIRECT_FLAGS = {
    0: os.O_RDONLY,
    1: os.O_CREAT | os.O_RDWR | os.O_TRUNC,
}


@dataclass
class CommandSpec:
    """Arguments of one command and its redirections, in line order."""

    argv: List[str] = field(default_factory=list)
    redirections: List[Tuple[int, str]] = field(default_factory=list)


def build_command_partial(tokens: Sequence[Token], start: int, end: int) -> CommandSpec:
    """Build the command made of tokens[start:end]."""
    spec = CommandSpec()
    pending: Optional[int] = None
    for token in tokens[start:end]:
        if token.type is TokenType.WORD:
            value = token.value or ""
            if pending is None:
                spec.argv.append(value)
            else:
                spec.redirections.append((pending, value))
                pending = None
        elif token.type is TokenType.REDIN:
            pending = 0
        elif token.type is TokenType.REDOUT:
            pending = 1
    if len(spec.argv) >= MAX_ARGS_CNT:
        raise ValueError(f"too many arguments (limit {MAX_ARGS_CNT - 1})")
    return spec


def build_command(tokens: Sequence[Token]) -> CommandSpec:
    """Build the command made of all the tokens."""
    return build_command_partial(tokens, 0, len(tokens))


def split_pipeline(tokens: Sequence[Token]) -> List[Tuple[int, int]]:
    """Return the (start, end) token range of each command between pipes."""
    bounds = []
    start = 0
    for index, token in enumerate(tokens):
        if token.type is TokenType.PIPE:
            bounds.append((start, index))
            start = index + 1
    bounds.append((start, len(tokens)))
    return bounds


def execute_builtin(
    tokens: Sequence[Token], btype: BuiltinType, report: ErrorPrinter
) -> None:
    """Run the exit or cd builtin; exit raises SystemExit."""
    if btype is BuiltinType.EXIT:
        if len(tokens) == 1:
            raise SystemExit(0)
        report.message("exit does not take any parameters")
        return
    if btype is BuiltinType.CD:
        directory: Optional[str] = None
        if len(tokens) == 1:
            directory = os.environ.get("HOME")
            if directory is None:
                report.message("cd: HOME variable not set")
                return
        elif len(tokens) == 2 and tokens[1].is_word():
            directory = tokens[1].value
        if directory is None:
            report.message("cd takes one parameter")
            return
        try:
            os.chdir(directory)
        except OSError as error:
            report.os_error(error)
        return
    raise ValueError("Bug found in execute_builtin")


def print_job(job_id: int, pgid: int, stream: Optional[TextIO] = None) -> None:
    """Announce a job that was started in the background."""
    out = stream if stream is not None else sys.stdout
    out.write(f"[{job_id}] Process group: {pgid} running in the background\n")
    out.flush()


@contextmanager
def _signals_blocked() -> Iterator[set]:
    previous = signal.pthread_sigmask(signal.SIG_BLOCK, signal.valid_signals())
    try:
        yield previous
    finally:
        signal.pthread_sigmask(signal.SIG_SETMASK, previous)


def _redirect(target: int, path: str) -> None:
    fd = os.open(path, _REDIRECT_FLAGS[target], 0o644)
    os.dup2(fd, target)
    os.close(fd)


class Executor:
    """Starts external commands as jobs and waits for foreground ones."""

    def __init__(
        self,
        manager: JobManager,
        report: ErrorPrinter,
        stdout: Optional[TextIO] = None,
    ) -> None:
        self.manager = manager
        self.report = report
        self._stdout = stdout

    @property
    def stdout(self) -> TextIO:
        return self._stdout if self._stdout is not None else sys.stdout

    def fork_exec(self, tokens: Sequence[Token], is_background: bool) -> int:
        """Run a single command as a job and return its id."""
        return self._launch([(0, len(tokens))], tokens, is_background)

    def iter_pipe_fork_exec(
        self, n_pipe: int, tokens: Sequence[Token], is_background: bool
    ) -> int:
        """Run a pipeline of n_pipe + 1 commands as one job and return its id."""
        bounds = split_pipeline(tokens)
        if len(bounds) != n_pipe + 1:
            raise ValueError("pipe count does not match the command line")
        return self._launch(bounds, tokens, is_background)

    def wait_fg(self, job_id: int) -> None:
        """Wait until the job has finished or is no longer in the foreground."""
        while True:
            job = self.manager.find_job_by_jid(job_id)
            if job is None or job.state is not JobState.FOREGROUND:
                return
            reaped, no_children = self._reap_children()
            if no_children:
                return
            if not reaped:
                time.sleep(_POLL_INTERVAL)

    def reap(self) -> List[int]:
        """Collect every finished child without blocking; return their pids."""
        return self._reap_children()[0]

    def _reap_children(self) -> Tuple[List[int], bool]:
        reaped: List[int] = []
        while True:
            try:
                pid, status = os.waitpid(-1, os.WNOHANG)
            except ChildProcessError:
                return reaped, True
            if pid == 0:
                return reaped, False
            if os.WIFEXITED(status) or os.WIFSIGNALED(status):
                self.manager.record_exit(pid)
                reaped.append(pid)

    def _flush_streams(self) -> None:
        for stream in (sys.stdout, sys.stderr, self._stdout, self.report.stream):
            if stream is not None:
                try:
                    stream.flush()
                except (OSError, ValueError):
                    pass

    def _launch(
        self,
        bounds: Sequence[Tuple[int, int]],
        tokens: Sequence[Token],
        is_background: bool,
    ) -> int:
        specs = [build_command_partial(tokens, start, end) for start, end in bounds]
        state = JobState.BACKGROUND if is_background else JobState.FOREGROUND
        owns_terminal = not is_background and os.isatty(0)

        with _signals_blocked() as previous_mask:
            job_id = self.manager.add_job(state)
            job = self.manager.find_job_by_jid(job_id)
            job.total_num = job.curr_num = len(specs)

            pgid = 0
            read_fd: Optional[int] = None
            last_pid = 0
            for index, spec in enumerate(specs):
                is_last = index == len(specs) - 1
                pipe_r, pipe_w = (None, None) if is_last else os.pipe()
                self._flush_streams()
                pid = os.fork()
                if pid == 0:
                    self._exec_child(spec, pgid, read_fd, pipe_r, pipe_w, previous_mask)
                if index == 0:
                    pgid = pid
                    job.pgid = pid
                try:
                    os.setpgid(pid, pgid)
                except OSError:
                    pass
                if read_fd is not None:
                    os.close(read_fd)
                if pipe_w is not None:
                    os.close(pipe_w)
                read_fd = pipe_r
                job.pids.append(pid)
                last_pid = pid

        if owns_terminal:
            try:
                os.tcsetpgrp(0, pgid)
            except OSError as error:
                self.report.os_error(error, "tcsetpgrp failed")
                raise SystemExit(1) from error

        if is_background:
            print_job(job_id, last_pid, self.stdout)
        else:
            self.wait_fg(job_id)
            if owns_terminal:
                self._reclaim_terminal()
        return job_id

    def _reclaim_terminal(self) -> None:
        old_ttou = signal.signal(signal.SIGTTOU, signal.SIG_IGN)
        old_ttin = signal.signal(signal.SIGTTIN, signal.SIG_IGN)
        try:
            os.tcsetpgrp(0, os.getpgrp())
        except OSError as error:
            self.report.os_error(error, "tcsetpgrp failed")
            raise SystemExit(1) from error
        finally:
            signal.signal(signal.SIGTTOU, old_ttou)
            signal.signal(signal.SIGTTIN, old_ttin)

    def _exec_child(
        self,
        spec: CommandSpec,
        pgid: int,
        read_fd: Optional[int],
        pipe_r: Optional[int],
        pipe_w: Optional[int],
        mask: set,
    ) -> NoReturn:
        try:
            signal.pthread_sigmask(signal.SIG_SETMASK, mask)
            try:
                os.setpgid(0, pgid)
            except OSError as error:
                self.report.os_error(error, "setpgid failed")
                return
            if read_fd is not None:
                os.dup2(read_fd, 0)
                os.close(read_fd)
            if pipe_w is not None:
                os.dup2(pipe_w, 1)
                os.close(pipe_r)
                os.close(pipe_w)
            for target, path in spec.redirections:
                try:
                    _redirect(target, path)
                except OSError as error:
                    self.report.os_error(error)
                    return
            try:
                os.execvp(spec.argv[0], spec.argv)
            except OSError as error:
                self.report.os_error(error, spec.argv[0])
        finally:
            os._exit(1)
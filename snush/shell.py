"""The interactive shell: reads command lines and runs them as jobs."""

from __future__ import annotations

import os
import signal
import sys
from typing import Dict, List, Optional, Sequence, TextIO

from snush.execute import Executor, execute_builtin
from snush.job import MAX_JOBS, JobManager
from snush.lexsyn import MAX_LINE_SIZE, LexError, ShellSyntaxError, lex_line, syntax_check
from snush.util import BuiltinType, ErrorPrinter, check_bg, check_builtin, count_pipe, dump_lex

PROMPT = "% "
_IGNORED_SIGNALS = (signal.SIGQUIT, signal.SIGPIPE, signal.SIGTSTP)


class Shell:
    """A small job-controlling shell with pipes, redirection and background jobs."""

    def __init__(
        self,
        name: str,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
    ) -> None:
        self.name = name
        self._stdin = stdin
        self._stdout = stdout
        self.manager = JobManager()
        self.report = ErrorPrinter(name, stderr)
        self.executor = Executor(self.manager, self.report, stdout)
        self._saved_handlers: Dict[int, object] = {}

    @property
    def stdin(self) -> TextIO:
        return self._stdin if self._stdin is not None else sys.stdin

    @property
    def stdout(self) -> TextIO:
        return self._stdout if self._stdout is not None else sys.stdout

    @property
    def stderr(self) -> TextIO:
        return self.report.stream

    def handle_line(self, line: str) -> None:
        """Lex, check and run one command line; errors are reported, not raised.

        The exit builtin raises SystemExit.
        """
        try:
            tokens = lex_line(line)
        except LexError as error:
            self.report.message(str(error))
            return
        if not tokens:
            return

        dump_lex(tokens, self.stderr)

        try:
            syntax_check(tokens)
        except ShellSyntaxError as error:
            self.report.message(str(error))
            return

        btype = check_builtin(tokens[0])
        if btype is not BuiltinType.NORMAL:
            execute_builtin(tokens, btype, self.report)
            return

        self._run_external(tokens)

    def _run_external(self, tokens: Sequence) -> None:
        is_background = check_bg(tokens)
        n_pipe = count_pipe(tokens)

        if len(self.manager) + 1 > MAX_JOBS:
            self.stderr.write(
                f"[Error] Total number of jobs execeed the limit({MAX_JOBS})\n"
            )
            self.stderr.flush()
            return

        try:
            if n_pipe > 0:
                job_id = self.executor.iter_pipe_fork_exec(n_pipe, tokens, is_background)
            else:
                job_id = self.executor.fork_exec(tokens, is_background)
        except ValueError as error:
            self.report.message(str(error))
            return

        if job_id < 0:
            self.report.message("Invalid return value of external command execution")

    def check_bg_status(self) -> List[int]:
        """Reap finished children and announce finished background jobs.

        Returns the ids of the background jobs that were announced.
        """
        try:
            self.executor.reap()
        except OSError:
            self.stderr.write("[Error] SIGCHLD handler waitpid error\n")
            self.stderr.flush()
            raise SystemExit(1)

        announced = []
        for job in self.manager.take_done_background():
            self.stdout.write(f"[{job.job_id}] Process group: {job.pgid} done\n")
            self.stdout.flush()
            announced.append(job.job_id)
        return announced

    def _on_sigint(self, signo, frame) -> None:
        job = self.manager.find_job_fg()
        if job is None or not job.pgid:
            return
        try:
            os.killpg(job.pgid, signal.SIGINT)
        except OSError:
            pass

    def _install_signal_handlers(self) -> None:
        self._saved_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, self._on_sigint)
        for signo in _IGNORED_SIGNALS:
            self._saved_handlers[signo] = signal.signal(signo, signal.SIG_IGN)

    def _restore_signal_handlers(self) -> None:
        for signo, handler in self._saved_handlers.items():
            signal.signal(signo, handler)
        self._saved_handlers.clear()

    def _read_line(self) -> str:
        return self.stdin.readline(MAX_LINE_SIZE - 1)

    def run(self) -> int:
        """Run the read-execute loop until end of input or exit; return the status."""
        self._install_signal_handlers()
        try:
            while True:
                self.check_bg_status()
                self.stdout.write(PROMPT)
                self.stdout.flush()

                line = self._read_line()
                if not line:
                    self.stdout.write("\n")
                    self.stdout.flush()
                    return 0
                self.handle_line(line)
        except SystemExit as stop:
            code = stop.code
            if code is None:
                return 0
            return code if isinstance(code, int) else 1
        finally:
            self.cleanup()

    def cleanup(self) -> None:
        """Kill remaining jobs, reap children and restore signal handlers."""
        self.manager.terminate_all()
        while True:
            try:
                pid, _ = os.waitpid(-1, os.WNOHANG)
            except ChildProcessError:
                break
            if pid == 0:
                break
        self._restore_signal_handlers()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Start an interactive shell on the standard streams."""
    args = list(sys.argv if argv is None else argv)
    name = args[0] if args and args[0] else "snush"
    return Shell(name).run()


if __name__ == "__main__":
    sys.exit(main())
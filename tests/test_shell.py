import io
import os
import re
import time

import pytest

from snush.shell import Shell


def make_shell(stdin_text=""):
    out = io.StringIO()
    err = io.StringIO()
    shell = Shell("snush", io.StringIO(stdin_text), out, err)
    return shell, out, err


def test_empty_line_does_nothing():
    shell, out, err = make_shell()
    shell.handle_line("   \n")
    assert out.getvalue() == ""
    assert err.getvalue() == ""
    assert len(shell.manager) == 0


def test_missing_command_reported():
    shell, out, err = make_shell()
    shell.handle_line("| ls\n")
    assert err.getvalue() == "snush: Missing command name\n"


def test_unmatched_quote_reported():
    shell, out, err = make_shell()
    shell.handle_line('echo "abc\n')
    assert err.getvalue() == "snush: Unmatched quote\n"


def test_invalid_background_reported():
    shell, out, err = make_shell()
    shell.handle_line("ls & ls\n")
    assert err.getvalue() == "snush: Invalid use of background\n"


def test_exit_with_argument_is_rejected():
    shell, out, err = make_shell()
    shell.handle_line("exit 1\n")
    assert err.getvalue() == "snush: exit does not take any parameters\n"


def test_exit_raises_system_exit():
    shell, out, err = make_shell()
    with pytest.raises(SystemExit) as info:
        shell.handle_line("exit\n")
    assert info.value.code == 0


def test_cd_changes_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(os.getcwd())
    shell, out, err = make_shell()
    shell.handle_line(f'cd "{tmp_path}"\n')
    assert os.path.samefile(os.getcwd(), tmp_path)
    assert err.getvalue() == ""


def test_cd_too_many_arguments(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    shell, out, err = make_shell()
    shell.handle_line("cd a b\n")
    assert err.getvalue() == "snush: cd takes one parameter\n"
    assert os.path.samefile(os.getcwd(), tmp_path)


def test_run_stops_at_end_of_input():
    shell, out, err = make_shell("")
    assert shell.run() == 0
    assert out.getvalue() == "% \n"


def test_run_stops_on_exit():
    shell, out, err = make_shell("exit\n")
    assert shell.run() == 0
    assert out.getvalue() == "% "


def test_foreground_command_with_redirection(tmp_path):
    target = tmp_path / "out.txt"
    shell, out, err = make_shell()
    shell.handle_line(f'echo hello > "{target}"\n')
    assert target.read_text() == "hello\n"
    assert len(shell.manager) == 0


def test_pipeline_output(tmp_path):
    target = tmp_path / "pipe.txt"
    shell, out, err = make_shell()
    shell.handle_line(f'echo abc | tr a x > "{target}"\n')
    assert target.read_text() == "xbc\n"
    assert len(shell.manager) == 0


def test_input_redirection(tmp_path):
    source = tmp_path / "in.txt"
    source.write_text("one\ntwo\n")
    target = tmp_path / "copy.txt"
    shell, out, err = make_shell()
    shell.handle_line(f'cat < "{source}" > "{target}"\n')
    assert target.read_text() == source.read_text()


def test_background_job_is_announced_and_finished():
    shell, out, err = make_shell()
    shell.handle_line("true &\n")
    match = re.search(r"\[(\d+)\] Process group: (\d+) running in the background",
                      out.getvalue())
    assert match is not None
    job_id, pgid = match.group(1), match.group(2)

    announced = []
    deadline = time.monotonic() + 10
    while not announced and time.monotonic() < deadline:
        announced = shell.check_bg_status()
        if not announced:
            time.sleep(0.01)
    assert announced == [int(job_id)]
    assert f"[{job_id}] Process group: {pgid} done\n" in out.getvalue()
    assert len(shell.manager) == 0
    shell.cleanup()


def test_cleanup_kills_background_jobs():
    shell, out, err = make_shell()
    shell.handle_line("sleep 30 &\n")
    assert len(shell.manager) == 1
    shell.cleanup()
    assert len(shell.manager) == 0
    assert shell.manager.take_done_background() == []
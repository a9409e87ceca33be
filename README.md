# snush

snush is a small interactive shell for POSIX systems. It reads one command
line at a time, splits it into words and operators, checks the syntax, and
runs external programs as jobs in their own process groups.

## Features

- Words with single or double quotes; quotes may appear in the middle of a
  word (`a"b c"d` is the single word `ab cd`).
- Pipelines: `ls -l | grep py | wc -l`
- Input and output redirection: `sort < in.txt > out.txt`.
  Input redirection is accepted only before the first `|`, and output
  redirection only after the last one.
- Background jobs with a trailing `&`. On start the shell prints
  `[N] Process group: PID running in the background`, where PID is the
  process id of the last command of the job. Before the next prompt after
  the job has finished it prints `[N] Process group: PGID done`.
- Builtins: `cd [dir]` (without an argument it changes to `$HOME`) and
  `exit` (which takes no arguments).
- Ctrl-C is forwarded to the foreground job only; SIGQUIT, SIGPIPE and
  SIGTSTP are ignored by the shell.
- At most 16 jobs may be running at once.
- A line of 1024 characters or more is rejected with `Command is too large`.

## Installation

```
pip install .
```

## Usage

Start the shell:

```
snush
```

It prompts with `% `. End the session with `exit` or end-of-file (Ctrl-D).
Set the `DEBUG` environment variable to have each line's tokens printed to
standard error before it runs.

Errors are written to standard error prefixed with the name the shell was
started as, for example `snush: Unmatched quote` or
`snush: Multiple redirection of standard out`.

## What it does not do

snush has no job-control commands: there is no `jobs`, `fg` or `bg`, and
jobs cannot be stopped and resumed. It does no variable expansion,
globbing, command substitution, `;`/`&&`/`||` lists, appending
redirection (`>>`) or scripting; every line is a single command or
pipeline.

## Using it from Python

The pieces can be used on their own:

```python
from snush.lexsyn import lex_line, syntax_check
from snush.util import count_pipe, check_bg

tokens = lex_line("cat 'my file.txt' | wc -l &")
syntax_check(tokens)          # raises ShellSyntaxError on bad input
print(count_pipe(tokens), check_bg(tokens))   # 1 True
```

- `snush.tokens` — `TokenType` and the `Token` dataclass.
- `snush.lexsyn` — `lex_line` (raises `UnmatchedQuoteError` or
  `LineTooLongError`, both `LexError`) and `syntax_check` (raises
  `ShellSyntaxError`, whose `result` is a `SyntaxResult`).
- `snush.util` — `check_builtin`, `count_pipe`, `check_bg`, `dump_lex` and
  `ErrorPrinter`.
- `snush.job` — `JobManager`, which tracks running jobs and finished
  background jobs.
- `snush.execute` — `build_command`, `split_pipeline`, `execute_builtin`
  and `Executor`, which forks, wires up pipes and redirections, and waits
  for foreground jobs.
- `snush.shell` — `Shell`, which runs a whole session over any text
  streams: `Shell.handle_line` processes a single line and `Shell.run`
  drives the prompt loop; `main` starts a shell on the standard streams.

## Running the tests

```
pip install .[test]
pytest
```
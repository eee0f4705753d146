import os
import sys

from config import PROMPT, SHELL_NAME
from PipeShell.builtin import execute_builtin
from PipeShell.errors import ShellError
from PipeShell.executor import execute_pipeline
from PipeShell.job_control import JobTable
from PipeShell.logger import get_logger
from PipeShell.parser import split_pipeline, tokenize

log = get_logger(__name__)


def prompt():
    """Generate shell prompt"""
    if PROMPT:
        return PROMPT
    user = os.getenv("USER") or os.getenv("USERNAME") or "user"
    cwd = os.getcwd()
    base = os.path.basename(cwd) or "/"
    return f"{user}@{SHELL_NAME}:{base}$ "


def run_line(line, jobs):
    """
    Evaluate one command line.
    Returns False when the shell should exit.
    """
    try:
        tokens, background = tokenize(line)

        if tokens[0] == "exit":
            return False

        executed, _ = execute_builtin(tokens, jobs)
        if executed:
            return True

        stages = split_pipeline(tokens)
        execute_pipeline(stages, background, jobs, command_line=line.strip())
    except ShellError as e:
        print(f"{SHELL_NAME}: {e}", file=sys.stderr)
        log.debug("recovered from %s", type(e).__name__)

    return True


def main_loop(jobs=None):
    """Main shell loop"""
    jobs = jobs if jobs is not None else JobTable()

    while True:
        try:
            jobs.reap_finished()
            line = input(prompt())
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print()
            continue

        try:
            if not run_line(line, jobs):
                break
        except KeyboardInterrupt:
            print()
            continue

    print("Goodbye!")
    return 0

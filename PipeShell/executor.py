import os
import subprocess
import sys

from PipeShell.errors import (
    ForkFailure,
    PipeCreationFailure,
    ProgramNotFound,
    StageError,
    WaitError,
)
from PipeShell.logger import get_logger
from PipeShell.parser import open_redirections, parse_redirections

log = get_logger(__name__)


def run_external(args, stdin=None, stdout=None, background=False):
    """
    Start one stage. stdin/stdout are descriptors to bind onto 0/1
    (None = inherit). The child closes every other inherited descriptor
    before exec. Any exec failure (missing, not executable, not a
    directory) is reported as "command not found.", as the shell always has.
    Returns: Popen object
    """
    try:
        # Background jobs get their own process group so Ctrl+C at the
        # prompt does not reach them
        return subprocess.Popen(
            args,
            stdin=stdin,
            stdout=stdout,
            close_fds=True,
            preexec_fn=os.setpgrp if background else None,
        )
    except OSError as e:
        # exec failures come back from the child with the program as filename
        if e.filename is not None:
            raise ProgramNotFound(args[0]) from e
        raise ForkFailure(args[0], e.strerror or str(e)) from e
    except subprocess.SubprocessError as e:
        raise ForkFailure(args[0], str(e)) from e


def create_pipes(count):
    """Allocate count pipes, all or nothing."""
    pipes = []
    try:
        for _ in range(count):
            pipes.append(os.pipe())
    except OSError as e:
        close_fds(fd for pair in pipes for fd in pair)
        raise PipeCreationFailure(e.strerror or str(e)) from e
    log.debug("created %d pipe(s): %s", count, pipes)
    return pipes


def close_fds(fds):
    for fd in fds:
        try:
            os.close(fd)
        except OSError:
            pass


def kill_all(procs):
    for p in procs:
        try:
            p.kill()
        except ProcessLookupError:
            pass


def wait_all(procs):
    """
    Block until every process has exited.
    Returns: exit status of the last one
    """
    exit_code = 0
    for p in procs:
        while True:
            try:
                exit_code = p.wait()
                break
            except KeyboardInterrupt:
                # the stages got the same SIGINT; keep collecting them
                print()
            except OSError as e:
                print(WaitError(p.pid, e.strerror or str(e)), file=sys.stderr)
                exit_code = None
                break
        log.debug("pid %d exited with %s", p.pid, exit_code)
    return exit_code


def execute_pipeline(stages, background, jobs, command_line=None):
    """
    Execute pipeline of stages.
    Returns: exit status of the last stage (foreground), 0 for background,
    None when nothing could be waited on.
    """
    # Validate every stage before creating anything
    parsed = [parse_redirections(stage) for stage in stages]

    pipes = create_pipes(len(stages) - 1)
    pipe_fds = [fd for pair in pipes for fd in pair]
    last = len(stages) - 1
    procs = []

    try:
        for idx, (args, spec) in enumerate(parsed):
            try:
                bindings = open_redirections(spec)
            except StageError as e:
                print(e, file=sys.stderr)
                continue

            stdin = bindings.stdin
            if stdin is None and idx > 0:
                stdin = pipes[idx - 1][0]
            stdout = bindings.stdout
            if stdout is None and idx < last:
                stdout = pipes[idx][1]

            try:
                p = run_external(args, stdin=stdin, stdout=stdout, background=background)
            except ProgramNotFound as e:
                print(e, file=sys.stderr)
                continue
            finally:
                bindings.close()

            log.debug("stage %d: pid %d %s (stdin=%s %s, stdout=%s %s)", idx, p.pid, args,
                      stdin, bindings.stdin_name or "", stdout, bindings.stdout_name or "")
            procs.append(p)
    except ForkFailure:
        close_fds(pipe_fds)
        pipe_fds = []
        if background:
            # detached stages ignore the prompt's Ctrl+C; never block on them
            kill_all(procs)
        wait_all(procs)
        raise
    finally:
        # Children hold their own copies now
        close_fds(pipe_fds)

    if not procs:
        return None

    if background:
        cmdline = command_line or " | ".join(" ".join(stage) for stage in stages)
        job = jobs.register(procs[-1].pid, cmdline, procs)
        print(f"Process running in the background with PID: {job.pid}")
        return 0

    return wait_all(procs)

import os
import shlex
from dataclasses import dataclass
from typing import List, Optional, Tuple

from config import (
    BACKGROUND_MARKER,
    PIPE_TOKEN,
    REDIRECT_APPEND,
    REDIRECT_FILE_MODE,
    REDIRECT_INPUT,
    REDIRECT_OPERATORS,
    REDIRECT_OUTPUT,
)
from PipeShell.errors import (
    AmbiguousRedirection,
    EmptyCommand,
    EmptyStage,
    MissingRedirectionTarget,
    RedirectionOpenFailure,
)
from PipeShell.logger import get_logger

log = get_logger(__name__)


@dataclass
class RedirectionSpec:
    """Filenames named by <, > and >> in one stage (nothing opened yet)."""
    input: Optional[str] = None
    output: Optional[str] = None
    append: Optional[str] = None

    @property
    def stdout_target(self):
        return self.append or self.output


@dataclass
class Bindings:
    """Descriptors opened for a stage's redirections. None means not redirected."""
    stdin: Optional[int] = None
    stdout: Optional[int] = None
    stdin_name: Optional[str] = None
    stdout_name: Optional[str] = None

    def fds(self):
        return [fd for fd in (self.stdin, self.stdout) if fd is not None]

    def close(self):
        for fd in self.fds():
            try:
                os.close(fd)
            except OSError:
                pass
        self.stdin = self.stdout = None


def tokenize(line):
    """
    Split a command line on whitespace and detect the background marker.
    Returns: (tokens: list, background: bool)
    """
    lex = shlex.shlex(line, posix=True)
    lex.whitespace_split = True
    lex.commenters = ""
    lex.quotes = ""
    lex.escape = ""
    tokens = list(lex)

    if not tokens:
        raise EmptyCommand()

    background = False
    last = tokens[-1]
    if last == BACKGROUND_MARKER:
        background = True
        tokens.pop()
    elif last.endswith(BACKGROUND_MARKER):
        background = True
        tokens[-1] = last[:-len(BACKGROUND_MARKER)]

    if not tokens:
        raise EmptyCommand()

    return tokens, background


def split_pipeline(tokens):
    """Group tokens into stages on the pipe token."""
    stages, cur = [], []
    for tok in tokens:
        if tok == PIPE_TOKEN:
            if not cur:
                raise EmptyStage(len(stages))
            stages.append(cur)
            cur = []
        else:
            cur.append(tok)
    if not cur:
        raise EmptyStage(len(stages))
    stages.append(cur)

    return stages


def parse_command(line):
    """
    Parse command line into pipeline stages and background flag.
    Returns: (stages: list, background: bool)
    """
    tokens, background = tokenize(line)
    return split_pipeline(tokens), background


def parse_redirections(stage) -> Tuple[List[str], RedirectionSpec]:
    """
    Pull <, > and >> with their filenames out of a stage.
    Returns: (args, spec). Opens nothing.
    """
    args, spec = [], RedirectionSpec()
    seen_output = None
    i = 0

    while i < len(stage):
        tok = stage[i]
        if tok not in REDIRECT_OPERATORS:
            args.append(tok)
            i += 1
            continue

        if i + 1 >= len(stage) or stage[i + 1] in REDIRECT_OPERATORS:
            raise MissingRedirectionTarget(tok)
        target = stage[i + 1]

        if tok == REDIRECT_INPUT:
            if spec.input is not None:
                raise AmbiguousRedirection(tok, tok)
            spec.input = target
        else:
            if seen_output is not None:
                raise AmbiguousRedirection(seen_output, tok)
            seen_output = tok
            if tok == REDIRECT_APPEND:
                spec.append = target
            else:
                spec.output = target
        i += 2

    if not args:
        raise EmptyStage()

    return args, spec


def _open(filename, flags):
    try:
        return os.open(os.path.expanduser(filename), flags, REDIRECT_FILE_MODE)
    except OSError as e:
        raise RedirectionOpenFailure(filename, e.strerror or str(e)) from e


def open_redirections(spec):
    """Open the descriptors a RedirectionSpec asks for."""
    bindings = Bindings()
    try:
        if spec.input is not None:
            bindings.stdin = _open(spec.input, os.O_RDONLY)
            bindings.stdin_name = spec.input
        target = spec.stdout_target
        if target is not None:
            mode = os.O_APPEND if spec.append is not None else os.O_TRUNC
            bindings.stdout = _open(target, os.O_WRONLY | os.O_CREAT | mode)
            bindings.stdout_name = target
    except RedirectionOpenFailure:
        bindings.close()
        raise

    log.debug("opened redirections %s -> fds %s", spec, bindings.fds())
    return bindings


def resolve_redirections(stage):
    """
    Parse and open a stage's redirections.
    Returns: (args, bindings)
    """
    args, spec = parse_redirections(stage)
    return args, open_redirections(spec)

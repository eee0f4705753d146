"""
Exceptions raised by the shell core.

    ShellError
    ├── CommandError              malformed input, recovered at the prompt
    │   ├── EmptyCommand
    │   ├── EmptyStage
    │   ├── MissingRedirectionTarget
    │   ├── AmbiguousRedirection
    │   └── BuiltinUsageError
    ├── StageError                fatal to a single pipeline stage
    │   ├── RedirectionOpenFailure
    │   └── ProgramNotFound
    └── LaunchError               aborts the pipeline being launched
        ├── ForkFailure
        ├── PipeCreationFailure
        └── WaitError
"""


class ShellError(Exception):
    """Base class for every error the shell reports."""


class CommandError(ShellError):
    pass


class StageError(ShellError):
    pass


class LaunchError(ShellError):
    pass


class EmptyCommand(CommandError):
    def __init__(self):
        super().__init__("no command entered")


class EmptyStage(CommandError):
    def __init__(self, index=None):
        self.index = index
        if index is None:
            super().__init__("empty command in pipeline")
        else:
            super().__init__(f"empty command in pipeline (stage {index + 1})")


class MissingRedirectionTarget(CommandError):
    def __init__(self, operator):
        self.operator = operator
        super().__init__(f"missing file name after {operator}")


class AmbiguousRedirection(CommandError):
    def __init__(self, first, second):
        self.operators = (first, second)
        super().__init__(f"ambiguous redirection: both {first} and {second} given")


class BuiltinUsageError(CommandError):
    def __init__(self, builtin, message):
        self.builtin = builtin
        super().__init__(f"{builtin}: {message}")


class RedirectionOpenFailure(StageError):
    def __init__(self, filename, reason):
        self.filename = filename
        self.reason = reason
        super().__init__(f"{filename}: {reason}")


class ProgramNotFound(StageError):
    def __init__(self, program):
        self.program = program
        super().__init__(f"{program}: command not found.")


class ForkFailure(LaunchError):
    def __init__(self, program, reason):
        self.program = program
        self.reason = reason
        super().__init__(f"failed to start '{program}': {reason}")


class PipeCreationFailure(LaunchError):
    def __init__(self, reason):
        self.reason = reason
        super().__init__(f"failed to create pipe: {reason}")


class WaitError(LaunchError):
    def __init__(self, pid, reason):
        self.pid = pid
        self.reason = reason
        super().__init__(f"wait error for pid {pid}: {reason}")

import os

from PipeShell.errors import BuiltinUsageError


def builtin_help():
    """Print help message"""
    print("""pipeshell help:
 Built-in commands:
  cd <dir>      : change directory
  myjobs        : list background processes
  exit          : exit shell
  help          : print this help

Features:
  Pipes using |
  Redirection using > >> <
  Background with & (run command in background)
""")
    return 0


def builtin_cd(args):
    """Change directory"""
    if not args:
        raise BuiltinUsageError("cd", "no directory specified")
    if len(args) > 1:
        raise BuiltinUsageError("cd", "too many arguments")
    try:
        os.chdir(os.path.expanduser(args[0]))
    except OSError as e:
        raise BuiltinUsageError("cd", f"{args[0]}: {e.strerror}") from e
    return 0


def builtin_myjobs(args, jobs):
    """Show background jobs"""
    if args:
        raise BuiltinUsageError("myjobs", "expected no arguments")
    jobs.show_jobs()
    return 0


def execute_builtin(tokens, jobs):
    """
    Execute built-in command if it matches.
    Returns (executed: bool, exit_code: int)
    """
    cmd, args = tokens[0], tokens[1:]

    if cmd == "cd":
        return True, builtin_cd(args)
    elif cmd == "myjobs":
        return True, builtin_myjobs(args, jobs)
    elif cmd == "help":
        return True, builtin_help()

    return False, 0

import sys

from PipeShell.logger import setup_logging
from PipeShell.shell import main_loop


def main():
    setup_logging()
    return main_loop()


if __name__ == "__main__":
    sys.exit(main())

import os

SHELL_NAME = "pipeshell"

# Empty means: build the prompt from user and current directory
PROMPT = os.getenv("PIPESHELL_PROMPT", "")

PIPE_TOKEN = "|"
BACKGROUND_MARKER = "&"

REDIRECT_INPUT = "<"
REDIRECT_OUTPUT = ">"
REDIRECT_APPEND = ">>"
REDIRECT_OPERATORS = (REDIRECT_INPUT, REDIRECT_OUTPUT, REDIRECT_APPEND)

# rw-r--r-- for files created by > and >>
REDIRECT_FILE_MODE = 0o644

LOG_LEVEL = os.getenv("PIPESHELL_LOG_LEVEL", "WARNING").upper()

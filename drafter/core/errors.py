"""Error codes for CLI exit status.

Each failure class of a drafting run maps to one stable process exit code.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    - 0: Success
    - 1: User error (bad input, invalid configuration)
    - 2: Environment error (gh missing or not authenticated)
    - 3: Release error (version could not be resolved)
    - 4: Network error (hosting API unreachable or rejected the call)
    - 5: I/O error (snapshot or config file unreadable)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    RELEASE_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

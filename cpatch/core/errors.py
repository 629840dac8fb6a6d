"""Error codes for CLI exit status.

Each fatal outcome of a patch publish maps to its own exit code so scripts
can tell "the release cannot be patched" apart from "the upload failed".
A cancelled publish exits with OK, same as a completed one.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable.
    - 0: Success (including a deliberate abort by the operator)
    - 1-5: Generic categories (usage, environment, build, network, I/O)
    - 10+: Patch publishing verdicts
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5
    INCOMPLETE_RELEASE = 10
    REVISION_MISMATCH = 11
    UNPATCHABLE_CHANGE = 12
    DIFF_CHECK_FAILED = 13
    UPLOAD_FAILED = 14

    def __str__(self) -> str:
        """Return human-readable name."""
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK

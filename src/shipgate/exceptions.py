"""Exception hierarchy for shipgate.

All exceptions inherit from :class:`ShipgateError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`shipgate.exit_codes`.
Build commands catch ``ShipgateError``, print the message and exit with the
error's code; :func:`shipgate.app.main` does the same for anything that
escapes a command and writes a crash log for unexpected exceptions.

Subclass hierarchy::

    ShipgateError (exit 1)
    +-- ConfigError                   (exit 1)
    +-- InvalidUsageError             (exit 2)
    +-- ValidationDeniedError         (exit 1)
    |   +-- ConfigurationMissingError
    |   +-- ConfigurationNotReadyError
    +-- BackendFailureError           (exit 1)
    +-- PlatformUnavailableError      (exit 1)
    +-- PostProcessError              (exit 1)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from shipgate.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INVALID_USAGE

if TYPE_CHECKING:
    from shipgate.models import BuildResult, TargetPlatform, ValidationDecision


class ShipgateError(Exception):
    """Base exception for all shipgate errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code

    @property
    def remediation(self) -> Optional[str]:
        """Next step to suggest to the operator, if the error knows one."""
        return None


class ConfigError(ShipgateError):
    """Raised for malformed project settings or application config files."""


class InvalidUsageError(ShipgateError):
    """Raised for invalid CLI arguments."""

    exit_code = EXIT_INVALID_USAGE


class ValidationDeniedError(ShipgateError):
    """Raised when the release gate refuses a build.

    The originating :class:`~shipgate.models.ValidationDecision` is kept on
    :attr:`decision` so callers can report its reason and remediation.
    """

    def __init__(self, decision: ValidationDecision):
        super().__init__(f"Release validation failed: {decision.reason}")
        self.decision = decision

    @property
    def remediation(self) -> Optional[str]:
        return self.decision.remediation


class ConfigurationMissingError(ValidationDeniedError):
    """The application configuration resource could not be found."""


class ConfigurationNotReadyError(ValidationDeniedError):
    """The application configuration is present but not ready to ship."""


class BackendFailureError(ShipgateError):
    """Raised when the build engine reports anything other than success."""

    def __init__(self, result: BuildResult, target: TargetPlatform):
        super().__init__(
            f"Build of {target.value} failed with {result.error_count} "
            f"error{'s' if result.error_count != 1 else ''}"
        )
        self.result = result
        self.target = target


class PlatformUnavailableError(ShipgateError):
    """Raised when a platform cannot be built on the current host."""

    def __init__(self, target: TargetPlatform, requirement: str):
        super().__init__(f"{target.value} build skipped (requires {requirement})")
        self.target = target
        self.requirement = requirement


class PostProcessError(ShipgateError):
    """Raised when the exported project cannot be patched after a build."""

    def __init__(self, stage: str, detail: str):
        super().__init__(f"iOS post-process failed ({stage}): {detail}")
        self.stage = stage

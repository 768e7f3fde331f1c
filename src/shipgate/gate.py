"""Pre-flight gate that refuses release builds with unconfigured settings.

The gate runs before the build engine is launched. Development builds are
always allowed: the packaged app carries a runtime fallback for placeholder
endpoints, so shipping one to testers is fine. Release builds must have a
loadable application config whose readiness flag is set.

The decision itself lives in :func:`evaluate`, which is pure and takes any
object satisfying :class:`ReleaseReadiness`. :class:`ValidationGate` adds the
file loading around it. Only the boolean readiness flag is ever consulted to
decide; the endpoint value is copied into the denial message for operators.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol

from shipgate.config import load_structured_file
from shipgate.exceptions import ConfigError
from shipgate.models import (
    ApplicationConfig,
    BuildMode,
    DenialCode,
    ValidationDecision,
    ValidationOutcome,
)

logger = logging.getLogger(__name__)

REASON_DEVELOPMENT = "development fallback permitted"
REASON_MISSING = "configuration resource not found"
REASON_READY = "production endpoint validated"


class ReleaseReadiness(Protocol):
    """What the gate needs from the application configuration."""

    @property
    def is_ready_for_release_build(self) -> bool: ...

    def diagnostic_endpoint(self) -> str: ...


def evaluate(
    mode: BuildMode,
    config: Optional[ReleaseReadiness],
    *,
    resource: str = "the application config",
) -> ValidationDecision:
    """Decide whether a build in *mode* may proceed.

    Args:
        mode: Effective mode of the build being gated.
        config: The loaded application config, or ``None`` when the
            resource does not exist.
        resource: Where the config lives, used in remediation text.

    Returns:
        An allow or deny :class:`~shipgate.models.ValidationDecision`.
    """
    if mode is BuildMode.DEVELOPMENT:
        return ValidationDecision(
            mode=mode, outcome=ValidationOutcome.ALLOW, reason=REASON_DEVELOPMENT
        )

    if config is None:
        return ValidationDecision(
            mode=mode,
            outcome=ValidationOutcome.DENY,
            code=DenialCode.CONFIGURATION_MISSING,
            reason=REASON_MISSING,
            remediation=(
                f"Create {resource} with a 'production_url' entry, "
                "or make a development build to use the runtime fallback."
            ),
        )

    if not config.is_ready_for_release_build:
        return ValidationDecision(
            mode=mode,
            outcome=ValidationOutcome.DENY,
            code=DenialCode.CONFIGURATION_NOT_READY,
            reason=(
                "production URL is not configured for release build "
                f"(current value: {config.diagnostic_endpoint()})"
            ),
            remediation=(
                f"Set 'production_url' in {resource} to your actual backend URL "
                "(e.g. https://your-app.onrender.com) and rebuild, "
                "or make a development build to use the runtime fallback."
            ),
        )

    return ValidationDecision(mode=mode, outcome=ValidationOutcome.ALLOW, reason=REASON_READY)


def load_application_config(path: Path) -> Optional[ApplicationConfig]:
    """Load the application config resource at *path*.

    Returns:
        The parsed config, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is malformed.
    """
    if not path.is_file():
        return None
    data = load_structured_file(path)
    try:
        return ApplicationConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid application config at {path}: {exc}") from exc


class ValidationGate:
    """Evaluates the release gate against the config resource on disk.

    Example::

        gate = ValidationGate(settings.app_config_path)
        decision = gate.check(BuildMode.RELEASE)
        decision.raise_for_denial()
    """

    def __init__(self, resource_path: Path) -> None:
        self._resource_path = resource_path

    @property
    def resource_path(self) -> Path:
        return self._resource_path

    def check(self, mode: BuildMode) -> ValidationDecision:
        """Evaluate the gate for a build in *mode*.

        The resource is only read for release builds, so a broken or absent
        config never gets in the way of a development build.
        """
        if mode is BuildMode.DEVELOPMENT:
            logger.debug("Development build - skipping release validation")
            return evaluate(mode, None)

        config = load_application_config(self._resource_path)
        decision = evaluate(mode, config, resource=str(self._resource_path))
        if decision.allowed and config is not None:
            for message in config.release_warnings():
                logger.warning(message)
            logger.info("Production URL validated: %s", config.diagnostic_endpoint())
        return decision

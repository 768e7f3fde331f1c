"""Sequence resolve -> host check -> release gate -> engine for each build.

:class:`BuildOrchestrator` owns a single pipeline run at a time. Failures
are raised as :class:`~shipgate.exceptions.ShipgateError` subclasses so the
command layer can turn them into diagnostics and an exit code.
:meth:`BuildOrchestrator.run_all` is the batch form: each platform runs
independently and the outcomes are collected into a :class:`BatchReport`.
"""

from __future__ import annotations

import enum
import logging
from typing import Optional

from pydantic import BaseModel

from shipgate.backend import BuildBackend, host_requirement
from shipgate.exceptions import (
    BackendFailureError,
    ConfigError,
    PlatformUnavailableError,
    PostProcessError,
    ValidationDeniedError,
)
from shipgate.exit_codes import EXIT_GENERIC_FAILURE, EXIT_SUCCESS
from shipgate.gate import ValidationGate
from shipgate.models import (
    BuildConfiguration,
    BuildIntent,
    BuildMode,
    BuildResult,
    ProjectSettings,
    TargetPlatform,
)
from shipgate.postprocess import apply_transport_security
from shipgate.resolver import ensure_output_dir, resolve_build

logger = logging.getLogger(__name__)


class PipelineStatus(str, enum.Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    DENIED = "denied"
    SKIPPED = "skipped"
    PLANNED = "planned"


class PipelineOutcome(BaseModel):
    """How one platform fared inside a batch."""

    platform: TargetPlatform
    status: PipelineStatus
    message: str = ""
    result: Optional[BuildResult] = None


class BatchReport(BaseModel):
    outcomes: list[PipelineOutcome] = []

    @property
    def exit_code(self) -> int:
        failing = (PipelineStatus.FAILED, PipelineStatus.DENIED)
        if any(o.status in failing for o in self.outcomes):
            return EXIT_GENERIC_FAILURE
        return EXIT_SUCCESS


class BuildOrchestrator:
    """Drives build pipelines against one backend.

    Args:
        settings: Resolved project settings.
        backend: Engine adapter used for every build.
        gate: Release gate; defaults to one reading ``settings.app_config_path``.
    """

    def __init__(
        self,
        settings: ProjectSettings,
        backend: BuildBackend,
        gate: Optional[ValidationGate] = None,
    ) -> None:
        self._settings = settings
        self._backend = backend
        self._gate = gate or ValidationGate(settings.app_config_path)

    def plan(self, intent: BuildIntent) -> BuildConfiguration:
        """Resolve *intent* and run every pre-flight check.

        Nothing is written to disk; the output directory is only created by
        :meth:`run`.

        Raises:
            PlatformUnavailableError: The host cannot build the platform.
            ValidationDeniedError: The release gate refused the build.
            ConfigError: The application config exists but cannot be loaded.
        """
        config = resolve_build(intent, self._settings, create_dirs=False)

        if not self._backend.supports(config.target_platform):
            raise PlatformUnavailableError(
                config.target_platform, host_requirement(config.target_platform)
            )

        if config.mode is BuildMode.RELEASE:
            decision = self._gate.check(config.mode)
            decision.raise_for_denial()
            logger.debug("Release gate: %s", decision.reason)
        return config

    def run(self, intent: BuildIntent) -> BuildResult:
        """Plan and execute one build.

        Raises:
            PlatformUnavailableError: The host cannot build the platform.
            ValidationDeniedError: The release gate refused the build; the
                engine is never launched.
            BackendFailureError: The engine reported a failure.
            PostProcessError: The exported iOS project could not be patched.
        """
        config = self.plan(intent)
        ensure_output_dir(config)
        logger.info(
            "Building %s (%s) with %s",
            config.target_platform.value,
            config.mode.value,
            self._backend.name,
        )
        result = self._backend.build(config)
        if not result.succeeded:
            raise BackendFailureError(result, config.target_platform)

        if config.target_platform is TargetPlatform.IOS:
            apply_transport_security(
                config.output_path, development=config.platform_options.development
            )
        return result

    def run_all(
        self,
        *,
        ios_development: bool = False,
        fail_fast: bool = False,
        plan_only: bool = False,
    ) -> BatchReport:
        """Build every platform in turn.

        Platforms the host cannot build are skipped. Denied or failed
        platforms are recorded and the batch moves on, unless *fail_fast*
        is set, in which case it stops after the first of them. With
        *plan_only* each platform is only planned and the engine is never
        launched.
        """
        intents = [
            BuildIntent.android_apk(),
            BuildIntent.android_aab(),
            BuildIntent.ios(development=ios_development),
        ]
        report = BatchReport()
        for intent in intents:
            outcome = self._run_one(intent, plan_only)
            report.outcomes.append(outcome)
            if fail_fast and outcome.status in (PipelineStatus.FAILED, PipelineStatus.DENIED):
                logger.info("Stopping batch after %s %s", intent.platform.value, outcome.status.value)
                break
        return report

    def _run_one(self, intent: BuildIntent, plan_only: bool) -> PipelineOutcome:
        try:
            if plan_only:
                config = self.plan(intent)
                return PipelineOutcome(
                    platform=intent.platform,
                    status=PipelineStatus.PLANNED,
                    message=str(config.output_path),
                )
            result = self.run(intent)
        except PlatformUnavailableError as exc:
            return PipelineOutcome(
                platform=intent.platform, status=PipelineStatus.SKIPPED, message=str(exc)
            )
        except ValidationDeniedError as exc:
            return PipelineOutcome(
                platform=intent.platform, status=PipelineStatus.DENIED, message=exc.decision.reason
            )
        except ConfigError as exc:
            return PipelineOutcome(
                platform=intent.platform, status=PipelineStatus.DENIED, message=str(exc)
            )
        except BackendFailureError as exc:
            return PipelineOutcome(
                platform=intent.platform,
                status=PipelineStatus.FAILED,
                message=str(exc),
                result=exc.result,
            )
        except PostProcessError as exc:
            return PipelineOutcome(
                platform=intent.platform, status=PipelineStatus.FAILED, message=str(exc)
            )
        return PipelineOutcome(
            platform=intent.platform,
            status=PipelineStatus.SUCCEEDED,
            message=str(result.artifact_path),
            result=result,
        )

"""shipgate -- build orchestrator with a release-readiness gate.

This package packages a mobile app for Android and iOS by handing a fixed
scene manifest and per-platform options to an external build engine. Before
a release build is produced, a validation gate checks the app's operational
config and refuses to continue if it would ship with a placeholder backend
URL. Development builds are never gated.

Typical workflow::

    shipgate validate                 # is the release config ready?
    shipgate build android-aab        # gated release bundle
    shipgate build all                # every platform the host supports

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    resolver: Build intent to build configuration composition.
    gate: Release validation gate.
    backend: Build engine adapters.
    orchestrator: Pipeline sequencing and batch builds.
    config: Project settings loading and precedence.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting with Rich support.
"""

__version__ = "0.1.0"

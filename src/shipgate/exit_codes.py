"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a failure category and is referenced by the
corresponding :class:`~shipgate.exceptions.ShipgateError` subclass. CI jobs
that drive ``shipgate`` only need to distinguish zero from non-zero; the
finer codes exist for wrappers that want to tell a usage mistake apart from
a failed or refused build.

Example::

    $ shipgate build android-aab
    $ echo $?
    1   # the release gate refused the build, or the engine failed
"""

EXIT_SUCCESS = 0
"""The invoked pipeline (or every pipeline of a batch) succeeded."""

EXIT_GENERIC_FAILURE = 1
"""A build was refused by the validation gate, the engine failed, or the
requested platform cannot be built on this host."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_CANCELLED = 130
"""The process was interrupted with Ctrl-C."""

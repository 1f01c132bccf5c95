"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~negotiator.exceptions.NegotiatorError` subclass.
Shell wrappers can inspect the exit code of ``negotiator probe`` to tell a
rejected credential apart from an unreachable host.

Example::

    $ negotiator probe https://intranet.example.com/
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the server kept challenging
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Authentication negotiation failed or credentials were rejected."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

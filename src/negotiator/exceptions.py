"""Exception hierarchy for negotiator.

All exceptions inherit from :class:`NegotiatorError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`negotiator.exit_codes`.
The top-level error handler in :func:`negotiator.app.main` catches
``NegotiatorError`` and exits with the appropriate code.

Inside the negotiation core, :class:`MalformedChallengeError` and
:class:`NoAcceptableSchemeError` are expected outcomes rather than bugs:
:class:`~negotiator.auth.authenticator.Authenticator` catches them and
reports them as :class:`~negotiator.auth.authenticator.NegotiationOutcome`
values, so they never escape to callers of ``authenticate``.

Subclass hierarchy::

    NegotiatorError (exit 1)
    +-- InvalidUsageError            (exit 2)
    +-- AuthenticationError          (exit 3)
    |   +-- MalformedChallengeError  (exit 3)
    |   +-- NoAcceptableSchemeError  (exit 3)
    +-- ConnectionError_             (exit 6)
    +-- ConfigError                  (exit 1)
"""

from negotiator.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
)


class NegotiatorError(Exception):
    """Base exception for all negotiator errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`negotiator.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(NegotiatorError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class AuthenticationError(NegotiatorError):
    """Raised when a scheme cannot produce a response or authentication fails."""

    exit_code = EXIT_AUTH_FAILURE


class MalformedChallengeError(AuthenticationError):
    """Raised when a challenge is structurally invalid for the scheme processing it."""


class NoAcceptableSchemeError(AuthenticationError):
    """Raised when none of the offered challenges names a supported scheme."""


class ConnectionError_(NegotiatorError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ConfigError(NegotiatorError):
    """Raised for configuration problems (invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE

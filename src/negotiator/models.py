"""Pydantic configuration models for negotiator.

These models are serialised as JSON in the user's config directory and in
the project-local ``negotiator.json`` file:

    :class:`RequestConfig`, :class:`OutputConfig` and :class:`GlobalConfig`.

Runtime negotiation types (scopes, credentials, state) live in
:mod:`negotiator.auth` rather than here; this module only holds settings.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

DEFAULT_SCHEME_PRIORITY: list[str] = ["negotiate", "ntlm", "digest", "basic", "bearer"]
"""Scheme preference order, most preferred first.

Names that no registered scheme implements are skipped by the selector, so
connection-based schemes listed here only take effect once registered.
"""


class RequestConfig(BaseModel):
    """Default HTTP request settings applied by the clients."""

    timeout: int = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/negotiator/config.json``.

    Loaded and saved by :func:`~negotiator.config.load_global_config` and
    :func:`~negotiator.config.save_global_config`. Fields here have the
    lowest precedence and can be overridden by project config, environment
    variables, or CLI flags. See :func:`~negotiator.config.resolve_config`
    for the full precedence chain.
    """

    scheme_priority: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SCHEME_PRIORITY),
        description="Auth scheme names in order of preference",
    )
    max_auth_rounds: int = Field(
        default=3,
        ge=1,
        description="Maximum challenge/response round trips per request",
    )
    credential_store: str = Field(
        default="default", description="Name of the credential store to use"
    )
    request: RequestConfig = Field(default_factory=RequestConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @field_validator("scheme_priority")
    @classmethod
    def _lowercase_priority(cls, value: list[str]) -> list[str]:
        return [name.strip().lower() for name in value if name.strip()]

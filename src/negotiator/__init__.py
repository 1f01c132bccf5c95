"""negotiator -- HTTP authentication negotiation for httpx clients.

This package decides, per target host, whether a response demands
credentialed authentication, which of the offered schemes to answer, how
to recover when a negotiation goes stale or fails, and when to ask a
credentials provider for fresh credentials.

The negotiation core never performs I/O. It is driven by the transport
layer in :mod:`negotiator.client`, which plugs it into :mod:`httpx` as an
:class:`httpx.Auth` flow.

Typical usage::

    from negotiator.auth import InMemoryCredentialsProvider, AuthScope
    from negotiator.auth.credentials import UsernamePasswordCredentials
    from negotiator.client import SyncClient

    provider = InMemoryCredentialsProvider()
    provider.set_credentials(AuthScope.ANY, UsernamePasswordCredentials(username="u", password="p"))
    with SyncClient(credentials=provider) as client:
        response = client.get("https://example.com/protected")

Modules:
    auth: The negotiation core, its state and its collaborators.
    schemes: Basic, Digest and Bearer scheme implementations.
    client: httpx integration and synchronous/asynchronous clients.
    trace: Structured trace events emitted during negotiation.
    models: Pydantic configuration models.
    config: XDG-aware configuration and credential source resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
